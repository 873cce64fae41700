# marketplace/crud.py
"""Query helpers for listings, image references and the legacy tables.

The listing write helpers (`insert_listing`, `insert_image_urls`,
`refresh_image_count`) never commit; they are meant to run inside
`db.transaction`. Single-statement legacy writes commit on their own.
"""
from sqlalchemy import select, update, delete, func, asc, desc
from sqlalchemy.orm import Session
from typing import Dict, List, Optional
from .errors import NotFound
from .models import User, Listing, ImageReference, Item, ListItem, ImageSubmission

LISTING_SORT_COLUMNS = {
    "dateposted": Listing.dateposted,
    "zipcode": Listing.zipcode,
    "itemcategory": Listing.itemcategory,
}
LISTING_SORT_DIRECTIONS = {"asc": asc, "desc": desc}

ITEM_SORT_COLUMNS = {
    "zipcode": Item.zipcode,
    "itemcategory": Item.itemcategory,
}
ITEM_SORT_DIRECTIONS = {"ascending": asc, "descending": desc}


def _order_by(columns, directions, field, direction):
    # only allow-listed columns ever reach the ORDER BY clause
    if field not in columns or direction not in directions:
        raise NotFound(f"Unknown sort: {field}/{direction}")
    return directions[direction](columns[field])


# --- listing transaction steps ---

def get_userid_by_email(db: Session, email: str) -> Optional[int]:
    return db.execute(select(User.userid).where(User.email == email)).scalar_one_or_none()


def insert_listing(db: Session, listingname, description, zipcode, userid, itemcategory) -> int:
    listing = Listing(
        listingname=listingname,
        description=description,
        zipcode=zipcode,
        status="Active",
        userid=userid,
        itemcategory=itemcategory,
    )
    db.add(listing)
    db.flush()
    return listing.listingid


def insert_image_urls(db: Session, listingid: int, image_urls: List[str]):
    db.add_all([ImageReference(listingid=listingid, imageurl=url) for url in image_urls])
    db.flush()


def refresh_image_count(db: Session, listingid: int):
    count = (
        select(func.count())
        .select_from(ImageReference)
        .where(ImageReference.listingid == listingid)
        .scalar_subquery()
    )
    db.execute(
        update(Listing).where(Listing.listingid == listingid).values(imagecount=count),
        execution_options={"synchronize_session": False},
    )


# --- listing queries ---

def _images_by_listing(db: Session, listingids: List[int]) -> Dict[int, List[str]]:
    if not listingids:
        return {}
    rows = db.execute(
        select(ImageReference.listingid, ImageReference.imageurl)
        .where(ImageReference.listingid.in_(listingids))
        .order_by(ImageReference.imageid)
    ).all()
    images: Dict[int, List[str]] = {}
    for listingid, url in rows:
        images.setdefault(listingid, []).append(url)
    return images


def fetch_listings_with_details(db: Session) -> List[Dict]:
    rows = db.execute(
        select(
            Listing.listingid,
            Listing.listingname,
            Listing.description,
            Listing.zipcode,
            Listing.itemcategory,
            User.email.label("username"),
        )
        .join(User, Listing.userid == User.userid)
        .order_by(Listing.listingid)
    ).all()
    listings = [dict(row._mapping) for row in rows]
    images = _images_by_listing(db, [l["listingid"] for l in listings])
    for listing in listings:
        listing["imageurls"] = images.get(listing["listingid"], [])
    return listings


def fetch_listing_images(db: Session, listingid: int) -> List[str]:
    return list(db.execute(
        select(ImageReference.imageurl)
        .where(ImageReference.listingid == listingid)
        .order_by(ImageReference.imageid)
    ).scalars())


def sorted_listings(db: Session, field: str, direction: str) -> List[Dict]:
    """Listings left-joined to owner and images, one entry per listing.

    A listing without images carries ``[None]``, the shape an array
    aggregate over an outer join produces.
    """
    order = _order_by(LISTING_SORT_COLUMNS, LISTING_SORT_DIRECTIONS, field, direction)
    rows = db.execute(
        select(
            Listing.listingid,
            Listing.listingname,
            Listing.description,
            Listing.zipcode,
            Listing.itemcategory,
            User.email.label("username"),
            Listing.dateposted,
            ImageReference.imageurl,
        )
        .outerjoin(User, Listing.userid == User.userid)
        .outerjoin(ImageReference, Listing.listingid == ImageReference.listingid)
        .order_by(order, Listing.listingid, ImageReference.imageid)
    ).all()
    grouped: Dict[int, Dict] = {}
    for row in rows:
        entry = grouped.get(row.listingid)
        if entry is None:
            entry = {k: v for k, v in row._mapping.items() if k != "imageurl"}
            entry["imageurls"] = []
            grouped[row.listingid] = entry
        entry["imageurls"].append(row.imageurl)
    return list(grouped.values())


def get_listing_owner(db: Session, listingid: int) -> Optional[int]:
    row = db.execute(select(Listing.userid).where(Listing.listingid == listingid)).first()
    if row is None:
        raise NotFound("Listing not found")
    return row.userid


def delete_listing(db: Session, listingid: int) -> int:
    db.execute(delete(ImageReference).where(ImageReference.listingid == listingid))
    result = db.execute(delete(Listing).where(Listing.listingid == listingid))
    return result.rowcount


# --- legacy items ---

def insert_item(db: Session, itemtype, description, zipcode, itempictureurl, itemcategory) -> Item:
    item = Item(
        itemtype=itemtype,
        description=description,
        zipcode=zipcode,
        itempictureurl=itempictureurl,
        itemcategory=itemcategory,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def list_items(db: Session) -> List[Item]:
    return list(db.execute(select(Item).order_by(Item.itemid)).scalars())


def list_items_sorted(db: Session, field: str, direction: str) -> List[Item]:
    order = _order_by(ITEM_SORT_COLUMNS, ITEM_SORT_DIRECTIONS, field, direction)
    return list(db.execute(select(Item).order_by(order, Item.itemid)).scalars())


def delete_items_by_type(db: Session, itemtype: str) -> int:
    result = db.execute(delete(Item).where(Item.itemtype == itemtype))
    db.commit()
    return result.rowcount


def delete_item_by_id(db: Session, itemid: int) -> int:
    result = db.execute(delete(Item).where(Item.itemid == itemid))
    db.commit()
    return result.rowcount


def get_item_id(db: Session, itemtype: str) -> Optional[int]:
    return db.execute(
        select(Item.itemid).where(Item.itemtype == itemtype).order_by(Item.itemid).limit(1)
    ).scalar_one_or_none()


def count_items_with_images(db: Session) -> int:
    return db.execute(
        select(func.count()).select_from(Item).where(Item.itempictureurl.is_not(None))
    ).scalar_one()


def list_user_items(db: Session, userid: int) -> List[ListItem]:
    return list(db.execute(
        select(ListItem).where(ListItem.userid == userid).order_by(ListItem.listitemid)
    ).scalars())


def accepted_image_pairs(db: Session) -> List[Dict]:
    rows = db.execute(
        select(ImageSubmission.itempictureurl, ImageSubmission.listingid)
        .where(ImageSubmission.status == "Accepted")
        .order_by(ImageSubmission.urlid)
    ).all()
    return [dict(row._mapping) for row in rows]


# --- admin ---

def count_users(db: Session) -> int:
    return db.execute(select(func.count()).select_from(User)).scalar_one()


def list_users(db: Session) -> List[User]:
    return list(db.execute(select(User).order_by(User.userid)).scalars())
