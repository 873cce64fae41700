# marketplace/api/routes.py
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional
from .. import crud, schemas, services
from ..db import get_db
from ..errors import NotFound, TransactionFailure
from ..storage import BlobStore, get_blob_store
from ..utils import logger

router = APIRouter()


def _db_error(e: Exception, detail: str):
    logger.exception("Database Query Error: %s", e)
    return HTTPException(status_code=500, detail=detail)


@router.get("/health")
def health():
    return {"status": "ok"}


# --- listings ---

@router.post("/uploadimage", response_model=schemas.UploadResponse)
def upload_image(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    zip: Optional[str] = Form(None),
    itemcategory: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    image: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    store: BlobStore = Depends(get_blob_store),
):
    files = [(f.filename, f.file.read()) for f in (image or [])]
    response = services.create_listing(db, store, email, title, description, zip, itemcategory, files)
    result = response.listingResult
    if not result.success:
        error = NotFound if result.reason == "not_found" else TransactionFailure
        return JSONResponse(status_code=error.status_code, content=response.model_dump())
    return response


@router.get("/api/listings", response_model=List[schemas.ListingOut])
def listings(db: Session = Depends(get_db)):
    try:
        return crud.fetch_listings_with_details(db)
    except SQLAlchemyError as e:
        raise _db_error(e, "Error fetching listings from the database.")


@router.get("/api/listings/postimages/{listingid}", response_model=List[str])
def listing_images(listingid: int, db: Session = Depends(get_db)):
    try:
        return crud.fetch_listing_images(db, listingid)
    except SQLAlchemyError as e:
        raise _db_error(e, "Error fetching images for listing.")


@router.get("/api/listings/sort/{field}/{direction}", response_model=List[schemas.SortedListingOut])
def listings_sorted(field: str, direction: str, db: Session = Depends(get_db)):
    try:
        return crud.sorted_listings(db, field, direction)
    except SQLAlchemyError as e:
        raise _db_error(e, "Error retrieving sorted items from the database")


@router.delete("/api/listings/delete")
def delete_listing(payload: schemas.ListingDelete, db: Session = Depends(get_db)):
    try:
        services.delete_listing(db, payload.listingid)
    except SQLAlchemyError as e:
        raise _db_error(e, "Error deleting items from the database")
    return {"message": "Deleted successfully"}


@router.get("/listing/{listingid}/userID")
def listing_owner(listingid: int, db: Session = Depends(get_db)):
    try:
        return crud.get_listing_owner(db, listingid)
    except SQLAlchemyError as e:
        raise _db_error(e, "Error retrieving userID for the listing")


# --- legacy items ---

@router.get("/items", response_model=List[schemas.ItemOut])
def items(db: Session = Depends(get_db)):
    try:
        return crud.list_items(db)
    except SQLAlchemyError as e:
        raise _db_error(e, "Error retrieving items from the database")


@router.post("/items", response_model=schemas.ItemOut, status_code=201)
def create_item(payload: schemas.ItemCreate, db: Session = Depends(get_db)):
    try:
        return services.create_item(
            db, payload.itemtype, payload.description, payload.zipcode,
            payload.blob_urls, payload.itemcategory,
        )
    except SQLAlchemyError as e:
        raise _db_error(e, "Error during database insertion.")


@router.get("/items/images", response_model=List[schemas.ImagePair])
def accepted_images(db: Session = Depends(get_db)):
    try:
        return crud.accepted_image_pairs(db)
    except SQLAlchemyError as e:
        raise _db_error(e, "Failed to retrieve image URLs and listing IDs")


@router.get("/items/sort/{field}/{direction}", response_model=List[schemas.SortedItemOut])
def items_sorted(field: str, direction: str, db: Session = Depends(get_db)):
    try:
        return crud.list_items_sorted(db, field, direction)
    except SQLAlchemyError as e:
        raise _db_error(e, "Error retrieving sorted items from the database")


@router.get("/user-items/{userid}", response_model=List[schemas.ListItemOut])
def user_items(userid: int, db: Session = Depends(get_db)):
    try:
        return crud.list_user_items(db, userid)
    except SQLAlchemyError as e:
        raise _db_error(e, "Error retrieving items for the user")


@router.delete("/deletePost/{itemtype}")
def delete_post(itemtype: str, db: Session = Depends(get_db)):
    try:
        removed = crud.delete_items_by_type(db, itemtype)
    except SQLAlchemyError as e:
        raise _db_error(e, "Failed to delete post")
    if removed == 0:
        raise HTTPException(status_code=404, detail="No item found with the specified itemType")
    return {"message": "Item deleted successfully", "deleted": removed}


@router.delete("/deletePostById/{itemid}")
def delete_post_by_id(itemid: int, db: Session = Depends(get_db)):
    try:
        removed = crud.delete_item_by_id(db, itemid)
    except SQLAlchemyError as e:
        raise _db_error(e, "Failed to delete post")
    if removed == 0:
        raise HTTPException(status_code=404, detail="No item found with the specified itemId")
    return {"message": "Item deleted successfully", "deleted": removed}


@router.get("/getItemId/{itemtype}")
def get_item_id(itemtype: str, db: Session = Depends(get_db)):
    try:
        item_id = crud.get_item_id(db, itemtype)
    except SQLAlchemyError as e:
        raise _db_error(e, "Failed to retrieve item ID")
    if item_id is None:
        raise HTTPException(status_code=404, detail="No item found with the specified itemType")
    return {"itemId": item_id}


@router.get("/imageCount")
def image_count(db: Session = Depends(get_db)):
    try:
        return {"imageCount": crud.count_items_with_images(db)}
    except SQLAlchemyError as e:
        raise _db_error(e, "Failed to retrieve image count")


# --- admin ---

@router.get("/api/admin/user-count")
def user_count(db: Session = Depends(get_db)):
    try:
        return {"userCount": crud.count_users(db)}
    except SQLAlchemyError as e:
        raise _db_error(e, "Failed to retrieve user count")


@router.get("/api/admin/userData")
def user_data(db: Session = Depends(get_db)):
    try:
        users = crud.list_users(db)
    except SQLAlchemyError as e:
        raise _db_error(e, "Failed to retrieve user data")
    return {"userData": [schemas.UserOut.model_validate(u).model_dump() for u in users]}
