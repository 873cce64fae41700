# marketplace/models.py
"""SQLAlchemy ORM models for persisted entities.

`Listing` and `ImageReference` back the listing ingestion and query paths.
`Item`, `ListItem` and `ImageSubmission` are the older tables still read by
the legacy endpoints.
"""
from sqlalchemy import Column, Integer, Text, TIMESTAMP, ForeignKey, func, Index
from .db import Base


class User(Base):
    __tablename__ = "users"
    userid = Column(Integer, primary_key=True)
    email = Column(Text, nullable=False, unique=True, index=True)


class Listing(Base):
    __tablename__ = "listings"
    listingid = Column(Integer, primary_key=True)
    listingname = Column(Text, nullable=False)
    description = Column(Text)
    zipcode = Column(Text)
    itemcategory = Column(Text)
    status = Column(Text, nullable=False, server_default="Active")
    userid = Column(Integer, ForeignKey("users.userid"))
    imagecount = Column(Integer, nullable=False, server_default="0")
    dateposted = Column(TIMESTAMP(timezone=True), server_default=func.now())


class ImageReference(Base):
    __tablename__ = "imageurl"
    # surrogate key; also gives each listing's images a stable order
    imageid = Column(Integer, primary_key=True)
    listingid = Column(Integer, ForeignKey("listings.listingid"), nullable=False, index=True)
    imageurl = Column(Text, nullable=False)


class Item(Base):
    __tablename__ = "items"
    itemid = Column(Integer, primary_key=True)
    itemtype = Column(Text)
    description = Column(Text)
    zipcode = Column(Text)
    itempictureurl = Column(Text)
    itemcategory = Column(Text)


class ListItem(Base):
    __tablename__ = "listitems"
    listitemid = Column(Integer, primary_key=True)
    userid = Column(Integer, index=True)
    itemtype = Column(Text)
    description = Column(Text)
    zipcode = Column(Text)
    itempictureurl = Column(Text)
    status = Column(Text)


class ImageSubmission(Base):
    __tablename__ = "url"
    urlid = Column(Integer, primary_key=True)
    listingid = Column(Integer)
    itempictureurl = Column(Text)
    status = Column(Text)


Index("idx_listings_dateposted", Listing.dateposted)
Index("idx_listings_zipcode", Listing.zipcode)
