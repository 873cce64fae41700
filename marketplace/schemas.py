# marketplace/schemas.py
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class ListingResult(BaseModel):
    """Outcome of the listing transaction; failures are returned, not raised."""
    success: bool
    message: str
    reason: Optional[str] = None
    listingid: Optional[int] = None
    listingname: Optional[str] = None
    description: Optional[str] = None
    zipcode: Optional[str] = None
    itemcategory: Optional[str] = None
    imageurls: List[str] = Field(default_factory=list)
    userid: Optional[int] = None


class UploadedData(BaseModel):
    listingname: str
    description: str
    zip: str
    itemcategory: str
    email: str
    urls: List[str]


class UploadResponse(BaseModel):
    message: str
    uploadedData: UploadedData
    listingResult: ListingResult


class ListingOut(BaseModel):
    listingid: int
    listingname: str
    description: Optional[str] = None
    zipcode: Optional[str] = None
    itemcategory: Optional[str] = None
    username: Optional[str] = None
    imageurls: List[Optional[str]] = Field(default_factory=list)


class SortedListingOut(ListingOut):
    dateposted: Optional[datetime] = None


class ListingDelete(BaseModel):
    listingid: int


class ItemBase(BaseModel):
    itemtype: Optional[str] = None
    description: Optional[str] = None
    zipcode: Optional[str] = None
    itemcategory: Optional[str] = None


class ItemCreate(ItemBase):
    blob_urls: List[str] = Field(default_factory=list)


class ItemOut(ItemBase):
    itemid: int
    itempictureurl: Optional[str] = None

    class Config:
        from_attributes = True


class SortedItemOut(BaseModel):
    itemtype: Optional[str] = None
    description: Optional[str] = None
    zipcode: Optional[str] = None
    itempictureurl: Optional[str] = None

    class Config:
        from_attributes = True


class ListItemOut(BaseModel):
    listitemid: int
    userid: Optional[int] = None
    itemtype: Optional[str] = None
    description: Optional[str] = None
    zipcode: Optional[str] = None
    itempictureurl: Optional[str] = None
    status: Optional[str] = None

    class Config:
        from_attributes = True


class ImagePair(BaseModel):
    itempictureurl: Optional[str] = None
    listingid: Optional[int] = None


class UserOut(BaseModel):
    userid: int
    email: str

    class Config:
        from_attributes = True
