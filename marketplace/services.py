# marketplace/services.py
import os
from concurrent.futures import ThreadPoolExecutor
from typing import List, Tuple
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from . import crud, schemas
from .db import transaction
from .errors import ValidationError, InvalidFileType, NotFound, StoreFailure
from .storage import BlobStore
from .utils import logger, is_image_file, generate_blob_name

BLOB_UPLOAD_WORKERS = int(os.getenv("BLOB_UPLOAD_WORKERS", "4"))

REQUIRED_LISTING_FIELDS = ("title", "description", "zip", "itemcategory", "email")


def validate_listing_submission(fields: dict, files: List[Tuple[str, bytes]]):
    missing = [name for name in REQUIRED_LISTING_FIELDS if not fields.get(name)]
    if missing:
        raise ValidationError("Title, description, zip, itemcategory, and email are required.")
    if not files:
        raise ValidationError("No files uploaded.")
    for filename, _ in files:
        if not is_image_file(filename):
            raise InvalidFileType(f"Invalid file type for {filename!r}. Please upload only images.")


def upload_images(store: BlobStore, files: List[Tuple[str, bytes]]) -> List[str]:
    """Upload every file in parallel; returned URLs follow input order."""
    with ThreadPoolExecutor(max_workers=max(1, min(BLOB_UPLOAD_WORKERS, len(files)))) as pool:
        futures = [pool.submit(store.upload, generate_blob_name(), data) for _, data in files]
    urls, errors = [], []
    for future in futures:
        exc = future.exception()
        if exc is None:
            urls.append(future.result())
        else:
            errors.append(exc)
    if errors:
        if urls:
            logger.warning("Upload failed; %d blob(s) left orphaned: %s", len(urls), urls)
        raise StoreFailure(f"Error during file upload: {errors[0]}") from errors[0]
    return urls


def insert_listing_details(db: Session, email, listingname, description, zipcode,
                           image_urls: List[str], itemcategory) -> schemas.ListingResult:
    """Write the listing, its image rows and its image count in one transaction.

    Relational failures roll back and come back as ``success=False``.
    """
    try:
        with transaction(db):
            userid = crud.get_userid_by_email(db, email)
            if userid is None:
                raise NotFound("User not found.")
            listingid = crud.insert_listing(db, listingname, description, zipcode, userid, itemcategory)
            crud.insert_image_urls(db, listingid, image_urls)
            crud.refresh_image_count(db, listingid)
    except NotFound as e:
        logger.error("Transaction Error: %s", e)
        return schemas.ListingResult(success=False, message=str(e), reason="not_found")
    except SQLAlchemyError as e:
        logger.error("Transaction Error: %s", e)
        return schemas.ListingResult(success=False, message="Error during database insertion.",
                                     reason="transaction")

    logger.info("Created listing %s with %d image(s)", listingid, len(image_urls))
    return schemas.ListingResult(
        success=True,
        message="Successfully uploaded listing details and associated images.",
        listingid=listingid,
        listingname=listingname,
        description=description,
        zipcode=zipcode,
        itemcategory=itemcategory,
        imageurls=image_urls,
        userid=userid,
    )


def create_listing(db: Session, store: BlobStore, email, title, description, zip_code,
                   itemcategory, files: List[Tuple[str, bytes]]) -> schemas.UploadResponse:
    fields = {"title": title, "description": description, "zip": zip_code,
              "itemcategory": itemcategory, "email": email}
    validate_listing_submission(fields, files)

    # all uploads finish before the transaction opens
    urls = upload_images(store, files)

    result = insert_listing_details(db, email, title, description, zip_code, urls, itemcategory)
    if not result.success:
        logger.warning("Listing transaction failed; %d blob(s) left orphaned: %s", len(urls), urls)
    return schemas.UploadResponse(
        message="Title and description received successfully. Files uploaded successfully.",
        uploadedData=schemas.UploadedData(
            listingname=title,
            description=description,
            zip=zip_code,
            itemcategory=itemcategory,
            email=email,
            urls=urls,
        ),
        listingResult=result,
    )


def delete_listing(db: Session, listingid: int) -> int:
    with transaction(db):
        removed = crud.delete_listing(db, listingid)
    logger.info("Deleted listing %s (%d row)", listingid, removed)
    return removed


def trim_picture_url(url: str) -> str:
    if url.startswith("{"):
        url = url[1:]
    if url.endswith("}"):
        url = url[:-1]
    return url


def create_item(db: Session, itemtype, description, zipcode, blob_urls: List[str], itemcategory):
    trimmed = [trim_picture_url(u) for u in blob_urls]
    # only the new row is trimmed, existing rows are left untouched
    picture = ",".join(trimmed).strip('"{}') if trimmed else None
    item = crud.insert_item(db, itemtype, description, zipcode, picture, itemcategory)
    logger.info("Inserted item %s (%s)", item.itemid, itemtype)
    return item
