# tests/test_services.py
import logging
import pytest
from marketplace import services
from marketplace.errors import ValidationError, InvalidFileType, StoreFailure
from marketplace.models import Listing, ImageReference
from conftest import FakeBlobStore

PNG = [("front.png", b"front"), ("back.jpg", b"back")]


def _create(db, store, files=PNG, email="a@b.com", **overrides):
    fields = dict(title="Bike", description="Red bike", zip_code="12345", itemcategory="Sports")
    fields.update(overrides)
    return services.create_listing(db, store, email, fields["title"], fields["description"],
                                   fields["zip_code"], fields["itemcategory"], files)


def test_create_listing_writes_listing_and_images(db, store, user):
    response = _create(db, store)
    result = response.listingResult
    assert result.success
    assert result.userid == user
    assert response.uploadedData.urls == result.imageurls
    assert len(store.blobs) == 2
    listing = db.get(Listing, result.listingid)
    assert listing.imagecount == 2
    assert db.query(ImageReference).filter_by(listingid=result.listingid).count() == 2


@pytest.mark.parametrize("missing", ["title", "description", "zip_code", "itemcategory"])
def test_missing_field_is_rejected_before_upload(db, store, user, missing):
    with pytest.raises(ValidationError):
        _create(db, store, **{missing: ""})
    assert store.blobs == {}
    assert db.query(Listing).count() == 0


def test_missing_email_and_no_files(db, store, user):
    with pytest.raises(ValidationError):
        _create(db, store, email=None)
    with pytest.raises(ValidationError, match="No files"):
        _create(db, store, files=[])
    assert store.blobs == {}


def test_non_image_file_aborts_everything(db, store, user):
    with pytest.raises(InvalidFileType):
        _create(db, store, files=PNG + [("notes.txt", b"hello")])
    with pytest.raises(InvalidFileType):
        _create(db, store, files=[("noextension", b"data")])
    assert store.blobs == {}
    assert db.query(Listing).count() == 0


def test_upload_order_follows_input_not_completion():
    store = FakeBlobStore(delay_for={b"first": 0.2, b"second": 0.1})
    files = [("1.png", b"first"), ("2.png", b"second"), ("3.png", b"third")]
    urls = services.upload_images(store, files)
    assert [store.blobs[u] for u in urls] == [b"first", b"second", b"third"]
    assert all(u.endswith(".jpg") for u in urls)


def test_upload_failure_logs_orphans(caplog):
    store = FakeBlobStore(fail_on={b"bad"})
    with caplog.at_level(logging.WARNING, logger="listing-service"):
        with pytest.raises(StoreFailure):
            services.upload_images(store, [("ok.png", b"ok"), ("bad.png", b"bad")])
    assert len(store.blobs) == 1
    assert "orphaned" in caplog.text


def test_unknown_user_rolls_back_and_returns_failure(db, store, caplog):
    with caplog.at_level(logging.WARNING, logger="listing-service"):
        response = _create(db, store, email="ghost@example.com")
    result = response.listingResult
    assert not result.success
    assert result.reason == "not_found"
    assert result.message == "User not found."
    assert db.query(Listing).count() == 0
    assert db.query(ImageReference).count() == 0
    # blobs are not compensated
    assert len(store.blobs) == 2
    assert "orphaned" in caplog.text


def test_delete_listing_is_idempotent(db, store, user):
    listingid = _create(db, store).listingResult.listingid
    assert services.delete_listing(db, listingid) == 1
    assert services.delete_listing(db, listingid) == 0
    assert db.query(ImageReference).count() == 0


def test_trim_picture_url():
    assert services.trim_picture_url("{https://x/a.jpg}") == "https://x/a.jpg"
    assert services.trim_picture_url("https://x/{a}.jpg") == "https://x/{a}.jpg"


def test_create_item_trims_only_new_row(db):
    from marketplace import crud
    old = crud.insert_item(db, "Old", "", "1", '"{legacy}"', "Misc").itemid
    item = services.create_item(db, "Chair", "wooden", "12345",
                                ["{https://x/a.jpg}", "{https://x/b.jpg}"], "Furniture")
    assert item.itempictureurl == "https://x/a.jpg,https://x/b.jpg"
    assert crud.list_items(db)[0].itemid == old
    assert crud.list_items(db)[0].itempictureurl == '"{legacy}"'


def test_create_item_without_urls(db):
    item = services.create_item(db, "Chair", "wooden", "12345", [], "Furniture")
    assert item.itempictureurl is None


def test_db_failure_returns_short_message_and_rolls_back(db, store, user, monkeypatch):
    from sqlalchemy.exc import OperationalError
    from marketplace import crud

    def broken_insert(*args, **kwargs):
        raise OperationalError("INSERT INTO imageurl ...", {}, Exception("disk I/O error"))

    monkeypatch.setattr(crud, "insert_image_urls", broken_insert)
    result = _create(db, store).listingResult
    assert not result.success
    assert result.reason == "transaction"
    assert result.message == "Error during database insertion."
    assert "[SQL" not in result.message
    assert db.query(Listing).count() == 0
