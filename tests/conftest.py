# tests/conftest.py
import os

os.environ["POSTGRES_URL"] = "sqlite://"

import threading
import time
import pytest
from fastapi.testclient import TestClient
from marketplace.db import Base, engine, SessionLocal
from marketplace.main import app
from marketplace.models import User
from marketplace.storage import get_blob_store


class FakeBlobStore:
    """In-memory stand-in for the Azure container."""

    def __init__(self, fail_on=None, delay_for=None):
        self.blobs = {}
        self.fail_on = fail_on or set()
        self.delay_for = delay_for or {}
        self._lock = threading.Lock()

    def upload(self, name, data, content_type="image/jpeg"):
        time.sleep(self.delay_for.get(data, 0))
        if data in self.fail_on:
            raise IOError("blob service unavailable")
        url = f"https://blobs.test/listings/{name}"
        with self._lock:
            self.blobs[url] = data
        return url


@pytest.fixture(autouse=True)
def tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def store():
    return FakeBlobStore()


@pytest.fixture
def client(store):
    app.dependency_overrides[get_blob_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user(db):
    u = User(email="a@b.com")
    db.add(u)
    db.commit()
    return u.userid
