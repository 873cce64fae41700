# marketplace/storage.py
"""Azure Blob Storage client for listing images.

The store is an opaque name -> bytes map that hands back a public URL per
upload. Nothing here retries or deduplicates. The container client is
built on first upload, so a missing configuration only surfaces once a
request actually needs the store.
"""
import os
import threading
from dotenv import load_dotenv
from azure.storage.blob import BlobServiceClient, ContentSettings
from .errors import StoreFailure
from .utils import logger

load_dotenv()

AZURE_STORAGE_CONNECTION_STRING = os.getenv("AZURE_STORAGE_CONNECTION_STRING")
AZURE_CONTAINER_NAME = os.getenv("AZURE_CONTAINER_NAME")
BLOB_UPLOAD_TIMEOUT = int(os.getenv("BLOB_UPLOAD_TIMEOUT", "30"))


class BlobStore:
    def __init__(self, container_client=None, timeout: int = BLOB_UPLOAD_TIMEOUT):
        self._container = container_client
        self._lock = threading.Lock()
        self.timeout = timeout

    def _container_client(self):
        with self._lock:
            if self._container is None:
                if not AZURE_STORAGE_CONNECTION_STRING or not AZURE_CONTAINER_NAME:
                    raise StoreFailure("AZURE_STORAGE_CONNECTION_STRING / AZURE_CONTAINER_NAME not set")
                service = BlobServiceClient.from_connection_string(AZURE_STORAGE_CONNECTION_STRING)
                self._container = service.get_container_client(AZURE_CONTAINER_NAME)
                logger.info("Blob store ready for container %s", AZURE_CONTAINER_NAME)
            return self._container

    def upload(self, name: str, data: bytes, content_type: str = "image/jpeg") -> str:
        blob = self._container_client().get_blob_client(name)
        blob.upload_blob(
            data,
            length=len(data),
            timeout=self.timeout,
            content_settings=ContentSettings(content_type=content_type),
        )
        return blob.url


_store = BlobStore()


def get_blob_store() -> BlobStore:
    """FastAPI dependency; never touches the network or raises."""
    return _store
