# marketplace/utils.py
"""Shared utilities: logging, media-type checks and blob naming."""
import os
import logging
import mimetypes
import random
import string
import time
from dotenv import load_dotenv

load_dotenv()

_BASE36 = string.digits + string.ascii_lowercase


def get_logger(name=__name__):
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        level=getattr(logging, level, logging.INFO)
    )
    return logging.getLogger(name)

logger = get_logger("listing-service")


def guess_media_type(filename):
    """Media type from the filename extension only; file content is not inspected."""
    if not filename:
        return None
    media_type, _ = mimetypes.guess_type(filename)
    return media_type


def is_image_file(filename) -> bool:
    media_type = guess_media_type(filename)
    return bool(media_type) and media_type.startswith("image/")


def generate_blob_name(now=None) -> str:
    millis = int((now if now is not None else time.time()) * 1000)
    suffix = "".join(random.choices(_BASE36, k=6))
    return f"{millis}-{suffix}.jpg"
