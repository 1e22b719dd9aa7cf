"""
FastAPI dependencies for shared externals.

The blob store and the mailer are created once per process from settings.
Tests replace them through ``app.dependency_overrides``.
"""

from typing import Optional

from .config import get_settings
from .notifications import Mailer
from .notifications import get_mailer as build_mailer
from .storage import BlobStore, create_blob_store

_blob_store: Optional[BlobStore] = None
_mailer: Optional[Mailer] = None


def get_blob_store() -> BlobStore:
    global _blob_store
    if _blob_store is None:
        settings = get_settings()
        _blob_store = create_blob_store(settings.blob_store_uri, settings.blob_public_base_url)
    return _blob_store


def get_mailer() -> Mailer:
    global _mailer
    if _mailer is None:
        _mailer = build_mailer(get_settings())
    return _mailer
