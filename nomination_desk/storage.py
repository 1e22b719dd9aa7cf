"""
Blob storage for nomination attachments.

v0: file:// (local directory) and memory:// (in-process, for tests)

Storage is selected by URI, not by a flag. Keys are relative POSIX paths
such as ``{uploader}/{nomination}/{category}/{ts}_{name}``.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, Optional
from urllib.parse import quote, urlparse

logger = logging.getLogger(__name__)


class BlobStoreError(Exception):
    """Raised when a blob cannot be written, resolved or removed."""


def _validate_key(path: str) -> str:
    """Reject keys that could escape the store root."""
    if not path or path.startswith("/") or "\\" in path:
        raise BlobStoreError(f"Invalid blob path: {path!r}")
    # Checked on raw segments; pathlib would silently drop "." and empty ones
    if any(part in ("", ".", "..") for part in path.split("/")):
        raise BlobStoreError(f"Invalid blob path: {path!r}")
    return path


class BlobStore(ABC):
    """Abstract base class for attachment blob storage."""

    def __init__(self, public_base_url: Optional[str] = None):
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None

    @abstractmethod
    def put(self, path: str, content: bytes) -> str:
        """Store bytes under ``path`` and return the stored path."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        pass

    @abstractmethod
    def remove(self, paths: Iterable[str]) -> None:
        """Remove blobs. Missing paths are ignored; I/O failures raise."""

    @abstractmethod
    def get_uri(self) -> str:
        """Get the base URI of this store."""

    def get_public_url(self, path: str) -> str:
        """Public URL for a stored blob."""
        _validate_key(path)
        base = self.public_base_url or self.get_uri().rstrip("/")
        return f"{base}/{quote(path)}"


class FileBlobStore(BlobStore):
    """Local filesystem blob store (file:// URIs).

    Structure:
        {root}/
        └── {uploader_id}/{nomination_id}/{category}/{ts}_{file_name}
    """

    def __init__(self, root: Path, public_base_url: Optional[str] = None):
        super().__init__(public_base_url)
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)

    def _full_path(self, path: str) -> Path:
        return self.root / _validate_key(path)

    def put(self, path: str, content: bytes) -> str:
        full_path = self._full_path(path)
        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            full_path.write_bytes(content)
        except OSError as exc:
            raise BlobStoreError(f"Failed to write {path}: {exc}") from exc
        logger.debug("Stored blob %s (%d bytes)", path, len(content))
        return path

    def exists(self, path: str) -> bool:
        return self._full_path(path).is_file()

    def read(self, path: str) -> bytes:
        try:
            return self._full_path(path).read_bytes()
        except OSError as exc:
            raise BlobStoreError(f"Failed to read {path}: {exc}") from exc

    def remove(self, paths: Iterable[str]) -> None:
        for path in paths:
            full_path = self._full_path(path)
            try:
                full_path.unlink(missing_ok=True)
            except OSError as exc:
                raise BlobStoreError(f"Failed to remove {path}: {exc}") from exc
            logger.debug("Removed blob %s", path)

    def get_uri(self) -> str:
        return f"file://{self.root}"


class MemoryBlobStore(BlobStore):
    """In-process blob store (memory:// URIs)."""

    def __init__(self, name: str = "default", public_base_url: Optional[str] = None):
        super().__init__(public_base_url)
        self.name = name
        self.blobs: Dict[str, bytes] = {}

    def put(self, path: str, content: bytes) -> str:
        self.blobs[_validate_key(path)] = bytes(content)
        return path

    def exists(self, path: str) -> bool:
        return _validate_key(path) in self.blobs

    def read(self, path: str) -> bytes:
        try:
            return self.blobs[_validate_key(path)]
        except KeyError:
            raise BlobStoreError(f"No blob at {path}") from None

    def remove(self, paths: Iterable[str]) -> None:
        for path in paths:
            self.blobs.pop(_validate_key(path), None)

    def get_uri(self) -> str:
        return f"memory://{self.name}"


def create_blob_store(uri: str, public_base_url: Optional[str] = None) -> BlobStore:
    """Factory function to create the BlobStore for a URI.

    Args:
        uri: Store URI (e.g., "file:///var/lib/nominations" or "memory://tests")
        public_base_url: Base URL that public links are built on

    Returns:
        BlobStore instance for the given URI scheme

    Raises:
        ValueError: If URI scheme is not supported
    """
    parsed = urlparse(uri)

    if parsed.scheme == "file":
        # file://./uploads is relative, file:///srv/uploads is absolute
        return FileBlobStore(Path(parsed.netloc + parsed.path), public_base_url)

    elif parsed.scheme == "memory":
        return MemoryBlobStore(parsed.netloc or "default", public_base_url)

    else:
        raise ValueError(
            f"Unsupported storage scheme: {parsed.scheme}. "
            f"Supported: file://, memory://"
        )
