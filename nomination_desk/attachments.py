"""
Supporting-document attachments for nominations.

Every attachment is a blob in the :mod:`~nomination_desk.storage` backend
plus one ``nomination_documents`` row. Uploads write the blob first and the
row second; deletes remove the blob first and the row second, so a row
never points at a blob that is known to be gone.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import get_settings
from .db.audit_service import NOMINATION_DOCUMENT, AuditService
from .db.models import NominationDocumentModel
from .db.services import NominationDocumentService, NominationService, StoreError
from .schemas.enums import DocumentType
from .storage import BlobStore, BlobStoreError
from .wizard.state import CancellationToken

logger = structlog.get_logger()

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class AttachmentError(Exception):
    """Raised when an attachment operation cannot be completed."""

    # HTTP status the route layer should answer with
    status_code = 400

    def __init__(
        self,
        message: str,
        file_name: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message
        self.file_name = file_name
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "ATTACHMENT_ERROR",
            "message": self.message,
            "file_name": self.file_name,
        }


class AttachmentLimitError(AttachmentError):
    """Raised when a category already holds its maximum number of files."""

    status_code = 409

    def __init__(self, category: DocumentType, limit: int, file_name: Optional[str] = None):
        self.category = category
        self.limit = limit
        super().__init__(
            f"Only {limit} {category.value} file(s) allowed per nomination", file_name
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"error": "ATTACHMENT_LIMIT", "category": self.category.value, "limit": self.limit})
        return data


def default_limits() -> Dict[DocumentType, Optional[int]]:
    """Per-nomination limits; None means unlimited."""
    settings = get_settings()
    return {
        DocumentType.CV_RESUME: settings.max_cv_resume,
        DocumentType.PHOTO_MEDIA: settings.max_photo_media,
        DocumentType.ADDITIONAL_DOCUMENT: None,
    }


def safe_file_name(file_name: str) -> str:
    """Reduce a client file name to a storage-safe component."""
    base = file_name.replace("\\", "/").rsplit("/", 1)[-1]
    cleaned = _UNSAFE_CHARS.sub("_", base).lstrip(".")
    return cleaned or "file"


def build_storage_path(
    uploader_id: str,
    nomination_id: str,
    category: DocumentType,
    file_name: str,
    timestamp_ms: Optional[int] = None,
) -> str:
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return "/".join(
        [
            safe_file_name(uploader_id),
            safe_file_name(nomination_id),
            category.value,
            f"{timestamp_ms}_{safe_file_name(file_name)}",
        ]
    )


@dataclass
class UploadOutcome:
    """Per-file result of a batch upload."""

    file_name: str
    success: bool
    document: Optional[NominationDocumentModel] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_name": self.file_name,
            "success": self.success,
            "document": self.document.to_dict() if self.document else None,
            "error": self.error,
        }


class AttachmentManager:
    """Uploads, lists and deletes nomination attachments."""

    def __init__(
        self,
        db: Session,
        blob_store: BlobStore,
        audit: Optional[AuditService] = None,
        limits: Optional[Dict[DocumentType, Optional[int]]] = None,
    ):
        self.db = db
        self.blob_store = blob_store
        self.nominations = NominationService(db)
        self.documents = NominationDocumentService(db)
        self.audit = audit
        self.limits = limits if limits is not None else default_limits()

    def remaining_slots(self, nomination_id: str, category: DocumentType) -> Optional[int]:
        """How many more files the category accepts, or None if unlimited."""
        limit = self.limits.get(DocumentType(category))
        if limit is None:
            return None
        used = self.documents.count(nomination_id, DocumentType(category).value)
        return max(0, limit - used)

    def upload(
        self,
        nomination_id: Optional[str],
        uploader_id: Optional[str],
        category: DocumentType,
        file_name: str,
        content: bytes,
        token: Optional[CancellationToken] = None,
    ) -> NominationDocumentModel:
        """
        Store one file and record its metadata.

        Raises:
            AttachmentLimitError: If the category is already full (nothing written)
            AttachmentError: On any other failure
        """
        category = DocumentType(category)
        if not nomination_id:
            raise AttachmentError("Save Section A before uploading files", file_name)
        if not uploader_id:
            raise AttachmentError("An uploader id is required", file_name)

        try:
            if self.nominations.get(nomination_id) is None:
                raise AttachmentError(
                    f"Nomination '{nomination_id}' not found", file_name, status_code=404
                )
            remaining = self.remaining_slots(nomination_id, category)
        except StoreError as exc:
            raise AttachmentError(
                f"Could not check attachment limits: {exc.message}", file_name, status_code=503
            ) from exc
        if remaining == 0:
            raise AttachmentLimitError(category, self.limits[category], file_name)

        if token is not None and token.cancelled:
            raise AttachmentError("Upload cancelled", file_name)

        path = build_storage_path(uploader_id, nomination_id, category, file_name)
        try:
            self.blob_store.put(path, content)
        except BlobStoreError as exc:
            logger.error("Blob upload failed", path=path, error=str(exc))
            raise AttachmentError(f"Failed to upload {file_name}", file_name, status_code=502) from exc

        try:
            document = self.documents.create(
                nomination_id=nomination_id,
                file_name=file_name,
                storage_path=path,
                file_type=category.value,
                uploader_id=uploader_id,
            )
        except StoreError as exc:
            # The blob stays behind as an orphan
            logger.warning(
                "Attachment metadata write failed; orphaned blob left in store",
                path=path,
                error=exc.message,
            )
            raise AttachmentError(f"Failed to record {file_name}", file_name, status_code=503) from exc

        logger.info(
            "Attachment uploaded",
            nomination_id=nomination_id,
            document_id=document.id,
            category=category.value,
        )
        return document

    def upload_many(
        self,
        nomination_id: Optional[str],
        uploader_id: Optional[str],
        category: DocumentType,
        files: Iterable[Tuple[str, bytes]],
        token: Optional[CancellationToken] = None,
    ) -> List[UploadOutcome]:
        """Upload files independently; one failure does not stop the rest."""
        outcomes = []
        for file_name, content in files:
            try:
                document = self.upload(
                    nomination_id, uploader_id, category, file_name, content, token=token
                )
            except AttachmentError as exc:
                outcomes.append(UploadOutcome(file_name, False, error=exc.message))
            else:
                outcomes.append(UploadOutcome(file_name, True, document=document))
        return outcomes

    def list(
        self,
        nomination_id: str,
        uploader_id: Optional[str] = None,
        category: Optional[DocumentType] = None,
    ) -> List[NominationDocumentModel]:
        return self.documents.list(
            nomination_id,
            file_type=DocumentType(category).value if category else None,
            uploader_id=uploader_id,
        )

    def delete(
        self,
        document_id: str,
        confirmed: bool,
        uploader_id: Optional[str] = None,
        actor_id: str = "anonymous",
    ) -> Dict[str, Any]:
        """
        Delete one attachment, blob first.

        Raises:
            AttachmentError: If not confirmed, not found, not owned by
                ``uploader_id``, or if either delete fails
        """
        if not confirmed:
            raise AttachmentError("Deletion must be confirmed")

        try:
            document = self.documents.get(document_id)
        except StoreError as exc:
            raise AttachmentError(f"Could not load attachment: {exc.message}", status_code=503) from exc
        if document is None:
            raise AttachmentError(f"Attachment '{document_id}' not found", status_code=404)
        if uploader_id is not None and document.uploader_id != uploader_id:
            raise AttachmentError(
                "Attachment belongs to another uploader", document.file_name, status_code=403
            )

        snapshot = document.to_dict()
        try:
            self.blob_store.remove([document.storage_path])
        except BlobStoreError as exc:
            logger.error("Blob delete failed", path=document.storage_path, error=str(exc))
            raise AttachmentError(
                f"Failed to delete {document.file_name}", document.file_name, status_code=502
            ) from exc

        try:
            self.documents.delete(document_id)
        except StoreError as exc:
            raise AttachmentError(
                f"File removed but its record could not be deleted: {exc.message}",
                snapshot["file_name"],
                status_code=503,
            ) from exc

        if self.audit is not None:
            try:
                self.audit.log_delete(
                    NOMINATION_DOCUMENT,
                    document_id,
                    snapshot,
                    actor_kind="nominator",
                    actor_id=actor_id,
                )
            except SQLAlchemyError as exc:
                self.db.rollback()
                logger.warning("Audit write failed", document_id=document_id, error=str(exc))

        logger.info("Attachment deleted", document_id=document_id)
        return snapshot

    def public_url(self, document: NominationDocumentModel) -> str:
        return self.blob_store.get_public_url(document.storage_path)
