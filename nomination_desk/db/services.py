"""
Database services for Nomination Desk.

These services are the document-store client used by the wizard, the
attachment manager, the admin surface and the reminder dispatcher. Every
write commits immediately; SQLAlchemy failures are rolled back and surfaced
as :class:`StoreError`.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Sequence

import structlog
from sqlalchemy import desc, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..schemas.enums import RESUMABLE_STATUSES, NominationStatus, SectionLetter
from .models import NominationDocumentModel, NominationModel, generate_id

logger = structlog.get_logger()


class StoreError(Exception):
    """Raised when the store rejects or fails a read or write."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        self.message = message
        super().__init__(f"{operation}: {message}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "STORE_ERROR",
            "operation": self.operation,
            "message": self.message,
        }


class NominationNotFound(Exception):
    """Raised when a nomination id does not resolve to a usable row."""

    def __init__(self, nomination_id: str, message: Optional[str] = None):
        self.nomination_id = nomination_id
        self.message = message or f"Nomination '{nomination_id}' not found"
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "NOMINATION_NOT_FOUND",
            "nomination_id": self.nomination_id,
            "message": self.message,
        }


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


@contextmanager
def _store_operation(db: Session, operation: str) -> Iterator[None]:
    """Roll back and wrap SQLAlchemy failures raised inside the block."""
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Store operation failed", operation=operation, error=str(exc))
        raise StoreError(operation, str(exc)) from exc


class NominationService:
    """Service for managing nominations in the database."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, nomination_id: str) -> Optional[NominationModel]:
        """Get a nomination by ID."""
        with _store_operation(self.db, "get_nomination"):
            return (
                self.db.query(NominationModel)
                .filter(NominationModel.id == nomination_id)
                .first()
            )

    def get_or_raise(self, nomination_id: str) -> NominationModel:
        nomination = self.get(nomination_id)
        if nomination is None:
            raise NominationNotFound(nomination_id)
        return nomination

    def get_resumable(self, nomination_id: str) -> Optional[NominationModel]:
        """Get a nomination only if it is still draft or incomplete."""
        with _store_operation(self.db, "get_resumable_nomination"):
            return (
                self.db.query(NominationModel)
                .filter(NominationModel.id == nomination_id)
                .filter(NominationModel.status.in_([s.value for s in RESUMABLE_STATUSES]))
                .first()
            )

    def upsert(
        self, values: Dict[str, Any], nomination_id: Optional[str] = None
    ) -> NominationModel:
        """
        Insert a new nomination or update an existing one, returning the full row.

        Args:
            values: Column values to write
            nomination_id: Existing row to update; None creates a new row

        Raises:
            NominationNotFound: If ``nomination_id`` does not exist
            StoreError: If the write fails
        """
        now = utc_now()
        with _store_operation(self.db, "upsert_nomination"):
            if nomination_id is None:
                nomination = NominationModel(
                    id=generate_id(),
                    status=NominationStatus.DRAFT.value,
                    created_at=now,
                )
                self.db.add(nomination)
            else:
                nomination = (
                    self.db.query(NominationModel)
                    .filter(NominationModel.id == nomination_id)
                    .first()
                )
                if nomination is None:
                    raise NominationNotFound(nomination_id)

            for column, value in values.items():
                setattr(nomination, column, value)
            nomination.updated_at = now

            self.db.commit()
            self.db.refresh(nomination)
        return nomination

    def update(self, nomination_id: str, values: Dict[str, Any]) -> NominationModel:
        """Update columns on an existing nomination and bump ``updated_at``."""
        return self.upsert(values, nomination_id=nomination_id)

    def save_section(
        self,
        nomination_id: str,
        section: SectionLetter,
        document: Dict[str, Any],
        extra: Optional[Dict[str, Any]] = None,
    ) -> NominationModel:
        """Replace one section document, plus any denormalised columns."""
        values = {section.column: document}
        if extra:
            values.update(extra)
        return self.update(nomination_id, values)

    def set_status(
        self,
        nomination_id: str,
        status: NominationStatus,
        extra: Optional[Dict[str, Any]] = None,
    ) -> NominationModel:
        values: Dict[str, Any] = {"status": status.value}
        if extra:
            values.update(extra)
        return self.update(nomination_id, values)

    def list(
        self,
        statuses: Optional[Sequence[str]] = None,
        created_from: Optional[datetime] = None,
        created_before: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[NominationModel]:
        """List nominations newest first with optional status and date filters."""
        with _store_operation(self.db, "list_nominations"):
            query = self._filtered(statuses, created_from, created_before)
            query = query.order_by(desc(NominationModel.created_at), desc(NominationModel.id))
            if offset:
                query = query.offset(offset)
            if limit is not None:
                query = query.limit(limit)
            return query.all()

    def count(
        self,
        statuses: Optional[Sequence[str]] = None,
        created_from: Optional[datetime] = None,
        created_before: Optional[datetime] = None,
    ) -> int:
        with _store_operation(self.db, "count_nominations"):
            query = self._filtered(statuses, created_from, created_before)
            return query.with_entities(func.count(NominationModel.id)).scalar() or 0

    def list_resumable(self) -> List[NominationModel]:
        """All draft or incomplete nominations, newest first."""
        return self.list(statuses=[s.value for s in RESUMABLE_STATUSES])

    def _filtered(
        self,
        statuses: Optional[Sequence[str]],
        created_from: Optional[datetime],
        created_before: Optional[datetime],
    ):
        query = self.db.query(NominationModel)
        if statuses:
            query = query.filter(NominationModel.status.in_(list(statuses)))
        if created_from is not None:
            query = query.filter(NominationModel.created_at >= created_from)
        if created_before is not None:
            query = query.filter(NominationModel.created_at < created_before)
        return query


class NominationDocumentService:
    """Service for nomination document metadata rows."""

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        nomination_id: str,
        file_name: str,
        storage_path: str,
        file_type: str,
        uploader_id: Optional[str] = None,
    ) -> NominationDocumentModel:
        """Create a metadata row pointing at an already-stored blob."""
        with _store_operation(self.db, "create_document"):
            document = NominationDocumentModel(
                id=generate_id(),
                nomination_id=nomination_id,
                file_name=file_name,
                storage_path=storage_path,
                file_type=file_type,
                uploader_id=uploader_id,
                uploaded_at=utc_now(),
            )
            self.db.add(document)
            self.db.commit()
            self.db.refresh(document)
        return document

    def get(self, document_id: str) -> Optional[NominationDocumentModel]:
        with _store_operation(self.db, "get_document"):
            return (
                self.db.query(NominationDocumentModel)
                .filter(NominationDocumentModel.id == document_id)
                .first()
            )

    def list(
        self,
        nomination_id: str,
        file_type: Optional[str] = None,
        uploader_id: Optional[str] = None,
    ) -> List[NominationDocumentModel]:
        """List documents for a nomination, oldest upload first."""
        with _store_operation(self.db, "list_documents"):
            query = self.db.query(NominationDocumentModel).filter(
                NominationDocumentModel.nomination_id == nomination_id
            )
            if file_type:
                query = query.filter(NominationDocumentModel.file_type == file_type)
            if uploader_id:
                query = query.filter(NominationDocumentModel.uploader_id == uploader_id)
            return query.order_by(NominationDocumentModel.uploaded_at).all()

    def count(self, nomination_id: str, file_type: str) -> int:
        with _store_operation(self.db, "count_documents"):
            return (
                self.db.query(func.count(NominationDocumentModel.id))
                .filter(NominationDocumentModel.nomination_id == nomination_id)
                .filter(NominationDocumentModel.file_type == file_type)
                .scalar()
                or 0
            )

    def delete(self, document_id: str) -> bool:
        with _store_operation(self.db, "delete_document"):
            document = self.get(document_id)
            if document is None:
                return False
            self.db.delete(document)
            self.db.commit()
            return True
