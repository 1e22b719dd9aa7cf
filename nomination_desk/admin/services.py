"""
Admin review services.

Listing, detail, status decisions and notes over the nominations store.
The admin surface only ever writes ``status``, ``admin_notes`` and
``updated_at``; section documents are read-only here.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, FrozenSet, List, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..awards import get_category_title
from ..config import get_settings
from ..db.audit_service import NOMINATION, AuditService
from ..db.models import NominationModel
from ..db.services import NominationDocumentService, NominationService, utc_now
from ..reminders import ReminderDispatcher
from ..schemas.enums import SECTION_ORDER, NominationStatus
from ..schemas.sections import load_stored_section
from ..storage import BlobStore

logger = structlog.get_logger()

S = NominationStatus

# target status -> statuses it may be reached from
ALLOWED_TRANSITIONS: Dict[NominationStatus, FrozenSet[NominationStatus]] = {
    S.APPROVED: frozenset({S.DRAFT, S.INCOMPLETE, S.SUBMITTED, S.REJECTED}),
    S.REJECTED: frozenset({S.DRAFT, S.INCOMPLETE, S.SUBMITTED, S.APPROVED}),
    S.INCOMPLETE: frozenset({S.DRAFT, S.SUBMITTED}),
    S.SUBMITTED: frozenset({S.DRAFT, S.INCOMPLETE}),
}


class InvalidStatusTransition(Exception):
    """Raised when an admin decision is not allowed from the current status."""

    def __init__(self, nomination_id: str, current: str, target: str):
        self.nomination_id = nomination_id
        self.current = current
        self.target = target
        super().__init__(f"Cannot move nomination {nomination_id} from {current} to {target}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "INVALID_STATUS_TRANSITION",
            "nomination_id": self.nomination_id,
            "current_status": self.current,
            "target_status": self.target,
            "message": str(self),
        }


@dataclass
class NominationPage:
    items: List[NominationModel]
    total: int
    page: int
    page_size: int
    message: Optional[str] = None

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.total else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [_summary(item) for item in self.items],
            "total": self.total,
            "page": self.page,
            "page_size": self.page_size,
            "pages": self.pages,
            "message": self.message,
        }


@dataclass
class NominationDetail:
    nomination: NominationModel
    sections: Dict[str, Any]
    documents: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = self.nomination.to_dict()
        data["award_category_title"] = get_category_title(self.nomination.award_category_id)
        data["sections"] = {
            letter: section.to_document() if section is not None else None
            for letter, section in self.sections.items()
        }
        data["documents"] = self.documents
        return data


@dataclass
class ReminderSummary:
    success_count: int
    failure_count: int

    def to_dict(self) -> Dict[str, int]:
        return {"success_count": self.success_count, "failure_count": self.failure_count}


def _summary(nomination: NominationModel) -> Dict[str, Any]:
    """Row shape for the admin table."""
    return {
        "id": nomination.id,
        "nominee_name": nomination.nominee_name,
        "nominee_email": (nomination.form_section_a or {}).get("nominee_email"),
        "award_category_id": nomination.award_category_id,
        "award_category_title": get_category_title(nomination.award_category_id),
        "status": nomination.status,
        "nominator_name": nomination.nominator_name,
        "nominator_email": nomination.nominator_email,
        "created_at": nomination.created_at.isoformat() if nomination.created_at else None,
        "submitted_at": nomination.submitted_at.isoformat() if nomination.submitted_at else None,
    }


def _matches(nomination: NominationModel, needle: str) -> bool:
    haystack = [
        nomination.id,
        nomination.nominee_name,
        (nomination.form_section_a or {}).get("nominee_email"),
        nomination.award_category_id,
        get_category_title(nomination.award_category_id),
    ]
    return any(needle in value.lower() for value in haystack if value)


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


class AdminReviewService:
    """Admin operations over nominations."""

    def __init__(
        self,
        db: Session,
        dispatcher: Optional[ReminderDispatcher] = None,
        blob_store: Optional[BlobStore] = None,
    ):
        self.db = db
        self.nominations = NominationService(db)
        self.documents = NominationDocumentService(db)
        self.audit = AuditService(db)
        self.dispatcher = dispatcher
        self.blob_store = blob_store

    def list_nominations(
        self,
        status: Optional[NominationStatus] = None,
        created_from: Optional[date] = None,
        created_to: Optional[date] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> NominationPage:
        """
        List nominations newest first.

        Args:
            status: Only this status
            created_from: First creation day to include
            created_to: Last creation day to include
            search: Case-insensitive match on id, nominee name, nominee
                email or award category
            page: 1-based page number
            page_size: Rows per page (defaults to DEFAULT_PAGE_SIZE)
        """
        page = max(1, page)
        page_size = page_size or get_settings().default_page_size
        statuses = [NominationStatus(status).value] if status else None
        start = _day_start(created_from) if created_from else None
        end = _day_start(created_to + timedelta(days=1)) if created_to else None
        needle = search.strip().lower() if search else ""

        if needle:
            rows = [
                row
                for row in self.nominations.list(statuses, start, end)
                if _matches(row, needle)
            ]
            total = len(rows)
            items = rows[(page - 1) * page_size : page * page_size]
        else:
            total = self.nominations.count(statuses, start, end)
            items = self.nominations.list(
                statuses, start, end, limit=page_size, offset=(page - 1) * page_size
            )

        message = None
        if total == 0:
            if needle:
                message = f"No nominations match '{search.strip()}'"
            elif status:
                message = f"No {NominationStatus(status).value} nominations found"
            else:
                message = "No nominations found"
        return NominationPage(items, total, page, page_size, message)

    def get_detail(self, nomination_id: str) -> NominationDetail:
        """Row, read-only typed sections and attachment metadata."""
        nomination = self.nominations.get_or_raise(nomination_id)
        sections = {
            letter.value: load_stored_section(letter, nomination.section_document(letter))
            for letter in SECTION_ORDER
        }
        documents = []
        for document in self.documents.list(nomination_id):
            data = document.to_dict()
            if self.blob_store is not None:
                data["public_url"] = self.blob_store.get_public_url(document.storage_path)
            documents.append(data)
        return NominationDetail(nomination, sections, documents)

    def change_status(
        self,
        nomination_id: str,
        target: NominationStatus,
        actor_id: str = "admin",
        note: Optional[str] = None,
    ) -> NominationModel:
        """
        Apply an admin decision.

        Raises:
            NominationNotFound: If the nomination does not exist
            InvalidStatusTransition: If ``target`` is not reachable
        """
        target = NominationStatus(target)
        nomination = self.nominations.get_or_raise(nomination_id)
        current = NominationStatus(nomination.status)
        if current not in ALLOWED_TRANSITIONS.get(target, frozenset()):
            raise InvalidStatusTransition(nomination_id, current.value, target.value)

        extra: Dict[str, Any] = {}
        if target == S.SUBMITTED and nomination.submitted_at is None:
            extra["submitted_at"] = utc_now()
        nomination = self.nominations.set_status(nomination_id, target, extra=extra)

        try:
            self.audit.log_status_change(
                NOMINATION,
                nomination_id,
                current.value,
                target.value,
                actor_kind="admin",
                actor_id=actor_id,
                note=note,
            )
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.warning("Audit write failed", nomination_id=nomination_id, error=str(exc))

        logger.info(
            "Nomination status changed",
            nomination_id=nomination_id,
            old_status=current.value,
            new_status=target.value,
            actor_id=actor_id,
        )
        return nomination

    def approve(self, nomination_id: str, actor_id: str = "admin", note: Optional[str] = None) -> NominationModel:
        return self.change_status(nomination_id, S.APPROVED, actor_id, note)

    def reject(self, nomination_id: str, actor_id: str = "admin", note: Optional[str] = None) -> NominationModel:
        return self.change_status(nomination_id, S.REJECTED, actor_id, note)

    def mark_incomplete(
        self, nomination_id: str, actor_id: str = "admin", note: Optional[str] = None
    ) -> NominationModel:
        return self.change_status(nomination_id, S.INCOMPLETE, actor_id, note)

    def mark_complete(
        self, nomination_id: str, actor_id: str = "admin", note: Optional[str] = None
    ) -> NominationModel:
        return self.change_status(nomination_id, S.SUBMITTED, actor_id, note)

    def add_note(self, nomination_id: str, note: str, actor_id: str = "admin") -> NominationModel:
        """Append a timestamped line to ``admin_notes``."""
        note = note.strip()
        if not note:
            raise ValueError("Note must not be empty")
        nomination = self.nominations.get_or_raise(nomination_id)
        stamp = utc_now().strftime("%Y-%m-%d %H:%M UTC")
        line = f"[{stamp}] {actor_id}: {note}"
        notes = f"{nomination.admin_notes}\n{line}" if nomination.admin_notes else line
        nomination = self.nominations.update(nomination_id, {"admin_notes": notes})

        try:
            self.audit.log_note(nomination_id, note, actor_id=actor_id)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.warning("Audit write failed", nomination_id=nomination_id, error=str(exc))
        return nomination

    def send_reminder(self, nomination_id: str, site_url: Optional[str] = None) -> ReminderSummary:
        report = self._dispatcher().dispatch(nomination_id=nomination_id, site_url=site_url)
        return ReminderSummary(report.success_count, report.failure_count)

    def send_reminders_to_all(self, site_url: Optional[str] = None) -> ReminderSummary:
        report = self._dispatcher().dispatch(send_to_all=True, site_url=site_url)
        return ReminderSummary(report.success_count, report.failure_count)

    def _dispatcher(self) -> ReminderDispatcher:
        if self.dispatcher is None:
            raise RuntimeError("No reminder dispatcher configured")
        return self.dispatcher
