"""
Admin API routes.

All endpoints are prefixed with /admin.
"""

from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..config import get_settings
from ..db.base import get_db
from ..db.services import NominationNotFound, StoreError
from ..dependencies import get_blob_store, get_mailer
from ..notifications import Mailer
from ..reminders import ReminderDispatcher
from ..schemas.enums import NominationStatus
from ..storage import BlobStore
from .services import AdminReviewService, InvalidStatusTransition

router = APIRouter(prefix="/admin", tags=["admin"])


class StatusChange(BaseModel):
    status: NominationStatus
    note: Optional[str] = None


class NoteCreate(BaseModel):
    note: str = Field(..., min_length=1, max_length=5000)


class ReminderRequest(BaseModel):
    nomination_id: Optional[str] = None
    send_to_all: bool = False
    site_url: Optional[str] = None


def get_admin_service(
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
    blob_store: BlobStore = Depends(get_blob_store),
) -> AdminReviewService:
    return AdminReviewService(
        db, dispatcher=ReminderDispatcher(db, mailer), blob_store=blob_store
    )


@router.get("/nominations")
async def list_nominations(
    status: Optional[NominationStatus] = None,
    created_from: Optional[date] = None,
    created_to: Optional[date] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1, le=200),
    service: AdminReviewService = Depends(get_admin_service),
) -> Dict[str, Any]:
    """List nominations with filters and pagination."""
    try:
        result = service.list_nominations(
            status=status,
            created_from=created_from,
            created_to=created_to,
            search=search,
            page=page,
            page_size=page_size or get_settings().default_page_size,
        )
    except StoreError as exc:
        raise HTTPException(status_code=503, detail={"error": exc.to_dict()})
    return result.to_dict()


@router.get("/nominations/{nomination_id}")
async def get_nomination(
    nomination_id: str,
    service: AdminReviewService = Depends(get_admin_service),
) -> Dict[str, Any]:
    """Full nomination with sections and attachments."""
    try:
        return service.get_detail(nomination_id).to_dict()
    except NominationNotFound:
        raise HTTPException(status_code=404, detail="Nomination not found")
    except StoreError as exc:
        raise HTTPException(status_code=503, detail={"error": exc.to_dict()})


@router.post("/nominations/{nomination_id}/status")
async def change_status(
    nomination_id: str,
    change: StatusChange,
    admin_id: str = Header("admin", alias="X-Admin-Id"),
    service: AdminReviewService = Depends(get_admin_service),
) -> Dict[str, Any]:
    """Approve, reject, mark incomplete or mark complete."""
    try:
        nomination = service.change_status(
            nomination_id, change.status, actor_id=admin_id, note=change.note
        )
    except NominationNotFound:
        raise HTTPException(status_code=404, detail="Nomination not found")
    except InvalidStatusTransition as exc:
        raise HTTPException(status_code=409, detail={"error": exc.to_dict()})
    except StoreError as exc:
        raise HTTPException(status_code=503, detail={"error": exc.to_dict()})
    return {"status": "success", "nomination": nomination.to_dict()}


@router.post("/nominations/{nomination_id}/notes")
async def add_note(
    nomination_id: str,
    body: NoteCreate,
    admin_id: str = Header("admin", alias="X-Admin-Id"),
    service: AdminReviewService = Depends(get_admin_service),
) -> Dict[str, Any]:
    """Append an admin note."""
    try:
        nomination = service.add_note(nomination_id, body.note, actor_id=admin_id)
    except NominationNotFound:
        raise HTTPException(status_code=404, detail="Nomination not found")
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except StoreError as exc:
        raise HTTPException(status_code=503, detail={"error": exc.to_dict()})
    return {"status": "success", "admin_notes": nomination.admin_notes}


@router.post("/reminders")
async def send_reminders(
    request: ReminderRequest,
    service: AdminReviewService = Depends(get_admin_service),
) -> Dict[str, int]:
    """Remind one nominator, or every nominator with an unfinished nomination."""
    try:
        if request.nomination_id:
            summary = service.send_reminder(request.nomination_id, site_url=request.site_url)
        elif request.send_to_all:
            summary = service.send_reminders_to_all(site_url=request.site_url)
        else:
            raise HTTPException(
                status_code=400,
                detail="Either nomination_id or send_to_all must be specified",
            )
    except NominationNotFound as exc:
        raise HTTPException(status_code=404, detail=exc.message)
    except StoreError as exc:
        raise HTTPException(status_code=503, detail={"error": exc.to_dict()})
    return summary.to_dict()
