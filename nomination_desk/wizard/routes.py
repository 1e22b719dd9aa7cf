"""
Nomination form API routes.

The HTTP layer is stateless: each request rebuilds a wizard from the stored
nomination, applies one operation and returns the resulting snapshot.
"""

from typing import Any, Dict, List, Optional

import structlog
from fastapi import (
    APIRouter,
    Depends,
    File,
    Header,
    HTTPException,
    Path,
    Query,
    UploadFile,
)
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..attachments import AttachmentError, AttachmentManager
from ..config import get_settings
from ..awards import get_awards_for_category
from ..db.audit_service import AuditService
from ..db.base import get_db
from ..db.services import NominationNotFound, NominationService, StoreError
from ..dependencies import get_blob_store, get_mailer
from ..notifications import Mailer
from ..schemas.enums import TOTAL_STEPS, DocumentType
from ..storage import BlobStore
from .controllers import SectionBController, StepOutcome, controller_for_step
from .resume import ContinuationResolver
from .state import NominationWizard

logger = structlog.get_logger()

router = APIRouter(tags=["nomination-form"])

STEP_STATUS_CODES = {
    StepOutcome.INVALID: 422,
    StepOutcome.BUSY: 409,
    StepOutcome.MISSING_NOMINATION: 409,
    StepOutcome.NOT_FOUND: 404,
    StepOutcome.STORE_ERROR: 503,
}


class StepSubmission(BaseModel):
    nomination_id: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)


class StepNavigation(BaseModel):
    nomination_id: Optional[str] = None


class CategoryChange(BaseModel):
    form: Dict[str, Any] = Field(default_factory=dict)
    award_category: Optional[str] = None


def _wizard_for(db: Session, nomination_id: Optional[str]) -> NominationWizard:
    """Rebuild a wizard bound to ``nomination_id`` (or a fresh one)."""
    store = NominationService(db)
    wizard = NominationWizard(store)
    if not nomination_id:
        return wizard
    try:
        nomination = store.get_or_raise(nomination_id)
    except NominationNotFound as exc:
        raise HTTPException(status_code=404, detail={"error": exc.to_dict()})
    except StoreError as exc:
        raise HTTPException(status_code=503, detail={"error": exc.to_dict()})
    wizard.hydrate(nomination)
    return wizard


def _form_view(wizard: NominationWizard) -> Dict[str, Any]:
    controller = controller_for_step(wizard.current_step, wizard)
    return {"wizard": wizard.snapshot(), "form": controller.form_defaults()}


@router.get("/nomination-form")
async def open_form(
    continue_id: Optional[str] = Query(None, alias="continue"),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Open a fresh form, or resume one from a continuation link."""
    wizard = NominationWizard(NominationService(db))
    resumed = False
    if continue_id:
        resumed = ContinuationResolver().resume(wizard, continue_id).resumed
    view = _form_view(wizard)
    view["resumed"] = resumed
    return view


@router.get("/nomination-form/edit/{nomination_id}")
async def edit_form(
    nomination_id: str,
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Load an existing nomination into the form."""
    wizard = NominationWizard(NominationService(db))
    loaded = wizard.load(nomination_id)
    view = _form_view(wizard)
    view["loaded"] = loaded
    return view


@router.post("/nomination-form/steps/{step}")
async def submit_step(
    submission: StepSubmission,
    step: int = Path(..., ge=1, le=TOTAL_STEPS),
    actor_id: Optional[str] = Header(None, alias="X-Uploader-Id"),
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
) -> Dict[str, Any]:
    """Validate and save one section, then advance."""
    wizard = _wizard_for(db, submission.nomination_id)
    wizard.set_current_step(step)
    controller = controller_for_step(
        step,
        wizard,
        audit=AuditService(db),
        mailer=mailer,
        actor_id=actor_id or "anonymous",
        admin_email=get_settings().admin_notification_email,
    )
    result = controller.submit(submission.data)

    if not result.ok:
        raise HTTPException(
            status_code=STEP_STATUS_CODES.get(result.outcome, 400),
            detail={
                "outcome": result.outcome.value,
                "errors": result.errors,
                "notices": [notice.to_dict() for notice in wizard.state.notices],
                "current_step": wizard.current_step,
            },
        )

    view = _form_view(wizard)
    view["result"] = result.to_dict()
    return view


@router.post("/nomination-form/steps/{step}/back")
async def step_back(
    navigation: StepNavigation,
    step: int = Path(..., ge=1, le=TOTAL_STEPS),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Go back one step without saving."""
    wizard = _wizard_for(db, navigation.nomination_id)
    wizard.set_current_step(step)
    controller_for_step(step, wizard).back()
    return _form_view(wizard)


@router.post("/nomination-form/section-b/category")
async def change_category(
    change: CategoryChange,
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Switch award category, clearing an award the new category lacks."""
    controller = SectionBController(NominationWizard(NominationService(db)))
    return {
        "form": controller.change_category(change.form, change.award_category),
        "awards": [
            award.model_dump() for award in get_awards_for_category(change.award_category)
        ],
    }


@router.post("/nominations/{nomination_id}/documents")
async def upload_documents(
    nomination_id: str,
    category: DocumentType = Query(...),
    files: List[UploadFile] = File(...),
    uploader_id: str = Header(..., alias="X-Uploader-Id"),
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
) -> Dict[str, Any]:
    """Upload one or more files into a document category.

    Files are handled independently; the response carries one outcome per
    file. A single-file upload answers with the failure's status code.
    """
    manager = AttachmentManager(db, blob_store, audit=AuditService(db))
    payload = [(upload.filename or "file", await upload.read()) for upload in files]

    if len(payload) == 1:
        file_name, content = payload[0]
        try:
            document = manager.upload(nomination_id, uploader_id, category, file_name, content)
        except AttachmentError as exc:
            raise HTTPException(status_code=exc.status_code, detail={"error": exc.to_dict()})
        results = [{"file_name": file_name, "success": True, "document": document.to_dict(), "error": None}]
    else:
        results = [
            outcome.to_dict()
            for outcome in manager.upload_many(nomination_id, uploader_id, category, payload)
        ]

    try:
        remaining = manager.remaining_slots(nomination_id, category)
    except StoreError as exc:
        # Uploads above are already stored; report them alongside the failure
        raise HTTPException(
            status_code=503, detail={"error": exc.to_dict(), "results": results}
        )
    return {"results": results, "remaining_slots": remaining}


@router.get("/nominations/{nomination_id}/documents")
async def list_documents(
    nomination_id: str,
    category: Optional[DocumentType] = None,
    uploader_id: str = Header(..., alias="X-Uploader-Id"),
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
) -> List[Dict[str, Any]]:
    """List the caller's own attachments. Admins see every file on the detail view."""
    manager = AttachmentManager(db, blob_store)
    try:
        documents = manager.list(nomination_id, uploader_id=uploader_id, category=category)
    except StoreError as exc:
        raise HTTPException(status_code=503, detail={"error": exc.to_dict()})
    return [
        {**document.to_dict(), "public_url": manager.public_url(document)}
        for document in documents
    ]


@router.delete("/nominations/{nomination_id}/documents/{document_id}")
async def delete_document(
    nomination_id: str,
    document_id: str,
    confirm: bool = False,
    uploader_id: Optional[str] = Header(None, alias="X-Uploader-Id"),
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
) -> Dict[str, Any]:
    """Delete an attachment. Requires ``?confirm=true``."""
    manager = AttachmentManager(db, blob_store, audit=AuditService(db))
    try:
        document = manager.documents.get(document_id)
    except StoreError as exc:
        raise HTTPException(status_code=503, detail={"error": exc.to_dict()})
    if document is None or document.nomination_id != nomination_id:
        raise HTTPException(status_code=404, detail="Document not found")

    try:
        deleted = manager.delete(
            document_id,
            confirmed=confirm,
            uploader_id=uploader_id,
            actor_id=uploader_id or "anonymous",
        )
    except AttachmentError as exc:
        raise HTTPException(status_code=exc.status_code, detail={"error": exc.to_dict()})
    return {"status": "success", "document": deleted}
