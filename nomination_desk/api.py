"""
FastAPI application for Nomination Desk.
"""

from __future__ import annotations

import importlib.metadata
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import structlog
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from .admin.routes import router as admin_router
from .awards import AWARD_CATEGORIES, get_category
from .config import get_settings
from .db.base import get_db, init_database
from .db.services import NominationNotFound, StoreError
from .dependencies import get_mailer
from .log_config import configure_logging
from .notifications import Mailer
from .reminders import ReminderDispatcher
from .wizard.routes import router as wizard_router

# Initialize structured logging
logger = structlog.get_logger()

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    configure_logging(settings)
    logger.info("Starting Nomination Desk", environment=settings.environment)

    try:
        await init_database()
    except Exception as e:
        logger.error(f"Failed to start application: {e}")
        raise

    yield

    logger.info("Shutdown complete")


app = FastAPI(
    title="Nomination Desk",
    description="Nomination wizard, admin review and reminder service for TPAHLA",
    version=importlib.metadata.version("nomination-desk"),
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(wizard_router)
app.include_router(admin_router)


# Health and Info Endpoints
@app.get("/healthz")
def healthz() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/version")
def version() -> dict[str, str]:
    """Return the version of the application."""
    return {"version": importlib.metadata.version("nomination-desk")}


# Award Catalog Endpoints
@app.get("/award-categories")
async def list_award_categories() -> List[Dict[str, Any]]:
    """All award categories with their awards."""
    return [category.model_dump() for category in AWARD_CATEGORIES]


@app.get("/award-categories/{category_id}")
async def get_award_category(category_id: str) -> Dict[str, Any]:
    category = get_category(category_id)
    if category is None:
        raise HTTPException(status_code=404, detail="Award category not found")
    return category.model_dump()


# Reminder function boundary
class ReminderFunctionRequest(BaseModel):
    """Request body for the reminder function (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True)

    nomination_id: Optional[str] = Field(default=None, alias="nominationId")
    send_to_all: bool = Field(default=False, alias="sendToAll")
    site_url: Optional[str] = Field(default=None, alias="siteUrl")


@app.post("/functions/send-nomination-reminder")
async def send_nomination_reminder(
    request: ReminderFunctionRequest,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
) -> Dict[str, Any]:
    """Email continuation links to one nominator or to all with unfinished nominations."""
    dispatcher = ReminderDispatcher(db, mailer)
    try:
        report = dispatcher.dispatch(
            nomination_id=request.nomination_id,
            send_to_all=request.send_to_all,
            site_url=request.site_url,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail={"error": str(exc)})
    except NominationNotFound as exc:
        raise HTTPException(status_code=404, detail={"error": exc.message})
    except StoreError as exc:
        logger.error("Reminder dispatch failed", error=exc.message)
        raise HTTPException(status_code=500, detail={"error": exc.to_dict()})
    return report.to_dict()
