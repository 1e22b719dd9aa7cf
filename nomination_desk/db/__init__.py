"""
Database package for Nomination Desk.
"""

from .audit_models import AuditLogModel
from .audit_service import AuditService
from .base import Base, get_db, get_engine, get_session_local, init_database
from .models import NominationDocumentModel, NominationModel
from .services import (
    NominationDocumentService,
    NominationNotFound,
    NominationService,
    StoreError,
)

__all__ = [
    "AuditLogModel",
    "AuditService",
    "Base",
    "get_db",
    "get_engine",
    "get_session_local",
    "init_database",
    "NominationDocumentModel",
    "NominationDocumentService",
    "NominationModel",
    "NominationNotFound",
    "NominationService",
    "StoreError",
]
