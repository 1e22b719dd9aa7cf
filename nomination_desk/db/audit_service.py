"""
Audit log service.

Wizard saves, admin decisions and document deletions go through this
service so every change to a nomination leaves a trail.

Usage:
    audit = AuditService(db_session)
    audit.log_status_change("Nomination", nomination.id, "submitted", "approved",
                            actor_kind="admin", actor_id="reviewer@tpahla.africa")
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from .audit_models import AuditLogModel

NOMINATION = "Nomination"
NOMINATION_DOCUMENT = "NominationDocument"


class AuditService:
    """Service for writing and reading audit log entries."""

    def __init__(self, db: Session):
        self.db = db

    def _record(
        self,
        action: str,
        entity_kind: str,
        entity_id: str,
        before: Optional[Dict[str, Any]],
        after: Optional[Dict[str, Any]],
        actor_kind: str,
        actor_id: str,
        note: Optional[str],
    ) -> AuditLogModel:
        entry = AuditLogModel(
            id=str(uuid.uuid4()),
            ts=datetime.now(timezone.utc),
            actor_kind=actor_kind,
            actor_id=actor_id,
            action=action,
            entity_kind=entity_kind,
            entity_id=entity_id,
            before=before,
            after=after,
            note=note,
        )
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def log_create(
        self,
        entity_kind: str,
        entity_id: str,
        after: Dict[str, Any],
        actor_kind: str = "system",
        actor_id: str = "unknown",
        note: Optional[str] = None,
    ) -> AuditLogModel:
        """Log the creation of an entity.

        Args:
            entity_kind: "Nomination" or "NominationDocument"
            entity_id: ID of the entity
            after: State of the entity after creation
            actor_kind: "nominator", "admin" or "system"
            actor_id: ID of the actor
            note: Optional human-readable note

        Returns:
            The created AuditLogModel
        """
        return self._record(
            "created", entity_kind, entity_id, None, after, actor_kind, actor_id, note
        )

    def log_update(
        self,
        entity_kind: str,
        entity_id: str,
        before: Dict[str, Any],
        after: Dict[str, Any],
        actor_kind: str = "system",
        actor_id: str = "unknown",
        note: Optional[str] = None,
    ) -> AuditLogModel:
        """Log an update to an entity."""
        return self._record(
            "updated", entity_kind, entity_id, before, after, actor_kind, actor_id, note
        )

    def log_submit(
        self,
        entity_id: str,
        old_status: str,
        after: Dict[str, Any],
        actor_kind: str = "nominator",
        actor_id: str = "unknown",
    ) -> AuditLogModel:
        """Log the final submission of a nomination from step E.

        ``before`` holds the status the nomination was submitted from.
        """
        return self._record(
            "submitted",
            NOMINATION,
            entity_id,
            {"status": old_status},
            after,
            actor_kind,
            actor_id,
            "Nomination submitted",
        )

    def log_status_change(
        self,
        entity_kind: str,
        entity_id: str,
        old_status: str,
        new_status: str,
        actor_kind: str = "system",
        actor_id: str = "unknown",
        note: Optional[str] = None,
    ) -> AuditLogModel:
        """Log a status change on an entity.

        The note defaults to ``"Status changed: old -> new"``.
        """
        return self._record(
            "status_changed",
            entity_kind,
            entity_id,
            {"status": old_status},
            {"status": new_status},
            actor_kind,
            actor_id,
            note or f"Status changed: {old_status} -> {new_status}",
        )

    def log_note(
        self,
        entity_id: str,
        note: str,
        actor_kind: str = "admin",
        actor_id: str = "unknown",
    ) -> AuditLogModel:
        """Log an admin note appended to a nomination."""
        return self._record(
            "noted", NOMINATION, entity_id, None, None, actor_kind, actor_id, note
        )

    def log_delete(
        self,
        entity_kind: str,
        entity_id: str,
        before: Dict[str, Any],
        actor_kind: str = "system",
        actor_id: str = "unknown",
        note: Optional[str] = None,
    ) -> AuditLogModel:
        """Log the deletion of an entity, keeping its last known state."""
        return self._record(
            "deleted", entity_kind, entity_id, before, None, actor_kind, actor_id, note
        )

    # Query methods

    def query_by_entity(
        self,
        entity_kind: str,
        entity_id: str,
        limit: int = 100,
        offset: int = 0,
    ) -> List[AuditLogModel]:
        """Get audit history for a specific entity, newest first."""
        return (
            self.db.query(AuditLogModel)
            .filter(
                AuditLogModel.entity_kind == entity_kind,
                AuditLogModel.entity_id == entity_id,
            )
            .order_by(desc(AuditLogModel.ts))
            .offset(offset)
            .limit(limit)
            .all()
        )

    def query_by_action(
        self,
        action: str,
        entity_kind: Optional[str] = None,
        limit: int = 100,
    ) -> List[AuditLogModel]:
        query = self.db.query(AuditLogModel).filter(AuditLogModel.action == action)
        if entity_kind:
            query = query.filter(AuditLogModel.entity_kind == entity_kind)
        return query.order_by(desc(AuditLogModel.ts)).limit(limit).all()
