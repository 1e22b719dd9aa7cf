"""
Tests for the AuditLog model and service.

Verifies:
- AuditLogModel structure and to_dict()
- AuditService logging methods (create, status_change, note, delete)
- AuditService query methods (by entity, by action)
"""

from datetime import datetime, timezone

from nomination_desk.db.audit_models import AuditLogModel
from nomination_desk.db.audit_service import NOMINATION, NOMINATION_DOCUMENT, AuditService


class TestAuditLogModel:
    """Tests for AuditLogModel structure."""

    def test_model_has_required_columns(self):
        columns = {c.name for c in AuditLogModel.__table__.columns}
        required = {
            "id", "ts", "actor_kind", "actor_id", "action",
            "entity_kind", "entity_id", "before", "after", "note",
        }
        assert required.issubset(columns)

    def test_to_dict_output(self):
        entry = AuditLogModel(
            id="audit-1",
            ts=datetime(2026, 5, 1, 12, 0, 0, tzinfo=timezone.utc),
            actor_kind="admin",
            actor_id="reviewer-1",
            action="status_changed",
            entity_kind=NOMINATION,
            entity_id="nom-1",
            before={"status": "submitted"},
            after={"status": "approved"},
            note="Approved after panel review",
        )

        result = entry.to_dict()

        assert result["ts"] == "2026-05-01T12:00:00+00:00"
        assert result["actor_kind"] == "admin"
        assert result["entity_kind"] == "Nomination"
        assert result["before"] == {"status": "submitted"}
        assert result["after"] == {"status": "approved"}
        assert result["note"] == "Approved after panel review"


class TestAuditServiceLogging:
    def test_log_create(self, db_session):
        audit = AuditService(db_session)

        entry = audit.log_create(
            NOMINATION, "nom-1", {"nominee_name": "Amina"}, actor_kind="nominator", actor_id="user-1"
        )

        assert entry.id is not None
        assert entry.action == "created"
        assert entry.before is None
        assert entry.after == {"nominee_name": "Amina"}
        assert entry.ts is not None

    def test_log_status_change_default_note(self, db_session):
        entry = AuditService(db_session).log_status_change(
            NOMINATION, "nom-1", "draft", "submitted", actor_kind="nominator", actor_id="user-1"
        )

        assert entry.before == {"status": "draft"}
        assert entry.after == {"status": "submitted"}
        assert entry.note == "Status changed: draft -> submitted"

    def test_log_note(self, db_session):
        entry = AuditService(db_session).log_note("nom-1", "Called the nominator", actor_id="admin-2")

        assert entry.action == "noted"
        assert entry.actor_kind == "admin"
        assert entry.entity_kind == NOMINATION
        assert entry.note == "Called the nominator"

    def test_log_submit(self, db_session):
        entry = AuditService(db_session).log_submit(
            "nom-1", "incomplete", {"status": "submitted"}, actor_id="user-1"
        )
        assert entry.action == "submitted"
        assert entry.actor_kind == "nominator"
        assert entry.before == {"status": "incomplete"}
        assert entry.after == {"status": "submitted"}

    def test_log_update(self, db_session):
        entry = AuditService(db_session).log_update(
            NOMINATION,
            "nom-1",
            {"form_section_c": None},
            {"form_section_c": {"justification": "x"}},
            actor_kind="nominator",
        )
        assert entry.action == "updated"
        assert entry.before == {"form_section_c": None}
        assert entry.after["form_section_c"] == {"justification": "x"}

    def test_log_delete_keeps_before(self, db_session):
        snapshot = {"file_name": "cv.pdf", "storage_path": "u/n/cv_resume/1_cv.pdf"}

        entry = AuditService(db_session).log_delete(NOMINATION_DOCUMENT, "doc-1", snapshot)

        assert entry.action == "deleted"
        assert entry.before == snapshot
        assert entry.after is None
        assert entry.actor_kind == "system"


class TestAuditServiceQueries:
    def test_query_by_entity_newest_first(self, db_session):
        audit = AuditService(db_session)
        audit.log_create(NOMINATION, "nom-1", {"status": "draft"})
        audit.log_status_change(NOMINATION, "nom-1", "draft", "submitted")
        audit.log_create(NOMINATION, "nom-2", {"status": "draft"})

        entries = audit.query_by_entity(NOMINATION, "nom-1")

        assert [entry.action for entry in entries] == ["status_changed", "created"]

    def test_query_by_entity_separates_kinds(self, db_session):
        audit = AuditService(db_session)
        audit.log_create(NOMINATION, "shared-id", {})
        audit.log_delete(NOMINATION_DOCUMENT, "shared-id", {})

        assert len(audit.query_by_entity(NOMINATION_DOCUMENT, "shared-id")) == 1

    def test_query_by_action(self, db_session):
        audit = AuditService(db_session)
        audit.log_note("nom-1", "first")
        audit.log_note("nom-2", "second")
        audit.log_create(NOMINATION, "nom-3", {})

        notes = audit.query_by_action("noted")

        assert {entry.entity_id for entry in notes} == {"nom-1", "nom-2"}
        assert audit.query_by_action("noted", entity_kind=NOMINATION_DOCUMENT) == []
