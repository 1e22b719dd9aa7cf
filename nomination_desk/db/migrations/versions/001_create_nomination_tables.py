"""Create nomination tables

Revision ID: 001
Revises:
Create Date: 2026-10-19

Adds nominations, nomination_documents and audit_log.
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "nominations",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("nominee_name", sa.String(length=256), nullable=False),
        sa.Column(
            "nominee_type",
            sa.Enum("individual", "organization", "institution", name="nominee_type"),
            nullable=True,
        ),
        sa.Column("award_category_id", sa.String(length=128), nullable=True),
        sa.Column("summary_of_achievement", sa.Text, nullable=True),
        sa.Column(
            "status",
            sa.Enum(
                "draft", "incomplete", "submitted", "approved", "rejected",
                name="nomination_status",
            ),
            nullable=False,
            server_default="draft",
        ),
        # One JSON document per wizard section
        sa.Column("form_section_a", sa.JSON, nullable=True),
        sa.Column("form_section_b", sa.JSON, nullable=True),
        sa.Column("form_section_c", sa.JSON, nullable=True),
        sa.Column("form_section_d", sa.JSON, nullable=True),
        sa.Column("form_section_e", sa.JSON, nullable=True),
        sa.Column("nominator_name", sa.String(length=256), nullable=True),
        sa.Column("nominator_email", sa.String(length=320), nullable=True),
        sa.Column("admin_notes", sa.Text, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_nominations_nominee_name", "nominations", ["nominee_name"])
    op.create_index("ix_nominations_award_category_id", "nominations", ["award_category_id"])
    op.create_index("ix_nominations_status", "nominations", ["status"])
    op.create_index("ix_nominations_nominator_email", "nominations", ["nominator_email"])
    op.create_index("ix_nominations_status_created", "nominations", ["status", "created_at"])

    op.create_table(
        "nomination_documents",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "nomination_id",
            sa.String(length=36),
            sa.ForeignKey("nominations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("file_name", sa.String(length=512), nullable=False),
        sa.Column("storage_path", sa.Text, nullable=False),
        sa.Column(
            "file_type",
            sa.Enum("cv_resume", "photo_media", "additional_document", name="document_type"),
            nullable=False,
        ),
        sa.Column("uploader_id", sa.String(length=128), nullable=True),
        sa.Column(
            "uploaded_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "ix_nomination_documents_nomination_id", "nomination_documents", ["nomination_id"]
    )
    op.create_index("ix_nomination_documents_file_type", "nomination_documents", ["file_type"])
    op.create_index(
        "ix_nomination_documents_uploader_id", "nomination_documents", ["uploader_id"]
    )
    op.create_index(
        "ix_nomination_documents_nomination_type",
        "nomination_documents",
        ["nomination_id", "file_type"],
    )

    op.create_table(
        "audit_log",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "ts",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "actor_kind",
            sa.Enum("nominator", "admin", "system", name="audit_actor_kind"),
            nullable=False,
        ),
        sa.Column("actor_id", sa.String(length=128), nullable=False),
        sa.Column(
            "action",
            sa.Enum(
                "created", "updated", "submitted", "status_changed", "noted", "deleted",
                name="audit_action",
            ),
            nullable=False,
        ),
        sa.Column("entity_kind", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.String(length=128), nullable=False),
        sa.Column("before", sa.JSON, nullable=True),
        sa.Column("after", sa.JSON, nullable=True),
        sa.Column("note", sa.Text, nullable=True),
    )
    op.create_index("ix_audit_log_ts", "audit_log", ["ts"])
    op.create_index("ix_audit_log_actor_id", "audit_log", ["actor_id"])
    op.create_index("ix_audit_log_action", "audit_log", ["action"])
    op.create_index(
        "ix_audit_log_entity_ts", "audit_log", ["entity_kind", "entity_id", "ts"]
    )


def downgrade() -> None:
    op.drop_index("ix_audit_log_entity_ts", table_name="audit_log")
    op.drop_index("ix_audit_log_action", table_name="audit_log")
    op.drop_index("ix_audit_log_actor_id", table_name="audit_log")
    op.drop_index("ix_audit_log_ts", table_name="audit_log")
    op.drop_table("audit_log")

    op.drop_index("ix_nomination_documents_nomination_type", table_name="nomination_documents")
    op.drop_index("ix_nomination_documents_uploader_id", table_name="nomination_documents")
    op.drop_index("ix_nomination_documents_file_type", table_name="nomination_documents")
    op.drop_index("ix_nomination_documents_nomination_id", table_name="nomination_documents")
    op.drop_table("nomination_documents")

    op.drop_index("ix_nominations_status_created", table_name="nominations")
    op.drop_index("ix_nominations_nominator_email", table_name="nominations")
    op.drop_index("ix_nominations_status", table_name="nominations")
    op.drop_index("ix_nominations_award_category_id", table_name="nominations")
    op.drop_index("ix_nominations_nominee_name", table_name="nominations")
    op.drop_table("nominations")

    sa.Enum(name="audit_action").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="audit_actor_kind").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="document_type").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="nomination_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="nominee_type").drop(op.get_bind(), checkfirst=True)
