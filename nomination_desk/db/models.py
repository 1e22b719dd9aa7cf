"""
SQLAlchemy models for Nomination Desk.
"""

import uuid
from typing import Any, Dict, Optional

from sqlalchemy import (
    Column, String, DateTime, Text, JSON, Enum,
    ForeignKey, Index
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..schemas.enums import SECTION_ORDER, SectionLetter
from .base import Base


def generate_id() -> str:
    """Server-side identifier for new rows."""
    return str(uuid.uuid4())


nomination_status_enum = Enum(
    "draft", "incomplete", "submitted", "approved", "rejected",
    name="nomination_status",
)

nominee_type_enum = Enum(
    "individual", "organization", "institution",
    name="nominee_type",
)

document_type_enum = Enum(
    "cv_resume", "photo_media", "additional_document",
    name="document_type",
)


def _isoformat(value) -> Optional[str]:
    return value.isoformat() if value else None


class NominationModel(Base):
    """SQLAlchemy model for nominations.

    Each wizard section lives in its own JSON column and is replaced
    wholesale on save. A handful of scalar columns are denormalised from the
    sections for listing and search.
    """

    __tablename__ = "nominations"

    # Primary fields
    id = Column(String(36), primary_key=True, default=generate_id)
    nominee_name = Column(String(256), nullable=False, index=True)
    nominee_type = Column(nominee_type_enum, nullable=True)
    award_category_id = Column(String(128), nullable=True, index=True)
    summary_of_achievement = Column(Text, nullable=True)

    # Status tracking
    status = Column(
        nomination_status_enum,
        nullable=False,
        default="draft",
        index=True,
    )

    # Section documents
    form_section_a = Column(JSON, nullable=True)
    form_section_b = Column(JSON, nullable=True)
    form_section_c = Column(JSON, nullable=True)
    form_section_d = Column(JSON, nullable=True)
    form_section_e = Column(JSON, nullable=True)

    # Nominator contact (denormalised from section D)
    nominator_name = Column(String(256), nullable=True)
    nominator_email = Column(String(320), nullable=True, index=True)

    # Written only by the admin surface
    admin_notes = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=func.now(), onupdate=func.now()
    )
    submitted_at = Column(DateTime(timezone=True), nullable=True)

    documents = relationship(
        "NominationDocumentModel",
        back_populates="nomination",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_nominations_status_created", "status", "created_at"),
    )

    def section_document(self, section: SectionLetter) -> Optional[Dict[str, Any]]:
        """Raw stored document for one section."""
        return getattr(self, section.column)

    def present_sections(self) -> list:
        """Letters of the sections that have been saved."""
        return [letter for letter in SECTION_ORDER if self.section_document(letter)]

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "nominee_name": self.nominee_name,
            "nominee_type": self.nominee_type,
            "award_category_id": self.award_category_id,
            "summary_of_achievement": self.summary_of_achievement,
            "status": self.status,
            "form_section_a": self.form_section_a,
            "form_section_b": self.form_section_b,
            "form_section_c": self.form_section_c,
            "form_section_d": self.form_section_d,
            "form_section_e": self.form_section_e,
            "nominator_name": self.nominator_name,
            "nominator_email": self.nominator_email,
            "admin_notes": self.admin_notes,
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
            "submitted_at": _isoformat(self.submitted_at),
        }


class NominationDocumentModel(Base):
    """Metadata row for an uploaded supporting file."""

    __tablename__ = "nomination_documents"

    id = Column(String(36), primary_key=True, default=generate_id)
    nomination_id = Column(
        String(36),
        ForeignKey("nominations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_name = Column(String(512), nullable=False)
    # Opaque locator in the blob store
    storage_path = Column(Text, nullable=False)
    file_type = Column(document_type_enum, nullable=False, index=True)
    uploader_id = Column(String(128), nullable=True, index=True)
    uploaded_at = Column(DateTime(timezone=True), nullable=False, default=func.now())

    nomination = relationship("NominationModel", back_populates="documents")

    __table_args__ = (
        Index("ix_nomination_documents_nomination_type", "nomination_id", "file_type"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "nomination_id": self.nomination_id,
            "file_name": self.file_name,
            "storage_path": self.storage_path,
            "file_type": self.file_type,
            "uploader_id": self.uploader_id,
            "uploaded_at": _isoformat(self.uploaded_at),
        }
