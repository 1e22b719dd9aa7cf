"""
Canonical enums for nominations.

Database columns store the ``.value`` of these enums.
"""

from enum import Enum


class NominationStatus(str, Enum):
    """Lifecycle status of a nomination."""

    DRAFT = "draft"
    INCOMPLETE = "incomplete"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


# Statuses a nominator may resume from a continuation link
RESUMABLE_STATUSES = (NominationStatus.DRAFT, NominationStatus.INCOMPLETE)


class NomineeType(str, Enum):
    """Kind of nominee."""

    INDIVIDUAL = "individual"
    ORGANIZATION = "organization"
    INSTITUTION = "institution"


class DocumentType(str, Enum):
    """Category of an uploaded supporting document."""

    CV_RESUME = "cv_resume"
    PHOTO_MEDIA = "photo_media"
    ADDITIONAL_DOCUMENT = "additional_document"


class SectionLetter(str, Enum):
    """The five wizard sections, in step order."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"

    @property
    def step(self) -> int:
        return SECTION_ORDER.index(self) + 1

    @property
    def column(self) -> str:
        """Name of the nominations column holding this section."""
        return f"form_section_{self.value.lower()}"

    @classmethod
    def for_step(cls, step: int) -> "SectionLetter":
        if not 1 <= step <= len(SECTION_ORDER):
            raise ValueError(f"Step must be between 1 and {len(SECTION_ORDER)}, got {step}")
        return SECTION_ORDER[step - 1]


SECTION_ORDER = (
    SectionLetter.A,
    SectionLetter.B,
    SectionLetter.C,
    SectionLetter.D,
    SectionLetter.E,
)

TOTAL_STEPS = len(SECTION_ORDER)
