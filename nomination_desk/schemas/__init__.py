"""
Nomination schemas: enums and per-section input contracts.
"""

from .enums import (
    DocumentType,
    NominationStatus,
    NomineeType,
    RESUMABLE_STATUSES,
    SECTION_ORDER,
    SectionLetter,
    TOTAL_STEPS,
)
from .sections import (
    AnySection,
    SECTION_MODELS,
    SectionA,
    SectionB,
    SectionC,
    SectionD,
    SectionE,
    SectionModel,
    SectionValidation,
    load_stored_section,
    validate_section,
)

__all__ = [
    "AnySection",
    "DocumentType",
    "NominationStatus",
    "NomineeType",
    "RESUMABLE_STATUSES",
    "SECTION_MODELS",
    "SECTION_ORDER",
    "SectionA",
    "SectionB",
    "SectionC",
    "SectionD",
    "SectionE",
    "SectionLetter",
    "SectionModel",
    "SectionValidation",
    "TOTAL_STEPS",
    "load_stored_section",
    "validate_section",
]
