"""
Nomination Desk

Nomination wizard, admin review and reminder service for the Pan-African
Humanitarian Leadership Award.
"""

import importlib.metadata

__version__ = importlib.metadata.version("nomination-desk")

from .awards import AWARD_CATEGORIES, AwardCategory
from .schemas import NominationStatus, SectionLetter, validate_section
from .wizard import ContinuationResolver, NominationWizard

__all__ = [
    "AWARD_CATEGORIES",
    "AwardCategory",
    "ContinuationResolver",
    "NominationStatus",
    "NominationWizard",
    "SectionLetter",
    "validate_section",
]
