"""
Admin review surface.
"""

from .services import (
    ALLOWED_TRANSITIONS,
    AdminReviewService,
    InvalidStatusTransition,
    NominationDetail,
    NominationPage,
    ReminderSummary,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "AdminReviewService",
    "InvalidStatusTransition",
    "NominationDetail",
    "NominationPage",
    "ReminderSummary",
]
