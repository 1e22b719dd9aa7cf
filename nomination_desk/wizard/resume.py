"""
Continuation links.

A reminder email carries ``/nomination-form?continue=<id>``. Opening it
resumes the draft at the first step the nominator has not completed.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

import structlog

from ..db.services import NominationNotFound, StoreError
from ..schemas.enums import SECTION_ORDER, TOTAL_STEPS, SectionLetter
from .state import NominationWizard

logger = structlog.get_logger()

RESUME_FAILED_MESSAGE = "We could not load your saved nomination. Starting a new one."


def compute_resume_step(present: Iterable[SectionLetter]) -> int:
    """Step right after the contiguous run of saved sections starting at A.

    Gaps count: with A and C saved but not B, the nominator resumes at B.
    """
    saved = {SectionLetter(letter) for letter in present}
    step = 1
    for letter in SECTION_ORDER:
        if letter not in saved:
            break
        step += 1
    return min(step, TOTAL_STEPS)


@dataclass
class ResumeOutcome:
    resumed: bool
    step: int
    nomination_id: Optional[str] = None


class ContinuationResolver:
    """Hydrates a wizard from a continuation link."""

    def resume(self, wizard: NominationWizard, nomination_id: str) -> ResumeOutcome:
        if wizard.nomination_id == nomination_id:
            return ResumeOutcome(True, wizard.current_step, nomination_id)

        wizard.state.is_loading = True
        try:
            nomination = wizard.store.get_resumable(nomination_id)
            if nomination is None:
                raise NominationNotFound(
                    nomination_id, "No draft or incomplete nomination with this id"
                )
        except (NominationNotFound, StoreError) as exc:
            logger.warning("Continuation failed", nomination_id=nomination_id, error=str(exc))
            wizard.reset_nomination()
            wizard.add_notice("warning", RESUME_FAILED_MESSAGE)
            return ResumeOutcome(False, wizard.current_step)
        finally:
            wizard.state.is_loading = False

        present = wizard.hydrate(nomination)
        step = compute_resume_step(present)
        wizard.set_current_step(step)
        logger.info("Nomination resumed", nomination_id=nomination_id, step=step)
        return ResumeOutcome(True, step, nomination_id)
