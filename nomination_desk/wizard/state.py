"""
Nomination wizard state container.

One :class:`NominationWizard` exists per wizard session. It is constructed
with a store client and owns a :class:`NominationWizardState`; step
controllers and the continuation resolver mutate it through its methods.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import structlog

from ..db.models import NominationModel
from ..db.services import NominationNotFound, NominationService, StoreError
from ..schemas.enums import SECTION_ORDER, TOTAL_STEPS, SectionLetter
from ..schemas.sections import AnySection, load_stored_section

logger = structlog.get_logger()

LOAD_FAILED_MESSAGE = "We could not load the nomination you asked for. Starting a new one."


class CancellationToken:
    """Signals that the caller is no longer interested in a result.

    Cancelling never reverts work already committed by the store; it only
    stops the result from being applied to a wizard.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class Notice:
    """A user-facing message produced during the session."""

    level: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"level": self.level, "message": self.message}


@dataclass
class NominationWizardState:
    nomination_id: Optional[str] = None
    current_step: int = 1
    sections: Dict[SectionLetter, AnySection] = field(default_factory=dict)
    is_submitting: bool = False
    is_loading: bool = False
    notices: List[Notice] = field(default_factory=list)


class NominationWizard:
    """Explicit state container for one nomination wizard session."""

    def __init__(self, store: NominationService, state: Optional[NominationWizardState] = None):
        self.store = store
        self.state = state or NominationWizardState()

    @property
    def nomination_id(self) -> Optional[str]:
        return self.state.nomination_id

    @property
    def current_step(self) -> int:
        return self.state.current_step

    def set_current_step(self, step: int) -> None:
        """Move the step pointer. No validation beyond the range check."""
        if not 1 <= step <= TOTAL_STEPS:
            raise ValueError(f"Step must be between 1 and {TOTAL_STEPS}, got {step}")
        self.state.current_step = step

    def section(self, letter: Union[SectionLetter, str]) -> Optional[AnySection]:
        return self.state.sections.get(SectionLetter(letter))

    def update_section_data(self, letter: Union[SectionLetter, str], data: AnySection) -> None:
        """Replace one section wholesale."""
        letter = SectionLetter(letter)
        if data.section != letter.value:
            raise ValueError(f"Section {data.section} data cannot be stored as section {letter.value}")
        self.state.sections[letter] = data

    def set_nomination_id(self, nomination_id: str) -> None:
        self.state.nomination_id = nomination_id

    def add_notice(self, level: str, message: str) -> None:
        self.state.notices.append(Notice(level, message))

    def reset_nomination(self) -> None:
        """Clear identity, step, sections, flags and notices. Idempotent."""
        self.state.nomination_id = None
        self.state.current_step = 1
        self.state.sections = {}
        self.state.is_submitting = False
        self.state.is_loading = False
        self.state.notices = []

    def hydrate(self, nomination: NominationModel) -> List[SectionLetter]:
        """Populate every section stored on ``nomination`` and bind its id.

        Returns the letters that were loaded. Sections whose stored document
        no longer validates are treated as absent.
        """
        sections: Dict[SectionLetter, AnySection] = {}
        for letter in SECTION_ORDER:
            data = load_stored_section(letter, nomination.section_document(letter))
            if data is not None:
                sections[letter] = data
        self.state.sections = sections
        self.state.nomination_id = nomination.id
        return list(sections)

    def load(self, nomination_id: str) -> bool:
        """Edit-flow load of an existing nomination.

        Runs only when ``nomination_id`` differs from the bound id. Never
        raises: on a missing row or a store failure the wizard is reset and a
        warning notice is added.
        """
        if nomination_id == self.state.nomination_id:
            return True

        self.state.is_loading = True
        try:
            nomination = self.store.get(nomination_id)
            if nomination is None:
                raise NominationNotFound(nomination_id)
        except (NominationNotFound, StoreError) as exc:
            logger.warning("Failed to load nomination", nomination_id=nomination_id, error=str(exc))
            self.reset_nomination()
            self.add_notice("warning", LOAD_FAILED_MESSAGE)
            return False
        finally:
            self.state.is_loading = False

        self.hydrate(nomination)
        logger.info("Nomination loaded", nomination_id=nomination_id)
        return True

    def snapshot(self) -> Dict[str, Any]:
        """JSON-able view of the current state."""
        return {
            "nomination_id": self.state.nomination_id,
            "current_step": self.state.current_step,
            "total_steps": TOTAL_STEPS,
            "current_section": SectionLetter.for_step(self.state.current_step).value,
            "sections": {
                letter.value: self.state.sections[letter].to_document()
                for letter in SECTION_ORDER
                if letter in self.state.sections
            },
            "is_submitting": self.state.is_submitting,
            "is_loading": self.state.is_loading,
            "notices": [notice.to_dict() for notice in self.state.notices],
        }
