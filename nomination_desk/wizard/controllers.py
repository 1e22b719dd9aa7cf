"""
Step controllers for the five nomination sections.

Each controller validates one section's input, persists it through the
store client and moves the wizard forward. Failures never raise to the
caller: they come back as a :class:`StepResult` and, where the nominator
needs to know, as a notice on the wizard.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Type

import structlog
from sqlalchemy.exc import SQLAlchemyError

from ..awards import reconcile_specific_award
from ..db.audit_service import NOMINATION, AuditService
from ..db.models import NominationModel
from ..db.services import NominationNotFound, StoreError, utc_now
from ..notifications import (
    Mailer,
    MailerError,
    render_admin_submission_notice,
    render_nomination_confirmation,
)
from ..schemas.enums import RESUMABLE_STATUSES, TOTAL_STEPS, NominationStatus, SectionLetter
from ..schemas.sections import (
    SECTION_MODELS,
    AnySection,
    SectionA,
    SectionB,
    SectionD,
    SectionE,
    validate_section,
)
from .state import CancellationToken, NominationWizard

logger = structlog.get_logger()

MISSING_NOMINATION_MESSAGE = "Please complete Section A first."
BUSY_MESSAGE = "Your previous save is still in progress."

SECTION_TITLES = {
    SectionLetter.A: "Nominee Information",
    SectionLetter.B: "Award Category",
    SectionLetter.C: "Justification & Supporting Materials",
    SectionLetter.D: "Nominator Information",
    SectionLetter.E: "Declaration & Submission",
}


class StepOutcome(str, Enum):
    SAVED = "saved"
    INVALID = "invalid"
    BUSY = "busy"
    MISSING_NOMINATION = "missing_nomination"
    NOT_FOUND = "not_found"
    STORE_ERROR = "store_error"
    ABANDONED = "abandoned"


@dataclass
class StepResult:
    """What happened to one submit."""

    section: SectionLetter
    outcome: StepOutcome
    current_step: int
    nomination_id: Optional[str] = None
    errors: Dict[str, str] = field(default_factory=dict)
    submitted: bool = False

    @property
    def ok(self) -> bool:
        return self.outcome == StepOutcome.SAVED

    @property
    def abandoned(self) -> bool:
        return self.outcome == StepOutcome.ABANDONED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "section": self.section.value,
            "outcome": self.outcome.value,
            "current_step": self.current_step,
            "nomination_id": self.nomination_id,
            "errors": self.errors,
            "submitted": self.submitted,
        }


class StepController:
    """Shared submit/back behaviour for one wizard section."""

    section: SectionLetter
    requires_nomination = True

    def __init__(
        self,
        wizard: NominationWizard,
        audit: Optional[AuditService] = None,
        mailer: Optional[Mailer] = None,
        actor_id: str = "anonymous",
        admin_email: Optional[str] = None,
    ):
        self.wizard = wizard
        self.store = wizard.store
        self.audit = audit
        self.mailer = mailer
        self.actor_id = actor_id
        self.admin_email = admin_email

    @property
    def title(self) -> str:
        return SECTION_TITLES[self.section]

    def form_defaults(self) -> Dict[str, Any]:
        """Current section values, or the empty form if never saved."""
        data = self.wizard.section(self.section)
        if data is None:
            return SECTION_MODELS[self.section].empty_defaults()
        values = data.to_document()
        values.pop("section", None)
        return values

    def _result(self, outcome: StepOutcome, **kwargs: Any) -> StepResult:
        return StepResult(
            section=self.section,
            outcome=outcome,
            current_step=self.wizard.current_step,
            nomination_id=self.wizard.nomination_id,
            **kwargs,
        )

    def submit(
        self, raw: Mapping[str, Any], token: Optional[CancellationToken] = None
    ) -> StepResult:
        """Validate, persist and advance.

        Args:
            raw: Submitted form values for this section
            token: Set when the caller may stop caring about the result

        Returns:
            StepResult describing the outcome
        """
        state = self.wizard.state
        if state.is_submitting:
            self.wizard.add_notice("warning", BUSY_MESSAGE)
            return self._result(StepOutcome.BUSY)

        validation = validate_section(self.section, raw)
        if not validation.ok:
            return self._result(StepOutcome.INVALID, errors=validation.errors)

        if self.requires_nomination and not state.nomination_id:
            self.wizard.add_notice("error", MISSING_NOMINATION_MESSAGE)
            self.wizard.set_current_step(1)
            return self._result(StepOutcome.MISSING_NOMINATION)

        previous = self.wizard.section(self.section)
        state.is_submitting = True
        try:
            nomination = self.persist(validation.data)
        except NominationNotFound as exc:
            logger.warning(
                "Nomination missing on save",
                section=self.section.value,
                nomination_id=exc.nomination_id,
            )
            self.wizard.add_notice(
                "error", "We could not find your nomination. Please start again from Section A."
            )
            return self._result(StepOutcome.NOT_FOUND)
        except StoreError as exc:
            logger.error("Section save failed", section=self.section.value, error=exc.message)
            self.wizard.add_notice(
                "error", f"Failed to save {self.title}. Please try again."
            )
            return self._result(StepOutcome.STORE_ERROR)
        finally:
            state.is_submitting = False

        self.audit_save(nomination, previous, validation.data)

        if token is not None and token.cancelled:
            logger.info(
                "Section saved after caller went away",
                section=self.section.value,
                nomination_id=nomination.id,
            )
            return StepResult(
                section=self.section,
                outcome=StepOutcome.ABANDONED,
                current_step=self.wizard.current_step,
                nomination_id=nomination.id,
            )

        self.wizard.update_section_data(self.section, validation.data)
        self.wizard.set_nomination_id(nomination.id)
        self.after_save(nomination, validation.data)

        if self.section.step < TOTAL_STEPS:
            self.wizard.set_current_step(self.section.step + 1)
        self.wizard.add_notice("success", self.saved_message())
        logger.info("Section saved", section=self.section.value, nomination_id=nomination.id)
        return self._result(
            StepOutcome.SAVED,
            submitted=self.section == SectionLetter.E
            and nomination.status == NominationStatus.SUBMITTED.value,
        )

    def back(self) -> int:
        """Move one step back without validating or saving."""
        self.wizard.set_current_step(max(1, self.section.step - 1))
        return self.wizard.current_step

    def saved_message(self) -> str:
        return f"{self.title} saved."

    def persist(self, data: AnySection) -> NominationModel:
        """Write ``data`` for the bound nomination and return the row."""
        return self.store.save_section(
            self.wizard.nomination_id, self.section, data.to_document()
        )

    def after_save(self, nomination: NominationModel, data: AnySection) -> None:
        pass

    def audit_save(
        self,
        nomination: NominationModel,
        previous: Optional[AnySection],
        data: AnySection,
    ) -> None:
        """Record the section write with its before and after documents."""
        column = self.section.column
        self._audit(
            "log_update",
            NOMINATION,
            nomination.id,
            {column: previous.to_document() if previous is not None else None},
            {column: data.to_document()},
            actor_kind="nominator",
            actor_id=self.actor_id,
            note=f"{self.title} saved",
        )

    def _audit(self, method: str, *args: Any, **kwargs: Any) -> None:
        """Write an audit entry; a failed audit write never fails the step."""
        if self.audit is None:
            return
        try:
            getattr(self.audit, method)(*args, **kwargs)
        except SQLAlchemyError as exc:
            self.audit.db.rollback()
            logger.warning("Audit write failed", method=method, error=str(exc))


class SectionAController(StepController):
    """Nominee information. Creates the nomination on first save."""

    section = SectionLetter.A
    requires_nomination = False
    created = False

    def persist(self, data: SectionA) -> NominationModel:
        values: Dict[str, Any] = {
            self.section.column: data.to_document(),
            "nominee_name": data.nominee_full_name,
            "nominee_type": data.nominee_type.value if data.nominee_type else None,
            "summary_of_achievement": data.summary_of_achievement,
        }
        section_b = self.wizard.section(SectionLetter.B)
        if section_b is not None:
            values["award_category_id"] = section_b.award_category

        self.created = self.wizard.nomination_id is None
        nomination = self.store.upsert(values, nomination_id=self.wizard.nomination_id)
        if self.created:
            logger.info("Nomination created", nomination_id=nomination.id)
        return nomination

    def audit_save(
        self,
        nomination: NominationModel,
        previous: Optional[AnySection],
        data: AnySection,
    ) -> None:
        if not self.created:
            super().audit_save(nomination, previous, data)
            return
        self._audit(
            "log_create",
            NOMINATION,
            nomination.id,
            nomination.to_dict(),
            actor_kind="nominator",
            actor_id=self.actor_id,
        )


class SectionBController(StepController):
    """Award category and specific award."""

    section = SectionLetter.B

    def persist(self, data: SectionB) -> NominationModel:
        return self.store.save_section(
            self.wizard.nomination_id,
            self.section,
            data.to_document(),
            extra={"award_category_id": data.award_category},
        )

    def change_category(
        self, form: Mapping[str, Any], new_category: Optional[str]
    ) -> Dict[str, Any]:
        """Swap the category and drop an award the new category does not offer."""
        values = dict(form)
        values["award_category"] = new_category or ""
        values["specific_award"] = (
            reconcile_specific_award(new_category, values.get("specific_award")) or ""
        )
        return values


class SectionCController(StepController):
    """Justification text. Attachments are handled separately."""

    section = SectionLetter.C


class SectionDController(StepController):
    """Nominator details, the canonical contact for reminders."""

    section = SectionLetter.D

    def persist(self, data: SectionD) -> NominationModel:
        return self.store.save_section(
            self.wizard.nomination_id,
            self.section,
            data.to_document(),
            extra={
                "nominator_name": data.nominator_full_name,
                "nominator_email": data.nominator_email,
            },
        )


class SectionEController(StepController):
    """Declaration. Saving it submits the nomination."""

    section = SectionLetter.E
    submitted_from: Optional[str] = None

    def persist(self, data: SectionE) -> NominationModel:
        nomination_id = self.wizard.nomination_id
        current = self.store.get_or_raise(nomination_id)
        old_status = current.status

        extra: Dict[str, Any] = {}
        if old_status in [s.value for s in RESUMABLE_STATUSES]:
            extra = {"status": NominationStatus.SUBMITTED.value, "submitted_at": utc_now()}

        nomination = self.store.save_section(
            nomination_id, self.section, data.to_document(), extra=extra
        )
        self.submitted_from = old_status if nomination.status != old_status else None
        return nomination

    def audit_save(
        self,
        nomination: NominationModel,
        previous: Optional[AnySection],
        data: AnySection,
    ) -> None:
        if self.submitted_from is None:
            super().audit_save(nomination, previous, data)
            return
        self._audit(
            "log_submit",
            nomination.id,
            self.submitted_from,
            nomination.to_dict(),
            actor_kind="nominator",
            actor_id=self.actor_id,
        )

    def after_save(self, nomination: NominationModel, data: AnySection) -> None:
        self._send_confirmation(nomination)
        if self.submitted_from is not None:
            self._notify_admin(nomination)

    def saved_message(self) -> str:
        if self.submitted_from is None:
            return super().saved_message()
        return "Your nomination has been submitted. Thank you!"

    def _send_confirmation(self, nomination: NominationModel) -> None:
        if self.mailer is None or not nomination.nominator_email:
            return
        section_b = self.wizard.section(SectionLetter.B)
        subject, html, text = render_nomination_confirmation(
            nominator_name=nomination.nominator_name,
            nominee_name=nomination.nominee_name,
            category_id=nomination.award_category_id,
            award_value=section_b.specific_award if section_b else None,
            nomination_id=nomination.id,
        )
        try:
            self.mailer.send_email(nomination.nominator_email, subject, html, text=text)
        except MailerError as exc:
            logger.warning(
                "Confirmation email failed", nomination_id=nomination.id, error=str(exc)
            )

    def _notify_admin(self, nomination: NominationModel) -> None:
        if self.mailer is None or not self.admin_email:
            return
        subject, html, text = render_admin_submission_notice(
            nominee_name=nomination.nominee_name,
            nominator_name=nomination.nominator_name,
            nominator_email=nomination.nominator_email,
            category_id=nomination.award_category_id,
            nomination_id=nomination.id,
        )
        try:
            self.mailer.send_email(self.admin_email, subject, html, text=text)
        except MailerError as exc:
            logger.warning(
                "Admin notification failed", nomination_id=nomination.id, error=str(exc)
            )


CONTROLLERS: Dict[SectionLetter, Type[StepController]] = {
    SectionLetter.A: SectionAController,
    SectionLetter.B: SectionBController,
    SectionLetter.C: SectionCController,
    SectionLetter.D: SectionDController,
    SectionLetter.E: SectionEController,
}


def controller_for_step(
    step: int,
    wizard: NominationWizard,
    audit: Optional[AuditService] = None,
    mailer: Optional[Mailer] = None,
    actor_id: str = "anonymous",
    admin_email: Optional[str] = None,
) -> StepController:
    """Build the controller for a 1-based step number."""
    letter = SectionLetter.for_step(step)
    return CONTROLLERS[letter](
        wizard, audit=audit, mailer=mailer, actor_id=actor_id, admin_email=admin_email
    )
