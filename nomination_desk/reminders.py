"""
Reminder dispatcher.

Emails continuation links to nominators whose nominations are still draft
or incomplete. Each nomination is sent independently; a failure is counted
and the batch carries on.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import structlog
from sqlalchemy.orm import Session

from .config import get_settings
from .db.models import NominationModel
from .db.services import NominationNotFound, NominationService
from .notifications import Mailer, MailerError, render_reminder_email

logger = structlog.get_logger()

NO_EMAIL_ERROR = "no nominator email found"
DEFAULT_NOMINATOR_NAME = "Nominator"


def resolve_nominator_contact(nomination: NominationModel) -> Tuple[Optional[str], str]:
    """Nominator (email, name) for a nomination.

    Precedence is section D, then section A, then the root columns. Section D
    is the canonical nominator record; section A only carries nominator
    fields on older rows.
    """
    candidates = [
        nomination.form_section_d or {},
        nomination.form_section_a or {},
        {
            "nominator_email": nomination.nominator_email,
            "nominator_full_name": nomination.nominator_name,
        },
    ]
    email = next((c.get("nominator_email") for c in candidates if c.get("nominator_email")), None)
    name = next(
        (c.get("nominator_full_name") for c in candidates if c.get("nominator_full_name")),
        DEFAULT_NOMINATOR_NAME,
    )
    return email, name


def continuation_url(site_url: str, nomination_id: str) -> str:
    return f"{site_url.rstrip('/')}/nomination-form?continue={nomination_id}"


@dataclass
class ReminderResult:
    nomination_id: str
    email: Optional[str]
    success: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nominationId": self.nomination_id,
            "email": self.email,
            "success": self.success,
            "error": self.error,
        }


@dataclass
class DispatchReport:
    results: List[ReminderResult] = field(default_factory=list)
    message: Optional[str] = None

    @property
    def success_count(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def failure_count(self) -> int:
        return sum(1 for result in self.results if not result.success)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "successCount": self.success_count,
            "failureCount": self.failure_count,
            "results": [result.to_dict() for result in self.results],
        }
        if self.message:
            data["message"] = self.message
        return data


class ReminderDispatcher:
    """Sends continue-your-nomination emails."""

    def __init__(self, db: Session, mailer: Mailer, site_url: Optional[str] = None):
        self.nominations = NominationService(db)
        self.mailer = mailer
        self.site_url = site_url or get_settings().site_url

    def dispatch(
        self,
        nomination_id: Optional[str] = None,
        send_to_all: bool = False,
        site_url: Optional[str] = None,
    ) -> DispatchReport:
        """
        Send reminders to one nomination or to every remindable nomination.

        Args:
            nomination_id: Remind only this nomination
            send_to_all: Remind every draft or incomplete nomination
            site_url: Overrides the configured base for continuation links

        Raises:
            ValueError: If neither selector is given
            NominationNotFound: If ``nomination_id`` is not draft or incomplete
        """
        if nomination_id:
            nomination = self.nominations.get_resumable(nomination_id)
            if nomination is None:
                raise NominationNotFound(nomination_id, "Nomination not found or not incomplete")
            targets = [nomination]
        elif send_to_all:
            targets = self.nominations.list_resumable()
        else:
            raise ValueError("Either nomination_id or send_to_all must be specified")

        report = DispatchReport()
        if not targets:
            report.message = "No incomplete nominations found to send reminders to"
            return report

        base_url = site_url or self.site_url
        for nomination in targets:
            report.results.append(self._remind(nomination, base_url))

        logger.info(
            "Reminders dispatched",
            success_count=report.success_count,
            failure_count=report.failure_count,
        )
        return report

    def _remind(self, nomination: NominationModel, base_url: str) -> ReminderResult:
        email, name = resolve_nominator_contact(nomination)
        if not email:
            logger.warning("No nominator email", nomination_id=nomination.id)
            return ReminderResult(nomination.id, None, False, NO_EMAIL_ERROR)

        subject, html, text = render_reminder_email(
            name, nomination.nominee_name, continuation_url(base_url, nomination.id)
        )
        try:
            self.mailer.send_email(email, subject, html, text=text)
        except MailerError as exc:
            logger.error("Reminder send failed", nomination_id=nomination.id, error=str(exc))
            return ReminderResult(nomination.id, email, False, str(exc))
        return ReminderResult(nomination.id, email, True)
