"""
Email send boundary.

The rest of the application only sees :class:`Mailer`. ``ResendMailer``
talks to the Resend REST API over httpx; ``LoggingMailer`` keeps messages
in an outbox and logs them, and is used whenever no API key is configured.
"""

from __future__ import annotations

import base64
import html as html_lib
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from .awards import get_award_name, get_category_title
from .config import Settings, get_settings

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class MailerError(Exception):
    """Raised when a message could not be handed to the email provider."""


@dataclass
class EmailAttachment:
    filename: str
    content: bytes


@dataclass
class EmailMessage:
    to: List[str]
    subject: str
    html: str
    text: Optional[str] = None
    cc: List[str] = field(default_factory=list)
    bcc: List[str] = field(default_factory=list)
    reply_to: Optional[str] = None
    attachments: List[EmailAttachment] = field(default_factory=list)


def _as_list(value: Optional[Sequence[str] | str]) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


class Mailer(ABC):
    """Abstract email sender."""

    def send_email(
        self,
        to: Sequence[str] | str,
        subject: str,
        html: str,
        text: Optional[str] = None,
        cc: Optional[Sequence[str]] = None,
        bcc: Optional[Sequence[str]] = None,
        reply_to: Optional[str] = None,
        attachments: Optional[Sequence[EmailAttachment]] = None,
    ) -> str:
        """Send one email and return the provider message id.

        Raises:
            MailerError: If the message was rejected or could not be sent
        """
        recipients = _as_list(to)
        if not recipients:
            raise MailerError("At least one recipient is required")
        message = EmailMessage(
            to=recipients,
            subject=subject,
            html=html,
            text=text,
            cc=_as_list(cc),
            bcc=_as_list(bcc),
            reply_to=reply_to,
            attachments=list(attachments or []),
        )
        return self.deliver(message)

    @abstractmethod
    def deliver(self, message: EmailMessage) -> str:
        pass


class LoggingMailer(Mailer):
    """Records messages instead of sending them."""

    def __init__(self) -> None:
        self.outbox: List[EmailMessage] = []

    def deliver(self, message: EmailMessage) -> str:
        self.outbox.append(message)
        logger.info("Email queued to outbox: to=%s subject=%r", message.to, message.subject)
        return f"outbox-{len(self.outbox)}"


class ResendMailer(Mailer):
    """Sends mail through the Resend REST API."""

    def __init__(
        self,
        api_key: str,
        sender: str,
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ):
        self.api_key = api_key
        self.sender = sender
        self.client = client or httpx.Client(timeout=timeout)

    def _payload(self, message: EmailMessage) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "from": self.sender,
            "to": message.to,
            "subject": message.subject,
            "html": message.html,
        }
        if message.text:
            payload["text"] = message.text
        if message.cc:
            payload["cc"] = message.cc
        if message.bcc:
            payload["bcc"] = message.bcc
        if message.reply_to:
            payload["reply_to"] = message.reply_to
        if message.attachments:
            payload["attachments"] = [
                {
                    "filename": attachment.filename,
                    "content": base64.b64encode(attachment.content).decode("ascii"),
                }
                for attachment in message.attachments
            ]
        return payload

    def deliver(self, message: EmailMessage) -> str:
        try:
            response = self.client.post(
                RESEND_API_URL,
                json=self._payload(message),
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise MailerError(
                f"Email provider rejected message ({exc.response.status_code}): {exc.response.text}"
            ) from exc
        except httpx.HTTPError as exc:
            raise MailerError(f"Email provider unreachable: {exc}") from exc

        message_id = response.json().get("id", "")
        logger.info("Email sent via Resend: id=%s to=%s", message_id, message.to)
        return message_id


def get_mailer(settings: Optional[Settings] = None) -> Mailer:
    """Build the configured mailer."""
    settings = settings or get_settings()
    if settings.resend_api_key:
        return ResendMailer(settings.resend_api_key, settings.email_from)
    logger.warning("RESEND_API_KEY not set; emails will only be logged")
    return LoggingMailer()


def render_reminder_email(
    nominator_name: Optional[str],
    nominee_name: Optional[str],
    continue_url: str,
) -> Tuple[str, str, str]:
    """Subject, HTML and text for a continue-your-nomination reminder."""
    greeting = f"Dear {nominator_name}," if nominator_name else "Hello,"
    nominee = nominee_name or "your nominee"
    subject = "Reminder: Complete your TPAHLA nomination"
    text = (
        f"{greeting}\n\n"
        f"Your nomination for {nominee} has not been submitted yet.\n"
        f"Continue where you left off: {continue_url}\n\n"
        "Thank you for supporting humanitarian leadership across Africa.\n"
    )
    html = (
        f"<p>{html_lib.escape(greeting)}</p>"
        f"<p>Your nomination for <strong>{html_lib.escape(nominee)}</strong> "
        "has not been submitted yet.</p>"
        f'<p><a href="{html_lib.escape(continue_url, quote=True)}">Continue your nomination</a></p>'
        "<p>Thank you for supporting humanitarian leadership across Africa.</p>"
    )
    return subject, html, text


def render_nomination_confirmation(
    nominator_name: Optional[str],
    nominee_name: Optional[str],
    category_id: Optional[str],
    award_value: Optional[str],
    nomination_id: str,
) -> Tuple[str, str, str]:
    """Subject, HTML and text confirming a submitted nomination."""
    greeting = f"Dear {nominator_name}," if nominator_name else "Hello,"
    nominee = nominee_name or "your nominee"
    award = get_award_name(category_id, award_value) or award_value or "the selected award"
    category = get_category_title(category_id) or category_id or ""
    subject = f"Nomination received: {nominee}"
    text = (
        f"{greeting}\n\n"
        f"We have received your nomination of {nominee} for {award}"
        f"{f' ({category})' if category else ''}.\n"
        f"Reference: {nomination_id}\n"
    )
    html = (
        f"<p>{html_lib.escape(greeting)}</p>"
        f"<p>We have received your nomination of <strong>{html_lib.escape(nominee)}</strong> "
        f"for <strong>{html_lib.escape(award)}</strong>"
        f"{f' ({html_lib.escape(category)})' if category else ''}.</p>"
        f"<p>Reference: <code>{html_lib.escape(nomination_id)}</code></p>"
    )
    return subject, html, text


def render_admin_submission_notice(
    nominee_name: Optional[str],
    nominator_name: Optional[str],
    nominator_email: Optional[str],
    category_id: Optional[str],
    nomination_id: str,
) -> Tuple[str, str, str]:
    """Subject, HTML and text telling the awards desk a nomination came in."""
    nominee = nominee_name or "Unnamed nominee"
    nominator = nominator_name or "Unknown nominator"
    if nominator_email:
        nominator = f"{nominator} ({nominator_email})"
    category = get_category_title(category_id) or category_id or "No category"
    subject = f"New nomination submitted: {nominee} (ID: {nomination_id})"
    lines = [
        f"Nominee: {nominee}",
        f"Nominator: {nominator}",
        f"Category: {category}",
        f"Nomination ID: {nomination_id}",
    ]
    text = "A new nomination has been submitted:\n" + "\n".join(lines) + "\n"
    html = (
        "<p>A new nomination has been submitted:</p><ul>"
        + "".join(f"<li>{html_lib.escape(line)}</li>" for line in lines)
        + "</ul><p>View details in the admin panel.</p>"
    )
    return subject, html, text
