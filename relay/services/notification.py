import asyncio
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import aiosmtplib
from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup, escape

from ..logger import get_logger
from ..settings import ConfigurationError
from ..utils.email import MailMessage, SMTPConfig, send_email
from ..utils.recaptcha import VerificationOutcome
from ..utils.utc import utcnow
from ..validation import Submission


logger = get_logger(__name__)


NEWLINE = re.compile(r"\r\n|\r|\n")


def nl2br(value: str) -> Markup:
    return Markup("<br>\n").join(escape(line) for line in NEWLINE.split(value))


env = Environment(
    loader=FileSystemLoader(Path(__file__).parent.parent / "templates"),
    autoescape=select_autoescape(enabled_extensions=("html",), default_for_string=False),
    keep_trailing_newline=True,
)
env.filters["nl2br"] = nl2br


class DispatchError(Exception):
    def __init__(self, kind: Literal["transport", "configuration"], reason: str) -> None:
        super().__init__(reason)
        self.kind = kind
        self.reason = reason


@dataclass
class NotificationTemplate:
    text_template: str
    html_template: str

    def render(self, **kwargs: object) -> tuple[str, str]:
        text = env.get_template(self.text_template).render(**kwargs)
        html = env.get_template(self.html_template).render(**kwargs)
        return text, html


CONTACT_NOTIFICATION = NotificationTemplate("contact_notification.txt", "contact_notification.html")


class NotificationDispatcher:
    def __init__(
        self, *, recipient: str | None, sender: str, subject: str, smtp: SMTPConfig, service_name: str = "Contact Relay"
    ) -> None:
        if not recipient or not sender or not smtp.host:
            raise ConfigurationError("Mail delivery is not configured")

        self.recipient = recipient
        self.sender = sender
        self.subject = subject
        self.smtp = smtp
        self.service_name = service_name

    def compose(self, submission: Submission, caller_address: str, verification: VerificationOutcome) -> MailMessage:
        text, html = CONTACT_NOTIFICATION.render(
            service_name=self.service_name,
            name=submission.name,
            email=submission.email,
            caller_address=caller_address,
            timestamp=utcnow().strftime("%Y-%m-%d %H:%M:%S %Z"),
            score="N/A" if verification.score is None else verification.score,
            message=submission.message,
        )
        return MailMessage(
            sender=self.sender,
            recipient=self.recipient,
            subject=f"{self.subject} - {submission.name}",
            text=text,
            html=html,
            reply_to=submission.email,
        )

    async def dispatch(self, submission: Submission, caller_address: str, verification: VerificationOutcome) -> None:
        """Send the notification for an accepted submission, raising `DispatchError` on any failure."""

        mail = self.compose(submission, caller_address, verification)
        try:
            await send_email(mail, self.smtp)
        except aiosmtplib.SMTPAuthenticationError as e:
            raise DispatchError("configuration", f"SMTP authentication failed: {e}") from e
        except ValueError as e:
            raise DispatchError("configuration", f"Invalid SMTP settings: {e}") from e
        except (aiosmtplib.SMTPException, asyncio.TimeoutError, OSError) as e:
            raise DispatchError("transport", f"{type(e).__name__}: {e}") from e

        logger.info(f"Contact notification sent to {self.recipient} (reply to {submission.email})")
