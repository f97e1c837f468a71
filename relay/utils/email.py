from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate, make_msgid

import aiosmtplib

from ..logger import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class SMTPConfig:
    host: str
    port: int
    user: str
    password: str
    use_tls: bool
    start_tls: bool
    timeout: float


@dataclass(frozen=True)
class MailMessage:
    sender: str
    recipient: str
    subject: str
    text: str
    html: str
    reply_to: str | None = None


def _header(value: str) -> str:
    return value.replace("\r", "").replace("\n", " ").strip()


def build_mime(mail: MailMessage) -> MIMEMultipart:
    message = MIMEMultipart("alternative")
    message["From"] = _header(mail.sender)
    message["To"] = _header(mail.recipient)
    message["Subject"] = _header(mail.subject)
    message["Date"] = formatdate(localtime=False)
    message["Message-ID"] = make_msgid()
    if mail.reply_to:
        message["Reply-To"] = _header(mail.reply_to)
    message.attach(MIMEText(mail.text, "plain", "utf-8"))
    message.attach(MIMEText(mail.html, "html", "utf-8"))
    return message


async def send_email(mail: MailMessage, smtp: SMTPConfig) -> None:
    logger.debug(f"Sending email to {mail.recipient} ({mail.subject})")

    await aiosmtplib.send(
        build_mime(mail),
        hostname=smtp.host,
        port=smtp.port,
        username=smtp.user or None,
        password=smtp.password or None,
        use_tls=smtp.use_tls,
        start_tls=smtp.start_tls,
        timeout=smtp.timeout,
    )
