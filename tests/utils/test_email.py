from pytest_mock import MockerFixture

from relay.utils.email import MailMessage, SMTPConfig, build_mime, send_email


MAIL = MailMessage(
    sender="noreply@example.com",
    recipient="info@example.com",
    subject="New Contact Form Submission - Al",
    text="plain body",
    html="<p>html body</p>",
    reply_to="a@b.co",
)

SMTP = SMTPConfig(
    host="smtp.example.com", port=587, user="user", password="pass", use_tls=False, start_tls=True, timeout=30
)


def test__build_mime() -> None:
    message = build_mime(MAIL)

    assert message["From"] == "noreply@example.com"
    assert message["To"] == "info@example.com"
    assert message["Subject"] == "New Contact Form Submission - Al"
    assert message["Reply-To"] == "a@b.co"
    assert message["Message-ID"]
    assert [part.get_content_type() for part in message.get_payload()] == ["text/plain", "text/html"]  # type: ignore
    assert message.get_payload()[0].get_payload(decode=True).decode() == "plain body"  # type: ignore
    assert message.get_payload()[1].get_payload(decode=True).decode() == "<p>html body</p>"  # type: ignore


def test__build_mime_strips_header_line_breaks() -> None:
    message = build_mime(
        MailMessage(
            sender="noreply@example.com",
            recipient="info@example.com",
            subject="Hi\r\nBcc: victim@example.com",
            text="",
            html="",
            reply_to="a@b.co\nBcc: victim@example.com",
        )
    )

    assert "\n" not in str(message["Subject"])
    assert "\n" not in str(message["Reply-To"])
    assert message["Bcc"] is None


def test__build_mime_without_reply_to() -> None:
    message = build_mime(MailMessage("noreply@example.com", "info@example.com", "subject", "text", "html"))

    assert message["Reply-To"] is None


async def test__send_email(mocker: MockerFixture) -> None:
    send = mocker.patch("relay.utils.email.aiosmtplib.send")

    await send_email(MAIL, SMTP)

    send.assert_awaited_once()
    assert send.call_args.kwargs == {
        "hostname": "smtp.example.com",
        "port": 587,
        "username": "user",
        "password": "pass",
        "use_tls": False,
        "start_tls": True,
        "timeout": 30,
    }
    assert send.call_args.args[0]["To"] == "info@example.com"


async def test__send_email_without_credentials(mocker: MockerFixture) -> None:
    send = mocker.patch("relay.utils.email.aiosmtplib.send")

    await send_email(MAIL, SMTPConfig("localhost", 25, "", "", False, False, 5))

    assert send.call_args.kwargs["username"] is None
    assert send.call_args.kwargs["password"] is None
