"""Plain-text booking mail over SMTP."""
import smtplib
from collections import namedtuple
from email.message import EmailMessage
from email.utils import formataddr, make_msgid

from flask import current_app

SendResult = namedtuple("SendResult", "sent error")


def _sender():
    cfg = current_app.config
    address = cfg.get("SMTP_FROM_EMAIL") or cfg.get("SMTP_USERNAME")
    if not address:
        return None
    name = cfg.get("SMTP_FROM_NAME")
    return formataddr((name, address)) if name else address


def build_message(sender: str, to_email: str, subject: str, body: str) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = to_email
    msg["Subject"] = subject
    msg["Message-ID"] = make_msgid()
    msg.set_content(body)
    return msg


def send_email(to_email: str, subject: str, body: str) -> SendResult:
    """Delivers one message. Returns SendResult(sent, error) instead of raising."""
    cfg = current_app.config
    host = cfg.get("SMTP_HOST")
    sender = _sender()
    if not host or not sender:
        return SendResult(False, "Email not configured")
    if not to_email:
        return SendResult(False, "No recipient")

    msg = build_message(sender, to_email, subject, body)
    username = cfg.get("SMTP_USERNAME")
    password = cfg.get("SMTP_PASSWORD")
    try:
        with smtplib.SMTP(host, cfg.get("SMTP_PORT", 587), timeout=10) as server:
            if cfg.get("SMTP_USE_TLS", True):
                server.starttls()
            if username and password:
                server.login(username, password)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as exc:
        return SendResult(False, str(exc))
    return SendResult(True, None)
