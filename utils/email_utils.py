# utils/email_utils.py
"""
SMTP delivery for ticket e-mails.

Messages are multipart/related: a text + HTML alternative part followed by
the QR PNG, which the HTML references as src="cid:qrcode". With
EMAIL_DRY_RUN on, nothing leaves the process and the send is only logged.
"""
from __future__ import annotations

import contextlib
import html as html_lib
import logging
import re
import smtplib
from email.header import Header
from email.message import Message
from email.mime.image import MIMEImage
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Iterator, Optional

from config import (
    EMAIL_DRY_RUN,
    EMAIL_SUBJECT_PREFIX,
    REPLY_TO,
    SENDER_EMAIL,
    SENDER_NAME,
    SMTP_HOST,
    SMTP_PASSWORD,
    SMTP_PORT,
    SMTP_SECURITY,
    SMTP_USERNAME,
)
from utils.validation import clean_email, clean_text

logger = logging.getLogger(__name__)

QR_CID = "qrcode"

_BREAKS = re.compile(r"<br\s*/?>|</(p|div|tr|h\d)>", re.I)
_TAGS = re.compile(r"<[^>]+>")


def _strip_html_to_text(body_html: str) -> str:
    """Plain-text twin of the HTML body, good enough for text-only clients."""
    if not body_html:
        return ""
    txt = _TAGS.sub("", _BREAKS.sub("\n", body_html))
    lines = [line.strip() for line in html_lib.unescape(txt).splitlines()]
    return re.sub(r"\n{3,}", "\n\n", "\n".join(lines)).strip()


def _check_smtp_settings() -> None:
    problems = []
    if not (SMTP_HOST and SMTP_PORT and SENDER_EMAIL):
        problems.append("SMTP host, port and sender address are required")
    if SMTP_SECURITY not in {"ssl", "starttls", "none"}:
        problems.append("SMTP_SECURITY must be 'ssl', 'starttls', or 'none'")
    if bool(SMTP_USERNAME) != bool(SMTP_PASSWORD):
        problems.append("SMTP_USERNAME and SMTP_PASSWORD go together")
    if problems:
        raise RuntimeError("; ".join(problems))


def _prefix_subject(subject: str) -> str:
    subject = clean_text(subject)
    if not EMAIL_SUBJECT_PREFIX or subject.startswith(EMAIL_SUBJECT_PREFIX):
        return subject
    return f"{EMAIL_SUBJECT_PREFIX} {subject}"


@contextlib.contextmanager
def _smtp_connection() -> Iterator[smtplib.SMTP]:
    cls = smtplib.SMTP_SSL if SMTP_SECURITY == "ssl" else smtplib.SMTP
    server = cls(SMTP_HOST, SMTP_PORT, timeout=30)
    try:
        if SMTP_SECURITY == "starttls":
            server.starttls()
        if SMTP_USERNAME:
            server.login(SMTP_USERNAME, SMTP_PASSWORD)
        yield server
    finally:
        server.quit()


def _deliver(msg: Message) -> None:
    to, subject = msg.get("To", ""), msg.get("Subject", "")
    if EMAIL_DRY_RUN:
        logger.info("[DRY-RUN] Would send email → TO=%s SUBJ=%s", to, subject)
        return
    _check_smtp_settings()
    with _smtp_connection() as server:
        server.send_message(msg)
    logger.info("Sent email to %s (%s)", to, subject)


def build_inline_qr_message(
    recipient: str,
    subject: str,
    body_html: str,
    *,
    qr_bytes: bytes,
    sender_name: str = SENDER_NAME,
    reply_to: Optional[str] = REPLY_TO,
    attachment_filename: str = "ticket.png",
) -> MIMEMultipart:
    body = MIMEMultipart("alternative")
    body.attach(MIMEText(_strip_html_to_text(body_html), "plain", "utf-8"))
    body.attach(MIMEText(body_html, "html", "utf-8"))

    qr = MIMEImage(qr_bytes, _subtype="png")
    qr.add_header("Content-ID", f"<{QR_CID}>")
    qr.add_header("Content-Disposition", "inline", filename=("utf-8", "", attachment_filename))

    msg = MIMEMultipart("related")
    msg["From"] = formataddr((str(Header(clean_text(sender_name), "utf-8")), SENDER_EMAIL or ""))
    msg["To"] = clean_email(recipient)
    msg["Subject"] = _prefix_subject(subject)
    if reply_to:
        msg["Reply-To"] = clean_email(reply_to)
    msg.attach(body)
    msg.attach(qr)
    return msg


def send_email_with_inline_qr(
    recipient: str,
    subject: str,
    body_html: str,
    *,
    qr_bytes: bytes,
    sender_name: str = SENDER_NAME,
    reply_to: Optional[str] = REPLY_TO,
    attachment_filename: str = "ticket.png",
) -> None:
    _deliver(build_inline_qr_message(
        recipient, subject, body_html,
        qr_bytes=qr_bytes,
        sender_name=sender_name,
        reply_to=reply_to,
        attachment_filename=attachment_filename,
    ))
