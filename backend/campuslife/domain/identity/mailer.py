"""SMTP mailer for identity flows."""

from __future__ import annotations

import hashlib
import logging
from email.message import EmailMessage

import aiosmtplib

from campuslife.settings import settings

logger = logging.getLogger(__name__)


def mask_email(email: str) -> str:
    return hashlib.sha256(email.lower().encode("utf-8")).hexdigest()[:12]


async def _send_email(to_email: str, subject: str, body_html: str) -> bool:
    """Send an email using the configured SMTP settings. Returns False when nothing was sent."""
    if not settings.smtp_host or (settings.smtp_host == "localhost" and not settings.is_dev()):
        logger.warning("mailer.skipped to=%s reason=smtp_not_configured", mask_email(to_email))
        return False

    msg = EmailMessage()
    msg["From"] = settings.smtp_from_email
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body_html, subtype="html")

    # STARTTLS on 587, implicit TLS on 465
    start_tls = bool(settings.smtp_tls) and int(settings.smtp_port) == 587
    use_tls = bool(settings.smtp_tls) and int(settings.smtp_port) == 465
    try:
        await aiosmtplib.send(
            msg,
            hostname=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_user,
            password=settings.smtp_password,
            start_tls=start_tls,
            use_tls=use_tls,
        )
    except (aiosmtplib.SMTPException, OSError) as exc:
        # A failed delivery must not break the reset request itself
        logger.error("mailer.failed to=%s error=%s", mask_email(to_email), exc.__class__.__name__)
        return False
    logger.info("mailer.sent to=%s", mask_email(to_email))
    return True


async def send_password_reset(email: str, link: str) -> bool:
    subject = "Reset your campuslife password"
    body = f"""
    <html>
        <body>
            <p>Hello,</p>
            <p>Someone asked to reset the password for this account. Use the link below to choose a new one:</p>
            <p><a href="{link}">Reset password</a></p>
            <p>If this wasn't you, you can ignore this email.</p>
        </body>
    </html>
    """
    return await _send_email(email, subject, body)
