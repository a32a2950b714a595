import smtplib
from email.message import EmailMessage

import structlog

from ..config import settings

logger = structlog.get_logger(__name__)


def mail_configured() -> bool:
    return bool(settings.smtp_host and settings.mail_from)


def send_mail(to: str, subject: str, body: str) -> bool:
    """Send a plain-text message. Returns False when mail is not configured or delivery failed."""
    if not mail_configured():
        logger.info("mail_skipped", to=to, subject=subject)
        return False
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = settings.mail_from
    msg["To"] = to
    msg.set_content(body)
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as s:
            if settings.smtp_tls:
                s.starttls()
            if settings.smtp_username and settings.smtp_password:
                s.login(settings.smtp_username, settings.smtp_password)
            s.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.warning("mail_failed", to=to, subject=subject, error=str(e))
        return False
    return True
