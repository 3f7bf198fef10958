"""Email notifications over SMTP."""

import logging
import smtplib
from email.message import EmailMessage
from html import escape
from typing import Optional

from config.settings import (
    FROM_EMAIL,
    S3_URL_EXPIRY_SECONDS,
    SMTP_HOST,
    SMTP_PASS,
    SMTP_PORT,
    SMTP_TIMEOUT_SECONDS,
    SMTP_USER,
)
from src.services.errors import UpstreamError

logger = logging.getLogger(__name__)

KIT_READY_SUBJECT = "Your Real Estate Kit is Ready"


def describe_expiry(seconds: int) -> str:
    if seconds >= 86400:
        days = seconds // 86400
        return f"{days} day{'s' if days != 1 else ''}"
    minutes = max(1, seconds // 60)
    return f"{minutes} minute{'s' if minutes != 1 else ''}"


class NotificationService:
    """Send the "kit ready" email when a mail relay is configured."""

    def __init__(
        self,
        host: Optional[str] = None,
        port: int = SMTP_PORT,
        username: Optional[str] = None,
        password: Optional[str] = None,
        sender: str = FROM_EMAIL,
        timeout: float = SMTP_TIMEOUT_SECONDS,
        link_expiry_seconds: int = S3_URL_EXPIRY_SECONDS,
    ) -> None:
        self.host = host or SMTP_HOST
        self.port = port
        self.username = username or SMTP_USER
        self.password = password or SMTP_PASS
        self.sender = sender
        self.timeout = timeout
        self.link_expiry_seconds = link_expiry_seconds

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.username)

    def build_kit_ready_message(self, to_email: str, download_url: str) -> EmailMessage:
        expiry = describe_expiry(self.link_expiry_seconds)
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to_email
        msg["Subject"] = KIT_READY_SUBJECT
        msg["Auto-Submitted"] = "auto-generated"
        msg.set_content(
            f"Your kit is ready.\n\nDownload here: {download_url}\n"
            f"(the download link expires {expiry} after you open it)\n"
        )
        msg.add_alternative(
            f"<p>Your kit is ready.</p>"
            f'<p><a href="{escape(download_url, quote=True)}">Download here</a> '
            f"(expires {expiry} after you open it)</p>",
            subtype="html",
        )
        return msg

    def send_kit_ready(self, to_email: str, download_url: str) -> bool:
        """Email the download link. Returns False when no relay is configured."""
        if not self.is_configured:
            logger.info("SMTP not configured; skipping notification to %s", to_email)
            return False

        msg = self.build_kit_ready_message(to_email, download_url)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                smtp.ehlo()
                # Upgrade only when the relay offers it
                if smtp.has_extn("starttls"):
                    smtp.starttls()
                    smtp.ehlo()
                smtp.login(self.username, self.password or "")
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as error:
            logger.error(f"Failed to send notification to {to_email}: {error}")
            raise UpstreamError(f"Notification failed: {error}") from error

        logger.info(f"Sent kit ready email to {to_email}")
        return True
