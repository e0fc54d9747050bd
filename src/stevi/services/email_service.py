"""
Email service for invitation messages.

Simple SMTP-based sending, run from a FastAPI background task after the
invite has been committed. A send failure is logged and reported as False;
it never affects the invite itself.
"""

import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from html import escape
from typing import Optional
import os

from stevi.config import APP_BASE_URL

logger = logging.getLogger(__name__)


class EmailService:
    """
    Simple email service using SMTP.

    Configuration via environment variables:
    - SMTP_HOST: SMTP server (default: localhost)
    - SMTP_PORT: SMTP port (default: 587)
    - SMTP_USERNAME: SMTP username
    - SMTP_PASSWORD: SMTP password
    - SMTP_USE_TLS: Use TLS (default: true)
    - SMTP_FROM_EMAIL: From email address (default: no-reply@stevi.local)
    - SMTP_FROM_NAME: From name (default: STEVI Portal)
    """

    def __init__(self):
        self.smtp_host = os.getenv("SMTP_HOST", "localhost")
        self.smtp_port = int(os.getenv("SMTP_PORT", "587"))
        self.smtp_username = os.getenv("SMTP_USERNAME")
        self.smtp_password = os.getenv("SMTP_PASSWORD")
        self.smtp_use_tls = os.getenv("SMTP_USE_TLS", "true").lower() == "true"
        self.from_email = os.getenv("SMTP_FROM_EMAIL", "no-reply@stevi.local")
        self.from_name = os.getenv("SMTP_FROM_NAME", "STEVI Portal")
        self.base_url = os.getenv("APP_BASE_URL", APP_BASE_URL).rstrip("/")

    def invite_url(self, invitation_token: str) -> str:
        return f"{self.base_url}/invite/accept?token={invitation_token}"

    def send_invitation_email(
        self,
        to_email: str,
        organization_name: str,
        invitation_token: str,
        inviter_name: Optional[str] = None,
        message: Optional[str] = None,
    ) -> bool:
        """
        Send the secure invitation link.

        Returns:
            True if sent successfully
        """
        inviter = inviter_name or "A team member"
        subject = f"{inviter} invited you to join {organization_name}"
        note = f"<blockquote>{escape(message)}</blockquote>" if message else ""

        body = f"""
        <h2>You're invited</h2>

        <p>{escape(inviter)} invited you to join <strong>{escape(organization_name)}</strong>
        on the STEVI portal.</p>
        {note}
        <p><a href="{self.invite_url(invitation_token)}">Accept invitation →</a></p>

        <p>This link is personal to you and expires automatically.</p>
        """

        return self._send_email(to=to_email, subject=subject, html_body=body)

    def _send_email(self, to: str, subject: str, html_body: str) -> bool:
        """
        Send an email via SMTP.

        Returns:
            True if sent successfully
        """
        msg = MIMEMultipart('alternative')
        msg['Subject'] = subject
        msg['From'] = f"{self.from_name} <{self.from_email}>"
        msg['To'] = to
        msg.attach(MIMEText(html_body, 'html'))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                if self.smtp_use_tls:
                    server.starttls()

                if self.smtp_username and self.smtp_password:
                    server.login(self.smtp_username, self.smtp_password)

                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to}: {e}", exc_info=True)
            return False

        logger.info(f"Sent email to {to}: {subject}")
        return True
