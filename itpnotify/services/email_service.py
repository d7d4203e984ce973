"""
Email Service using SMTP.

Sends account verification and welcome emails. Sending is best-effort: every
method reports success as a boolean and never raises.
"""

import asyncio
import html
import logging
import smtplib
import time
from email.message import EmailMessage
from typing import Optional

from ..config import EmailConfig, AppConfig

logger = logging.getLogger(__name__)

BRAND = "ITP NOTIFICATION"
COMPANY = "MISEDA INSPECT SRL"


class EmailService:
    """Service for sending transactional email over SMTP (STARTTLS)."""

    def __init__(self, config: Optional[EmailConfig] = None, app_config: Optional[AppConfig] = None):
        self.config = config or EmailConfig()
        self.app_config = app_config or AppConfig()

        if self.is_configured():
            logger.info(f"Email service configured for {self.config.host}:{self.config.port}")
        else:
            logger.warning("Email not configured, verification emails disabled")

    def is_configured(self) -> bool:
        """Check if SMTP is properly configured."""
        return bool(self.config.host and self.config.sender)

    def _build_message(self, to: str, subject: str, text: str, html: Optional[str] = None) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.config.sender
        message["To"] = to
        message["Subject"] = subject
        message["X-Entity-Ref-ID"] = f"itp-notification-{int(time.time() * 1000)}"
        message.set_content(text)
        if html:
            message.add_alternative(html, subtype="html")
        return message

    def _deliver(self, message: EmailMessage):
        """Blocking SMTP delivery (runs in a worker thread)."""
        with smtplib.SMTP(self.config.host, self.config.port, timeout=30) as smtp:
            smtp.starttls()
            if self.config.user:
                smtp.login(self.config.user, self.config.password)
            smtp.send_message(message)

    async def send_email(self, to: str, subject: str, text: str, html: Optional[str] = None) -> bool:
        """
        Send an email.

        Returns:
            True if the SMTP server accepted the message, False otherwise
        """
        if not self.is_configured():
            logger.warning("Email not configured, skipping send")
            return False

        message = self._build_message(to, subject, text, html)

        try:
            await asyncio.to_thread(self._deliver, message)
            logger.info(f"Email '{subject}' sent to {to}")
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Email send failed to {to}: {e}")
            return False

    async def send_verification_email(self, email: str, name: str, token: str) -> bool:
        """
        Send the account activation link.

        Args:
            email: Destination address
            name: Display name used in the greeting
            token: Email verification token embedded in the link
        """
        url = f"{self.app_config.redirect_base}/verify-email?token={token}"

        text = "\n".join([
            f"Salut, {name},",
            "",
            f"Ai solicitat activarea contului în platforma {BRAND} - {COMPANY}.",
            "",
            "Confirmă adresa de email accesând link-ul:",
            url,
            "",
            "Link-ul este valabil 24 de ore. Dacă nu ai inițiat această cerere, ignoră mesajul.",
            "",
            "Mulțumim,",
            f"Echipa {COMPANY}",
        ])

        body = (
            '<!DOCTYPE html><html lang="ro"><body style="font-family: Arial, sans-serif;">'
            f"<p>Salut, {html.escape(name)},</p>"
            f"<p>Ai solicitat activarea contului în platforma <strong>{BRAND}</strong> "
            f"- sistemul {COMPANY} pentru notificarea expirării ITP.</p>"
            "<p>Te rugăm să confirmi adresa de email accesând link-ul de mai jos:</p>"
            f'<p><a href="{html.escape(url)}">{html.escape(url)}</a></p>'
            "<p>Link-ul este valabil 24 de ore. Dacă nu ai inițiat această cerere, poți ignora e-mailul.</p>"
            f"<p>Mulțumim,<br />Echipa {COMPANY}</p>"
            "</body></html>"
        )

        return await self.send_email(email, f"Activează contul {BRAND}", text, body)

    async def send_welcome_email(self, email: str, name: str) -> bool:
        """Send the confirmation that the account is active."""
        text = "\n".join([
            f"Felicitări, {name}!",
            "",
            f"Contul {BRAND} a fost activat cu succes.",
            "Vei primi notificări automate pentru expirarea ITP-ului vehiculelor tale.",
            "",
            COMPANY,
        ])
        return await self.send_email(email, f"Bun venit la {BRAND} - Contul activat!", text)
