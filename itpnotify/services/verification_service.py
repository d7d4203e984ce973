"""
Verification code issuing and dispatch.

Every new account gets both artifacts, an email token and a 6-digit SMS code,
so the preferred channel can change later; only the preferred channel's
artifact is sent. Sending never fails the caller: the outcome comes back as a
DispatchResult that is logged and otherwise ignored.
"""

import logging
import secrets
import string
from dataclasses import dataclass
from typing import Optional

from ..auth.accounts import Account

logger = logging.getLogger(__name__)

EMAIL_TOKEN_LENGTH = 32
_TOKEN_ALPHABET = string.ascii_letters + string.digits


def generate_email_token(length: int = EMAIL_TOKEN_LENGTH) -> str:
    """Random alphanumeric email verification token."""
    return "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(length))


def generate_sms_code() -> str:
    """Uniform 6-digit code in 100000-999999."""
    return str(100000 + secrets.randbelow(900000))


@dataclass
class VerificationArtifacts:
    """Artifacts generated for a new account."""
    email_token: str
    sms_code: str


@dataclass
class DispatchResult:
    """Outcome of a best-effort notification."""
    delivered: bool
    channel: str
    error: Optional[str] = None


class VerificationService:
    """
    Issues verification artifacts and forwards them to the notifiers.

    The notifiers are injected: `email` must provide
    send_verification_email(address, name, token) -> bool and
    send_welcome_email(address, name) -> bool; `sms` must provide
    send_verification_sms(phone, name, code) -> dict and
    send_welcome_sms(phone, name) -> dict, where the dict carries
    "success" and optionally "error".
    """

    def __init__(self, email_service, sms_service):
        self.email = email_service
        self.sms = sms_service

    def issue(self) -> VerificationArtifacts:
        return VerificationArtifacts(email_token=generate_email_token(), sms_code=generate_sms_code())

    async def dispatch(self, account: Account) -> DispatchResult:
        """Send the preferred channel's artifact for an account."""
        if account.preferred_verification == "email":
            return await self._send_email(
                self.email.send_verification_email,
                account.email,
                account.full_name,
                account.email_verification_token,
            )
        return await self._send_sms(
            self.sms.send_verification_sms,
            account.phone,
            account.full_name,
            account.sms_verification_code,
        )

    async def send_welcome(self, account: Account, channel: str) -> DispatchResult:
        """Send the activation notice on the channel that was just verified."""
        if channel == "email":
            return await self._send_email(self.email.send_welcome_email, account.email, account.full_name)
        return await self._send_sms(self.sms.send_welcome_sms, account.phone, account.full_name)

    async def _send_email(self, send, *args) -> DispatchResult:
        try:
            sent = await send(*args)
        except Exception as e:
            logger.error(f"Email dispatch raised: {e}", exc_info=True)
            return DispatchResult(delivered=False, channel="email", error=str(e))

        if not sent:
            logger.error("Failed to send email notification")
            return DispatchResult(delivered=False, channel="email", error="Email not delivered")
        return DispatchResult(delivered=True, channel="email")

    async def _send_sms(self, send, *args) -> DispatchResult:
        try:
            result = await send(*args)
        except Exception as e:
            logger.error(f"SMS dispatch raised: {e}", exc_info=True)
            return DispatchResult(delivered=False, channel="sms", error=str(e))

        if not result or not result.get("success"):
            error = (result or {}).get("error", "SMS not delivered")
            logger.error(f"Failed to send SMS notification: {error}")
            return DispatchResult(delivered=False, channel="sms", error=error)
        return DispatchResult(delivered=True, channel="sms")
