"""
SMS Service using the smsadvert.ro gateway.

Sends verification codes and activation notices. Like the email service it
reports delivery as a result dict and never raises.
"""

import logging
from typing import Optional

import httpx

from ..config import SMSConfig
from ..auth.password import to_international

logger = logging.getLogger(__name__)


class SMSService:
    """Service for sending SMS through the smsadvert.ro HTTP API."""

    def __init__(self, config: Optional[SMSConfig] = None, client: Optional[httpx.AsyncClient] = None):
        self.config = config or SMSConfig()
        self._client = client or httpx.AsyncClient(timeout=30.0)

        if self.is_configured():
            logger.info("SMS service initialized")
        else:
            logger.warning("SMS_API_TOKEN not set, SMS disabled")

    def is_configured(self) -> bool:
        """Check if the gateway token is present."""
        return bool(self.config.api_token and self.config.api_url)

    async def send_sms(self, to_phone: str, message: str) -> dict:
        """
        Send an SMS.

        Args:
            to_phone: Destination in E.164 format
            message: Text body

        Returns:
            Dict with success status and message id or error
        """
        if not self.is_configured():
            logger.warning("SMS not configured, skipping send")
            return {"success": False, "error": "SMS not configured"}

        payload = {
            "phone": to_phone,
            "shortTextMessage": message,
            "sendAsShort": True,
            "failover": "short",
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": self.config.api_token,
        }

        try:
            response = await self._client.post(self.config.api_url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"SMS send failed to {to_phone}: {e}")
            return {"success": False, "error": str(e)}

        if not response.is_success:
            logger.error(f"SMS API error: {response.status_code} - {response.text}")
            return {
                "success": False,
                "error": f"SMS API error: {response.status_code} {response.reason_phrase}",
            }

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        # The gateway answers 200 with an error body on rejected messages
        if data.get("errors") or data.get("errorMessage"):
            errors = data.get("errors") or {}
            error = data.get("errorMessage") or next(iter(errors.values()), "Unknown API error")
            logger.error(f"SMS API response error: {error}")
            return {"success": False, "error": error}

        message_id = data.get("msgId", "unknown")
        logger.info(f"SMS sent successfully to {to_phone}: {message_id}")
        return {"success": True, "message_id": message_id}

    async def send_verification_sms(self, phone: str, name: str, code: str) -> dict:
        """
        Send the 6-digit verification code.

        Args:
            phone: Romanian number in any accepted format
            name: Display name used in the greeting
            code: Verification code
        """
        message = (
            f"Buna ziua, {name}! Codul de verificare pentru ITP NOTIFICATION este: {code}. "
            "Codul expira in 10 minute. MISEDA INSPECT SRL"
        )
        return await self.send_sms(to_international(phone), message)

    async def send_welcome_sms(self, phone: str, name: str) -> dict:
        """Send the account activation notice."""
        message = (
            f"Buna ziua, {name}! Contul ITP NOTIFICATION a fost activat cu succes. "
            "Veti primi notificari pentru expirarea ITP. MISEDA INSPECT SRL"
        )
        return await self.send_sms(to_international(phone), message)

    async def close(self):
        """Close the HTTP client."""
        await self._client.aclose()
