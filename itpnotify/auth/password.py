"""
Password and phone handling utilities.

Passwords are hashed with bcrypt at a fixed work factor. Hashing is CPU bound,
so the async variants push it to a worker thread to keep the event loop free.
"""

import asyncio
import logging
import re
from typing import Optional

import bcrypt

logger = logging.getLogger(__name__)

# bcrypt work factor
BCRYPT_ROUNDS = 12

# bcrypt ignores everything after 72 bytes
MAX_PASSWORD_BYTES = 72

_PHONE_SEPARATORS = re.compile(r"[\s\-.()]")
_ROMANIAN_PHONE = re.compile(r"^(?:\+40|0040|0)([267]\d{8})$")


class PasswordHandler:
    """
    Handles password hashing and verification using bcrypt.

    Usage:
        handler = PasswordHandler()
        hashed = await handler.hash_async("Password1!")
        is_valid = await handler.verify_async("Password1!", hashed)
    """

    def __init__(self, rounds: int = BCRYPT_ROUNDS):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """
        Hash a password using bcrypt.

        Args:
            password: Plain text password

        Returns:
            Hashed password string (includes salt and cost)
        """
        if not password:
            raise ValueError("Password cannot be empty")

        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")

        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(encoded, salt).decode("utf-8")

    def verify(self, password: str, hashed: Optional[str]) -> bool:
        """
        Verify a password against a hash.

        Returns:
            True if password matches, False otherwise (including malformed hashes)
        """
        if not password or not hashed:
            return False

        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError as e:
            logger.warning(f"Password verification error: {e}")
            return False

    async def hash_async(self, password: str) -> str:
        return await asyncio.to_thread(self.hash, password)

    async def verify_async(self, password: str, hashed: Optional[str]) -> bool:
        return await asyncio.to_thread(self.verify, password, hashed)

    def needs_rehash(self, hashed: str) -> bool:
        """Check whether a hash was produced with a different work factor."""
        # bcrypt hash format: $2b$rounds$salt+hash
        parts = hashed.split("$")
        if len(parts) < 3 or not parts[2].isdigit():
            return True
        return int(parts[2]) != self.rounds


def normalize_phone(phone: str) -> Optional[str]:
    """
    Normalize a Romanian phone number to its national form.

    Accepts mobile (07...) and landline (02..., 03..., 06...) numbers with or
    without the +40 / 0040 country prefix, ignoring spaces, dashes, dots and
    parentheses.

    Returns:
        Normalized number ("0" + 9 digits) or None if it is not Romanian

    Examples:
        normalize_phone("0712 345 678") -> "0712345678"
        normalize_phone("+40712345678") -> "0712345678"
        normalize_phone("0040-21-123-4567") -> "0211234567"
    """
    if not phone:
        return None

    cleaned = _PHONE_SEPARATORS.sub("", phone.strip())
    match = _ROMANIAN_PHONE.match(cleaned)
    if not match:
        return None

    return "0" + match.group(1)


def to_international(phone: str) -> str:
    """
    Format a Romanian number as E.164 (+40...) for the SMS gateway.

    Numbers that do not normalize are passed through with a +40 prefix, the
    way the gateway expects bare national numbers.
    """
    normalized = normalize_phone(phone)
    if normalized:
        return "+40" + normalized[1:]

    digits = _PHONE_SEPARATORS.sub("", phone)
    if digits.startswith("+40"):
        return digits
    if digits.startswith("0"):
        return "+40" + digits[1:]
    return "+40" + digits
