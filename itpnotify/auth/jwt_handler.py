"""
JWT token handler.

Issues the session tokens handed out after registration, login and GitHub
login, plus the short-lived state values that protect the OAuth round-trip.
Tokens are verifiable from the signature and expiry alone, without a store
lookup.
"""

import os
import time
import logging
from typing import Optional, Literal
from dataclasses import dataclass, asdict

from jose import jwt, JWTError

logger = logging.getLogger(__name__)

# Token configuration
DEFAULT_SECRET_KEY = "itp-notification-secret-key-change-in-production"
ALGORITHM = "HS256"
SESSION_TOKEN_EXPIRE_SECONDS = 86400 * 7  # 7 days
OAUTH_STATE_EXPIRE_SECONDS = 600  # 10 minutes

TokenType = Literal["session", "oauth_state"]


@dataclass
class TokenPayload:
    """JWT token payload."""
    sub: str  # Account id (or provider name for OAuth state)
    exp: int  # Expiration timestamp
    iat: int  # Issued at timestamp
    token_type: str = "session"

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "TokenPayload":
        return cls(
            sub=data["sub"],
            exp=int(data["exp"]),
            iat=int(data["iat"]),
            token_type=data.get("token_type", "session"),
        )


class JWTHandler:
    """
    Handles JWT token generation and validation.

    Session tokens are stateless: logout does not revoke them, they simply
    expire seven days after issuance.
    """

    def __init__(self, secret_key: Optional[str] = None, environment: Optional[str] = None):
        """
        Initialize JWT handler.

        Args:
            secret_key: Secret key for signing tokens.
                       Falls back to JWT_SECRET env var or default.
            environment: Deployment name; the default key is refused in production.
        """
        self.secret_key = (
            secret_key
            or os.getenv("JWT_SECRET")
            or DEFAULT_SECRET_KEY
        )
        environment = environment or os.getenv("ENVIRONMENT", "development")

        if self.secret_key == DEFAULT_SECRET_KEY:
            if environment.lower() == "production":
                raise RuntimeError("JWT_SECRET must be set in production")
            logger.warning(
                "Using default JWT secret key. "
                "Set JWT_SECRET environment variable in production!"
            )

    def _encode(self, sub: str, token_type: TokenType, expires_in: int) -> str:
        now = int(time.time())
        payload = TokenPayload(sub=sub, exp=now + expires_in, iat=now, token_type=token_type)
        return jwt.encode(payload.to_dict(), self.secret_key, algorithm=ALGORITHM)

    def create_session_token(self, account_id: str, expires_in: Optional[int] = None) -> str:
        """
        Create a session token bound to an account.

        Args:
            account_id: Account identifier (becomes the token subject)
            expires_in: Custom lifetime in seconds (default: 7 days)

        Returns:
            Encoded JWT string
        """
        token = self._encode(account_id, "session", expires_in or SESSION_TOKEN_EXPIRE_SECONDS)
        logger.debug(f"Created session token for account {account_id}")
        return token

    def create_state_token(self, provider: str = "github") -> str:
        """Create a signed OAuth state value for the authorize redirect."""
        return self._encode(provider, "oauth_state", OAUTH_STATE_EXPIRE_SECONDS)

    def verify_token(self, token: str) -> Optional[TokenPayload]:
        """
        Verify and decode a token.

        Returns:
            TokenPayload if valid, None if invalid or expired
        """
        if not token:
            return None

        try:
            data = jwt.decode(token, self.secret_key, algorithms=[ALGORITHM])
            payload = TokenPayload.from_dict(data)
        except (JWTError, KeyError, ValueError, TypeError) as e:
            logger.debug(f"Token verification failed: {e}")
            return None

        if payload.exp < int(time.time()):
            logger.debug("Token expired")
            return None

        return payload

    def verify_session_token(self, token: str) -> Optional[TokenPayload]:
        """Verify a token and require it to be a session token."""
        payload = self.verify_token(token)
        if payload and payload.token_type == "session":
            return payload
        return None

    def verify_state_token(self, token: str, provider: str = "github") -> bool:
        """Check an OAuth state value returned by the provider."""
        payload = self.verify_token(token)
        return bool(payload and payload.token_type == "oauth_state" and payload.sub == provider)
