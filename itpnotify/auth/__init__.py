"""
Authentication module for ITP NOTIFICATION.

Account storage with bcrypt-hashed passwords and unique identity fields, plus
JWT session tokens.
"""

from .jwt_handler import JWTHandler, TokenPayload
from .password import PasswordHandler, normalize_phone
from .accounts import AccountStore, Account

__all__ = [
    "JWTHandler",
    "TokenPayload",
    "PasswordHandler",
    "normalize_phone",
    "AccountStore",
    "Account",
]
