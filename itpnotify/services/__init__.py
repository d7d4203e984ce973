"""
Services layer for ITP NOTIFICATION.

Business logic shared by the HTTP API and the admin scripts.
"""

from .email_service import EmailService
from .sms_service import SMSService
from .verification_service import (
    VerificationService,
    VerificationArtifacts,
    DispatchResult,
    generate_email_token,
    generate_sms_code,
)
from .federated_service import FederatedIdentityLinker
from .user_auth_service import UserAuthService, AuthResult

__all__ = [
    # Notifiers
    "EmailService",
    "SMSService",
    # Services
    "VerificationService",
    "FederatedIdentityLinker",
    "UserAuthService",
    # Data classes
    "VerificationArtifacts",
    "DispatchResult",
    "AuthResult",
    # Helpers
    "generate_email_token",
    "generate_sms_code",
]
