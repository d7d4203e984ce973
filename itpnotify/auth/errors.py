"""
Authentication error taxonomy.

Every error the auth flows raise on purpose derives from AuthError and knows
its HTTP status and the user-facing (Romanian) message the client shows.
"""

from typing import Optional


class AuthError(Exception):
    """Base class for expected authentication failures."""

    status_code: int = 400
    default_message: str = "Cererea nu a putut fi procesată"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"success": False, "message": self.message}


class ValidationError(AuthError):
    """One or more fields violate the account constraints."""

    default_message = "Datele trimise nu sunt valide"

    def __init__(self, message: Optional[str] = None, errors: Optional[dict] = None):
        self.errors = errors or {}
        if message is None and self.errors:
            message = ", ".join(self.errors.values())
        super().__init__(message)

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.errors:
            result["errors"] = dict(self.errors)
        return result


# Field labels used in duplicate messages
_DUPLICATE_LABELS = {
    "email": "Email-ul",
    "phone": "Numărul de telefon",
    "github_id": "Contul GitHub",
    "email_verification_token": "Token-ul de verificare",
}


class DuplicateIdentityError(AuthError):
    """Another account already holds a unique identity field."""

    def __init__(self, field: str):
        self.field = field
        label = _DUPLICATE_LABELS.get(field, field)
        super().__init__(f"{label} este deja înregistrat")


class InvalidCredentialsError(AuthError):
    """Unknown identity or wrong password (deliberately indistinguishable)."""

    status_code = 401
    default_message = "Credențiale invalide"


class AccountNotVerifiedError(AuthError):
    """Credentials matched but the preferred channel is not verified yet."""

    status_code = 401
    default_message = "Contul nu este verificat. Verifică-ți emailul/telefonul."

    def __init__(self, channel: str):
        self.channel = channel
        super().__init__()

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["needsVerification"] = True
        result["preferredVerification"] = self.channel
        return result


class InvalidTokenError(AuthError):
    default_message = "Token de verificare invalid sau expirat"


class InvalidCodeError(AuthError):
    default_message = "Cod de verificare invalid"


class AccountNotFoundError(AuthError):
    status_code = 404
    default_message = "Utilizator negăsit"


class FederatedLoginError(AuthError):
    """The OAuth provider round-trip failed before an account was resolved."""

    default_message = "Autentificarea prin GitHub a eșuat"
