"""
User authentication service.

Orchestrates registration, password login, channel verification, GitHub login
and profile maintenance on top of the account store. Expected failures are
raised as AuthError subclasses; the API layer renders them.

Per-channel state is one-way: Unverified -> Verified. Login is gated on the
preferred channel's flag, while registration hands out a session token
straight away.
"""

import logging
from typing import Optional
from dataclasses import dataclass

from ..auth import JWTHandler, TokenPayload, AccountStore, Account
from ..auth.errors import (
    AccountNotFoundError,
    AccountNotVerifiedError,
    InvalidCodeError,
    InvalidCredentialsError,
    InvalidTokenError,
    ValidationError,
)
from ..github_oauth import GitHubProfile
from .federated_service import FederatedIdentityLinker
from .verification_service import DispatchResult, VerificationService

logger = logging.getLogger(__name__)

MSG_REGISTERED = "Cont creat cu succes! Verifică-ți emailul/telefonul pentru activare."
MSG_LOGGED_IN = "Autentificare reușită"
MSG_EMAIL_VERIFIED = "Email verificat cu succes!"
MSG_PHONE_VERIFIED = "Numărul de telefon verificat cu succes!"
MSG_LOGGED_OUT = "Delogat cu succes"
MSG_PROFILE_UPDATED = "Profil actualizat cu succes"


@dataclass
class AuthResult:
    """Successful authentication outcome."""
    token: str
    account: Account
    message: str
    dispatch: Optional[DispatchResult] = None

    def to_dict(self) -> dict:
        return {
            "success": True,
            "message": self.message,
            "token": self.token,
            "user": self.account.to_public_dict(),
        }


class UserAuthService:
    """
    Service for account authentication.

    Handles:
    - Registration (password + preferred verification channel)
    - Login by email or phone alias
    - Email token / SMS code verification
    - GitHub login (linking or provisioning)
    - Profile read and update
    """

    def __init__(
        self,
        jwt_handler: JWTHandler,
        account_store: AccountStore,
        verification: VerificationService,
        linker: Optional[FederatedIdentityLinker] = None
    ):
        self.jwt = jwt_handler
        self.accounts = account_store
        self.verification = verification
        self.linker = linker or FederatedIdentityLinker(account_store)

    def issue_token(self, account: Account) -> str:
        return self.jwt.create_session_token(account.account_id)

    async def register(
        self,
        surname: Optional[str],
        given_name: Optional[str],
        phone: Optional[str],
        email: Optional[str],
        password: Optional[str],
        confirm_password: Optional[str],
        preferred_verification: Optional[str]
    ) -> AuthResult:
        """
        Register a new account.

        Both verification artifacts are generated; only the preferred
        channel's one is sent, and a failed send does not fail registration.

        Raises:
            ValidationError: Missing fields, password mismatch or invalid field
            DuplicateIdentityError: Email or phone already registered
        """
        required = (surname, given_name, phone, email, password, confirm_password, preferred_verification)
        if any(not value for value in required):
            raise ValidationError("Toate câmpurile sunt obligatorii")

        if password != confirm_password:
            raise ValidationError("Parolele nu coincid", errors={"confirmaParola": "Parolele nu coincid"})

        artifacts = self.verification.issue()
        account = await self.accounts.create_account(
            surname=surname,
            given_name=given_name,
            phone=phone,
            email=email,
            password=password,
            preferred_verification=preferred_verification,
            email_verification_token=artifacts.email_token,
            sms_verification_code=artifacts.sms_code,
        )

        token = self.issue_token(account)

        dispatch = await self.verification.dispatch(account)
        if not dispatch.delivered:
            logger.warning(
                f"Verification {dispatch.channel} not delivered for account {account.account_id}: "
                f"{dispatch.error}"
            )

        logger.info(f"Account registered: {account.account_id}")
        return AuthResult(token=token, account=account, message=MSG_REGISTERED, dispatch=dispatch)

    async def login(self, login: Optional[str], password: Optional[str]) -> AuthResult:
        """
        Login with email or phone and password.

        Raises:
            ValidationError: If either value is missing
            InvalidCredentialsError: Unknown identity or wrong password (same error)
            AccountNotVerifiedError: Credentials match, preferred channel unverified
        """
        if not login or not password:
            raise ValidationError("Email/telefon și parola sunt obligatorii")

        account = await self.accounts.find_by_identity(login)
        # Runs bcrypt even for an unknown identity
        password_ok = await self.accounts.verify_password(account, password)
        if account is None or not password_ok:
            logger.warning("Login refused: invalid credentials")
            raise InvalidCredentialsError()

        if not account.is_verified():
            logger.warning(f"Login refused: account {account.account_id} not verified")
            raise AccountNotVerifiedError(account.preferred_verification)

        logger.info(f"Account logged in: {account.account_id}")
        return AuthResult(token=self.issue_token(account), account=account, message=MSG_LOGGED_IN)

    async def verify_email(self, token: Optional[str]) -> Account:
        """
        Consume an email verification token.

        Raises:
            InvalidTokenError: If no account holds the token
        """
        account = await self.accounts.consume_email_token(token)
        if not account:
            raise InvalidTokenError()

        logger.info(f"Email verified for account {account.account_id}")
        await self.verification.send_welcome(account, "email")
        return account

    async def verify_sms(self, phone: Optional[str], code: Optional[str]) -> Account:
        """
        Consume an SMS verification code for a phone.

        Raises:
            InvalidCodeError: If the (phone, code) pair does not match
        """
        account = await self.accounts.consume_sms_code(phone, code)
        if not account:
            raise InvalidCodeError()

        logger.info(f"Phone verified for account {account.account_id}")
        await self.verification.send_welcome(account, "sms")
        return account

    def logout(self) -> dict:
        """Acknowledge a logout. Tokens stay valid until they expire."""
        return {"success": True, "message": MSG_LOGGED_OUT}

    async def login_federated(self, profile: GitHubProfile) -> AuthResult:
        """Authenticate with a provider-verified profile."""
        account = await self.linker.link(profile)
        return AuthResult(token=self.issue_token(account), account=account, message=MSG_LOGGED_IN)

    def verify_session_token(self, token: str) -> Optional[TokenPayload]:
        return self.jwt.verify_session_token(token)

    async def get_profile(self, account_id: str) -> Account:
        account = await self.accounts.get_by_id(account_id)
        if not account:
            raise AccountNotFoundError()
        return account

    async def update_profile(
        self,
        account_id: str,
        surname: Optional[str] = None,
        given_name: Optional[str] = None,
        phone: Optional[str] = None
    ) -> Account:
        """
        Update the editable profile fields.

        Only the fields provided are changed.

        Raises:
            AccountNotFoundError: Unknown account
            ValidationError: Invalid field value
            DuplicateIdentityError: Phone already registered
        """
        patch = {
            name: value
            for name, value in (("surname", surname), ("given_name", given_name), ("phone", phone))
            if value is not None
        }

        if not patch:
            return await self.get_profile(account_id)

        try:
            account = await self.accounts.update(account_id, patch)
        except KeyError:
            raise AccountNotFoundError()

        logger.info(f"Profile updated for account {account.account_id}")
        return account
