"""
Authentication endpoints.

Handles registration, login, channel verification, GitHub login and logout.
Field names follow the web client's (Romanian) wire format.
"""

import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field

from itpnotify.auth.errors import AuthError
from itpnotify.services.user_auth_service import MSG_EMAIL_VERIFIED, MSG_PHONE_VERIFIED

from ..deps import ServicesDep

logger = logging.getLogger(__name__)

router = APIRouter()


# Request/Response models

class RegisterRequest(BaseModel):
    """Registration request. Presence is checked by the service for a single message."""
    nume: Optional[str] = Field(None, description="Surname")
    prenume: Optional[str] = Field(None, description="Given name")
    nrTelefon: Optional[str] = Field(None, description="Romanian phone number")
    email: Optional[str] = Field(None, description="Email address")
    parola: Optional[str] = Field(None, description="Password")
    confirmaParola: Optional[str] = Field(None, description="Password confirmation")
    preferredVerification: Optional[str] = Field(None, description="email or sms")


class LoginRequest(BaseModel):
    """Login request."""
    login: Optional[str] = Field(None, description="Email or phone number")
    parola: Optional[str] = Field(None, description="Password")


class VerifyEmailRequest(BaseModel):
    token: Optional[str] = Field(None, description="Token from the activation link")


class VerifySMSRequest(BaseModel):
    phone: Optional[str] = Field(None, description="Phone number the code was sent to")
    code: Optional[str] = Field(None, description="6-digit SMS code")


class UserResponse(BaseModel):
    """Public account view."""
    id: str
    nume: str
    prenume: str
    email: str
    nrTelefon: str
    isEmailVerified: bool
    isSMSVerified: bool
    preferredVerification: str
    githubLinked: bool = False
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class AuthResponse(BaseModel):
    """Authentication response with session token and user info."""
    success: bool
    message: str
    token: str
    user: UserResponse


class MessageResponse(BaseModel):
    success: bool
    message: str


# Endpoints

@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest, services: ServicesDep):
    """
    Register a new account.

    Returns a session token immediately; the account still has to verify its
    preferred channel before it can log in again.
    """
    result = await services.user_auth.register(
        surname=request.nume,
        given_name=request.prenume,
        phone=request.nrTelefon,
        email=request.email,
        password=request.parola,
        confirm_password=request.confirmaParola,
        preferred_verification=request.preferredVerification
    )
    return result.to_dict()


@router.post("/login", response_model=AuthResponse)
async def login(request: LoginRequest, services: ServicesDep):
    """
    Login with email or phone and password.

    Unverified accounts get 401 with needsVerification and the channel.
    """
    result = await services.user_auth.login(request.login, request.parola)
    return result.to_dict()


@router.get("/github")
async def github_login(services: ServicesDep):
    """Redirect to GitHub for consent."""
    if not services.github.is_configured():
        logger.warning("GitHub login requested but OAuth is not configured")
        return RedirectResponse(_client_url(services, "/login", error="oauth"))

    state = services.jwt.create_state_token("github")
    return RedirectResponse(services.github.authorization_url(state))


@router.get("/github/callback")
async def github_callback(
    services: ServicesDep,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None
):
    """
    Complete GitHub login.

    Redirects to the client with a session token, or to the client login page
    with an error flag.
    """
    failure = RedirectResponse(_client_url(services, "/login", error="oauth"))

    if error or not code:
        logger.warning(f"GitHub callback without code: {error or 'missing code'}")
        return failure

    if not state or not services.jwt.verify_state_token(state, "github"):
        logger.warning("GitHub callback with invalid state")
        return failure

    try:
        profile = await services.github.authenticate(code)
        result = await services.user_auth.login_federated(profile)
    except AuthError as e:
        logger.error(f"GitHub login failed: {e.message}")
        return failure
    except Exception as e:
        # Browser flow: every failure redirects to the client login page
        logger.error(f"GitHub login failed unexpectedly: {e}", exc_info=True)
        return failure

    return RedirectResponse(_client_url(services, "/auth/callback", token=result.token))


@router.post("/verify-email", response_model=MessageResponse)
async def verify_email(request: VerifyEmailRequest, services: ServicesDep):
    """Consume an email verification token."""
    await services.user_auth.verify_email(request.token)
    return {"success": True, "message": MSG_EMAIL_VERIFIED}


@router.post("/verify-sms", response_model=MessageResponse)
async def verify_sms(request: VerifySMSRequest, services: ServicesDep):
    """Consume an SMS verification code."""
    await services.user_auth.verify_sms(request.phone, request.code)
    return {"success": True, "message": MSG_PHONE_VERIFIED}


@router.post("/logout", response_model=MessageResponse)
async def logout(services: ServicesDep):
    """Stateless logout acknowledgement."""
    return services.user_auth.logout()


def _client_url(services, path: str, **params) -> str:
    return f"{services.config.app.redirect_base}{path}?{urlencode(params)}"
