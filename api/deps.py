"""
API dependencies.

Provides dependency injection for services and bearer-token authentication.
"""

import logging
from typing import Optional, Annotated
from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from itpnotify.config import load_config, Config
from itpnotify.auth import JWTHandler, AccountStore, Account
from itpnotify.github_oauth import GitHubOAuth
from itpnotify.services import (
    EmailService,
    SMSService,
    VerificationService,
    FederatedIdentityLinker,
    UserAuthService,
)

logger = logging.getLogger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)


@dataclass
class Services:
    """Container for all services."""
    config: Config
    jwt: JWTHandler
    accounts: AccountStore
    email: EmailService
    sms: SMSService
    verification: VerificationService
    github: GitHubOAuth
    user_auth: UserAuthService

    async def close(self):
        await self.sms.close()
        await self.github.close()


def build_services(config: Optional[Config] = None, accounts: Optional[AccountStore] = None) -> Services:
    """Wire the services for a configuration."""
    config = config or load_config()

    jwt = JWTHandler(secret_key=config.jwt.secret or None, environment=config.app.environment)
    accounts = accounts or AccountStore(file_path=config.store.accounts_file)
    email = EmailService(config.email, config.app)
    sms = SMSService(config.sms)
    verification = VerificationService(email, sms)
    github = GitHubOAuth(config.github)
    user_auth = UserAuthService(jwt, accounts, verification, FederatedIdentityLinker(accounts))

    return Services(
        config=config,
        jwt=jwt,
        accounts=accounts,
        email=email,
        sms=sms,
        verification=verification,
        github=github,
        user_auth=user_auth
    )


# Global services instance (singleton)
_services: Optional[Services] = None


def get_services() -> Services:
    """
    Get or create the services singleton.

    This initializes all services on first call.
    """
    global _services

    if _services is None:
        logger.info("Initializing services...")
        _services = build_services()
        logger.info("Services initialized successfully")

    return _services


async def close_services():
    """Close and cleanup services."""
    global _services
    if _services:
        await _services.close()
        _services = None
        logger.info("Services closed")


# Dependency for getting services
def services_dep() -> Services:
    """FastAPI dependency for services."""
    return get_services()


ServicesDep = Annotated[Services, Depends(services_dep)]


# Authentication dependencies

async def get_current_account(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    services: ServicesDep
) -> Account:
    """
    Get current account from the session token (required).

    Raises 401 if no valid token is provided.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Nu ești autentificat",
            headers={"WWW-Authenticate": "Bearer"}
        )

    payload = services.user_auth.verify_session_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token invalid sau expirat",
            headers={"WWW-Authenticate": "Bearer"}
        )

    account = await services.accounts.get_by_id(payload.sub)
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Utilizator negăsit"
        )

    return account


CurrentAccount = Annotated[Account, Depends(get_current_account)]
