"""
Federated identity linking.

Reconciles a provider-verified profile with the account store: an account
already holding the provider id wins, then an account with the same email is
linked, otherwise a new account is provisioned.
"""

import logging
import secrets
from typing import Optional

from ..auth.accounts import Account, AccountStore
from ..github_oauth import GitHubProfile

logger = logging.getLogger(__name__)

# Placeholder phone for provisioned accounts; the owner corrects it from the profile page
PLACEHOLDER_PHONE = "0700000000"
DEFAULT_SURNAME = "Nume"
DEFAULT_GIVEN_NAME = "Prenume"


def _name_or_default(value: Optional[str], default: str) -> str:
    """Use a profile name only if it fits the 2-50 character rule."""
    if value and 2 <= len(value.strip()) <= 50:
        return value.strip()
    return default


def _unusable_password() -> str:
    """Random password satisfying the complexity rule; never handed to anyone."""
    return secrets.token_urlsafe(24) + "aA1!"


class FederatedIdentityLinker:
    """Links GitHub identities to accounts."""

    def __init__(self, account_store: AccountStore):
        self.accounts = account_store

    async def link(self, profile: GitHubProfile) -> Account:
        """
        Resolve the account a federated login authenticates as.

        Store failures (duplicates, validation) propagate to the caller.
        """
        account = await self.accounts.find_by_github_id(profile.id)
        if account:
            logger.info(f"GitHub login for linked account {account.account_id}")
            return account

        email = profile.emails[0] if profile.emails else None
        if email:
            account = await self.accounts.find_by_email(email)
            if account:
                account = await self.accounts.link_github(account.account_id, profile.id)
                logger.info(f"Linked GitHub id {profile.id} to existing account {account.account_id}")
                return account

        account = await self.accounts.create_account(
            surname=_name_or_default(profile.family_name or profile.username, DEFAULT_SURNAME),
            given_name=_name_or_default(profile.given_name, DEFAULT_GIVEN_NAME),
            phone=PLACEHOLDER_PHONE,
            email=email or f"{profile.username}@{profile.provider}.local",
            password=_unusable_password(),
            preferred_verification="email",
            github_id=profile.id,
            is_email_verified=True,
        )
        logger.info(f"Provisioned account {account.account_id} for GitHub id {profile.id}")
        return account
