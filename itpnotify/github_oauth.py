"""GitHub OAuth module."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urlencode

import httpx

from .config import GitHubConfig
from .auth.errors import FederatedLoginError

logger = logging.getLogger(__name__)


@dataclass
class GitHubProfile:
    """Profile asserted by GitHub after a successful code exchange."""
    id: str
    username: Optional[str] = None
    display_name: Optional[str] = None
    family_name: Optional[str] = None
    given_name: Optional[str] = None
    emails: List[str] = field(default_factory=list)  # Verified, primary first
    provider: str = "github"

    @classmethod
    def from_api(cls, user: dict, emails: Optional[list] = None) -> "GitHubProfile":
        """Build a profile from the /user and /user/emails payloads."""
        display_name = (user.get("name") or "").strip() or None
        given_name = family_name = None
        if display_name:
            parts = display_name.split()
            if len(parts) >= 2:
                given_name = " ".join(parts[:-1])
                family_name = parts[-1]

        addresses = []
        entries = sorted(emails or [], key=lambda e: not e.get("primary"))
        for entry in entries:
            if entry.get("verified") and entry.get("email"):
                addresses.append(entry["email"])
        if not addresses and user.get("email"):
            addresses.append(user["email"])

        return cls(
            id=str(user["id"]),
            username=user.get("login"),
            display_name=display_name,
            family_name=family_name,
            given_name=given_name,
            emails=addresses,
        )


class GitHubOAuth:
    """Handle the GitHub OAuth web flow."""

    AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
    TOKEN_URL = "https://github.com/login/oauth/access_token"
    API_URL = "https://api.github.com"
    SCOPE = "user:email"

    def __init__(self, config: Optional[GitHubConfig] = None, client: Optional[httpx.AsyncClient] = None):
        self.config = config or GitHubConfig()
        self._client = client or httpx.AsyncClient(timeout=30.0)

    def is_configured(self) -> bool:
        return bool(self.config.client_id and self.config.client_secret)

    def authorization_url(self, state: str) -> str:
        """URL the browser is redirected to for consent."""
        params = {
            "client_id": self.config.client_id,
            "scope": self.SCOPE,
            "state": state,
        }
        if self.config.callback_url:
            params["redirect_uri"] = self.config.callback_url
        return f"{self.AUTHORIZE_URL}?{urlencode(params)}"

    def _api_headers(self, access_token: str) -> dict:
        return {
            "accept": "application/vnd.github+json",
            "authorization": f"Bearer {access_token}",
            "user-agent": "itp-notification",
        }

    async def exchange_code(self, code: str) -> str:
        """
        Exchange the callback code for an access token.

        Raises:
            FederatedLoginError: If GitHub rejects the code
        """
        payload = {
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "code": code,
        }
        if self.config.callback_url:
            payload["redirect_uri"] = self.config.callback_url

        try:
            response = await self._client.post(self.TOKEN_URL, data=payload, headers={"accept": "application/json"})
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"GitHub token exchange failed: {e}")
            raise FederatedLoginError() from e

        access_token = data.get("access_token")
        if not access_token:
            logger.error(f"GitHub token exchange rejected: {data.get('error', 'no access_token')}")
            raise FederatedLoginError()

        return access_token

    async def fetch_profile(self, access_token: str) -> GitHubProfile:
        """
        Fetch the authenticated user's profile and verified emails.

        Raises:
            FederatedLoginError: If the profile cannot be read
        """
        headers = self._api_headers(access_token)

        try:
            response = await self._client.get(f"{self.API_URL}/user", headers=headers)
            response.raise_for_status()
            user = response.json()

            emails_response = await self._client.get(f"{self.API_URL}/user/emails", headers=headers)
            # Missing user:email scope is not fatal, the public email is used instead
            emails = emails_response.json() if emails_response.is_success else []
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"GitHub profile fetch failed: {e}")
            raise FederatedLoginError() from e

        if not isinstance(user, dict) or "id" not in user:
            raise FederatedLoginError()

        profile = GitHubProfile.from_api(user, emails if isinstance(emails, list) else [])
        logger.info(f"GitHub profile fetched for {profile.username or profile.id}")
        return profile

    async def authenticate(self, code: str) -> GitHubProfile:
        """Complete the callback: code exchange followed by profile fetch."""
        access_token = await self.exchange_code(code)
        return await self.fetch_profile(access_token)

    async def close(self):
        """Close the HTTP client."""
        await self._client.aclose()
