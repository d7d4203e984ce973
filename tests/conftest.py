"""
Pytest configuration and shared fixtures.

This module provides common fixtures for testing:
- JWT handling
- Account store on a temporary file
- Notifier doubles
- Services container and API client
"""

import os
import sys
from pathlib import Path
from unittest.mock import MagicMock, AsyncMock, patch

import pytest
import pytest_asyncio
import httpx
from fastapi.testclient import TestClient

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables before imports
os.environ["JWT_SECRET"] = "test_jwt_secret_key_for_testing_only_32bytes!"
os.environ["ENVIRONMENT"] = "test"
os.environ["CLIENT_URL"] = "http://localhost:5173"

from itpnotify.auth import JWTHandler, AccountStore, PasswordHandler
from itpnotify.config import load_config, GitHubConfig
from itpnotify.github_oauth import GitHubOAuth
from itpnotify.services import VerificationService, UserAuthService, FederatedIdentityLinker


# =============================================================================
# Configuration
# =============================================================================

@pytest.fixture(scope="session")
def test_config():
    """Test configuration values."""
    return {
        "jwt_secret": "test_jwt_secret_key_for_testing_only_32bytes!",
        "surname": "Popescu",
        "given_name": "Ion",
        "phone": "0712345678",
        "email": "a@b.ro",
        "password": "Password1!",
    }


@pytest.fixture
def registration_payload(test_config) -> dict:
    """Registration body in the client's wire format."""
    return {
        "nume": test_config["surname"],
        "prenume": test_config["given_name"],
        "nrTelefon": test_config["phone"],
        "email": test_config["email"],
        "parola": test_config["password"],
        "confirmaParola": test_config["password"],
        "preferredVerification": "email",
    }


# =============================================================================
# Auth Fixtures
# =============================================================================

@pytest.fixture
def jwt_handler(test_config) -> JWTHandler:
    """Create a JWTHandler with test secret."""
    return JWTHandler(secret_key=test_config["jwt_secret"])


@pytest.fixture
def password_handler() -> PasswordHandler:
    """Low work factor keeps the suite fast; production uses 12."""
    return PasswordHandler(rounds=4)


@pytest.fixture
def accounts_file(tmp_path) -> Path:
    return tmp_path / "data" / "accounts.json"


@pytest.fixture
def account_store(accounts_file, password_handler) -> AccountStore:
    """Create an AccountStore on a temporary file."""
    return AccountStore(file_path=accounts_file, password_handler=password_handler)


@pytest_asyncio.fixture
async def sample_account(account_store, test_config):
    """An unverified account preferring email verification."""
    return await account_store.create_account(
        surname=test_config["surname"],
        given_name=test_config["given_name"],
        phone=test_config["phone"],
        email=test_config["email"],
        password=test_config["password"],
        preferred_verification="email",
        email_verification_token="tok1234567890abcdef",
        sms_verification_code="123456",
    )


# =============================================================================
# Notifier Doubles
# =============================================================================

@pytest.fixture
def email_notifier():
    notifier = MagicMock()
    notifier.send_verification_email = AsyncMock(return_value=True)
    notifier.send_welcome_email = AsyncMock(return_value=True)
    return notifier


@pytest.fixture
def sms_notifier():
    notifier = MagicMock()
    notifier.send_verification_sms = AsyncMock(return_value={"success": True, "message_id": "msg-1"})
    notifier.send_welcome_sms = AsyncMock(return_value={"success": True, "message_id": "msg-2"})
    return notifier


@pytest.fixture
def verification_service(email_notifier, sms_notifier) -> VerificationService:
    return VerificationService(email_notifier, sms_notifier)


@pytest.fixture
def user_auth_service(jwt_handler, account_store, verification_service) -> UserAuthService:
    return UserAuthService(
        jwt_handler,
        account_store,
        verification_service,
        FederatedIdentityLinker(account_store)
    )


# =============================================================================
# GitHub Fixtures
# =============================================================================

GITHUB_USER = {"id": 4242, "login": "ionpop", "name": "Ion Popescu", "email": None}
GITHUB_EMAILS = [
    {"email": "secondary@example.ro", "primary": False, "verified": True},
    {"email": "ion@example.ro", "primary": True, "verified": True},
    {"email": "unverified@example.ro", "primary": False, "verified": False},
]


def github_handler(request: httpx.Request) -> httpx.Response:
    """Fake GitHub endpoints."""
    if request.url.path == "/login/oauth/access_token":
        if b"code=bad" in request.content:
            return httpx.Response(200, json={"error": "bad_verification_code"})
        return httpx.Response(200, json={"access_token": "gho_test", "token_type": "bearer"})
    if request.url.path == "/user":
        return httpx.Response(200, json=GITHUB_USER)
    if request.url.path == "/user/emails":
        return httpx.Response(200, json=GITHUB_EMAILS)
    return httpx.Response(404)


@pytest.fixture
def github_oauth() -> GitHubOAuth:
    config = GitHubConfig(
        client_id="client-id",
        client_secret="client-secret",
        callback_url="http://localhost:5000/api/auth/github/callback",
    )
    client = httpx.AsyncClient(transport=httpx.MockTransport(github_handler))
    return GitHubOAuth(config, client=client)


# =============================================================================
# API Client Fixtures
# =============================================================================

@pytest.fixture
def services(jwt_handler, account_store, email_notifier, sms_notifier, verification_service,
             github_oauth, user_auth_service):
    """Services container wired with test doubles."""
    from api.deps import Services

    return Services(
        config=load_config(),
        jwt=jwt_handler,
        accounts=account_store,
        email=email_notifier,
        sms=sms_notifier,
        verification=verification_service,
        github=github_oauth,
        user_auth=user_auth_service,
    )


@pytest.fixture
def api_app():
    """Create FastAPI app for testing."""
    from api.main import app
    return app


@pytest.fixture
def api_client(api_app, services):
    """Test client whose requests use the test services container."""
    with patch("api.deps.get_services", return_value=services):
        yield TestClient(api_app, follow_redirects=False)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as unit test"
    )
    config.addinivalue_line(
        "markers", "api: mark test as API endpoint test"
    )
