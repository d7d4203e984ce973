"""Configuration module for the ITP NOTIFICATION auth service."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List
from dotenv import load_dotenv

load_dotenv()

DEFAULT_ACCOUNTS_FILE = Path(__file__).parent.parent / "data" / "accounts.json"


@dataclass
class AppConfig:
    """Deployment settings."""
    environment: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))

    # Comma separated; the first origin is where OAuth redirects land
    client_url: str = field(default_factory=lambda: os.getenv("CLIENT_URL", "http://localhost:5173"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "5000")))

    @property
    def client_origins(self) -> List[str]:
        origins = [o.strip() for o in self.client_url.split(",") if o.strip()]
        return origins or ["http://localhost:5173"]

    @property
    def redirect_base(self) -> str:
        return self.client_origins[0].rstrip("/")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@dataclass
class StoreConfig:
    """Account store location."""
    accounts_file: Path = field(
        default_factory=lambda: Path(os.getenv("ACCOUNTS_FILE", str(DEFAULT_ACCOUNTS_FILE)))
    )


@dataclass
class JWTConfig:
    """Session token signing."""
    secret: str = field(default_factory=lambda: os.getenv("JWT_SECRET", ""))


@dataclass
class EmailConfig:
    """SMTP transport for verification emails."""
    host: str = field(default_factory=lambda: os.getenv("EMAIL_HOST", ""))
    port: int = field(default_factory=lambda: int(os.getenv("EMAIL_PORT", "587")))
    user: str = field(default_factory=lambda: os.getenv("EMAIL_USER", ""))
    password: str = field(default_factory=lambda: os.getenv("EMAIL_PASS", ""), repr=False)
    sender: str = field(default_factory=lambda: os.getenv("EMAIL_FROM", ""))


@dataclass
class SMSConfig:
    """SMS gateway (smsadvert.ro) settings."""
    api_token: str = field(default_factory=lambda: os.getenv("SMS_API_TOKEN", ""), repr=False)
    api_url: str = field(default_factory=lambda: os.getenv("SMS_API_URL", "https://www.smsadvert.ro/api/sms/"))


@dataclass
class GitHubConfig:
    """GitHub OAuth application credentials."""
    client_id: str = field(default_factory=lambda: os.getenv("GITHUB_CLIENT_ID", ""))
    client_secret: str = field(default_factory=lambda: os.getenv("GITHUB_CLIENT_SECRET", ""), repr=False)
    callback_url: str = field(default_factory=lambda: os.getenv("GITHUB_CALLBACK_URL", ""))


@dataclass
class Config:
    """Main configuration container."""
    app: AppConfig = field(default_factory=AppConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    jwt: JWTConfig = field(default_factory=JWTConfig)
    email: EmailConfig = field(default_factory=EmailConfig)
    sms: SMSConfig = field(default_factory=SMSConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)


def load_config() -> Config:
    """Load configuration from environment variables."""
    return Config()
