"""Environment-driven configuration for the intake service."""

import os
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file (for local development)
load_dotenv()

DEFAULT_NOTIFY_FROM = "Elite Performance Clinic <noreply@epcla.com>"
DEFAULT_NOTIFY_RECIPIENTS = "info@epcla.com,sarahk@epcla.com,sasha@epcla.com"
DEFAULT_ALLOWED_ORIGIN_HOSTS = "epcla.com,www.epcla.com,localhost"
DEFAULT_PREVIEW_ORIGIN_SUFFIXES = ".vercel.app"
DEFAULT_CORS_ALLOWED_ORIGINS = "https://epcla.com,https://www.epcla.com,http://localhost:3000"


def _split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    # Treat blank values the same as unset ones
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return value.strip()


class Settings:
    """
    Snapshot of the environment at the time it is built.

    Handlers receive it through ``Depends(get_settings)`` so tests can
    override the whole configuration without touching ``os.environ``.
    """

    def __init__(self, **overrides):
        self.airtable_base_id: Optional[str] = _env("AIRTABLE_BASE_ID")
        self.airtable_api_key: Optional[str] = _env("AIRTABLE_API_KEY")

        self.resend_api_key: Optional[str] = _env("RESEND_API_KEY")
        self.notify_from: str = _env("NOTIFY_FROM", DEFAULT_NOTIFY_FROM)
        self.notify_recipients: List[str] = _split_csv(
            _env("NOTIFY_RECIPIENTS", DEFAULT_NOTIFY_RECIPIENTS)
        )

        self.square_application_id: str = _env("SQUARE_APPLICATION_ID", "")
        self.square_location_id: str = _env("SQUARE_LOCATION_ID", "")
        self.square_access_token: str = _env("SQUARE_ACCESS_TOKEN", "")
        self.square_use_sandbox: bool = (_env("SQUARE_USE_SANDBOX", "") or "").lower() == "true"

        self.admin_password_hash: Optional[str] = _env("ADMIN_PASSWORD_HASH")
        self.secret_key: Optional[str] = _env("SECRET_KEY")

        self.environment: str = (_env("ENVIRONMENT", "development") or "development").lower()

        self.allowed_origin_hosts: List[str] = _split_csv(
            _env("ALLOWED_ORIGIN_HOSTS", DEFAULT_ALLOWED_ORIGIN_HOSTS)
        )
        self.preview_origin_suffixes: List[str] = _split_csv(
            _env("PREVIEW_ORIGIN_SUFFIXES", DEFAULT_PREVIEW_ORIGIN_SUFFIXES)
        )
        self.cors_allowed_origins: List[str] = _split_csv(
            _env("CORS_ALLOWED_ORIGINS", DEFAULT_CORS_ALLOWED_ORIGINS)
        )

        self.rate_limit_database_url: Optional[str] = _env("RATE_LIMIT_DATABASE_URL")
        self.http_timeout_seconds: float = float(_env("HTTP_TIMEOUT_SECONDS", "15"))
        self.log_level: str = (_env("LOG_LEVEL", "INFO") or "INFO").upper()

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise AttributeError(f"Unknown setting: {key}")
            setattr(self, key, value)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def missing_airtable_settings(self) -> List[str]:
        """Names of the Airtable variables that are not configured."""
        missing = []
        if not self.airtable_base_id:
            missing.append("AIRTABLE_BASE_ID")
        if not self.airtable_api_key:
            missing.append("AIRTABLE_API_KEY")
        return missing


def get_settings() -> Settings:
    """FastAPI dependency returning the current configuration."""
    return Settings()
