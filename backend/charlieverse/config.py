from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env(name: str, *fallbacks: str) -> AliasChoices:
    return AliasChoices(name, f"CHARLIEVERSE_{name.upper()}", *fallbacks)


class Settings(BaseSettings):
    """Application configuration loaded from environment variables.

    Every integration is optional: leaving the database URL, SMTP credentials
    or Firebase project unset turns the matching feature into a no-op.
    """

    model_config = SettingsConfigDict(
        env_prefix="CHARLIEVERSE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_prefix: str = "/api"
    allowed_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:5000",
        ]
    )
    log_level: str = "INFO"

    database_url: str | None = Field(
        default=None,
        validation_alias=_env("database_url", "DATABASE_URL"),
        description="SQLAlchemy async URL, e.g. postgresql+asyncpg://... or sqlite+aiosqlite:///./charlieverse.db",
    )

    session_cookie_name: str = "charlieverse.sid"
    session_ttl_seconds: int = 7 * 24 * 60 * 60
    session_cookie_secure: bool = False

    admin_email: str = "admin@charlieverse.com"
    admin_password: str | None = None
    seed_admin: bool = True

    smtp_host: str | None = Field(default=None, validation_alias=_env("smtp_host", "SMTP_HOST"))
    smtp_port: int = Field(default=587, validation_alias=_env("smtp_port", "SMTP_PORT"))
    smtp_secure: bool = Field(default=False, validation_alias=_env("smtp_secure", "SMTP_SECURE"))
    smtp_starttls: bool | None = Field(default=None, validation_alias=_env("smtp_starttls", "SMTP_STARTTLS"))
    smtp_user: str | None = Field(default=None, validation_alias=_env("smtp_user", "SMTP_USER"))
    smtp_pass: str | None = Field(default=None, validation_alias=_env("smtp_pass", "SMTP_PASS"))
    smtp_from: str | None = Field(default=None, validation_alias=_env("smtp_from", "SMTP_FROM"))
    smtp_timeout: float = 10.0
    gmail_user: str | None = Field(default=None, validation_alias=_env("gmail_user", "GMAIL_USER"))
    gmail_pass: str | None = Field(default=None, validation_alias=_env("gmail_pass", "GMAIL_PASS"))

    firebase_api_key: str | None = Field(
        default=None,
        validation_alias=_env("firebase_api_key", "FIREBASE_API_KEY", "VITE_FIREBASE_API_KEY"),
    )
    firebase_project_id: str | None = Field(
        default=None,
        validation_alias=_env("firebase_project_id", "FIREBASE_PROJECT_ID", "VITE_FIREBASE_PROJECT_ID"),
    )
    firebase_app_id: str | None = Field(
        default=None,
        validation_alias=_env("firebase_app_id", "FIREBASE_APP_ID", "VITE_FIREBASE_APP_ID"),
    )
    firebase_jwks_url: str = (
        "https://www.googleapis.com/service_accounts/v1/jwk/"
        "securetoken@system.gserviceaccount.com"
    )

    upload_dir: Path = Path("uploads")
    max_upload_files: int = 5
    max_upload_size: int = 10 * 1024 * 1024
    upload_retention_hours: float | None = Field(
        default=None,
        description="Delete uploads older than this many hours; unset keeps files forever",
    )

    analytics_window_days: int = 30


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
