"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"

_FIREBASE_ACCOUNT_FIELDS = (
    "firebase_project_id",
    "firebase_private_key",
    "firebase_client_email",
)


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    secret_key: str = Field(
        description="Shared secret used to verify JWT bearer tokens", min_length=1
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    access_token_expire_minutes: int = Field(
        default=60,
        description="Lifetime of service tokens minted by the helper scripts",
        gt=0,
    )
    app_timezone: str = Field(
        default="UTC", description="Timezone used to stamp and compare instants"
    )
    cors_allow_origins: str = Field(
        default="",
        description="Comma separated list of origins allowed to call the API",
    )

    topic_prefix: str = Field(
        default="tenant_",
        description="Prefix of the tenant-wide broadcast topic (``<prefix><tenant_id>``)",
        min_length=1,
    )
    dispatch_chunk_size: int = Field(
        default=500,
        description="Number of tokens processed per dispatch pass",
        gt=0,
    )
    dispatch_max_concurrency: int = Field(
        default=10,
        description="Maximum number of concurrent per-token sends",
        gt=0,
    )
    dispatch_send_timeout_seconds: float = Field(
        default=10.0,
        description="Upper bound for a single send to the push provider",
        gt=0,
    )
    deactivate_unregistered_tokens: bool = Field(
        default=True,
        description="Soft-revoke tokens the provider reports as unregistered",
    )
    push_use_bulk_send: bool = Field(
        default=False,
        description="Deliver each chunk with the provider's bulk primitive when available",
    )

    firebase_credentials_file: str | None = Field(
        default=None,
        description="Path to a Firebase service account JSON file",
    )
    firebase_project_id: str | None = Field(default=None)
    firebase_private_key_id: str | None = Field(default=None)
    firebase_private_key: str | None = Field(
        default=None,
        description="Service account private key; literal '\\n' sequences are expanded",
    )
    firebase_client_email: str | None = Field(default=None)
    firebase_client_id: str | None = Field(default=None)
    firebase_token_uri: str = Field(default="https://oauth2.googleapis.com/token")

    @model_validator(mode="after")
    def _validate_firebase_account(self) -> "Settings":
        provided = [bool(getattr(self, name)) for name in _FIREBASE_ACCOUNT_FIELDS]
        if any(provided) and not all(provided):
            raise ValueError(
                "FIREBASE_PROJECT_ID, FIREBASE_PRIVATE_KEY and FIREBASE_CLIENT_EMAIL "
                "must all be provided to enable push delivery"
            )
        return self

    def firebase_service_account(self) -> dict[str, str] | None:
        """Return the service account mapping built from the environment."""

        if not all(getattr(self, name) for name in _FIREBASE_ACCOUNT_FIELDS):
            return None
        return {
            "type": "service_account",
            "project_id": self.firebase_project_id or "",
            "private_key_id": self.firebase_private_key_id or "",
            "private_key": (self.firebase_private_key or "").replace("\\n", "\n"),
            "client_email": self.firebase_client_email or "",
            "client_id": self.firebase_client_id or "",
            "token_uri": self.firebase_token_uri,
        }

    def allowed_origins(self) -> list[str]:
        return [
            origin.strip() for origin in self.cors_allow_origins.split(",") if origin.strip()
        ]

    def tenant_topic(self, tenant_id: str) -> str:
        """Return the prefixed broadcast topic for ``tenant_id``."""

        return f"{self.topic_prefix}{tenant_id}"


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
