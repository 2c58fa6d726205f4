"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Firestore credentials are optional at load time;
init_firebase() is a no-op without them.
"""

import re
from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LICENSE_PREFIX_RE = re.compile(r"^[A-Z0-9]{1,8}$")


class Settings(BaseSettings):
    """Application settings loaded from environment and .env."""

    # App
    app_name: str = "beatcrest"
    app_version: str = "1.0.0"
    debug: bool = False

    # CORS
    allowed_origins: str = "http://localhost:3000,http://localhost:5173"

    # Firebase / Firestore: use key (env) or path (file).
    firebase_service_account_key: SecretStr | None = None
    firebase_service_account_path: str | None = None  # Path to JSON file
    firestore_timeout_seconds: float = 30.0

    # Marketplace data layer
    license_prefix: str = "BC"
    default_page_size: int = 20
    user_search_limit: int = 20

    # OpenTelemetry
    telemetry_enabled: bool = False
    telemetry_exporter: str = "console"
    telemetry_otlp_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0
    telemetry_environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_marketplace(self) -> "Settings":
        """Validate license prefix, paging defaults and telemetry exporter."""
        if not _LICENSE_PREFIX_RE.match(self.license_prefix):
            raise ValueError(
                "LICENSE_PREFIX must be 1-8 uppercase letters or digits, "
                f"got: {self.license_prefix!r}"
            )
        if self.default_page_size < 1 or self.user_search_limit < 1:
            raise ValueError("DEFAULT_PAGE_SIZE and USER_SEARCH_LIMIT must be >= 1")
        if self.telemetry_exporter not in ("console", "otlp", "none"):
            raise ValueError(
                "TELEMETRY_EXPORTER must be 'console', 'otlp' or 'none', "
                f"got: {self.telemetry_exporter!r}"
            )
        return self

    @property
    def firestore_configured(self) -> bool:
        """True when a service account key or key file path is set."""
        has_key = (
            self.firebase_service_account_key is not None
            and bool(self.firebase_service_account_key.get_secret_value())
        )
        return has_key or bool(self.firebase_service_account_path)


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
