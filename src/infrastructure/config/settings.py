from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_name: str = "Gatekeeper"
    app_version: str = "1.0.0"
    debug: bool = False

    # Database
    database_url: str = ""  # Loaded from environment, validated in model_validator
    database_echo: bool = False

    # Credential tokens
    token_secret: str = ""  # Loaded from environment, validated in model_validator
    token_max_age_seconds: int = 24 * 60 * 60  # 24 hours
    verification_base_url: str = "http://localhost:5173/verify"

    # Verification pipeline
    storage_timeout_seconds: float = 5.0  # Applied to every storage call
    expose_denial_reasons: bool = True  # False collapses reasons to "access_denied"

    # CORS - comma-separated list of allowed origins
    allowed_origins: str = "http://localhost:3000,http://localhost:5173"

    # OpenTelemetry Distributed Tracing
    telemetry_enabled: bool = False
    telemetry_exporter: str = "console"  # Options: console, otlp, none
    telemetry_otlp_endpoint: str | None = None  # e.g. http://localhost:4317
    telemetry_sample_rate: float = 1.0  # 1.0 = 100% of traces

    @model_validator(mode="after")
    def validate_required_config(self) -> "Settings":
        """Validate required configuration at startup"""
        if not self.database_url:
            raise ValueError("DATABASE_URL is required. Set in environment or .env file.")
        if not self.token_secret:
            raise ValueError("TOKEN_SECRET is required. Generate with: openssl rand -hex 32")
        if self.token_max_age_seconds <= 0:
            raise ValueError("TOKEN_MAX_AGE_SECONDS must be positive")
        if self.storage_timeout_seconds <= 0:
            raise ValueError("STORAGE_TIMEOUT_SECONDS must be positive")
        return self

    @property
    def token_max_age_ms(self) -> int:
        return self.token_max_age_seconds * 1000

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="allow", case_sensitive=False
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
