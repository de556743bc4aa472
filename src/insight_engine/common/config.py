"""Insight-Engine configuration via pydantic-settings."""

import warnings
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_DEFAULTS = {
    "secret_key": "insecure-dev-key-change-me",
    "jwt_secret": "insecure-jwt-secret-change-me",
    "master_license_key": "insecure-master-key-change-me",
}


class InsightSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="INSIGHT_")

    environment: str = "development"
    secret_key: str = "insecure-dev-key-change-me"
    jwt_secret: str = "insecure-jwt-secret-change-me"
    master_license_key: str = "insecure-master-key-change-me"

    # Database
    db_url: str = "sqlite+aiosqlite:///./data/insight.db"

    # API
    api_title: str = "Insight-Engine"
    api_version: str = "0.1.0"
    host: str = "0.0.0.0"
    port: int = 8080
    api_prefix: str = "/api"
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]
    log_level: str = "INFO"

    # Dashboard sessions (cookie and bearer token lifetime)
    session_ttl: int = 86400  # seconds

    # Read paths
    default_limit: int = 50
    max_limit: int = 500
    report_timezone: str = "UTC"

    # Ingestion
    strict_license_validation: bool = False
    activation_window_minutes: int = 60

    def validate_for_production(self) -> None:
        """Raise if insecure defaults are used in non-development environments."""
        insecure_fields = [
            field
            for field, default in _INSECURE_DEFAULTS.items()
            if getattr(self, field) == default
        ]

        if self.environment != "development" and insecure_fields:
            env_vars = ", ".join(f"INSIGHT_{f.upper()}" for f in insecure_fields)
            raise RuntimeError(
                f"Insecure default values detected in '{self.environment}' environment. "
                f"Set these environment variables to secure values: {env_vars}. "
                "Generate secrets with: python -c \"import secrets; print(secrets.token_urlsafe(48))\""
            )

        if insecure_fields:
            warnings.warn(
                "Using insecure default secrets, set INSIGHT_SECRET_KEY, INSIGHT_JWT_SECRET "
                "and INSIGHT_MASTER_LICENSE_KEY for production",
                UserWarning,
                stacklevel=2,
            )


@lru_cache
def get_settings() -> InsightSettings:
    settings = InsightSettings()
    settings.validate_for_production()
    return settings
