"""Process configuration — env-driven.

Centralized settings using pydantic-settings for environment variable
support. Reads from a .env file and ANALYTICS_PROXY_* environment variables.
The per-deployment destination configuration (credentials, global
properties) lives in ``analytics_proxy.models.config.ProxyConfig``.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class ProxySettings(BaseSettings):
    """Process-level settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export ANALYTICS_PROXY_LOG_LEVEL=DEBUG
        export ANALYTICS_PROXY_READINESS_MAX_ATTEMPTS=20
        export ANALYTICS_PROXY_CONFIG_PATH=/etc/analytics/proxy.json

    Or via .env file::

        ANALYTICS_PROXY_ENVIRONMENT=production
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ANALYTICS_PROXY_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    debug: bool = False

    # Readiness polling
    readiness_max_attempts: int = 10
    readiness_interval_seconds: float = 0.1

    # Default proxy configuration file for the CLI
    config_path: Path | None = None

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"


# Module-level singleton: `from analytics_proxy.config import settings`
settings = ProxySettings()
