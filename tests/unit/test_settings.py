"""Unit tests for ProxySettings — env-driven process configuration."""

from __future__ import annotations

from pathlib import Path

from analytics_proxy.config import ProxySettings
from analytics_proxy.models.adapters import ReadinessPolicy


class TestProxySettings:
    """Defaults, environment overrides and derived values."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("ANALYTICS_PROXY_ENVIRONMENT", raising=False)
        settings = ProxySettings(_env_file=None)
        assert settings.environment == "development"
        assert settings.log_level == "INFO"
        assert settings.readiness_max_attempts == 10
        assert settings.config_path is None
        assert not settings.is_production

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("ANALYTICS_PROXY_ENVIRONMENT", "production")
        monkeypatch.setenv("ANALYTICS_PROXY_READINESS_MAX_ATTEMPTS", "20")
        monkeypatch.setenv("ANALYTICS_PROXY_READINESS_INTERVAL_SECONDS", "0.5")
        monkeypatch.setenv("ANALYTICS_PROXY_CONFIG_PATH", "/etc/analytics/proxy.json")
        settings = ProxySettings(_env_file=None)
        assert settings.is_production
        assert settings.readiness_max_attempts == 20
        assert settings.config_path == Path("/etc/analytics/proxy.json")

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("ANALYTICS_PROXY_DEBUG=true\n", encoding="utf-8")
        assert ProxySettings(_env_file=env_file).debug is True

    def test_readiness_policy_from_settings(self, monkeypatch):
        monkeypatch.setenv("ANALYTICS_PROXY_READINESS_MAX_ATTEMPTS", "3")
        monkeypatch.setenv("ANALYTICS_PROXY_READINESS_INTERVAL_SECONDS", "0.25")
        policy = ReadinessPolicy.from_settings(ProxySettings(_env_file=None))
        assert policy == ReadinessPolicy(max_attempts=3, interval=0.25)
