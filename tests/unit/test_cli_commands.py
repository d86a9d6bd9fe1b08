"""Unit tests for the CLI — command registration, check, destinations, demo."""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from analytics_proxy.cli.app import app
from analytics_proxy.cli.commands.demo import run_demo
from analytics_proxy.config import settings
from analytics_proxy.models.adapters import AdapterState

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "proxy.json"
    path.write_text(
        json.dumps(
            {
                "providers": {
                    "mixpanel": {"enabled": True, "token": "t"},
                    "ga4": {"enabled": True},
                    "segment": {"enabled": True, "writeKey": "k"},
                },
                "globalProperties": {"appVersion": "1.0.0"},
            }
        ),
        encoding="utf-8",
    )
    return path


# ---------------------------------------------------------------------------
# Test: CLI help and registration
# ---------------------------------------------------------------------------


class TestCliApp:
    """The CLI must register all expected commands and show help."""

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert result.exit_code in (0, 2)
        assert "Usage" in result.output or "usage" in result.output.lower()

    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("check", "destinations", "demo"):
            assert command in result.output

    def test_destinations_lists_builtins(self):
        result = runner.invoke(app, ["destinations"])
        assert result.exit_code == 0
        for name in ("mixpanel", "ga4", "logrocket", "amplitude"):
            assert name in result.output


# ---------------------------------------------------------------------------
# Test: check
# ---------------------------------------------------------------------------


class TestCheckCommand:
    """check validates a config file and reports eligibility."""

    def test_valid_file(self, config_file):
        result = runner.invoke(app, ["check", str(config_file)])
        assert result.exit_code == 0, result.output
        assert "mixpanel" in result.output
        assert "Unknown destination" in result.output
        assert "1 eligible destination(s)" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["check", str(tmp_path / "absent.json")])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        result = runner.invoke(app, ["check", str(path)])
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_schema_violation(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"providers": []}), encoding="utf-8")
        result = runner.invoke(app, ["check", str(path)])
        assert result.exit_code == 1

    def test_no_path_and_no_default(self, monkeypatch):
        monkeypatch.setattr(settings, "config_path", None)
        result = runner.invoke(app, ["check"])
        assert result.exit_code == 2

    def test_falls_back_to_settings_path(self, monkeypatch, config_file):
        monkeypatch.setattr(settings, "config_path", config_file)
        result = runner.invoke(app, ["check"])
        assert result.exit_code == 0
        assert "mixpanel" in result.output


# ---------------------------------------------------------------------------
# Test: demo
# ---------------------------------------------------------------------------


class TestDemoCommand:
    """demo drives the proxy end-to-end against recording backends."""

    def test_demo_runs(self):
        result = runner.invoke(app, ["demo"])
        assert result.exit_code == 0, result.output
        assert "ready" in result.output
        assert "logEvent" in result.output

    def test_demo_disable_option(self):
        result = runner.invoke(app, ["demo", "--disable", "ga4", "-x", "amplitude"])
        assert result.exit_code == 0, result.output
        assert "(gtag)" not in result.output

    @pytest.mark.asyncio
    async def test_run_demo_records_vendor_calls(self):
        states, backends = await run_demo(["logrocket"])
        assert states == {
            "mixpanel": AdapterState.READY,
            "ga4": AdapterState.READY,
            "amplitude": AdapterState.READY,
        }
        mixpanel = backends["mixpanel"]
        assert [c.args[0] for c in mixpanel.calls_to("track")] == ["Button Clicked", "Page View"]
        assert mixpanel.calls_to("people.set")[0].args[0]["$email"] == "jane@example.com"
        assert mixpanel.calls_to("track")[0].args[1]["environment"] == "demo"
