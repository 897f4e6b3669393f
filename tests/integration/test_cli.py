"""
Integration tests for the CLI commands.
"""

import json
import os
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from portal_e2e.config import ConfigLoader
from portal_e2e.exceptions import BrowserLaunchError
from portal_e2e.main import app
from tests.fakes import FakeBrowser


@pytest.fixture
def runner():
    """Create a CLI runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated(monkeypatch, tmp_path):
    """Run from an empty directory with only the portal variables set here."""
    for key in list(os.environ):
        if key.upper().startswith("PORTAL_E2E__"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(ConfigLoader, "DEFAULT_CONFIG_PATHS", [tmp_path / "config.yaml"])


@pytest.fixture
def portal_env(monkeypatch):
    monkeypatch.setenv("PORTAL_E2E__PORTAL__URL", "https://portal.example.edu/")
    monkeypatch.setenv("PORTAL_E2E__PORTAL__USERNAME", "student1")
    monkeypatch.setenv("PORTAL_E2E__PORTAL__PASSWORD", "s3cret")
    monkeypatch.setenv("PORTAL_E2E__WAITER__POLL_INTERVAL_MS", "10")
    monkeypatch.setenv("PORTAL_E2E__WAITER__DOM_READY_TIMEOUT_MS", "200")
    monkeypatch.setenv("PORTAL_E2E__RESOLVER__TIMEOUT_MS", "200")


class TestCLIList:
    """Test the 'list' CLI command."""

    def test_list(self, runner):
        """Test every scenario is listed."""
        result = runner.invoke(app, ["list"])

        assert result.exit_code == 0
        for name in ("login", "portal_cards", "settings_menu", "requirements"):
            assert name in result.stdout


class TestCLICheckConfig:
    """Test the 'check-config' CLI command."""

    def test_missing_values(self, runner):
        """Test unset portal values are reported with exit code 2."""
        result = runner.invoke(app, ["check-config"])

        assert result.exit_code == 2
        assert "portal.url" in result.stdout
        assert "Missing" in result.stdout

    def test_complete(self, runner, portal_env):
        result = runner.invoke(app, ["check-config"])

        assert result.exit_code == 0
        assert "Configuration complete" in result.stdout
        assert "s3cret" not in result.stdout

    def test_yaml_file(self, runner, tmp_path, portal_env):
        """Test an explicit config file is read."""
        config = tmp_path / "portal.yaml"
        config.write_text("browser:\n  browser_type: firefox\n")

        result = runner.invoke(app, ["check-config", "--config", str(config)])

        assert result.exit_code == 0
        assert "firefox" in result.stdout


class TestCLIRun:
    """Test the 'run' CLI command."""

    def test_run_help(self, runner):
        result = runner.invoke(app, ["run", "--help"])

        assert result.exit_code == 0
        assert "--visible" in result.stdout
        assert "--card" in result.stdout

    def test_unknown_scenario(self, runner, portal_env):
        result = runner.invoke(app, ["run", "logout"])

        assert result.exit_code == 2
        assert "Unknown scenario" in result.stdout

    def test_missing_credentials(self, runner):
        """Test a run refuses to start without credentials."""
        result = runner.invoke(app, ["run", "login"])

        assert result.exit_code == 2
        assert "Missing required configuration" in result.stdout

    def test_launch_failure(self, runner, portal_env):
        """Test a browser that cannot start exits with code 3."""
        failing = AsyncMock(side_effect=BrowserLaunchError("Executable doesn't exist"))

        with patch("portal_e2e.main.launch_from_settings", failing):
            result = runner.invoke(app, ["run", "login", "--browser", "msedge", "--visible"])

        assert result.exit_code == 3
        settings = failing.call_args[0][0]
        assert settings.channel == "msedge"
        assert settings.browser_type == "chromium"
        assert settings.headless is False

    def test_failed_run_writes_report(self, runner, portal_env, tmp_path):
        """Test a failing scenario exits 1 and still writes its report."""
        browser = FakeBrowser()
        report_dir = tmp_path / "out"

        with patch("portal_e2e.main.launch_from_settings", AsyncMock(return_value=browser)):
            result = runner.invoke(app, ["run", "login", "--report-dir", str(report_dir)])

        assert result.exit_code == 1
        reports = list(report_dir.glob("*/report.json"))
        assert len(reports) == 1
        data = json.loads(reports[0].read_text())
        assert data["status"] == "failed"
        assert data["failed_step"] == "log in"
        assert browser.contexts[0].closed

    def test_lost_browser_writes_report(self, runner, portal_env, tmp_path):
        """Test a closed tab exits 4 after reporting the aborted step."""
        class ClosedTabBrowser(FakeBrowser):
            async def new_context(self, **options):
                context = await super().new_context(**options)
                tab = await context.new_page()
                await tab.close()
                context.new_page = AsyncMock(return_value=tab)
                return context

        report_dir = tmp_path / "out"

        with patch("portal_e2e.main.launch_from_settings", AsyncMock(return_value=ClosedTabBrowser())):
            result = runner.invoke(app, ["run", "login", "--report-dir", str(report_dir)])

        assert result.exit_code == 4
        assert "log in" in result.stdout
        assert "Browser connection lost" in result.stdout
        reports = list(report_dir.glob("*/report.json"))
        assert len(reports) == 1
        data = json.loads(reports[0].read_text())
        assert data["status"] == "aborted"
        assert data["failed_step"] == "log in"
        assert data["steps"][0]["detail"].startswith("transport failure:")
