"""
Tests for the reporting module.
"""

import json
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from portal_e2e.exceptions import BrowserError, BrowserTimeoutError, ScenarioError
from portal_e2e.reporting import (
    ScenarioReport,
    ScenarioStatus,
    Screenshot,
    ScreenshotManager,
    StepRecord,
    StepStatus,
    slugify,
)
from tests.fakes import FakePage


class TestSlugify:
    """Test screenshot name slugs."""

    def test_slugify(self):
        assert slugify("International Student card found") == "international-student-card-found"
        assert slugify("  GO TO DASHBOARD! ") == "go-to-dashboard"
        assert slugify("???") == "screenshot"


class TestScreenshotManager:
    """Test the ScreenshotManager class."""

    @pytest.fixture
    def manager(self, tmp_path):
        return ScreenshotManager(output_dir=tmp_path, run_id="run-1")

    def test_output_dir_per_run(self, manager, tmp_path):
        """Test screenshots go into a run sub-directory."""
        assert manager.output_dir == tmp_path / "run-1"

    @pytest.mark.asyncio
    async def test_capture(self, manager):
        """Test a capture writes the file and records it."""
        page = FakePage()

        shot = await manager.capture(page, "After Login", step_number=3)

        assert shot.path.exists()
        assert shot.path.name.startswith("003-after-login-")
        assert shot.path.suffix == ".png"
        assert shot.name == "after-login"
        assert not shot.is_error
        assert manager.get_screenshots() == [shot]

    @pytest.mark.asyncio
    async def test_capture_on_error(self, manager):
        """Test error screenshots are flagged and prefixed."""
        shot = await manager.capture_on_error(FakePage(), "open card", 2)

        assert shot.is_error
        assert shot.path.name.startswith("error-002-open-card-")

    @pytest.mark.asyncio
    async def test_disabled(self, tmp_path):
        """Test a disabled manager captures nothing."""
        manager = ScreenshotManager(output_dir=tmp_path, run_id="run-1", enabled=False)
        page = FakePage()

        assert await manager.capture(page, "anything") is None
        assert page.screenshots == []
        assert not (tmp_path / "run-1").exists()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        BrowserTimeoutError("Timeout 5000ms exceeded", timeout_ms=5000, operation="screenshot"),
        BrowserError("Page crashed"),
        OSError("disk full"),
    ])
    async def test_failed_capture_returns_none(self, manager, error):
        """Test a failed capture never raises."""
        page = FakePage()
        page.screenshot_error = error

        assert await manager.capture(page, "after login") is None
        assert manager.get_screenshots() == []

    @pytest.mark.asyncio
    async def test_screenshots_for_step(self, manager):
        """Test filtering screenshots by step."""
        page = FakePage()
        await manager.capture(page, "a", step_number=1)
        await manager.capture(page, "b", step_number=2)
        await manager.capture(page, "c", step_number=2)

        assert [s.name for s in manager.get_screenshots_for_step(2)] == ["b", "c"]
        assert manager.get_screenshots_for_step(5) == []


class TestScenarioReport:
    """Test the ScenarioReport class."""

    @pytest.fixture
    def report(self):
        report = ScenarioReport(scenario="open_card", run_id="run-1")
        report.started_at = datetime(2024, 1, 1, 12, 0, 0)
        report.record(StepRecord(1, "log in", StepStatus.PASSED, 1234.56, url="https://portal.example.edu/"))
        report.record(StepRecord(2, "remember me", StepStatus.WARNING, 10.0, detail="checkbox missing"))
        return report

    def test_running_report(self, report):
        assert report.status is ScenarioStatus.RUNNING
        assert not report.passed
        assert report.failed_step is None

    def test_finish(self, report):
        report.finish(ScenarioStatus.PASSED)

        assert report.passed
        assert report.completed_at is not None
        report.raise_for_status()

    def test_failed_step(self, report):
        """Test the failing step is found and raised."""
        report.record(StepRecord(3, "open card", StepStatus.FAILED, 50.0, detail="not found",
                                 screenshot_path="/tmp/error.png"))
        report.finish(ScenarioStatus.FAILED)

        assert report.failed_step.name == "open card"
        with pytest.raises(ScenarioError) as exc_info:
            report.raise_for_status()

        error = exc_info.value
        assert error.scenario == "open_card"
        assert error.details["screenshot"] == "/tmp/error.png"
        assert "failed at step 'open card'" in error.message

    def test_aborted_without_failed_step(self, report):
        report.finish(ScenarioStatus.ABORTED)

        with pytest.raises(ScenarioError) as exc_info:
            report.raise_for_status()
        assert exc_info.value.step == "<none>"

    def test_summary_line(self, report):
        """Test the one-line summary."""
        report.record(StepRecord(3, "open card", StepStatus.FAILED, 50.0, detail="not found"))
        report.finish(ScenarioStatus.FAILED)
        report.completed_at = report.started_at + timedelta(seconds=2.5)

        assert report.summary_line() == "open_card: failed (1/3 steps, 2.5s) - failed at 'open card': not found"

    def test_to_dict(self, report):
        """Test serialization."""
        report.metadata["card_titles"] = ["Housing"]
        report.finish(ScenarioStatus.PASSED)

        data = report.to_dict()

        assert data["scenario"] == "open_card"
        assert data["status"] == "passed"
        assert data["failed_step"] is None
        assert data["started_at"] == "2024-01-01T12:00:00"
        assert data["steps"][0] == {
            "step_number": 1,
            "name": "log in",
            "status": "passed",
            "duration_ms": 1234.6,
            "detail": None,
            "screenshot": None,
            "url": "https://portal.example.edu/",
        }
        assert data["steps"][1]["status"] == "warning"
        assert data["metadata"] == {"card_titles": ["Housing"]}

    def test_export_json(self, report, tmp_path):
        """Test JSON export creates parent directories."""
        report.finish(ScenarioStatus.PASSED)

        path = report.export_json(tmp_path / "run-1" / "report.json")

        assert path == tmp_path / "run-1" / "report.json"
        data = json.loads(path.read_text())
        assert data["run_id"] == "run-1"
        assert len(data["steps"]) == 2


class TestScreenshotRecord:
    """Test the Screenshot dataclass."""

    def test_defaults(self):
        shot = Screenshot(path=Path("/tmp/a.png"), name="a", step_number=None, timestamp=datetime.now())
        assert not shot.is_error
