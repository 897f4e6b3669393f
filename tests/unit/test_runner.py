"""
Tests for the scenario runner.
"""

import pytest

from portal_e2e.exceptions import BrowserError, ScenarioError, TransportError
from portal_e2e.reporting import ScenarioStatus, StepStatus
from portal_e2e.scenarios import Scenario, ScenarioRunner, ScenarioStep, StepOutcome


def step(name, result, required=True, screenshot=False, calls=None):
    async def run(session):
        if calls is not None:
            calls.append(name)
        if isinstance(result, Exception):
            raise result
        return result
    return ScenarioStep(name=name, run=run, required=required, screenshot=screenshot)


class TestStepOutcome:
    """Test step return value coercion."""

    def test_coerce(self):
        assert StepOutcome.coerce(True).passed
        assert not StepOutcome.coerce(False).passed
        assert StepOutcome.coerce(None).passed

        outcome = StepOutcome(False, "card missing")
        assert StepOutcome.coerce(outcome) is outcome


class TestScenarioRunner:
    """Test step sequencing and reporting."""

    @pytest.mark.asyncio
    async def test_all_steps_pass(self, session):
        """Test a passing scenario records every step."""
        calls = []
        scenario = Scenario("demo", [step("one", True, calls=calls), step("two", None, calls=calls)])

        report = await ScenarioRunner(session).run(scenario)

        assert report.passed
        assert report.run_id == "test-run"
        assert calls == ["one", "two"]
        assert [s.status for s in report.steps] == [StepStatus.PASSED, StepStatus.PASSED]
        assert report.steps[0].url == "https://portal.example.edu/"
        report.raise_for_status()

    @pytest.mark.asyncio
    async def test_required_failure_stops(self, session, page):
        """Test a failing required step ends the run with a screenshot."""
        calls = []
        scenario = Scenario("demo", [
            step("open card", StepOutcome(False, "card 'X' not found"), calls=calls),
            step("never", True, calls=calls),
        ])

        report = await ScenarioRunner(session).run(scenario)

        assert report.status is ScenarioStatus.FAILED
        assert calls == ["open card"]
        failed = report.failed_step
        assert failed.name == "open card"
        assert failed.detail == "card 'X' not found"
        assert "error-001-open-card-" in failed.screenshot_path
        assert page.screenshots

    @pytest.mark.asyncio
    async def test_false_without_detail(self, session):
        """Test a bare False gets a generic detail."""
        report = await ScenarioRunner(session).run(Scenario("demo", [step("check", False)]))
        assert report.failed_step.detail == "step returned False"

    @pytest.mark.asyncio
    async def test_optional_failure_is_warning(self, session):
        """Test an optional step failure is recorded and the run continues."""
        scenario = Scenario("demo", [
            step("remember me", False, required=False),
            step("sign in", True),
        ])

        report = await ScenarioRunner(session).run(scenario)

        assert report.passed
        assert report.steps[0].status is StepStatus.WARNING
        assert report.failed_step is None

    @pytest.mark.asyncio
    async def test_portal_error_is_step_failure(self, session):
        """Test a suite error inside a step fails the step, not the run."""
        scenario = Scenario("demo", [step("click", BrowserError("Element is detached"))])

        report = await ScenarioRunner(session).run(scenario)

        assert report.status is ScenarioStatus.FAILED
        assert "Element is detached" in report.failed_step.detail

    @pytest.mark.asyncio
    async def test_transport_error_aborts(self, session):
        """Test a lost connection is recorded then re-raised."""
        scenario = Scenario("demo", [step("click", TransportError("Browser has been closed", operation="click"))])
        runner = ScenarioRunner(session)

        with pytest.raises(TransportError) as excinfo:
            await runner.run(scenario)

        report = excinfo.value.report
        assert report.status == ScenarioStatus.ABORTED
        assert report.failed_step.name == "click"
        assert report.steps[-1].detail == "transport failure: Browser has been closed"
        assert report.steps[-1].screenshot_path is not None

    @pytest.mark.asyncio
    async def test_transport_error_with_closed_context(self, session):
        """Test no screenshot is attempted once the context is gone."""
        async def close_then_fail(s):
            await s.close()
            raise TransportError("Target closed", operation="click")

        scenario = Scenario("demo", [ScenarioStep("click", close_then_fail)])

        with pytest.raises(TransportError) as excinfo:
            await ScenarioRunner(session).run(scenario)
        assert session.screenshots.get_screenshots() == []
        assert excinfo.value.report.steps[-1].screenshot_path is None

    @pytest.mark.asyncio
    async def test_step_screenshot(self, session):
        """Test steps flagged for screenshots record the path."""
        report = await ScenarioRunner(session).run(Scenario("demo", [step("Cards Loaded", True, screenshot=True)]))

        assert "001-cards-loaded-" in report.steps[0].screenshot_path
        assert len(session.screenshots.get_screenshots_for_step(1)) == 1

    @pytest.mark.asyncio
    async def test_metadata_reaches_report(self, session):
        """Test values collected by steps are exported."""
        async def collect(s):
            s.metadata["card_titles"] = ["Housing"]
            return True

        report = await ScenarioRunner(session).run(Scenario("demo", [ScenarioStep("collect", collect)]))

        assert report.to_dict()["metadata"] == {"card_titles": ["Housing"]}

    @pytest.mark.asyncio
    async def test_raise_for_status(self, session):
        """Test a failed report raises with the failing step."""
        report = await ScenarioRunner(session).run(Scenario("demo", [step("sign in", StepOutcome(False, "bad"))]))

        with pytest.raises(ScenarioError) as exc_info:
            report.raise_for_status()

        assert exc_info.value.step == "sign in"
        assert exc_info.value.detail == "bad"
        assert exc_info.value.screenshot_path == report.failed_step.screenshot_path

    def test_step_decorator(self):
        """Test steps can be declared with the decorator."""
        scenario = Scenario("demo")

        @scenario.step("first", required=False)
        async def first(session):
            return True

        assert scenario.steps[0].name == "first"
        assert scenario.steps[0].run is first
        assert not scenario.steps[0].required
