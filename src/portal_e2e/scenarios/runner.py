"""
Scenario Runner - Sequence named steps over a PageSession.

A scenario is an ordered list of steps. Each step is an async callable
taking the session and returning a bool (or a StepOutcome with detail).
The runner records every step in a ScenarioReport and stops at the
first failing required step.

TransportError is never absorbed: the runner takes a best-effort
screenshot, records the step and re-raises.
"""

from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Union
import logging
import time

from portal_e2e.exceptions import PortalE2EError, TransportError
from portal_e2e.pages.session import PageSession
from portal_e2e.reporting import ScenarioReport, ScenarioStatus, StepRecord, StepStatus
from portal_e2e.utils.events import log_event

logger = logging.getLogger(__name__)


@dataclass
class StepOutcome:
    """Result of one step, with an explanation when it failed."""
    passed: bool
    detail: Optional[str] = None

    @classmethod
    def coerce(cls, value: Union[bool, "StepOutcome", None]) -> "StepOutcome":
        if isinstance(value, StepOutcome):
            return value
        if value is None:
            return cls(True)
        return cls(bool(value))


StepFn = Callable[[PageSession], Awaitable[Union[bool, StepOutcome, None]]]


@dataclass
class ScenarioStep:
    """
    One named step.

    Attributes:
        name: Human-readable step name
        run: Async callable taking the session
        required: A failing required step stops the scenario; a failing
            optional step is recorded as a warning
        screenshot: Capture a screenshot after the step passes
    """
    name: str
    run: StepFn
    required: bool = True
    screenshot: bool = False


@dataclass
class Scenario:
    """An ordered list of steps."""
    name: str
    steps: List[ScenarioStep] = field(default_factory=list)
    description: str = ""

    def step(self, name: str, required: bool = True, screenshot: bool = False) -> Callable[[StepFn], StepFn]:
        """
        Decorator adding a step.

        Example:
            >>> scenario = Scenario("login")
            >>> @scenario.step("sign in")
            ... async def sign_in(session):
            ...     return await session.capability(LoginCapability).login(user, password)
        """
        def decorator(fn: StepFn) -> StepFn:
            self.steps.append(ScenarioStep(name=name, run=fn, required=required, screenshot=screenshot))
            return fn
        return decorator


class ScenarioRunner:
    """
    Run scenarios against one PageSession.

    Example:
        >>> runner = ScenarioRunner(session)
        >>> report = await runner.run(scenario)
        >>> report.raise_for_status()
    """

    def __init__(self, session: PageSession):
        self.session = session

    async def run(self, scenario: Scenario) -> ScenarioReport:
        """
        Execute every step in order.

        Returns:
            The report; PASSED if every required step passed

        Raises:
            TransportError: after recording the failing step; the aborted
                report is attached as ``report``
        """
        report = ScenarioReport(scenario=scenario.name, run_id=self.session.run_id, metadata=self.session.metadata)
        logger.info(f"Running scenario '{scenario.name}' ({len(scenario.steps)} steps)")

        for number, step in enumerate(scenario.steps, start=1):
            start = time.monotonic()
            try:
                outcome = StepOutcome.coerce(await step.run(self.session))
            except TransportError as e:
                await self._record_failure(report, number, step, start, f"transport failure: {e.message}")
                report.finish(ScenarioStatus.ABORTED)
                e.report = report
                raise
            except PortalE2EError as e:
                outcome = StepOutcome(False, str(e))

            if outcome.passed:
                await self._record_pass(report, number, step, start)
                continue

            detail = outcome.detail or "step returned False"
            if step.required:
                await self._record_failure(report, number, step, start, detail)
                report.finish(ScenarioStatus.FAILED)
                logger.error(report.summary_line())
                return report

            report.record(StepRecord(
                step_number=number,
                name=step.name,
                status=StepStatus.WARNING,
                duration_ms=(time.monotonic() - start) * 1000,
                detail=detail,
                url=self._url(),
            ))
            logger.warning(f"Optional step '{step.name}' failed, continuing: {detail}")

        report.finish(ScenarioStatus.PASSED)
        logger.info(report.summary_line())
        return report

    def _url(self) -> Optional[str]:
        if self.session.context.closed:
            return None
        try:
            return self.session.page.url
        except PortalE2EError:
            return None

    async def _record_pass(self, report: ScenarioReport, number: int, step: ScenarioStep, start: float) -> None:
        shot = None
        if step.screenshot:
            shot = await self.session.screenshot(step.name, step_number=number)
        duration_ms = (time.monotonic() - start) * 1000
        report.record(StepRecord(
            step_number=number,
            name=step.name,
            status=StepStatus.PASSED,
            duration_ms=duration_ms,
            screenshot_path=str(shot.path) if shot else None,
            url=self._url(),
        ))
        log_event(logger, logging.INFO, "scenario.step.passed", scenario=report.scenario, step=step.name,
                  duration_ms=f"{duration_ms:.0f}")

    async def _record_failure(
        self,
        report: ScenarioReport,
        number: int,
        step: ScenarioStep,
        start: float,
        detail: str,
    ) -> None:
        shot = None
        if not self.session.context.closed:
            shot = await self.session.screenshots.capture_on_error(self.session.context.page, step.name, number)
        report.record(StepRecord(
            step_number=number,
            name=step.name,
            status=StepStatus.FAILED,
            duration_ms=(time.monotonic() - start) * 1000,
            detail=detail,
            screenshot_path=str(shot.path) if shot else None,
            url=self._url(),
        ))
        log_event(logger, logging.ERROR, "scenario.step.failed", scenario=report.scenario, step=step.name,
                  detail=detail)
