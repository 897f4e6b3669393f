"""
Scenario Report - Per-step outcome of one scenario run.

Provides JSON export and a failing-step summary for assertions.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional
import json

from portal_e2e.exceptions import ScenarioError


class ScenarioStatus(Enum):
    """Status of a scenario run."""
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    ABORTED = "aborted"


class StepStatus(Enum):
    """Status of one scenario step."""
    PASSED = "passed"
    FAILED = "failed"
    WARNING = "warning"
    SKIPPED = "skipped"


@dataclass
class StepRecord:
    """Outcome of a single scenario step."""
    step_number: int
    name: str
    status: StepStatus
    duration_ms: float
    detail: Optional[str] = None
    screenshot_path: Optional[str] = None
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step_number": self.step_number,
            "name": self.name,
            "status": self.status.value,
            "duration_ms": round(self.duration_ms, 1),
            "detail": self.detail,
            "screenshot": self.screenshot_path,
            "url": self.url,
        }


@dataclass
class ScenarioReport:
    """
    Outcome of a scenario run.

    Attributes:
        scenario: Scenario name
        run_id: Unique identifier for the run
        status: Final status
        started_at: When the run started
        completed_at: When the run completed
        steps: Step records in execution order
        metadata: Extra values collected by steps (card titles, ...)
    """
    scenario: str
    run_id: str
    status: ScenarioStatus = ScenarioStatus.RUNNING
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    steps: List[StepRecord] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return self.status is ScenarioStatus.PASSED

    @property
    def failed_step(self) -> Optional[StepRecord]:
        """The step that stopped the scenario, if any."""
        for step in self.steps:
            if step.status is StepStatus.FAILED:
                return step
        return None

    @property
    def duration_seconds(self) -> float:
        end = self.completed_at or datetime.now()
        return (end - self.started_at).total_seconds()

    def record(self, step: StepRecord) -> StepRecord:
        self.steps.append(step)
        return step

    def finish(self, status: ScenarioStatus) -> None:
        self.status = status
        self.completed_at = datetime.now()

    def raise_for_status(self) -> None:
        """
        Raise if the scenario did not pass.

        Raises:
            ScenarioError: naming the failing step and its detail
        """
        if self.passed:
            return
        failed = self.failed_step
        step_name = failed.name if failed else "<none>"
        raise ScenarioError(
            f"Scenario '{self.scenario}' {self.status.value} at step '{step_name}'",
            scenario=self.scenario,
            step=step_name,
            detail=failed.detail if failed else None,
            screenshot_path=failed.screenshot_path if failed else None,
        )

    def summary_line(self) -> str:
        passed = sum(1 for s in self.steps if s.status is StepStatus.PASSED)
        line = f"{self.scenario}: {self.status.value} ({passed}/{len(self.steps)} steps, {self.duration_seconds:.1f}s)"
        failed = self.failed_step
        if failed:
            line += f" - failed at '{failed.name}': {failed.detail}"
        return line

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "scenario": self.scenario,
            "run_id": self.run_id,
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "failed_step": self.failed_step.name if self.failed_step else None,
            "steps": [s.to_dict() for s in self.steps],
            "metadata": self.metadata,
        }

    def export_json(self, path: Path | str) -> Path:
        """
        Export report as JSON.

        Args:
            path: Output file path

        Returns:
            The written path
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2, default=str)
        return path
