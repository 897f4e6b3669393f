"""
Reporting module - Diagnostic screenshots and scenario reports.
"""

from portal_e2e.reporting.screenshot_manager import Screenshot, ScreenshotManager, slugify
from portal_e2e.reporting.scenario_report import (
    ScenarioReport,
    ScenarioStatus,
    StepRecord,
    StepStatus,
)

__all__ = [
    "Screenshot",
    "ScreenshotManager",
    "slugify",
    "ScenarioReport",
    "ScenarioStatus",
    "StepRecord",
    "StepStatus",
]
