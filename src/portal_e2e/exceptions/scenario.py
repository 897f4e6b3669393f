"""
Scenario-related exceptions.
"""

from portal_e2e.exceptions.base import PortalE2EError


class ScenarioError(PortalE2EError):
    """
    A scenario step did not reach its expected state.
    
    Carries the failing step, what did not resolve and where the
    diagnostic screenshot was written.
    """
    
    def __init__(
        self,
        message: str,
        scenario: str,
        step: str,
        detail: str | None = None,
        screenshot_path: str | None = None,
    ):
        super().__init__(
            message,
            {
                "scenario": scenario,
                "step": step,
                "detail": detail,
                "screenshot": screenshot_path,
            },
        )
        self.scenario = scenario
        self.step = step
        self.detail = detail
        self.screenshot_path = screenshot_path
