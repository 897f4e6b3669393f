"""
Browser-related exceptions.
"""

from typing import TYPE_CHECKING

from portal_e2e.exceptions.base import PortalE2EError

if TYPE_CHECKING:
    from portal_e2e.reporting.scenario_report import ScenarioReport


class BrowserError(PortalE2EError):
    """Base exception for browser-related errors."""
    pass


class BrowserLaunchError(BrowserError):
    """
    Error launching the browser.
    
    Raised when the browser fails to start, which could be due to:
    - Missing browser binaries
    - Invalid browser options
    - Resource constraints
    """
    pass


class TransportError(BrowserError):
    """
    The connection to the page, context or browser is gone.
    
    Unlike a missing element or an unmet wait condition this is not
    recoverable locally. It always propagates to the scenario runner,
    which captures what diagnostics it can and re-raises. The aborted
    scenario's report travels with the error as ``report``.
    """
    
    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message, {"operation": operation})
        self.operation = operation
        # set by ScenarioRunner when the failure aborts a scenario
        self.report: "ScenarioReport | None" = None


class NavigationError(BrowserError):
    """
    Error during page navigation.
    
    Raised when navigation fails, such as:
    - Invalid URL
    - Network error
    - Navigation timeout
    """
    
    def __init__(self, message: str, url: str | None = None):
        super().__init__(message, {"url": url})
        self.url = url


class TimeoutError(BrowserError):
    """
    A host operation exceeded its timeout.
    
    Only raised by the browser adapter. The waiter and executor turn it
    into a ``False`` / failed result.
    """
    
    def __init__(self, message: str, timeout_ms: int | None = None, operation: str | None = None):
        super().__init__(message, {"timeout_ms": timeout_ms, "operation": operation})
        self.timeout_ms = timeout_ms
        self.operation = operation
