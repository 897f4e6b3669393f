"""
Portal E2E - Resilient browser end-to-end checks for a student portal.

This package resolves page elements through an ordered list of lookup
strategies, acts on them through a native -> force -> script chain, and
waits on page state with bounded polling, all on top of Playwright.

Example:
    >>> from portal_e2e import PageSession, ScenarioRunner, build_scenario, get_settings
    >>> settings = get_settings()
    >>> session = await PageSession.open(browser, settings)
    >>> report = await ScenarioRunner(session).run(build_scenario("login", settings))
"""

__version__ = "0.1.0"

# Public API exports
from portal_e2e.config import Settings, get_settings
from portal_e2e.core import ActionExecutor, ElementResolver, PageContext, PageStateWaiter
from portal_e2e.pages import PageSession
from portal_e2e.scenarios import ScenarioRunner, build_scenario

__all__ = [
    "Settings",
    "get_settings",
    "PageContext",
    "ElementResolver",
    "ActionExecutor",
    "PageStateWaiter",
    "PageSession",
    "ScenarioRunner",
    "build_scenario",
    "__version__",
]
