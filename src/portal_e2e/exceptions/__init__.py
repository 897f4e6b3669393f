"""
Exceptions module - Custom exception hierarchy.

Only transport failures and missing configuration propagate out of the
resolver, executor and waiter. Everything else ("not found", "not ready
yet") is a normal return value.
"""

from portal_e2e.exceptions.base import (
    PortalE2EError,
    ConfigurationError,
    ConfigurationMissingError,
)
from portal_e2e.exceptions.browser import (
    BrowserError,
    BrowserLaunchError,
    TransportError,
    NavigationError,
    TimeoutError as BrowserTimeoutError,
)
from portal_e2e.exceptions.scenario import ScenarioError

__all__ = [
    # Base exceptions
    "PortalE2EError",
    "ConfigurationError",
    "ConfigurationMissingError",
    # Browser exceptions
    "BrowserError",
    "BrowserLaunchError",
    "TransportError",
    "NavigationError",
    "BrowserTimeoutError",
    # Scenario exceptions
    "ScenarioError",
]
