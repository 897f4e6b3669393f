"""
Browsers module - Automation host implementations.
"""

from portal_e2e.browsers.playwright_browser import (
    PlaywrightBrowser,
    PlaywrightContext,
    PlaywrightPage,
    PlaywrightElement,
    context_options_from_settings,
    launch_from_settings,
)

__all__ = [
    "PlaywrightBrowser",
    "PlaywrightContext",
    "PlaywrightPage",
    "PlaywrightElement",
    "context_options_from_settings",
    "launch_from_settings",
]
