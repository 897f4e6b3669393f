"""
Pytest configuration and fixtures.
"""

import os

import pytest

from tests.fakes import FakeBrowserContext, FakePage


@pytest.fixture
def settings(tmp_path):
    """Provide test settings with short waits and a throwaway output dir."""
    from portal_e2e.config import Settings

    return Settings(
        portal={
            "url": "https://portal.example.edu/",
            "username": "student1",
            "password": "s3cret",
        },
        resolver={"timeout_ms": 1000},
        waiter={
            "poll_interval_ms": 10,
            "stability_timeout_ms": 600,
            "dom_ready_timeout_ms": 300,
            "network_idle_timeout_ms": 300,
            "new_tab_timeout_ms": 0,
            "settle_delay_ms": 0,
        },
        reporting={"output_dir": str(tmp_path / "screenshots")},
    )


@pytest.fixture
def page():
    """Provide an empty fake page."""
    return FakePage(url="https://portal.example.edu/")


@pytest.fixture
def browser_context(page):
    """Provide a fake browser context holding ``page``."""
    return FakeBrowserContext([page])


@pytest.fixture
def context(browser_context, page):
    """Provide a PageContext over the fake page."""
    from portal_e2e.core import PageContext

    return PageContext(browser_context, page)


@pytest.fixture
def resolver(context):
    from portal_e2e.core import ElementResolver

    return ElementResolver(context, timeout_ms=1000)


@pytest.fixture
def session(context, settings):
    """Provide a PageSession wired over the fake context."""
    from portal_e2e.pages import PageSession

    return PageSession(context, settings, run_id="test-run")


@pytest.fixture
async def browser():
    """Provide a real Playwright browser for integration tests."""
    from portal_e2e.browsers import PlaywrightBrowser
    from portal_e2e.exceptions import BrowserLaunchError

    browser = PlaywrightBrowser()
    try:
        await browser.launch(headless=True)
    except BrowserLaunchError as e:
        pytest.skip(f"No browser available: {e.message}")

    yield browser

    await browser.close()


@pytest.fixture
def live_settings():
    """Settings for the live portal; skips unless credentials are configured."""
    from portal_e2e.config import load_config

    if not os.environ.get("PORTAL_E2E__PORTAL__URL"):
        pytest.skip("PORTAL_E2E__PORTAL__URL not set")
    settings = load_config()
    if settings.portal.missing():
        pytest.skip(f"Portal not configured: {settings.portal.missing()}")
    return settings
