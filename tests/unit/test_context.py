"""
Tests for the page context: generations and tab switching.
"""

import pytest

from portal_e2e.core import PageContext
from portal_e2e.exceptions import TransportError
from tests.fakes import FakeBrowser, FakeBrowserContext, FakeClock, FakePage, h


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tab_context(browser_context, page, clock):
    return PageContext(browser_context, page, tab_poll_interval_ms=100, clock=clock, sleep=clock.sleep)


class TestGeneration:
    """Test navigation generations."""

    def test_starts_at_zero(self, context):
        assert context.generation == 0

    def test_navigation_event_bumps_generation(self, context, page):
        """Test a main-frame navigation invalidates refs."""
        page.navigate(h("body"), url="https://portal.example.edu/home")
        assert context.generation == 1

    def test_mark_navigated(self, context):
        context.mark_navigated("content swapped")
        context.mark_navigated()
        assert context.generation == 2


class TestCreateAndClose:
    """Test the context lifecycle."""

    @pytest.mark.asyncio
    async def test_create_opens_isolated_context(self):
        """Test create() opens a fresh browser context with one tab."""
        browser = FakeBrowser()

        context = await PageContext.create(browser, viewport={"width": 800, "height": 600})

        assert browser.context_options == [{"viewport": {"width": 800, "height": 600}}]
        assert context.browser_context.pages == [context.page]

    @pytest.mark.asyncio
    async def test_close(self, context, browser_context):
        """Test close() closes the browser context once."""
        await context.close()
        await context.close()

        assert context.closed
        assert browser_context.closed
        with pytest.raises(TransportError):
            context.page

    @pytest.mark.asyncio
    async def test_close_when_already_gone(self, context, browser_context):
        """Test closing a context whose browser context is gone does not raise."""
        await browser_context.close()
        await context.close()
        assert context.closed


class TestSwitchToNewestTab:
    """Test adopting tabs opened by clicks."""

    @pytest.mark.asyncio
    async def test_keeps_current_tab_when_none_opens(self, tab_context, page, clock):
        """Test the current tab stays active after the timeout."""
        result = await tab_context.switch_to_newest_tab(timeout_ms=3000)

        assert result is page
        assert tab_context.page is page
        assert tab_context.generation == 0
        assert clock.now == pytest.approx(3.0)

    @pytest.mark.asyncio
    async def test_adopts_new_tab(self, tab_context, browser_context, clock):
        """Test a freshly opened tab becomes the active page."""
        new_tab = browser_context.open_tab(FakePage(url="https://portal.example.edu/dashboard"))

        result = await tab_context.switch_to_newest_tab(timeout_ms=3000)

        assert result is new_tab
        assert tab_context.page is new_tab
        assert tab_context.generation == 1
        assert new_tab.front
        assert new_tab.load_state_calls == [("domcontentloaded", 10000)]
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_adopts_tab_that_opens_late(self, browser_context, page, clock):
        """Test a tab opening during the poll window is picked up."""
        new_tab = FakePage(url="https://portal.example.edu/late")

        async def sleep(seconds):
            await clock.sleep(seconds)
            if len(clock.sleeps) == 3:
                browser_context.open_tab(new_tab)

        context = PageContext(browser_context, page, tab_poll_interval_ms=100, clock=clock, sleep=sleep)

        assert await context.switch_to_newest_tab(timeout_ms=3000) is new_tab
        assert clock.now == pytest.approx(0.3)

    @pytest.mark.asyncio
    async def test_newest_of_several(self, tab_context, browser_context):
        """Test the most recently opened tab wins."""
        browser_context.open_tab(FakePage(url="https://a"))
        newest = browser_context.open_tab(FakePage(url="https://b"))

        assert await tab_context.switch_to_newest_tab() is newest

    @pytest.mark.asyncio
    async def test_known_tabs_are_not_readopted(self, tab_context, browser_context, page):
        """Test a tab is adopted only once."""
        new_tab = browser_context.open_tab(FakePage(url="https://a"))
        await tab_context.switch_to_newest_tab()

        assert await tab_context.switch_to_newest_tab(timeout_ms=200) is new_tab
        assert tab_context.generation == 1

    @pytest.mark.asyncio
    async def test_slow_tab_is_still_adopted(self, tab_context, browser_context):
        """Test a tab that misses DOM-ready is adopted anyway."""
        slow = FakePage(url="https://slow")
        slow.pending_states.add("domcontentloaded")
        browser_context.open_tab(slow)

        assert await tab_context.switch_to_newest_tab(load_timeout_ms=500) is slow

    @pytest.mark.asyncio
    async def test_closed_active_tab_falls_back(self, page, clock):
        """Test a closed active tab hands over to the remaining one."""
        other = FakePage(url="https://other")
        context = PageContext(FakeBrowserContext([other, page]), page, clock=clock, sleep=clock.sleep)
        await page.close()

        assert await context.switch_to_newest_tab() is other
        assert context.generation == 1

    @pytest.mark.asyncio
    async def test_every_tab_closed(self, tab_context, page):
        """Test losing every tab is a transport failure."""
        await page.close()

        with pytest.raises(TransportError):
            await tab_context.switch_to_newest_tab()

    @pytest.mark.asyncio
    async def test_old_tab_navigation_is_ignored(self, tab_context, browser_context, page):
        """Test only the active tab's navigations bump the generation."""
        new_tab = browser_context.open_tab(FakePage(url="https://new"))
        await tab_context.switch_to_newest_tab()

        page.navigate(h("body"))
        assert tab_context.generation == 1

        new_tab.navigate(h("body"))
        assert tab_context.generation == 2
