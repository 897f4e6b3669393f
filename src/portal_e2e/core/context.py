"""
Page Context - The single active tab of one test.

A PageContext owns the browser context of a test and knows which tab is
active. It keeps a navigation generation counter; every main-frame
navigation or tab switch bumps it, which invalidates all ElementRefs
resolved before.

Example:
    >>> context = await PageContext.create(browser)
    >>> await context.page.goto(url)
    >>> await executor.click(ref)             # may open a new tab
    >>> page = await context.switch_to_newest_tab(timeout_ms=3000)
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, List, Optional

from portal_e2e.exceptions import BrowserError, BrowserTimeoutError, TransportError
from portal_e2e.interfaces.browser import IBrowser, IBrowserContext, IPage
from portal_e2e.utils.events import log_event

logger = logging.getLogger(__name__)


class PageContext:
    """
    Per-test holder of the active page and its browser context.

    Created at test start, closed at test end, never shared across tests.
    """

    def __init__(
        self,
        browser_context: IBrowserContext,
        page: IPage,
        tab_poll_interval_ms: int = 100,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize the context.

        Args:
            browser_context: Isolated browser context of the test
            page: Initially active tab
            tab_poll_interval_ms: Poll interval while looking for a new tab
            clock: Monotonic clock in seconds
            sleep: Async sleep taking seconds
        """
        self._browser_context = browser_context
        self._page = page
        self._generation = 0
        self._closed = False
        self._tab_poll_interval_ms = tab_poll_interval_ms
        self._clock = clock
        self._sleep = sleep
        self._known_pages: List[IPage] = list(browser_context.pages)
        self._watched: List[IPage] = []
        self._watch(page)

    @classmethod
    async def create(cls, browser: IBrowser, **context_options: Any) -> "PageContext":
        """
        Open a fresh browser context with one tab.

        Args:
            browser: Launched browser
            **context_options: Options for ``IBrowser.new_context``

        Returns:
            A new PageContext
        """
        browser_context = await browser.new_context(**context_options)
        page = await browser_context.new_page()
        return cls(browser_context, page)

    @property
    def page(self) -> IPage:
        """The active tab."""
        if self._closed:
            raise TransportError("Page context is closed", operation="page")
        return self._page

    @property
    def browser_context(self) -> IBrowserContext:
        return self._browser_context

    @property
    def generation(self) -> int:
        """Navigation generation; refs from older generations are dead."""
        return self._generation

    @property
    def closed(self) -> bool:
        return self._closed

    def _watch(self, page: IPage) -> None:
        if any(watched is page for watched in self._watched):
            return
        self._watched.append(page)
        page.on_navigation(lambda: self._on_navigated(page))

    def _on_navigated(self, page: IPage) -> None:
        if page is self._page:
            self.mark_navigated("navigation")

    def mark_navigated(self, reason: str = "explicit") -> None:
        """
        Invalidate every ElementRef resolved so far.

        Args:
            reason: What caused the invalidation, for the log
        """
        self._generation += 1
        logger.debug(f"Navigation generation -> {self._generation} ({reason})")

    async def switch_to_newest_tab(self, timeout_ms: int = 3000, load_timeout_ms: int = 10000) -> IPage:
        """
        Adopt a tab opened since the last adoption, if one appears.

        Polls the browser context's tabs for up to ``timeout_ms``. When a
        new tab shows up it becomes the active page after its DOM is
        ready. Otherwise the current tab stays active; settling it is up
        to the caller.

        Args:
            timeout_ms: How long to look for a new tab
            load_timeout_ms: Budget for the adopted tab's DOM-ready wait

        Returns:
            The active page after the call
        """
        page = self.page
        deadline = self._clock() + timeout_ms / 1000

        while True:
            pages = self._browser_context.pages
            fresh = [
                p for p in pages
                if not any(p is known for known in self._known_pages) and not p.is_closed()
            ]
            if fresh:
                return await self._adopt(fresh[-1], pages, load_timeout_ms)

            if page.is_closed():
                remaining = [p for p in pages if not p.is_closed()]
                if not remaining:
                    raise TransportError("Active tab closed and no other tab is open", operation="switch_tab")
                return await self._adopt(remaining[-1], pages, load_timeout_ms)

            now = self._clock()
            if now >= deadline:
                break
            await self._sleep(min(self._tab_poll_interval_ms / 1000, deadline - now))

        log_event(logger, logging.DEBUG, "tab.kept", url=page.url, waited_ms=timeout_ms)
        return page

    async def _adopt(self, page: IPage, pages: List[IPage], load_timeout_ms: int) -> IPage:
        self._known_pages = list(pages)
        self._page = page
        self._watch(page)
        self.mark_navigated("tab switch")

        try:
            await page.wait_for_load_state("domcontentloaded", timeout=load_timeout_ms)
        except TransportError:
            raise
        except BrowserTimeoutError:
            logger.warning(f"New tab did not reach DOM-ready within {load_timeout_ms}ms")

        try:
            await page.bring_to_front()
        except TransportError:
            raise
        except BrowserError as e:
            logger.debug(f"bring_to_front failed: {e}")

        log_event(logger, logging.INFO, "tab.adopted", url=page.url, tabs=len(pages))
        return page

    async def close(self) -> None:
        """Close the browser context and every tab in it."""
        if self._closed:
            return
        self._closed = True
        try:
            await self._browser_context.close()
        except TransportError as e:
            logger.debug(f"Browser context already gone: {e}")
        logger.debug("Page context closed")
