"""
Playwright Browser - Implementation of IBrowser using Playwright.

This module provides a Playwright-based implementation of the browser
interface. All Playwright errors are translated at this boundary:

    - closed page/context/browser   -> TransportError
    - playwright TimeoutError       -> BrowserTimeoutError
    - any other playwright Error    -> BrowserError
"""

from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional
import logging

from playwright.async_api import (
    async_playwright,
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
)

from portal_e2e.interfaces.browser import (
    IBrowser,
    IBrowserContext,
    IPage,
    IElement,
    BrowserType,
)
from portal_e2e.exceptions import (
    BrowserError,
    BrowserLaunchError,
    BrowserTimeoutError,
    NavigationError,
    TransportError,
)

logger = logging.getLogger(__name__)


# Message fragments Playwright uses when the other end is gone
CLOSED_MARKERS = (
    "has been closed",
    "target closed",
    "browser closed",
    "connection closed",
    "browser has disconnected",
)


def is_closed_error(error: BaseException) -> bool:
    """Check whether a Playwright error means the page/context/browser is gone."""
    message = str(error).lower()
    return any(marker in message for marker in CLOSED_MARKERS)


@contextmanager
def host_call(operation: str, timeout_ms: Optional[int] = None) -> Iterator[None]:
    """
    Translate Playwright errors raised inside the block.

    Args:
        operation: Short name of the host operation, for diagnostics
        timeout_ms: Timeout the operation ran with, if any
    """
    try:
        yield
    except PlaywrightTimeoutError as e:
        raise BrowserTimeoutError(str(e), timeout_ms=timeout_ms, operation=operation) from e
    except PlaywrightError as e:
        if is_closed_error(e):
            raise TransportError(str(e), operation=operation) from e
        raise BrowserError(str(e), {"operation": operation}) from e


class PlaywrightElement(IElement):
    """
    Playwright implementation of IElement.

    Wraps a Playwright ElementHandle for interaction and inspection.
    """

    def __init__(self, element: Any, selector: Optional[str] = None):
        """
        Initialize the element wrapper.

        Args:
            element: Playwright ElementHandle
            selector: The selector used to find this element, if any
        """
        self._element = element
        self._selector = selector

    @property
    def handle(self) -> Any:
        """The wrapped Playwright ElementHandle."""
        return self._element

    async def click(self, **options: Any) -> None:
        """Click on this element."""
        with host_call("click", options.get("timeout")):
            await self._element.click(**options)

    async def fill(self, value: str, **options: Any) -> None:
        """Fill this element with text."""
        with host_call("fill", options.get("timeout")):
            await self._element.fill(value, **options)

    async def scroll_into_view(self, **options: Any) -> None:
        """Scroll into view."""
        with host_call("scroll_into_view", options.get("timeout")):
            await self._element.scroll_into_view_if_needed(**options)

    async def is_visible(self) -> bool:
        """Check if visible."""
        with host_call("is_visible"):
            return await self._element.is_visible()

    async def text_content(self) -> Optional[str]:
        """Get text content."""
        with host_call("text_content"):
            return await self._element.text_content()

    async def get_attribute(self, name: str) -> Optional[str]:
        """Get an attribute value."""
        with host_call("get_attribute"):
            return await self._element.get_attribute(name)

    async def input_value(self) -> str:
        """Get the current input value."""
        with host_call("input_value"):
            return await self._element.input_value()

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        """Run a script against this element."""
        with host_call("evaluate"):
            return await self._element.evaluate(expression, arg)

    async def query_selector_all(self, selector: str) -> List[IElement]:
        """Find all matching descendants."""
        with host_call("query_selector_all"):
            elements = await self._element.query_selector_all(selector)
        return [PlaywrightElement(el, selector) for el in elements]

    async def find_by_script(self, script: str, arg: Any = None) -> Optional[IElement]:
        """Run a lookup script rooted at this element."""
        with host_call("find_by_script"):
            handle = await self._element.evaluate_handle(
                f"(root, arg) => ({script})(root, arg)", arg
            )
            element = handle.as_element()
            if element is None:
                await handle.dispose()
                return None
        return PlaywrightElement(element)

    def __repr__(self) -> str:
        return f"PlaywrightElement(selector={self._selector!r})"


class PlaywrightPage(IPage):
    """
    Playwright implementation of IPage.

    Wraps a Playwright Page for navigation and interaction.
    """

    def __init__(self, page: Any):
        """
        Initialize the page wrapper.

        Args:
            page: Playwright Page object
        """
        self._page = page

    @property
    def raw(self) -> Any:
        """The wrapped Playwright Page."""
        return self._page

    @property
    def url(self) -> str:
        """Get current URL."""
        return self._page.url

    async def title(self) -> str:
        """Get page title."""
        with host_call("title"):
            return await self._page.title()

    async def goto(self, url: str, **options: Any) -> None:
        """Navigate to URL."""
        try:
            with host_call("goto", options.get("timeout")):
                await self._page.goto(url, **options)
        except TransportError:
            raise
        except BrowserError as e:
            raise NavigationError(f"Failed to navigate to {url}: {e.message}", url=url) from e

    async def set_content(self, html: str, **options: Any) -> None:
        """Replace page HTML."""
        with host_call("set_content", options.get("timeout")):
            await self._page.set_content(html, **options)

    async def query_selector_all(self, selector: str) -> List[IElement]:
        """Find all matching elements."""
        with host_call("query_selector_all"):
            elements = await self._page.query_selector_all(selector)
        return [PlaywrightElement(el, selector) for el in elements]

    async def find_by_script(self, script: str, arg: Any = None) -> Optional[IElement]:
        """Run a lookup script rooted at the document."""
        with host_call("find_by_script"):
            handle = await self._page.evaluate_handle(
                f"(arg) => ({script})(document, arg)", arg
            )
            element = handle.as_element()
            if element is None:
                await handle.dispose()
                return None
        return PlaywrightElement(element)

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        """Execute JavaScript."""
        with host_call("evaluate"):
            return await self._page.evaluate(expression, arg)

    async def screenshot(
        self,
        path: Optional[Any] = None,
        full_page: bool = False,
        **options: Any,
    ) -> bytes:
        """Take screenshot."""
        with host_call("screenshot", options.get("timeout")):
            return await self._page.screenshot(path=path, full_page=full_page, **options)

    async def wait_for_load_state(self, state: str = "load", timeout: Optional[int] = None) -> None:
        """Wait for load state."""
        with host_call(f"wait_for_load_state:{state}", timeout):
            await self._page.wait_for_load_state(state, timeout=timeout)

    def on_navigation(self, callback: Callable[[], None]) -> None:
        """Subscribe to main-frame navigations."""
        def handler(frame: Any) -> None:
            if frame == self._page.main_frame:
                callback()

        self._page.on("framenavigated", handler)

    def is_closed(self) -> bool:
        """Check if the tab is closed."""
        return self._page.is_closed()

    async def bring_to_front(self) -> None:
        """Activate this tab."""
        with host_call("bring_to_front"):
            await self._page.bring_to_front()

    async def close(self) -> None:
        """Close page."""
        with host_call("close"):
            await self._page.close()

    def __repr__(self) -> str:
        return f"PlaywrightPage(url={self._page.url!r})"


class PlaywrightContext(IBrowserContext):
    """
    Playwright implementation of IBrowserContext.

    Page wrappers are cached so the same tab is always the same IPage
    object, which lets callers compare tabs by identity.
    """

    def __init__(self, context: Any):
        self._context = context
        self._wrappers: Dict[Any, PlaywrightPage] = {}

    def _wrap(self, page: Any) -> PlaywrightPage:
        wrapper = self._wrappers.get(page)
        if wrapper is None:
            wrapper = PlaywrightPage(page)
            self._wrappers[page] = wrapper
        return wrapper

    @property
    def pages(self) -> List[IPage]:
        """All open tabs, oldest first."""
        return [self._wrap(page) for page in self._context.pages]

    async def new_page(self, **options: Any) -> IPage:
        """Create new page."""
        with host_call("new_page"):
            page = await self._context.new_page()
        return self._wrap(page)

    async def close(self) -> None:
        """Close context."""
        with host_call("close_context"):
            await self._context.close()
        self._wrappers.clear()


class PlaywrightBrowser(IBrowser):
    """
    Playwright implementation of IBrowser.

    Example:
        >>> browser = PlaywrightBrowser()
        >>> await browser.launch(headless=True)
        >>> context = await browser.new_context(viewport={"width": 1280, "height": 720})
        >>> page = await context.new_page()
        >>> await page.goto("https://example.com")
        >>> await browser.close()
    """

    def __init__(self):
        """Initialize the browser (not launched yet)."""
        self._playwright: Any = None
        self._browser: Any = None

    @property
    def is_connected(self) -> bool:
        """Check if browser is connected."""
        return self._browser is not None and self._browser.is_connected()

    async def launch(
        self,
        headless: bool = True,
        browser_type: BrowserType = BrowserType.CHROMIUM,
        **options: Any,
    ) -> None:
        """
        Launch the browser.

        Args:
            headless: Whether to run headless
            browser_type: Type of browser to launch
            **options: Additional Playwright launch options

        Raises:
            BrowserLaunchError: if Playwright or the browser binary is unavailable
        """
        try:
            self._playwright = await async_playwright().start()

            browser_launchers = {
                BrowserType.CHROMIUM: self._playwright.chromium,
                BrowserType.FIREFOX: self._playwright.firefox,
                BrowserType.WEBKIT: self._playwright.webkit,
            }
            launcher = browser_launchers.get(browser_type, self._playwright.chromium)

            self._browser = await launcher.launch(headless=headless, **options)

            logger.info(f"Launched {browser_type.value} browser (headless={headless})")

        except PlaywrightError as e:
            await self._stop_playwright()
            raise BrowserLaunchError(f"Failed to launch browser: {e}") from e

    async def new_context(self, **options: Any) -> IBrowserContext:
        """
        Create a new browser context.

        Args:
            **options: Context options

        Returns:
            New context instance
        """
        if not self._browser:
            raise TransportError("Browser not launched. Call launch() first.", operation="new_context")

        with host_call("new_context"):
            context = await self._browser.new_context(**options)
        return PlaywrightContext(context)

    async def _stop_playwright(self) -> None:
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    async def close(self) -> None:
        """Close the browser and cleanup."""
        if self._browser:
            try:
                await self._browser.close()
            except PlaywrightError as e:
                logger.debug(f"Browser already gone on close: {e}")
            self._browser = None

        await self._stop_playwright()

        logger.info("Browser closed")


def context_options_from_settings(settings: Any) -> Dict[str, Any]:
    """
    Build Playwright context options from BrowserSettings.

    Args:
        settings: BrowserSettings instance

    Returns:
        Keyword arguments for ``IBrowser.new_context``
    """
    return {
        "viewport": {"width": settings.viewport_width, "height": settings.viewport_height},
        "ignore_https_errors": settings.ignore_https_errors,
    }


async def launch_from_settings(settings: Any) -> PlaywrightBrowser:
    """
    Launch a PlaywrightBrowser configured by BrowserSettings.

    Args:
        settings: BrowserSettings instance

    Returns:
        A launched browser
    """
    options: Dict[str, Any] = {}
    if settings.channel:
        options["channel"] = settings.channel
    if settings.slow_mo:
        options["slow_mo"] = settings.slow_mo

    browser = PlaywrightBrowser()
    await browser.launch(
        headless=settings.headless,
        browser_type=BrowserType(settings.browser_type),
        **options,
    )
    return browser
