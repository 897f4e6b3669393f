"""
Browser Interface - Abstract base classes for the automation host.

The resolver, executor and waiter only ever talk to these interfaces, so
the same core runs against Playwright in the suite and against in-memory
fakes in unit tests.

Host errors surface through the exception taxonomy only:
    - ``TransportError`` when the page, context or browser is gone
    - ``BrowserTimeoutError`` when a host wait exceeds its timeout
    - ``BrowserError`` for any other host-side failure

Example:
    >>> from portal_e2e.browsers import PlaywrightBrowser
    >>> browser = PlaywrightBrowser()
    >>> await browser.launch(headless=True)
    >>> context = await browser.new_context()
    >>> page = await context.new_page()
    >>> await page.goto("https://example.com")
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class BrowserType(Enum):
    """Supported browser types."""
    CHROMIUM = "chromium"
    FIREFOX = "firefox"
    WEBKIT = "webkit"


class IQueryScope(ABC):
    """
    Something elements can be looked up in: a whole page or one element.
    """

    @abstractmethod
    async def query_selector_all(self, selector: str) -> List["IElement"]:
        """
        Find all elements matching a selector, in document order.

        Args:
            selector: CSS selector

        Returns:
            List of matching elements (empty if none)
        """
        ...

    @abstractmethod
    async def find_by_script(self, script: str, arg: Any = None) -> Optional["IElement"]:
        """
        Run a lookup script against this scope and return the element it picks.

        The script is a JavaScript function ``(root, arg) => Element | null``
        where ``root`` is ``document`` for a page and the element itself for
        an element scope.

        Args:
            script: JavaScript function source
            arg: Serializable argument passed to the script

        Returns:
            The element returned by the script, or None
        """
        ...


class IElement(IQueryScope):
    """
    Abstract interface for a live DOM element.
    """

    @abstractmethod
    async def click(self, **options: Any) -> None:
        """
        Click on this element.

        Args:
            **options: Host click options (``force``, ``timeout``)
        """
        ...

    @abstractmethod
    async def fill(self, value: str, **options: Any) -> None:
        """
        Fill this element with text.

        Args:
            value: The text to fill
            **options: Host fill options (``force``, ``timeout``)
        """
        ...

    @abstractmethod
    async def scroll_into_view(self, **options: Any) -> None:
        """Scroll the element into view if needed."""
        ...

    @abstractmethod
    async def is_visible(self) -> bool:
        """Whether the host considers the element rendered and visible."""
        ...

    @abstractmethod
    async def text_content(self) -> Optional[str]:
        """Get the text content of this element."""
        ...

    @abstractmethod
    async def get_attribute(self, name: str) -> Optional[str]:
        """
        Get an attribute value from this element.

        Args:
            name: The attribute name

        Returns:
            The attribute value, or None if not present
        """
        ...

    @abstractmethod
    async def input_value(self) -> str:
        """Current value of an input, textarea or select element."""
        ...

    @abstractmethod
    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        """
        Run a script with this element as its first argument.

        Args:
            expression: JavaScript function ``(el, arg) => ...``
            arg: Serializable argument

        Returns:
            The script's return value
        """
        ...


class IPage(IQueryScope):
    """
    Abstract interface for one browser tab.
    """

    @property
    @abstractmethod
    def url(self) -> str:
        """Get the current page URL."""
        ...

    @abstractmethod
    async def title(self) -> str:
        """Get the current page title."""
        ...

    @abstractmethod
    async def goto(self, url: str, **options: Any) -> None:
        """
        Navigate to a URL.

        Args:
            url: The URL to navigate to
            **options: Host navigation options (``wait_until``, ``timeout``)
        """
        ...

    @abstractmethod
    async def set_content(self, html: str, **options: Any) -> None:
        """Replace the document with the given HTML."""
        ...

    @abstractmethod
    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        """
        Execute JavaScript in the page context.

        Args:
            expression: JavaScript expression or function to execute
            arg: Argument to pass to the function

        Returns:
            The result of the JavaScript execution
        """
        ...

    @abstractmethod
    async def screenshot(
        self,
        path: Optional["Path"] = None,
        full_page: bool = False,
        **options: Any,
    ) -> bytes:
        """
        Take a screenshot of the page.

        Args:
            path: Optional path to save the screenshot
            full_page: Whether to capture the full scrollable page
            **options: Host screenshot options

        Returns:
            The screenshot as PNG bytes
        """
        ...

    @abstractmethod
    async def wait_for_load_state(self, state: str = "load", timeout: Optional[int] = None) -> None:
        """
        Wait for the page to reach a specific load state.

        Args:
            state: 'load', 'domcontentloaded' or 'networkidle'
            timeout: Maximum time to wait in milliseconds

        Raises:
            BrowserTimeoutError: if the state is not reached in time
        """
        ...

    @abstractmethod
    def on_navigation(self, callback: Callable[[], None]) -> None:
        """
        Register a callback fired whenever the main frame navigates.

        Args:
            callback: Called with no arguments on each navigation
        """
        ...

    @abstractmethod
    def is_closed(self) -> bool:
        """Whether the tab has been closed."""
        ...

    @abstractmethod
    async def bring_to_front(self) -> None:
        """Activate this tab."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close this page."""
        ...


class IBrowserContext(ABC):
    """
    Abstract interface for a browser context (isolated session).

    A browser context provides an isolated environment with its own cookies,
    localStorage, and cache. Every test gets its own.
    """

    @property
    @abstractmethod
    def pages(self) -> List[IPage]:
        """All open tabs of this context, oldest first."""
        ...

    @abstractmethod
    async def new_page(self, **options: Any) -> IPage:
        """
        Create a new page in this context.

        Returns:
            A new page instance
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close this context and all its pages."""
        ...


class IBrowser(ABC):
    """
    Abstract interface for browser management.
    """

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Check if the browser is connected and running."""
        ...

    @abstractmethod
    async def launch(
        self,
        headless: bool = True,
        browser_type: BrowserType = BrowserType.CHROMIUM,
        **options: Any,
    ) -> None:
        """
        Launch a browser instance.

        Args:
            headless: Whether to run in headless mode
            browser_type: Type of browser to launch
            **options: Host launch options
        """
        ...

    @abstractmethod
    async def new_context(self, **options: Any) -> IBrowserContext:
        """
        Create a new browser context (isolated session).

        Args:
            **options: Host context options (viewport, ignore_https_errors)

        Returns:
            A new browser context
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the browser and cleanup resources."""
        ...
