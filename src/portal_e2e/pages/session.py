"""
Page Session - One test's wiring of context, resolver, executor and waiter.

Page behaviour is composed from capabilities instead of a page-class
hierarchy. A scenario asks the session for the capabilities it needs:

    >>> session = await PageSession.open(browser, settings)
    >>> login = session.capability(LoginCapability)
    >>> cards = session.capability(CardSearchCapability)
    >>> await login.login_and_wait(url, username, password)
    >>> await cards.click_card("International Student")
"""

from datetime import datetime
from typing import Any, Dict, Optional, Type, TypeVar, TYPE_CHECKING
import logging

from portal_e2e.core import ActionExecutor, ElementResolver, PageContext, PageStateWaiter
from portal_e2e.reporting import Screenshot, ScreenshotManager, slugify

if TYPE_CHECKING:
    from portal_e2e.config import PortalSelectors, Settings
    from portal_e2e.interfaces.browser import IBrowser, IPage

logger = logging.getLogger(__name__)

C = TypeVar("C", bound="Capability")


class PageSession:
    """
    Everything one test needs to drive the active page.

    Attributes:
        context: The test's PageContext
        settings: Loaded settings
        resolver: Element resolver bound to the context
        executor: Action executor
        waiter: Page state waiter bound to the context
        screenshots: Screenshot manager for this run
    """

    def __init__(
        self,
        context: PageContext,
        settings: "Settings",
        screenshots: Optional[ScreenshotManager] = None,
        resolver: Optional[ElementResolver] = None,
        executor: Optional[ActionExecutor] = None,
        waiter: Optional[PageStateWaiter] = None,
        run_id: Optional[str] = None,
    ):
        self.context = context
        self.settings = settings
        self.run_id = run_id or datetime.now().strftime("run-%Y%m%d-%H%M%S")

        self.resolver = resolver or ElementResolver(
            context,
            timeout_ms=settings.resolver.timeout_ms,
            text_tiers=settings.resolver.text_tiers,
        )
        self.executor = executor or ActionExecutor()
        self.waiter = waiter or PageStateWaiter(
            context,
            self.resolver,
            poll_interval_ms=settings.waiter.poll_interval_ms,
            default_timeout_ms=settings.waiter.dom_ready_timeout_ms,
            stability_timeout_ms=settings.waiter.stability_timeout_ms,
        )
        self.screenshots = screenshots or ScreenshotManager(
            output_dir=settings.reporting.output_dir,
            run_id=self.run_id,
            enabled=settings.reporting.screenshots,
            timeout_ms=settings.reporting.screenshot_timeout_ms,
        )
        self._capabilities: Dict[type, "Capability"] = {}
        self.metadata: Dict[str, Any] = {}

    @classmethod
    async def open(
        cls,
        browser: "IBrowser",
        settings: "Settings",
        run_id: Optional[str] = None,
        **context_options: Any,
    ) -> "PageSession":
        """
        Open a fresh browser context and wrap it in a session.

        Args:
            browser: Launched browser
            settings: Loaded settings
            run_id: Identifier for screenshots and reports
            **context_options: Options for ``IBrowser.new_context``

        Returns:
            A new PageSession
        """
        context = await PageContext.create(browser, **context_options)
        return cls(context, settings, run_id=run_id)

    @property
    def page(self) -> "IPage":
        """The context's active page at call time."""
        return self.context.page

    @property
    def selectors(self) -> "PortalSelectors":
        return self.settings.portal.selectors

    def capability(self, capability_type: Type[C]) -> C:
        """
        Get (or create) a capability bound to this session.

        Args:
            capability_type: Capability class

        Returns:
            The session's instance of that capability
        """
        instance = self._capabilities.get(capability_type)
        if instance is None:
            instance = capability_type(self)
            self._capabilities[capability_type] = instance
        return instance  # type: ignore[return-value]

    async def screenshot(self, name: str, step_number: Optional[int] = None) -> Optional[Screenshot]:
        """Best-effort screenshot of the active page."""
        return await self.screenshots.capture(self.page, name, step_number=step_number)

    async def close(self) -> None:
        await self.context.close()


class Capability:
    """
    Base for page behaviour composed onto a PageSession.

    ``last_failure`` describes why the most recent operation returned a
    negative result, for scenario reports.
    """

    def __init__(self, session: PageSession):
        self.session = session
        self.last_failure: Optional[str] = None

    @property
    def page(self) -> "IPage":
        return self.session.page

    @property
    def resolver(self) -> ElementResolver:
        return self.session.resolver

    @property
    def executor(self) -> ActionExecutor:
        return self.session.executor

    @property
    def waiter(self) -> PageStateWaiter:
        return self.session.waiter

    @property
    def selectors(self) -> "PortalSelectors":
        return self.session.selectors

    def fail(self, reason: str) -> bool:
        """Record why an operation failed and return False."""
        self.last_failure = reason
        logger.info(f"{type(self).__name__}: {reason}")
        return False

    def succeed(self) -> bool:
        self.last_failure = None
        return True

    async def screenshot(self, name: str) -> Optional[Screenshot]:
        return await self.session.screenshot(slugify(name))
