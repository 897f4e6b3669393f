"""
Navigable - Behaviour every portal page shares.
"""

from typing import Optional
import logging

from portal_e2e.core import CssListTarget, DomReady, NetworkIdle, PageLoaded
from portal_e2e.exceptions import BrowserError, TransportError
from portal_e2e.pages.session import Capability

logger = logging.getLogger(__name__)


PAGE_TEXT_JS = "() => document.body ? document.body.innerText : ''"

_LOAD_CONDITIONS = {
    "domcontentloaded": DomReady,
    "networkidle": NetworkIdle,
    "load": PageLoaded,
}


class Navigable(Capability):
    """
    Navigation, load-state waits and page inspection.

    Example:
        >>> nav = session.capability(Navigable)
        >>> await nav.goto("https://portal.example.edu/")
        >>> page = await nav.follow_navigation()
    """

    async def goto(self, url: str, wait_until: str = "domcontentloaded") -> None:
        """
        Navigate the active page.

        Raises:
            NavigationError: if the navigation itself fails
        """
        logger.info(f"Navigating to {url}")
        await self.page.goto(url, wait_until=wait_until, timeout=self.session.settings.browser.timeout_ms)
        self.session.context.mark_navigated("goto")

    async def title(self) -> str:
        return await self.page.title()

    async def page_text(self) -> str:
        """Rendered text of the page body."""
        text = await self.page.evaluate(PAGE_TEXT_JS)
        return text or ""

    async def wait_for_load_state(self, state: str = "domcontentloaded", timeout_ms: Optional[int] = None) -> bool:
        """
        Wait for a host load state.

        Args:
            state: 'domcontentloaded', 'networkidle' or 'load'
            timeout_ms: Budget, defaults to the waiter's

        Returns:
            True if reached, False on timeout
        """
        condition = _LOAD_CONDITIONS[state]()
        return await self.waiter.wait_for(condition, timeout_ms)

    async def wait(self, ms: int) -> None:
        """Fixed pause, capped at five seconds."""
        if ms > 5000:
            logger.debug(f"Reducing wait from {ms}ms to 5000ms")
        await self.waiter.pause(ms)

    async def dwell(self, ms: int) -> None:
        """Stay on the current page for ``ms`` milliseconds, uncapped."""
        await self.waiter.pause(ms, cap_ms=ms)

    async def follow_navigation(self) -> bool:
        """
        Settle after a click that may have navigated or opened a tab.

        A tab opened by the click becomes the active page. Otherwise the
        current page is given a network-idle settle.

        Returns:
            Whether the resulting page reached DOM-ready / network-idle
        """
        waiter_settings = self.session.settings.waiter
        before = self.page
        page = await self.session.context.switch_to_newest_tab(
            timeout_ms=waiter_settings.new_tab_timeout_ms,
            load_timeout_ms=waiter_settings.dom_ready_timeout_ms,
        )
        if page is not before:
            logger.info(f"Switched to new tab: {page.url}")
            return True

        settled = await self.waiter.wait_for(NetworkIdle(), waiter_settings.network_idle_timeout_ms)
        # content swapped in place fires no navigation event
        self.session.context.mark_navigated("click settled")
        return settled

    async def is_loaded(self, title_keywords: tuple = ("Dashboard", "Portal", "Ellucian")) -> bool:
        """
        Loose "some page is showing" check.

        True if the main content area is present, the title contains one
        of ``title_keywords``, or the body has any text.
        """
        if await self.resolver.resolve(CssListTarget(self.selectors.main_content)) is not None:
            return True
        try:
            title = await self.title()
        except TransportError:
            raise
        except BrowserError as e:
            logger.debug(f"Could not read title: {e.message}")
            title = ""
        if any(keyword in title for keyword in title_keywords):
            return True
        return bool((await self.page_text()).strip())
