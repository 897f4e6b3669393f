"""
Settings Menu - Sidebar settings entry and the menu it opens.
"""

from typing import List, Optional, Sequence
import logging
import re

from portal_e2e.core import (
    AttributeTarget,
    CssListTarget,
    ElementRef,
    ElementVisible,
    RoleTarget,
    Target,
    TextTarget,
)
from portal_e2e.core.targets import compile_pattern, normalize_text
from portal_e2e.pages.session import Capability

logger = logging.getLogger(__name__)


def href_slug(label: str) -> str:
    """'Portal Features' -> 'portal-features'"""
    return re.sub(r"[^a-z0-9]+", "-", label.lower()).strip("-")


class SettingsMenuCapability(Capability):
    """
    Open the sidebar settings menu and pick an entry.

    Both lookups walk an ordered list of targets built from
    ``PortalSelectors``; the first target that resolves is clicked.

    Example:
        >>> menu = session.capability(SettingsMenuCapability)
        >>> await menu.click_settings_icon()
        >>> await menu.click_menu_item("Portal Features")
    """

    def settings_targets(self) -> List[Target]:
        """Where the settings entry may be, most specific first."""
        text = self.selectors.settings_text
        return [
            CssListTarget(self.selectors.settings_icon),
            RoleTarget("link", text),
            RoleTarget("button", text),
            AttributeTarget("class", text.lower()),
            TextTarget(text),
        ]

    def menu_item_targets(self, label: str) -> List[Target]:
        """Where a menu entry labelled ``label`` may be, most specific first."""
        return [
            RoleTarget("menuitem", label),
            RoleTarget("link", label),
            AttributeTarget("href", href_slug(label)),
            TextTarget(label),
        ]

    async def _sidebar_link(self, text: str) -> bool:
        """Click a sidebar link whose text or href mentions ``text``."""
        pattern = compile_pattern(text)
        for link in await self.resolver.resolve_all(CssListTarget(self.selectors.sidebar_links), timeout_ms=2000):
            label = normalize_text(await link.element.text_content())
            href = await link.element.get_attribute("href") or ""
            if pattern.search(label) or pattern.search(href):
                return await self._click(link, f"sidebar link {label or href!r}")
        return False

    async def _click(self, ref: ElementRef, what: str) -> bool:
        result = await self.executor.click(ref, force_if_covered=True)
        if not result.succeeded:
            logger.info(f"{what} click failed via {result.strategy_used.value}: {result.error}")
            return False
        await self.waiter.pause(self.session.settings.waiter.settle_delay_ms)
        return True

    async def click_first(self, targets: Sequence[Target], what: str, timeout_ms: int = 2000) -> bool:
        """
        Click the first target that resolves.

        Args:
            targets: Candidates, tried in order
            what: Name for logs and failure detail
            timeout_ms: Resolver budget per candidate

        Returns:
            True once a candidate was clicked
        """
        for target in targets:
            ref = await self.resolver.resolve(target, timeout_ms=timeout_ms)
            if ref is None:
                continue
            if await self._click(ref, what):
                logger.info(f"Clicked {what} via {target.describe()}")
                return self.succeed()
        return self.fail(f"{what} not found ({len(targets)} candidates tried)")

    async def click_settings_icon(self) -> bool:
        """Open the settings menu from the sidebar."""
        await self.screenshot("before clicking settings")
        if await self._sidebar_link(self.selectors.settings_text):
            await self.screenshot("after clicking settings")
            return self.succeed()

        clicked = await self.click_first(self.settings_targets(), "settings icon")
        await self.screenshot("after clicking settings" if clicked else "settings icon not found")
        return clicked

    async def click_menu_item(self, label: str, fallback_labels: Optional[Sequence[str]] = None) -> bool:
        """
        Click an entry of the opened menu.

        Args:
            label: Entry label, e.g. "Portal Features"
            fallback_labels: Labels to try when ``label`` is not found
                (default: ``PortalSelectors.menu_fallback_labels``)

        Returns:
            True if an entry was clicked
        """
        await self.waiter.pause(self.session.settings.waiter.settle_delay_ms)

        labels = [label, *(fallback_labels if fallback_labels is not None else self.selectors.menu_fallback_labels)]
        for candidate in labels:
            pattern = compile_pattern(candidate)
            for item in await self.resolver.resolve_all(CssListTarget(self.selectors.menu_items), timeout_ms=1000):
                if pattern.search(normalize_text(await item.element.text_content())):
                    if await self._click(item, f"menu item {candidate!r}"):
                        await self.screenshot(f"after clicking {candidate}")
                        return self.succeed()

            if await self.click_first(self.menu_item_targets(candidate), f"menu item {candidate!r}"):
                await self.screenshot(f"after clicking {candidate}")
                return True

        await self.screenshot(f"{label} not found")
        return self.fail(f"menu item {label!r} not found (also tried {labels[1:]})")

    async def wait_for_content(self, timeout_ms: int = 10000) -> bool:
        """Wait for the main content area that the menu entry opened."""
        visible = await self.waiter.wait_for(ElementVisible(CssListTarget(self.selectors.main_content)), timeout_ms)
        if not visible:
            await self.screenshot("content not found")
            return self.fail(f"main content not visible within {timeout_ms}ms")
        await self.waiter.pause(self.session.settings.waiter.settle_delay_ms)
        await self.screenshot("content loaded")
        return self.succeed()
