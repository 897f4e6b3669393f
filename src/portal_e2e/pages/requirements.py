"""
Requirements - A page listing requirements and their statuses.
"""

from dataclasses import dataclass
from typing import List
import logging

from portal_e2e.core import CssListTarget, DomReady, ElementRef, ElementVisible, NetworkIdle
from portal_e2e.core.targets import normalize_text
from portal_e2e.pages.session import Capability

logger = logging.getLogger(__name__)


@dataclass
class Requirement:
    """One requirement line."""
    text: str
    status: str


class RequirementsCapability(Capability):
    """
    Read requirements and their statuses.

    Example:
        >>> reqs = session.capability(RequirementsCapability)
        >>> await reqs.wait_for_requirements()
        >>> for item in await reqs.get_all_requirement_texts_and_statuses():
        ...     print(item.text, item.status)
    """

    @property
    def content_target(self) -> CssListTarget:
        return CssListTarget(self.selectors.requirements_content)

    @property
    def item_target(self) -> CssListTarget:
        return CssListTarget(self.selectors.requirement_item)

    async def wait_for_requirements(self, timeout_ms: int = 15000) -> bool:
        """
        Wait for DOM, network and the requirements content area.

        The budget is split evenly across the three waits.
        """
        share = timeout_ms // 3
        await self.waiter.wait_for(DomReady(), share)
        await self.waiter.wait_for(NetworkIdle(), share)

        if not await self.waiter.wait_for(ElementVisible(self.content_target), share):
            await self.screenshot("requirements page load error")
            return self.fail(f"requirements content not visible ({self.content_target.describe()})")

        await self.waiter.pause(self.session.settings.waiter.settle_delay_ms)
        count = await self.resolver.count(self.item_target)
        logger.info(f"Found {count} requirement items on the page")
        await self.screenshot("requirements loaded")
        return self.succeed()

    async def get_all_requirements(self) -> List[ElementRef]:
        requirements = await self.resolver.resolve_all(self.item_target)
        logger.info(f"Found {len(requirements)} requirements on the page")
        return requirements

    async def get_requirement_text(self, requirement: ElementRef) -> str:
        return normalize_text(await requirement.element.text_content())

    async def get_requirement_status(self, requirement: ElementRef) -> str:
        """Status label inside a requirement, or 'Unknown'."""
        ref = await self.resolver.resolve(
            CssListTarget(self.selectors.requirement_status), scope=requirement, timeout_ms=1000,
        )
        if ref is None:
            return "Unknown"
        return normalize_text(await ref.element.text_content()) or "Unknown"

    async def get_all_requirement_texts_and_statuses(self) -> List[Requirement]:
        result = []
        for requirement in await self.get_all_requirements():
            result.append(Requirement(
                text=await self.get_requirement_text(requirement),
                status=await self.get_requirement_status(requirement),
            ))
        return result
