"""
Card Search - Portal and dashboard pages built from cards.

A card is located by name: first among card titles, then anywhere in
the card's text. Buttons and icons are then looked up inside the card.
"""

from dataclasses import dataclass
from typing import List, Optional
import logging

from portal_e2e.core import (
    CssListTarget,
    ElementCountStable,
    ElementRef,
    ElementVisible,
    RoleTarget,
)
from portal_e2e.core.targets import compile_pattern, normalize_text
from portal_e2e.pages.session import Capability

logger = logging.getLogger(__name__)


@dataclass
class CardContent:
    """Title and body text of one card."""
    title: str
    content: str


class CardSearchCapability(Capability):
    """
    Find cards by name and click them, their buttons or their icons.

    Example:
        >>> cards = session.capability(CardSearchCapability)
        >>> await cards.wait_for_cards()
        >>> await cards.click_card_button("International Portal", "GO TO DASHBOARD",
        ...                               click_card_if_no_button=True)
    """

    def __init__(self, session):
        super().__init__(session)
        self._loaded_generation: Optional[int] = None

    @property
    def card_target(self) -> CssListTarget:
        return CssListTarget(self.selectors.card)

    async def wait_for_cards(self, timeout_ms: Optional[int] = None) -> bool:
        """
        Wait until the number of cards stops changing.

        Args:
            timeout_ms: Budget for the stability wait

        Returns:
            True if a non-zero card count held steady
        """
        waiter_settings = self.session.settings.waiter
        timeout_ms = timeout_ms or waiter_settings.stability_timeout_ms

        if not await self.waiter.wait_for(
            ElementVisible(CssListTarget(self.selectors.main_content)), timeout_ms // 3
        ):
            logger.warning("Main content not visible, still waiting for cards")

        stable = await self.waiter.wait_for(
            ElementCountStable(
                self.card_target,
                required_stable_iterations=waiter_settings.required_stable_iterations,
            ),
            timeout_ms,
        )
        if not stable:
            await self.screenshot("portal cards not stable")
            return self.fail(f"card count did not stabilize within {timeout_ms}ms ({self.card_target.describe()})")

        await self.waiter.pause(waiter_settings.settle_delay_ms)
        self._loaded_generation = self.session.context.generation
        await self.screenshot("portal cards loaded")
        return self.succeed()

    async def _ensure_loaded(self) -> None:
        if self._loaded_generation != self.session.context.generation:
            await self.wait_for_cards()

    async def get_all_cards(self) -> List[ElementRef]:
        """Every visible card, in document order."""
        await self._ensure_loaded()
        cards = await self.resolver.resolve_all(self.card_target)
        logger.info(f"Found {len(cards)} cards")
        return cards

    async def _text_in(self, card: ElementRef, selectors: List[str]) -> Optional[str]:
        ref = await self.resolver.resolve(CssListTarget(selectors), scope=card, timeout_ms=1000)
        if ref is None:
            return None
        return normalize_text(await ref.element.text_content())

    async def get_card_content(self, card: ElementRef) -> CardContent:
        title = await self._text_in(card, self.selectors.card_title)
        content = await self._text_in(card, self.selectors.card_content)
        return CardContent(title=title or "Unknown Title", content=content or "")

    async def get_all_card_contents(self) -> List[CardContent]:
        return [await self.get_card_content(card) for card in await self.get_all_cards()]

    async def find_card(self, card_name: str) -> Optional[ElementRef]:
        """
        Locate a card by name.

        Titles are searched first, then the full card text. Matching is a
        case-insensitive substring match.

        Returns:
            The card, scrolled into view, or None
        """
        pattern = compile_pattern(card_name)
        cards = await self.get_all_cards()

        match: Optional[ElementRef] = None
        for card in cards:
            title = await self._text_in(card, self.selectors.card_title)
            if title and pattern.search(title):
                match = card
                break

        if match is None:
            for card in cards:
                text = normalize_text(await card.element.text_content())
                if pattern.search(text):
                    match = card
                    break

        if match is None:
            self.fail(f"card {card_name!r} not found among {len(cards)} cards")
            await self.screenshot("card not found")
            return None

        await self.executor.scroll_into_view(match)
        await self.screenshot(f"{card_name} card found")
        self.succeed()
        return match

    async def _click(self, ref: ElementRef, what: str) -> bool:
        result = await self.executor.click(ref, force_if_covered=True)
        if not result.succeeded:
            return self.fail(f"{what} click failed via {result.strategy_used.value}: {result.error}")
        await self.waiter.pause(self.session.settings.waiter.settle_delay_ms)
        return self.succeed()

    async def click_card(self, card_name: str) -> bool:
        """Click a card by name."""
        card = await self.find_card(card_name)
        if card is None:
            return False
        return await self._click(card, f"card {card_name!r}")

    async def click_card_button(
        self,
        card_name: str,
        button_text: Optional[str] = None,
        click_card_if_no_button: bool = False,
    ) -> bool:
        """
        Click a button on a card.

        Lookup order: a card button whose text matches ``button_text``,
        then any page button with that accessible name, then (when
        ``click_card_if_no_button``) the card itself. Without
        ``button_text`` the card's first button is clicked.

        Returns:
            True if something was clicked
        """
        card = await self.find_card(card_name)
        if card is None:
            return False

        buttons = await self.resolver.resolve_all(CssListTarget(self.selectors.card_button), scope=card, timeout_ms=2000)

        if button_text:
            pattern = compile_pattern(button_text)
            for button in buttons:
                if pattern.search(normalize_text(await button.element.text_content())):
                    return await self._click(button, f"button {button_text!r}")

            page_button = await self.resolver.resolve(RoleTarget("button", button_text))
            if page_button is not None:
                logger.info(f"Button {button_text!r} not inside card, using page-wide match")
                return await self._click(page_button, f"button {button_text!r}")
        elif buttons:
            return await self._click(buttons[0], f"first button of {card_name!r}")

        if click_card_if_no_button:
            logger.info(f"No button on card {card_name!r}, clicking the card")
            return await self._click(card, f"card {card_name!r}")

        await self.screenshot("button not found")
        return self.fail(f"button {button_text or '<any>'!r} not found on card {card_name!r}")

    async def click_card_icon(
        self,
        card_name: str,
        icon_selector: Optional[str] = None,
        click_card_if_no_icon: bool = False,
    ) -> bool:
        """
        Click an icon inside a card.

        A visible icon gets the normal click chain. When every icon-like
        child is hidden, the first one still gets clicked; the executor
        falls through to a script-dispatched click.

        Returns:
            True if something was clicked
        """
        card = await self.find_card(card_name)
        if card is None:
            return False

        selectors = [icon_selector] if icon_selector else list(self.selectors.card_icon)
        icon = await self.resolver.resolve(CssListTarget(selectors), scope=card, timeout_ms=2000)
        if icon is not None:
            return await self._click(icon, f"icon of {card_name!r}")

        for selector in selectors:
            hidden = await card.element.query_selector_all(selector)
            if hidden:
                ref = ElementRef(
                    hidden[0], self.session.context, card.generation,
                    strategy="hidden", description=f"css={selector}",
                )
                return await self._click(ref, f"hidden icon of {card_name!r}")

        if click_card_if_no_icon:
            return await self._click(card, f"card {card_name!r}")

        await self.screenshot("icon not found")
        return self.fail(f"no icon found on card {card_name!r}")
