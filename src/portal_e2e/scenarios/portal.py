"""
Portal Scenarios - The business flows the suite exists to check.

Every scenario starts with the same sign-in steps and then drives
cards, menus and requirement pages through the capabilities.

Example:
    >>> scenario = build_scenario("settings_menu", settings, card="International Student")
    >>> report = await ScenarioRunner(session).run(scenario)
"""

from typing import Any, Callable, Dict, Optional
import inspect
import logging

from portal_e2e.config import Settings
from portal_e2e.exceptions import ConfigurationError
from portal_e2e.pages import (
    CardSearchCapability,
    LoginCapability,
    Navigable,
    RequirementsCapability,
    SettingsMenuCapability,
)
from portal_e2e.pages.session import PageSession
from portal_e2e.scenarios.runner import Scenario, StepOutcome

logger = logging.getLogger(__name__)


def _outcome(capability: Any, ok: bool) -> StepOutcome:
    return StepOutcome(ok, None if ok else capability.last_failure)


def add_login_steps(scenario: Scenario, settings: Settings) -> Scenario:
    """Append navigate + sign-in + settle. Fails fast on missing credentials."""
    portal = settings.portal.require()
    url = portal.url
    username = portal.username
    password = portal.password.get_secret_value()

    @scenario.step("log in", screenshot=True)
    async def log_in(session: PageSession) -> StepOutcome:
        login = session.capability(LoginCapability)
        ok = await login.login_and_wait(url, username, password, remember_me=portal.remember_me)
        if not ok:
            error = await login.get_error_message()
            if error:
                return StepOutcome(False, f"{login.last_failure}; portal says: {error}")
        return _outcome(login, ok)

    return scenario


def add_cards_steps(scenario: Scenario) -> Scenario:
    @scenario.step("wait for portal cards")
    async def wait_for_cards(session: PageSession) -> StepOutcome:
        cards = session.capability(CardSearchCapability)
        return _outcome(cards, await cards.wait_for_cards())

    return scenario


def add_follow_step(scenario: Scenario, name: str = "follow navigation") -> Scenario:
    @scenario.step(name, screenshot=True)
    async def follow(session: PageSession) -> bool:
        await session.capability(Navigable).follow_navigation()
        return True

    return scenario


def add_dwell_step(scenario: Scenario, dwell_ms: int) -> Scenario:
    if dwell_ms <= 0:
        return scenario

    @scenario.step(f"stay {dwell_ms}ms on page", screenshot=True)
    async def dwell(session: PageSession) -> bool:
        await session.capability(Navigable).dwell(dwell_ms)
        return True

    return scenario


def login_scenario(settings: Settings) -> Scenario:
    """Sign in and check the landing page shows something."""
    scenario = Scenario("login", description="Sign in and reach the portal")
    add_login_steps(scenario, settings)

    @scenario.step("landing page loaded")
    async def landing(session: PageSession) -> StepOutcome:
        nav = session.capability(Navigable)
        if await nav.is_loaded():
            session.metadata["title"] = await nav.title()
            return StepOutcome(True)
        return StepOutcome(False, "landing page shows no content")

    return scenario


def portal_cards_scenario(settings: Settings) -> Scenario:
    """Sign in, wait for the cards and list them."""
    scenario = Scenario("portal_cards", description="List portal card titles and contents")
    add_login_steps(scenario, settings)
    add_cards_steps(scenario)

    @scenario.step("read card contents")
    async def read_cards(session: PageSession) -> StepOutcome:
        contents = await session.capability(CardSearchCapability).get_all_card_contents()
        session.metadata["cards"] = [{"title": c.title, "content": c.content} for c in contents]
        if not contents:
            return StepOutcome(False, "no cards found")
        return StepOutcome(True)

    return scenario


def open_card_scenario(settings: Settings, card: str = "International Student", dwell_ms: int = 0) -> Scenario:
    """Sign in and open a card by name."""
    scenario = Scenario("open_card", description=f"Open the '{card}' card")
    add_login_steps(scenario, settings)
    add_cards_steps(scenario)

    @scenario.step(f"click card {card}")
    async def click_card(session: PageSession) -> StepOutcome:
        cards = session.capability(CardSearchCapability)
        return _outcome(cards, await cards.click_card(card))

    add_follow_step(scenario)
    add_dwell_step(scenario, dwell_ms)
    return scenario


def card_button_scenario(
    settings: Settings,
    card: str = "International Portal",
    button: Optional[str] = "GO TO DASHBOARD",
    target_card: Optional[str] = None,
    target_button: Optional[str] = None,
    dwell_ms: int = 10000,
) -> Scenario:
    """
    Sign in, press a button on a card, then optionally press a button on
    a card of the page it leads to.
    """
    scenario = Scenario("card_button", description=f"Press '{button}' on '{card}'")
    add_login_steps(scenario, settings)
    add_cards_steps(scenario)

    @scenario.step(f"click {button or 'first button'} on {card}")
    async def click_button(session: PageSession) -> StepOutcome:
        cards = session.capability(CardSearchCapability)
        return _outcome(cards, await cards.click_card_button(card, button, click_card_if_no_button=True))

    add_follow_step(scenario)

    if target_card:
        @scenario.step("dashboard loaded")
        async def dashboard(session: PageSession) -> StepOutcome:
            cards = session.capability(CardSearchCapability)
            if not await cards.wait_for_cards():
                logger.warning(f"Dashboard cards did not settle: {cards.last_failure}")
            if await session.capability(Navigable).is_loaded():
                return StepOutcome(True)
            return StepOutcome(False, "dashboard shows no content")

        @scenario.step(f"click {target_button or 'card'} on {target_card}")
        async def click_target(session: PageSession) -> StepOutcome:
            cards = session.capability(CardSearchCapability)
            if target_button:
                ok = await cards.click_card_button(target_card, target_button, click_card_if_no_button=True)
            else:
                ok = await cards.click_card(target_card)
            return _outcome(cards, ok)

        add_follow_step(scenario, "follow navigation to target")

    add_dwell_step(scenario, dwell_ms)
    return scenario


def card_icon_scenario(
    settings: Settings,
    card: str = "International Student",
    icon_selector: Optional[str] = None,
) -> Scenario:
    """Sign in and click the icon on a card."""
    scenario = Scenario("card_icon", description=f"Click the icon on '{card}'")
    add_login_steps(scenario, settings)
    add_cards_steps(scenario)

    @scenario.step(f"click icon on {card}")
    async def click_icon(session: PageSession) -> StepOutcome:
        cards = session.capability(CardSearchCapability)
        return _outcome(cards, await cards.click_card_icon(card, icon_selector, click_card_if_no_icon=True))

    add_follow_step(scenario)
    return scenario


def settings_menu_scenario(
    settings: Settings,
    card: str = "International Student",
    menu_item: str = "Portal Features",
) -> Scenario:
    """Open a card, then a settings menu entry from its sidebar."""
    scenario = Scenario("settings_menu", description=f"Open '{menu_item}' from the settings of '{card}'")
    add_login_steps(scenario, settings)
    add_cards_steps(scenario)

    @scenario.step(f"click card {card}")
    async def click_card(session: PageSession) -> StepOutcome:
        cards = session.capability(CardSearchCapability)
        return _outcome(cards, await cards.click_card(card))

    add_follow_step(scenario)

    @scenario.step("click settings icon")
    async def click_settings(session: PageSession) -> StepOutcome:
        menu = session.capability(SettingsMenuCapability)
        return _outcome(menu, await menu.click_settings_icon())

    @scenario.step(f"click {menu_item}", required=False)
    async def click_item(session: PageSession) -> StepOutcome:
        menu = session.capability(SettingsMenuCapability)
        return _outcome(menu, await menu.click_menu_item(menu_item))

    @scenario.step("content rendered", screenshot=True)
    async def content(session: PageSession) -> StepOutcome:
        menu = session.capability(SettingsMenuCapability)
        return _outcome(menu, await menu.wait_for_content())

    return scenario


def requirements_scenario(
    settings: Settings,
    card: str = "International Portal",
    button: Optional[str] = "GO TO DASHBOARD",
    requirements_card: str = "Requirements",
    dwell_ms: int = 5000,
) -> Scenario:
    """Reach a requirements page via the dashboard and read it."""
    scenario = Scenario("requirements", description=f"Read requirements from '{requirements_card}'")
    add_login_steps(scenario, settings)
    add_cards_steps(scenario)

    @scenario.step(f"click {button or 'first button'} on {card}")
    async def click_button(session: PageSession) -> StepOutcome:
        cards = session.capability(CardSearchCapability)
        return _outcome(cards, await cards.click_card_button(card, button, click_card_if_no_button=True))

    add_follow_step(scenario)

    @scenario.step(f"click card {requirements_card}")
    async def click_requirements(session: PageSession) -> StepOutcome:
        cards = session.capability(CardSearchCapability)
        return _outcome(cards, await cards.click_card(requirements_card))

    add_follow_step(scenario, "follow navigation to requirements")

    @scenario.step("requirements loaded", screenshot=True)
    async def loaded(session: PageSession) -> StepOutcome:
        reqs = session.capability(RequirementsCapability)
        return _outcome(reqs, await reqs.wait_for_requirements())

    @scenario.step("read requirements", required=False)
    async def read(session: PageSession) -> StepOutcome:
        items = await session.capability(RequirementsCapability).get_all_requirement_texts_and_statuses()
        session.metadata["requirements"] = [{"text": r.text, "status": r.status} for r in items]
        return StepOutcome(bool(items), None if items else "no requirement items found")

    add_dwell_step(scenario, dwell_ms)
    return scenario


ScenarioFactory = Callable[..., Scenario]

SCENARIOS: Dict[str, ScenarioFactory] = {
    "login": login_scenario,
    "portal_cards": portal_cards_scenario,
    "open_card": open_card_scenario,
    "card_button": card_button_scenario,
    "card_icon": card_icon_scenario,
    "settings_menu": settings_menu_scenario,
    "requirements": requirements_scenario,
}


def build_scenario(name: str, settings: Settings, **options: Any) -> Scenario:
    """
    Build a registered scenario.

    Args:
        name: Key of ``SCENARIOS``
        settings: Loaded settings (portal credentials are required)
        **options: Scenario keyword arguments; None values and options
            the scenario does not take are dropped

    Raises:
        ConfigurationError: for an unknown scenario name
        ConfigurationMissingError: when portal url/username/password are unset
    """
    factory = SCENARIOS.get(name)
    if factory is None:
        raise ConfigurationError(f"Unknown scenario '{name}'", {"available": sorted(SCENARIOS)})
    accepted = inspect.signature(factory).parameters
    kwargs = {k: v for k, v in options.items() if v is not None and k in accepted}
    return factory(settings, **kwargs)
