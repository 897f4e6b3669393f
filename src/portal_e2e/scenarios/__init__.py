"""
Scenarios module - Named business flows and the runner that executes them.
"""

from portal_e2e.scenarios.runner import (
    Scenario,
    ScenarioStep,
    StepOutcome,
    ScenarioRunner,
)
from portal_e2e.scenarios.portal import (
    SCENARIOS,
    build_scenario,
    login_scenario,
    portal_cards_scenario,
    open_card_scenario,
    card_button_scenario,
    card_icon_scenario,
    settings_menu_scenario,
    requirements_scenario,
)

__all__ = [
    "Scenario",
    "ScenarioStep",
    "StepOutcome",
    "ScenarioRunner",
    "SCENARIOS",
    "build_scenario",
    "login_scenario",
    "portal_cards_scenario",
    "open_card_scenario",
    "card_button_scenario",
    "card_icon_scenario",
    "settings_menu_scenario",
    "requirements_scenario",
]
