"""
Pages module - Portal page behaviour composed as capabilities.

A PageSession wires one test's context, resolver, executor, waiter and
screenshots together; capabilities add page behaviour on top.
"""

from portal_e2e.pages.session import Capability, PageSession
from portal_e2e.pages.navigable import Navigable
from portal_e2e.pages.login import LoginCapability
from portal_e2e.pages.cards import CardContent, CardSearchCapability
from portal_e2e.pages.settings_menu import SettingsMenuCapability
from portal_e2e.pages.requirements import Requirement, RequirementsCapability

__all__ = [
    "Capability",
    "PageSession",
    "Navigable",
    "LoginCapability",
    "CardContent",
    "CardSearchCapability",
    "SettingsMenuCapability",
    "Requirement",
    "RequirementsCapability",
]
