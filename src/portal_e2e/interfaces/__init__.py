"""
Interfaces module - Abstract base classes for the automation host.

This module defines the contract that browser implementations must follow
to be driven by the resolver, executor and waiter.
"""

from portal_e2e.interfaces.browser import (
    IBrowser,
    IBrowserContext,
    IPage,
    IElement,
    IQueryScope,
    BrowserType,
)

__all__ = [
    "IBrowser",
    "IBrowserContext",
    "IPage",
    "IElement",
    "IQueryScope",
    "BrowserType",
]
