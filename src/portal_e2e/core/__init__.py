"""
Core module - Resilient element resolution and action protocol.

Components:
- PageContext: the single active tab of a test
- ElementResolver: ordered strategies from target to live element
- ActionExecutor: native -> force -> script action chain
- PageStateWaiter: load-state, visibility and count-stability waits
"""

from portal_e2e.core.targets import (
    AttributeTarget,
    CssListTarget,
    ElementRef,
    RoleTarget,
    Target,
    TextTarget,
)
from portal_e2e.core.context import PageContext
from portal_e2e.core.resolver import ElementResolver, Resolution, ResolutionStrategy
from portal_e2e.core.executor import (
    ActionExecutor,
    ActionResult,
    Click,
    ExecutionStrategy,
    Fill,
    ScrollIntoView,
)
from portal_e2e.core.waiter import (
    DomReady,
    ElementCountStable,
    ElementVisible,
    NetworkIdle,
    PageLoaded,
    PageStateWaiter,
    StabilityState,
    StabilityTracker,
    WaitCondition,
)

__all__ = [
    # Targets
    "AttributeTarget",
    "CssListTarget",
    "ElementRef",
    "RoleTarget",
    "Target",
    "TextTarget",
    # Context
    "PageContext",
    # Resolver
    "ElementResolver",
    "Resolution",
    "ResolutionStrategy",
    # Executor
    "ActionExecutor",
    "ActionResult",
    "Click",
    "ExecutionStrategy",
    "Fill",
    "ScrollIntoView",
    # Waiter
    "DomReady",
    "ElementCountStable",
    "ElementVisible",
    "NetworkIdle",
    "PageLoaded",
    "PageStateWaiter",
    "StabilityState",
    "StabilityTracker",
    "WaitCondition",
]
