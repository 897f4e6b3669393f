"""
Page State Waiter - Wait until the page reaches a condition.

Handles:
- DOM ready / network idle / load events
- Element count stabilization (cards or lists rendered incrementally)
- Element visibility

Waits return True when the condition holds and False when the budget
runs out. "Not ready" is never an exception; only TransportError
propagates.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Union, TYPE_CHECKING
import asyncio
import logging
import time

from portal_e2e.core.targets import Target
from portal_e2e.exceptions import BrowserError, TransportError
from portal_e2e.utils.events import log_event

if TYPE_CHECKING:
    from portal_e2e.core.context import PageContext
    from portal_e2e.core.resolver import ElementResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DomReady:
    """The DOMContentLoaded event has fired."""
    timeout_ms: Optional[int] = None
    poll_interval_ms: Optional[int] = None

    def describe(self) -> str:
        return "dom_ready"


@dataclass(frozen=True)
class NetworkIdle:
    """No network connections for at least 500 ms."""
    timeout_ms: Optional[int] = None
    poll_interval_ms: Optional[int] = None

    def describe(self) -> str:
        return "network_idle"


@dataclass(frozen=True)
class PageLoaded:
    """The load event has fired."""
    timeout_ms: Optional[int] = None
    poll_interval_ms: Optional[int] = None

    def describe(self) -> str:
        return "page_loaded"


@dataclass(frozen=True)
class ElementCountStable:
    """The number of matches stopped changing."""
    target: Target
    required_stable_iterations: int = 3
    timeout_ms: Optional[int] = None
    poll_interval_ms: Optional[int] = None

    def describe(self) -> str:
        return f"count_stable({self.target.describe()})"


@dataclass(frozen=True)
class ElementVisible:
    """At least one visible element matches."""
    target: Target
    timeout_ms: Optional[int] = None
    poll_interval_ms: Optional[int] = None

    def describe(self) -> str:
        return f"visible({self.target.describe()})"


WaitCondition = Union[DomReady, NetworkIdle, PageLoaded, ElementCountStable, ElementVisible]

LOAD_STATES = {
    DomReady: "domcontentloaded",
    NetworkIdle: "networkidle",
    PageLoaded: "load",
}


class StabilityState(Enum):
    """Phases of an element-count stability wait."""
    COUNTING = "counting"
    STABILIZING = "stabilizing"
    STABLE = "stable"
    TIMED_OUT = "timed_out"


class StabilityTracker:
    """
    Decide when a polled element count has settled.

    The count is stable once the same non-zero value has been observed
    on ``required`` consecutive polls. Any change, or a zero, starts
    over. For ``required=3`` the sequence 0, 3, 5, 5, 5 becomes stable
    on the fifth poll.
    """

    def __init__(self, required: int = 3):
        if required < 1:
            raise ValueError("required must be at least 1")
        self.required = required
        self.previous: Optional[int] = None
        self.stable_polls = 0
        self.history: List[int] = []
        self.state = StabilityState.COUNTING

    @property
    def run_length(self) -> int:
        """Consecutive polls that saw the current non-zero count."""
        if not self.previous:
            return 0
        return self.stable_polls + 1

    def observe(self, count: int) -> StabilityState:
        """Record one poll and return the new state."""
        if self.state in (StabilityState.STABLE, StabilityState.TIMED_OUT):
            return self.state

        self.history.append(count)
        if count > 0 and count == self.previous:
            self.stable_polls += 1
        else:
            self.stable_polls = 0
            self.previous = count

        if self.run_length >= self.required:
            self.state = StabilityState.STABLE
        elif self.stable_polls > 0:
            self.state = StabilityState.STABILIZING
        else:
            self.state = StabilityState.COUNTING
        return self.state

    def mark_timed_out(self) -> StabilityState:
        if self.state is not StabilityState.STABLE:
            self.state = StabilityState.TIMED_OUT
        return self.state


class PageStateWaiter:
    """
    Wait for page conditions on the context's active page.

    Example:
        >>> waiter = PageStateWaiter(context, resolver)
        >>> await waiter.wait_for(DomReady(timeout_ms=10000))
        True
        >>> await waiter.wait_for(ElementCountStable(CssListTarget(card_selectors)))
        True
    """

    def __init__(
        self,
        context: "PageContext",
        resolver: "ElementResolver",
        poll_interval_ms: int = 1000,
        default_timeout_ms: int = 10000,
        stability_timeout_ms: int = 30000,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize the waiter.

        Args:
            context: Page context whose active page is observed
            resolver: Resolver used for element conditions
            poll_interval_ms: Fixed interval between polls
            default_timeout_ms: Budget for load-state and visibility waits
            stability_timeout_ms: Budget for count-stability waits
            clock: Monotonic clock in seconds
            sleep: Async sleep taking seconds
        """
        self._context = context
        self._resolver = resolver
        self.poll_interval_ms = poll_interval_ms
        self.default_timeout_ms = default_timeout_ms
        self.stability_timeout_ms = stability_timeout_ms
        self._clock = clock
        self._sleep = sleep

    def _timeout_for(self, condition: WaitCondition, timeout_ms: Optional[int]) -> int:
        if timeout_ms is not None:
            return timeout_ms
        if condition.timeout_ms is not None:
            return condition.timeout_ms
        if isinstance(condition, ElementCountStable):
            return self.stability_timeout_ms
        return self.default_timeout_ms

    def _interval_for(self, condition: WaitCondition) -> int:
        if condition.poll_interval_ms is not None:
            return condition.poll_interval_ms
        return self.poll_interval_ms

    async def wait_for(self, condition: WaitCondition, timeout_ms: Optional[int] = None) -> bool:
        """
        Wait until a condition holds.

        Args:
            condition: What to wait for
            timeout_ms: Budget overriding the condition's own

        Returns:
            True if the condition was reached, False on timeout

        Raises:
            TransportError: if the page is gone
        """
        timeout = self._timeout_for(condition, timeout_ms)
        description = condition.describe()
        log_event(logger, logging.DEBUG, "wait.started", condition=description, timeout_ms=timeout)
        start = self._clock()

        if isinstance(condition, ElementCountStable):
            reached = await self._wait_count_stable(condition, timeout)
        elif isinstance(condition, ElementVisible):
            reached = await self._wait_visible(condition, timeout)
        else:
            reached = await self._wait_load_state(LOAD_STATES[type(condition)], timeout)

        elapsed_ms = (self._clock() - start) * 1000
        if reached:
            log_event(logger, logging.DEBUG, "wait.settled", condition=description, elapsed_ms=f"{elapsed_ms:.0f}")
        else:
            log_event(logger, logging.WARNING, "wait.timed_out", condition=description, timeout_ms=timeout)
        return reached

    async def _wait_load_state(self, state: str, timeout_ms: int) -> bool:
        try:
            await self._context.page.wait_for_load_state(state, timeout=timeout_ms)
            return True
        except TransportError:
            raise
        except BrowserError as e:
            logger.debug(f"Load state {state} not reached: {e.message}")
            return False

    async def _wait_count_stable(self, condition: ElementCountStable, timeout_ms: int) -> bool:
        tracker = StabilityTracker(condition.required_stable_iterations)
        interval = self._interval_for(condition) / 1000
        deadline = self._clock() + timeout_ms / 1000

        while True:
            remaining_ms = max(int((deadline - self._clock()) * 1000), 1)
            count = await self._resolver.count(condition.target, timeout_ms=min(remaining_ms, self._resolver.timeout_ms))
            state = tracker.observe(count)
            logger.debug(f"Element count {count} ({state.value}, run={tracker.run_length})")
            if state is StabilityState.STABLE:
                return True

            now = self._clock()
            if now >= deadline:
                tracker.mark_timed_out()
                logger.debug(f"Count history before timeout: {tracker.history}")
                return False
            await self._sleep(min(interval, deadline - now))

    async def _wait_visible(self, condition: ElementVisible, timeout_ms: int) -> bool:
        interval = self._interval_for(condition) / 1000
        deadline = self._clock() + timeout_ms / 1000

        while True:
            remaining_ms = max(int((deadline - self._clock()) * 1000), 1)
            ref = await self._resolver.resolve(condition.target, timeout_ms=min(remaining_ms, self._resolver.timeout_ms))
            if ref is not None:
                return True

            now = self._clock()
            if now >= deadline:
                return False
            await self._sleep(min(interval, deadline - now))

    async def pause(self, ms: int, cap_ms: int = 5000) -> None:
        """
        Fixed settle delay, capped.

        Args:
            ms: Requested delay in milliseconds
            cap_ms: Upper bound for the delay
        """
        await self._sleep(min(ms, cap_ms) / 1000)

    async def settle_after_navigation(self, timeout_ms: Optional[int] = None) -> bool:
        """
        DOM-ready, then a best-effort network-idle wait.

        Returns:
            Whether the DOM became ready
        """
        ready = await self.wait_for(DomReady(), timeout_ms)
        await self.wait_for(NetworkIdle(), timeout_ms)
        return ready
