"""
Action Executor - Perform an action on a resolved element.

Every action runs through a fixed fallback chain, each step at most once:

    NATIVE  - host action with actionability checks
    FORCE   - host action skipping actionability checks, only when the
              native attempt failed because something covers the element
    SCRIPT  - synthetic event dispatch / value setter in the page

The executor never waits for navigation; a click that navigates returns
as soon as the click itself went through.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union, TYPE_CHECKING
import logging
import time

from portal_e2e.core.targets import ElementRef
from portal_e2e.exceptions import BrowserError, TransportError
from portal_e2e.utils.events import log_event

if TYPE_CHECKING:
    from portal_e2e.interfaces.browser import IElement

logger = logging.getLogger(__name__)


class ExecutionStrategy(Enum):
    """How an action finally went through."""
    NATIVE = "native"
    FORCE = "force"
    SCRIPT = "script"
    NONE = "none"


@dataclass(frozen=True)
class Click:
    """Click the element."""

    def describe(self) -> str:
        return "click"


@dataclass(frozen=True)
class Fill:
    """Replace the element's value with text."""
    text: str

    def describe(self) -> str:
        return "fill"


@dataclass(frozen=True)
class ScrollIntoView:
    """Scroll the element into the viewport."""

    def describe(self) -> str:
        return "scroll_into_view"


Action = Union[Click, Fill, ScrollIntoView]


@dataclass
class ActionResult:
    """Outcome of one ``act`` call."""
    succeeded: bool
    strategy_used: ExecutionStrategy
    action: str = ""
    error: Optional[str] = None
    attempts: List[ExecutionStrategy] = field(default_factory=list)
    duration_ms: float = 0.0

    def __bool__(self) -> bool:
        return self.succeeded


# Host error fragments meaning "another element sits on top of the target"
OBSTRUCTION_PATTERNS = (
    "intercepts pointer events",
    "not receiving pointer events",
    "element is covered",
    "obscured",
    "outside of the viewport",
    "is not clickable at point",
)


def is_obstruction(error: Optional[str]) -> bool:
    """Classify a native failure as the element being covered."""
    if not error:
        return False
    message = error.lower()
    return any(pattern in message for pattern in OBSTRUCTION_PATTERNS)


DISPATCH_CLICK_JS = r'''
(el) => {
    if (typeof el.click === 'function') {
        el.click();
        return 'click';
    }
    el.dispatchEvent(new MouseEvent('click', {bubbles: true, cancelable: true, view: window}));
    return 'dispatch';
}
'''

SET_VALUE_JS = r'''
(el, value) => {
    if (typeof el.focus === 'function') el.focus();
    const proto = Object.getPrototypeOf(el);
    const descriptor = Object.getOwnPropertyDescriptor(proto, 'value');
    if (descriptor && descriptor.set) {
        descriptor.set.call(el, value);
    } else {
        el.value = value;
    }
    el.dispatchEvent(new Event('input', {bubbles: true}));
    el.dispatchEvent(new Event('change', {bubbles: true}));
    return el.value;
}
'''

SCROLL_INTO_VIEW_JS = r'''
(el) => el.scrollIntoView({block: 'center', inline: 'nearest'})
'''


class ActionExecutor:
    """
    Execute Click / Fill / ScrollIntoView on ElementRefs.

    Example:
        >>> executor = ActionExecutor()
        >>> result = await executor.act(ref, Fill("alice"))
        >>> result.succeeded, result.strategy_used
        (True, <ExecutionStrategy.NATIVE: 'native'>)
    """

    def __init__(self, action_timeout_ms: int = 5000):
        """
        Initialize the executor.

        Args:
            action_timeout_ms: Timeout handed to each native/force host call
        """
        self.action_timeout_ms = action_timeout_ms

    async def click(self, ref: ElementRef, force_if_covered: bool = True) -> ActionResult:
        return await self.act(ref, Click(), force_if_covered)

    async def fill(self, ref: ElementRef, text: str, force_if_covered: bool = True) -> ActionResult:
        return await self.act(ref, Fill(text), force_if_covered)

    async def scroll_into_view(self, ref: ElementRef) -> ActionResult:
        return await self.act(ref, ScrollIntoView())

    async def act(self, ref: ElementRef, action: Action, force_if_covered: bool = True) -> ActionResult:
        """
        Run an action through the native -> force -> script chain.

        Args:
            ref: Element to act on
            action: Click(), Fill(text) or ScrollIntoView()
            force_if_covered: Allow the force attempt after an obstruction

        Returns:
            ActionResult; ``strategy_used`` is the attempt that succeeded,
            or the last one that failed

        Raises:
            TransportError: if the page is gone
        """
        start = time.monotonic()
        name = action.describe()
        result = ActionResult(succeeded=False, strategy_used=ExecutionStrategy.NONE, action=name)

        if not ref.is_alive:
            result.error = f"stale element reference {ref.description!r}"
            log_event(logger, logging.WARNING, "act.failed", action=name, target=ref.description, reason="dead ref")
            return result

        element = ref.element

        error = await self._attempt(result, ExecutionStrategy.NATIVE, element, action, ref)
        if error is None:
            return self._finish(result, start, ref)

        if force_if_covered and is_obstruction(error) and not isinstance(action, ScrollIntoView):
            error = await self._attempt(result, ExecutionStrategy.FORCE, element, action, ref)
            if error is None:
                return self._finish(result, start, ref)

        error = await self._attempt(result, ExecutionStrategy.SCRIPT, element, action, ref)
        if error is None:
            return self._finish(result, start, ref)

        result.error = error
        return self._finish(result, start, ref)

    async def _attempt(
        self,
        result: ActionResult,
        strategy: ExecutionStrategy,
        element: "IElement",
        action: Action,
        ref: ElementRef,
    ) -> Optional[str]:
        """Run one strategy; return None on success, else the error text."""
        result.attempts.append(strategy)
        result.strategy_used = strategy
        log_event(
            logger, logging.DEBUG, "act.attempted",
            action=result.action, strategy=strategy.value, target=ref.description,
        )
        try:
            if strategy is ExecutionStrategy.SCRIPT:
                await self._run_script(element, action)
            else:
                await self._run_native(element, action, force=strategy is ExecutionStrategy.FORCE)
            return await self._verify(element, action)
        except TransportError:
            raise
        except BrowserError as e:
            logger.debug(f"{result.action} via {strategy.value} failed: {e.message}")
            return e.message

    async def _run_native(self, element: "IElement", action: Action, force: bool) -> None:
        options = {"timeout": self.action_timeout_ms}
        if force:
            options["force"] = True
        if isinstance(action, Click):
            await element.click(**options)
        elif isinstance(action, Fill):
            await element.fill(action.text, **options)
        else:
            await element.scroll_into_view(timeout=self.action_timeout_ms)

    async def _run_script(self, element: "IElement", action: Action) -> None:
        if isinstance(action, Click):
            await element.evaluate(DISPATCH_CLICK_JS)
        elif isinstance(action, Fill):
            await element.evaluate(SET_VALUE_JS, action.text)
        else:
            await element.evaluate(SCROLL_INTO_VIEW_JS)

    async def _verify(self, element: "IElement", action: Action) -> Optional[str]:
        if not isinstance(action, Fill):
            return None
        value = await element.input_value()
        if value != action.text:
            return f"value is {value!r} after fill, expected {action.text!r}"
        return None

    def _finish(self, result: ActionResult, start: float, ref: ElementRef) -> ActionResult:
        result.duration_ms = (time.monotonic() - start) * 1000
        result.succeeded = result.error is None
        if result.succeeded:
            log_event(
                logger, logging.DEBUG, "act.succeeded",
                action=result.action, strategy=result.strategy_used.value,
                target=ref.description, attempts=len(result.attempts),
            )
        else:
            log_event(
                logger, logging.WARNING, "act.failed",
                action=result.action, strategy=result.strategy_used.value,
                target=ref.description, error=result.error,
            )
        return result
