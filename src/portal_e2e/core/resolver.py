"""
Element Resolver - Multi-Strategy Element Resolution.

Strategies (tried in order, each at most once per call):
1. DIRECT   - Role or attribute match
2. CSS_LIST - Candidate selectors in order; first selector with a visible match wins
3. TEXT     - Case-insensitive text match over a broadened element set
4. SCRIPT   - In-page DOM walk with the same predicate, innermost visible match

The first strategy that yields a visible element wins. Within a strategy
ties are broken by document order. The whole chain is bounded by one
timeout; a strategy still running when the budget runs out is cancelled.

Strategy errors count as "no match", except TransportError, which
always propagates.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Pattern, Tuple, Union, TYPE_CHECKING
import asyncio
import logging
import time

from portal_e2e.core.targets import (
    AttributeTarget,
    CssListTarget,
    ElementRef,
    RoleTarget,
    Target,
    TextTarget,
    normalize_text,
    pattern_to_script_arg,
)
from portal_e2e.exceptions import TransportError
from portal_e2e.utils.events import log_event

if TYPE_CHECKING:
    from portal_e2e.core.context import PageContext
    from portal_e2e.interfaces.browser import IElement, IQueryScope

logger = logging.getLogger(__name__)


class ResolutionStrategy(Enum):
    """Which strategy resolved the target."""
    DIRECT = "direct"       # Role / attribute match
    CSS_LIST = "css_list"   # Candidate selector list
    TEXT = "text"           # Text content over broadened element set
    SCRIPT = "script"       # In-page DOM walk


# CSS families for ARIA roles, implicit and explicit
ROLE_SELECTORS = {
    "button": 'button, [role="button"], input[type="button"], input[type="submit"], input[type="reset"]',
    "link": 'a[href], [role="link"]',
    "textbox": 'input[type="text"], input[type="email"], input[type="search"], input[type="tel"], '
               'input[type="url"], input[type="password"], textarea, [role="textbox"]',
    "checkbox": 'input[type="checkbox"], [role="checkbox"]',
    "menuitem": '[role="menuitem"]',
    "heading": 'h1, h2, h3, h4, h5, h6, [role="heading"]',
    "listitem": 'li, [role="listitem"]',
    "article": 'article, [role="article"]',
    "navigation": 'nav, [role="navigation"]',
    "img": 'img, svg[role="img"], [role="img"]',
    "tab": '[role="tab"]',
}


def role_selector(role: str) -> str:
    """CSS selector for elements carrying an ARIA role."""
    return ROLE_SELECTORS.get(role, f'[role="{role}"]')


# In-page lookup: walk the scope in document order, take the first visible
# match and descend into it while deeper matches exist.
SCRIPT_LOOKUP_JS = r'''
(root, query) => {
    function isVisible(el) {
        const style = window.getComputedStyle(el);
        if (style.display === 'none' || style.visibility === 'hidden') return false;
        const rect = el.getBoundingClientRect();
        return rect.width > 0 && rect.height > 0;
    }
    const re = query.source === null ? null : new RegExp(query.source, query.flags);
    function matches(el) {
        if (query.attr) {
            const value = el.getAttribute(query.attr);
            return value !== null && (re === null || re.test(value));
        }
        const text = (el.textContent || '').replace(/\s+/g, ' ').trim();
        return re !== null && re.test(text);
    }
    const start = root.nodeType === Node.DOCUMENT_NODE ? (root.body || root.documentElement) : root;
    const walker = document.createTreeWalker(start, NodeFilter.SHOW_ELEMENT);
    let node = walker.currentNode;
    let best = null;
    while (node) {
        if (best !== null && !best.contains(node)) break;
        if (matches(node) && isVisible(node)) best = node;
        node = walker.nextNode();
    }
    return best;
}
'''


@dataclass
class Resolution:
    """Outcome of one pass over the strategy list."""
    target: Target
    elements: List["IElement"] = field(default_factory=list)
    strategy: Optional[ResolutionStrategy] = None
    attempted: List[ResolutionStrategy] = field(default_factory=list)
    elapsed_ms: float = 0.0
    timed_out: bool = False

    @property
    def found(self) -> bool:
        return bool(self.elements)

    @property
    def element(self) -> Optional["IElement"]:
        return self.elements[0] if self.elements else None


Scope = Union[ElementRef, "PageContext", None]
StrategyFn = Callable[[Target, "IQueryScope", Optional[int]], Awaitable[Optional[List["IElement"]]]]


class ElementResolver:
    """
    Resolve targets to live elements on the active page.

    The strategy order is plain data (``self.strategies``) and can be
    reordered or trimmed per instance.

    Example:
        >>> resolver = ElementResolver(context)
        >>> ref = await resolver.resolve(TextTarget("International Student"))
        >>> if ref is None:
        ...     print("not found")
    """

    def __init__(
        self,
        context: "PageContext",
        timeout_ms: int = 5000,
        text_tiers: Optional[List[str]] = None,
    ):
        """
        Initialize the resolver.

        Args:
            context: Page context whose active page is searched
            timeout_ms: Default budget for one pass over all strategies
            text_tiers: Broadened element set for the text strategy, most
                specific tier first
        """
        self._context = context
        self.timeout_ms = timeout_ms
        self.text_tiers = text_tiers or [
            'a, button, [role="button"], [role="link"], [role="menuitem"], input[type="submit"]',
            "li, label, h1, h2, h3, h4, h5, h6, span, p, td",
            "div",
        ]
        self.strategies: List[Tuple[ResolutionStrategy, StrategyFn]] = [
            (ResolutionStrategy.DIRECT, self._resolve_direct),
            (ResolutionStrategy.CSS_LIST, self._resolve_css_list),
            (ResolutionStrategy.TEXT, self._resolve_text),
            (ResolutionStrategy.SCRIPT, self._resolve_script),
        ]

    async def resolve(
        self,
        target: Target,
        scope: Scope = None,
        timeout_ms: Optional[int] = None,
    ) -> Optional[ElementRef]:
        """
        Find the first visible element matching a target.

        Args:
            target: What to find
            scope: Element to search inside, or the page context (default:
                the target's own scope, else the whole active page)
            timeout_ms: Budget for the whole chain

        Returns:
            ElementRef, or None when no strategy finds a visible match

        Raises:
            TransportError: if the page is gone
        """
        resolution = await self.resolve_with_trace(target, scope, timeout_ms)
        return self._to_ref(resolution, 0) if resolution.found else None

    async def resolve_with_trace(
        self,
        target: Target,
        scope: Scope = None,
        timeout_ms: Optional[int] = None,
    ) -> Resolution:
        """Like ``resolve`` but return the full Resolution record."""
        return await self._run(target, scope, timeout_ms, limit=1)

    async def resolve_all(
        self,
        target: Target,
        scope: Scope = None,
        timeout_ms: Optional[int] = None,
    ) -> List[ElementRef]:
        """
        All visible matches of the first strategy that finds any.

        Returns:
            ElementRefs in document order (empty when nothing matches)
        """
        resolution = await self._run(target, scope, timeout_ms, limit=None)
        return [self._to_ref(resolution, i) for i in range(len(resolution.elements))]

    async def count(
        self,
        target: Target,
        scope: Scope = None,
        timeout_ms: Optional[int] = None,
    ) -> int:
        """Number of visible matches of the first productive strategy."""
        resolution = await self._run(target, scope, timeout_ms, limit=None, log_outcome=False)
        return len(resolution.elements)

    def _to_ref(self, resolution: Resolution, index: int) -> ElementRef:
        return ElementRef(
            element=resolution.elements[index],
            context=self._context,
            generation=self._context.generation,
            strategy=resolution.strategy.value if resolution.strategy else "",
            description=resolution.target.describe(),
        )

    def _search_root(self, target: Target, scope: Scope) -> Optional["IQueryScope"]:
        if scope is None and isinstance(target, TextTarget):
            scope = target.scope
        if isinstance(scope, ElementRef):
            if not scope.is_alive:
                return None
            return scope.element
        return self._context.page

    async def _run(
        self,
        target: Target,
        scope: Scope,
        timeout_ms: Optional[int],
        limit: Optional[int],
        log_outcome: bool = True,
    ) -> Resolution:
        timeout_ms = self.timeout_ms if timeout_ms is None else timeout_ms
        resolution = Resolution(target=target)
        description = target.describe()
        start = time.monotonic()
        deadline = start + timeout_ms / 1000

        root = self._search_root(target, scope)
        if root is None:
            log_event(logger, logging.INFO, "resolve.failed", target=description, reason="dead scope")
            return resolution

        for strategy, run in self.strategies:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                resolution.timed_out = True
                break

            resolution.attempted.append(strategy)
            log_event(logger, logging.DEBUG, "resolve.attempted", strategy=strategy.value, target=description)
            try:
                elements = await asyncio.wait_for(run(target, root, limit), timeout=remaining)
            except asyncio.TimeoutError:
                resolution.timed_out = True
                break
            except TransportError:
                raise
            except Exception as e:
                logger.debug(f"Strategy {strategy.value} errored for {description}: {e}")
                continue

            if elements:
                resolution.elements = elements
                resolution.strategy = strategy
                break

        resolution.elapsed_ms = (time.monotonic() - start) * 1000

        if log_outcome:
            if resolution.found:
                log_event(
                    logger, logging.DEBUG, "resolve.succeeded",
                    strategy=resolution.strategy.value, target=description,
                    matches=len(resolution.elements), elapsed_ms=f"{resolution.elapsed_ms:.0f}",
                )
            else:
                log_event(
                    logger, logging.INFO, "resolve.failed",
                    target=description, tried=[s.value for s in resolution.attempted],
                    timed_out=resolution.timed_out, elapsed_ms=f"{resolution.elapsed_ms:.0f}",
                )
        return resolution

    # ------------------------------------------------------------------
    # Strategies. Each returns visible matches in document order, or None
    # when it does not apply to the target kind.
    # ------------------------------------------------------------------

    async def _resolve_direct(
        self, target: Target, root: "IQueryScope", limit: Optional[int]
    ) -> Optional[List["IElement"]]:
        if isinstance(target, RoleTarget):
            pattern = target.pattern
            return await self._visible_matches(
                root, role_selector(target.role), limit,
                None if pattern is None else lambda el: _accessible_name_matches(el, pattern),
            )
        if isinstance(target, AttributeTarget):
            pattern = target.pattern
            attr = target.attr
            return await self._visible_matches(
                root, f"[{attr}]", limit,
                None if pattern is None else lambda el: _attribute_matches(el, attr, pattern),
            )
        return None

    async def _resolve_css_list(
        self, target: Target, root: "IQueryScope", limit: Optional[int]
    ) -> Optional[List["IElement"]]:
        if not isinstance(target, CssListTarget):
            return None
        for selector in target.selectors:
            try:
                matches = await self._visible_matches(root, selector, limit)
            except TransportError:
                raise
            except Exception as e:
                logger.debug(f"Selector {selector!r} failed: {e}")
                continue
            if matches:
                return matches
        return []

    async def _resolve_text(
        self, target: Target, root: "IQueryScope", limit: Optional[int]
    ) -> Optional[List["IElement"]]:
        pattern = _text_pattern(target)
        if pattern is None:
            return None
        for tier in self.text_tiers:
            matches = await self._visible_matches(
                root, tier, limit, lambda el: _text_matches(el, pattern),
            )
            if matches:
                return matches
        return []

    async def _resolve_script(
        self, target: Target, root: "IQueryScope", limit: Optional[int]
    ) -> Optional[List["IElement"]]:
        if isinstance(target, AttributeTarget):
            query: dict = {"attr": target.attr, "source": None, "flags": ""}
            if target.pattern is not None:
                query.update(pattern_to_script_arg(target.pattern))
        else:
            pattern = _text_pattern(target)
            if pattern is None:
                return None
            query = {"attr": None, **pattern_to_script_arg(pattern)}
        element = await root.find_by_script(SCRIPT_LOOKUP_JS, query)
        return [element] if element is not None else []

    async def _visible_matches(
        self,
        root: "IQueryScope",
        selector: str,
        limit: Optional[int],
        predicate: Optional[Callable[["IElement"], Awaitable[bool]]] = None,
    ) -> List["IElement"]:
        found: List["IElement"] = []
        for element in await root.query_selector_all(selector):
            if predicate is not None and not await predicate(element):
                continue
            if not await element.is_visible():
                continue
            found.append(element)
            if limit is not None and len(found) >= limit:
                break
        return found


def _text_pattern(target: Target) -> Optional[Pattern[str]]:
    if isinstance(target, TextTarget):
        return target.pattern
    if isinstance(target, RoleTarget):
        return target.pattern
    return None


async def _text_matches(element: "IElement", pattern: Pattern[str]) -> bool:
    return bool(pattern.search(normalize_text(await element.text_content())))


async def _attribute_matches(element: "IElement", attr: str, pattern: Pattern[str]) -> bool:
    value = await element.get_attribute(attr)
    return value is not None and bool(pattern.search(value))


async def _accessible_name_matches(element: "IElement", pattern: Pattern[str]) -> bool:
    for attr in ("aria-label", "value", "title", "alt"):
        value = await element.get_attribute(attr)
        if value and pattern.search(value):
            return True
    return await _text_matches(element, pattern)
