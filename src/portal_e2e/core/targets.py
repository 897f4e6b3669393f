"""
Targets - Descriptions of elements to locate.

A target says *what* to find, never *how*. The resolver turns a target
into an ElementRef by running its strategy list.

Patterns may be given as plain strings (matched as case-insensitive
substrings) or as compiled regular expressions.

Example:
    >>> RoleTarget("button", "Sign in")
    >>> TextTarget("International Student", scope=card_ref)
    >>> AttributeTarget("href", "settings")
    >>> CssListTarget(("#usernameUserInput", 'input[type="text"]'))
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, Optional, Pattern, Tuple, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from portal_e2e.core.context import PageContext
    from portal_e2e.interfaces.browser import IElement


PatternLike = Union[str, Pattern[str]]


def compile_pattern(pattern: PatternLike) -> Pattern[str]:
    """
    Normalize a pattern argument.

    Args:
        pattern: Plain text or compiled regex

    Returns:
        Compiled regex; plain text becomes an escaped, case-insensitive pattern
    """
    if isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(re.escape(pattern), re.IGNORECASE)


def normalize_text(text: Optional[str]) -> str:
    """Collapse whitespace runs and strip."""
    if not text:
        return ""
    return " ".join(text.split())


def pattern_to_script_arg(pattern: Pattern[str]) -> dict:
    """Serialize a compiled pattern for the in-page lookup script."""
    flags = "i" if pattern.flags & re.IGNORECASE else ""
    return {"source": pattern.pattern, "flags": flags}


@dataclass(frozen=True)
class RoleTarget:
    """An element with an ARIA role and an accessible name."""
    role: str
    name_pattern: Optional[PatternLike] = None

    @property
    def pattern(self) -> Optional[Pattern[str]]:
        return compile_pattern(self.name_pattern) if self.name_pattern is not None else None

    def describe(self) -> str:
        return f"role={self.role} name={_pattern_text(self.name_pattern)}"


@dataclass(frozen=True)
class TextTarget:
    """An element whose text content matches, optionally inside another element."""
    text: PatternLike
    scope: Optional["ElementRef"] = field(default=None, compare=False)

    @property
    def pattern(self) -> Pattern[str]:
        return compile_pattern(self.text)

    def describe(self) -> str:
        return f"text={_pattern_text(self.text)}"


@dataclass(frozen=True)
class AttributeTarget:
    """An element carrying an attribute whose value matches."""
    attr: str
    value_pattern: Optional[PatternLike] = None

    @property
    def pattern(self) -> Optional[Pattern[str]]:
        return compile_pattern(self.value_pattern) if self.value_pattern is not None else None

    def describe(self) -> str:
        return f"attr={self.attr} value={_pattern_text(self.value_pattern)}"


@dataclass(frozen=True)
class CssListTarget:
    """Candidate CSS selectors, tried in order."""
    selectors: Tuple[str, ...]

    def __init__(self, selectors: Union[str, Iterable[str]]):
        if isinstance(selectors, str):
            selectors = (selectors,)
        object.__setattr__(self, "selectors", tuple(selectors))

    def describe(self) -> str:
        return f"css={list(self.selectors)}"


Target = Union[RoleTarget, TextTarget, AttributeTarget, CssListTarget]


def _pattern_text(pattern: Optional[PatternLike]) -> str:
    if pattern is None:
        return "*"
    if isinstance(pattern, re.Pattern):
        return f"/{pattern.pattern}/"
    return pattern


class ElementRef:
    """
    Handle to a located element.

    A ref is only valid for the navigation generation it was resolved in.
    Once the owning PageContext navigates or switches tab the ref is dead
    and must be resolved again.
    """

    def __init__(
        self,
        element: "IElement",
        context: "PageContext",
        generation: int,
        strategy: str = "",
        description: str = "",
    ):
        self.element = element
        self.context = context
        self.generation = generation
        self.strategy = strategy
        self.description = description

    @property
    def is_alive(self) -> bool:
        """Whether the ref still belongs to the current document."""
        return not self.context.closed and self.generation == self.context.generation

    def __repr__(self) -> str:
        state = "alive" if self.is_alive else "dead"
        return f"ElementRef({self.description!r}, via={self.strategy}, gen={self.generation}, {state})"
