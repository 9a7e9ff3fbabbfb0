"""
Selectors package
-----------------
Strategy model, the self-healing resolver, and the Playwright adapters
that let it run against live pages.
"""

from .strategy import (
    AttemptOutcome,
    ElementNotFound,
    InvalidResolutionArgs,
    ResolutionAttempt,
    ResolutionResult,
    SelectorKind,
    SelfHealError,
    Strategy,
)
from .resolver import AsyncResolver, Resolver
from .locator import AsyncPlaywrightFinder, PlaywrightFinder, resolve_locator
from .helpers import (
    button_strategies,
    find_button,
    find_element_with_healing,
    find_input,
    find_link,
    input_strategies,
    link_strategies,
)

__all__ = [
    "AttemptOutcome",
    "ElementNotFound",
    "InvalidResolutionArgs",
    "ResolutionAttempt",
    "ResolutionResult",
    "SelectorKind",
    "SelfHealError",
    "Strategy",
    "Resolver",
    "AsyncResolver",
    "PlaywrightFinder",
    "AsyncPlaywrightFinder",
    "resolve_locator",
    "button_strategies",
    "input_strategies",
    "link_strategies",
    "find_element_with_healing",
    "find_button",
    "find_input",
    "find_link",
]
