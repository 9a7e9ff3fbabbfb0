# selfheal/selectors/strategy.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Tuple


class SelfHealError(Exception):
    pass


class InvalidResolutionArgs(SelfHealError, ValueError):
    """Caller passed arguments resolve() cannot work with (empty list, max_passes < 1, ...)."""


class ElementNotFound(SelfHealError, LookupError):
    """Raised by ResolutionResult.unwrap() when no strategy matched."""


class SelectorKind(str, Enum):
    css = "css"  # raw Playwright selector; also accepts text=, xpath=, [data-testid=...]
    text = "text"
    role = "role"
    xpath = "xpath"
    testid = "testid"


class AttemptOutcome(str, Enum):
    success = "success"
    timeout = "timeout"


@dataclass(frozen=True)
class Strategy:
    """A named way of locating one UI element."""
    name: str
    selector: str
    kind: SelectorKind = SelectorKind.css

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not isinstance(self.selector, str):
            raise ValueError(
                f"strategy name and selector must be strings (got {self.name!r}, {self.selector!r})"
            )
        if not self.name.strip():
            raise ValueError("strategy.name cannot be empty")
        if not self.selector.strip():
            raise ValueError(f"strategy {self.name!r}: selector cannot be empty")
        # Accept plain strings for kind ("role") as well as the enum
        object.__setattr__(self, "kind", SelectorKind(self.kind))

    def __str__(self) -> str:
        return f"{self.name}({self.kind.value}:{self.selector})"


@dataclass(frozen=True)
class ResolutionAttempt:
    strategy: Strategy
    outcome: AttemptOutcome
    pass_number: int
    elapsed_ms: int = 0

    @property
    def strategy_name(self) -> str:
        return self.strategy.name

    @property
    def succeeded(self) -> bool:
        return self.outcome is AttemptOutcome.success


@dataclass(frozen=True)
class ResolutionResult:
    """
    Outcome of one resolve() call: either a handle bound to the winning
    strategy, or not-found. Always carries the full attempt trace.
    """
    handle: Any
    strategy: Optional[Strategy]
    attempts: Tuple[ResolutionAttempt, ...] = ()
    passes: int = 0
    delays_ms: Tuple[int, ...] = ()

    @classmethod
    def found(
        cls,
        handle: Any,
        strategy: Strategy,
        attempts: Tuple[ResolutionAttempt, ...],
        passes: int,
        delays_ms: Tuple[int, ...] = (),
    ) -> "ResolutionResult":
        return cls(handle=handle, strategy=strategy, attempts=tuple(attempts),
                   passes=passes, delays_ms=tuple(delays_ms))

    @classmethod
    def not_found(
        cls,
        attempts: Tuple[ResolutionAttempt, ...],
        passes: int,
        delays_ms: Tuple[int, ...] = (),
    ) -> "ResolutionResult":
        return cls(handle=None, strategy=None, attempts=tuple(attempts),
                   passes=passes, delays_ms=tuple(delays_ms))

    @property
    def is_found(self) -> bool:
        return self.strategy is not None

    def __bool__(self) -> bool:
        return self.is_found

    def unwrap(self) -> Any:
        if not self.is_found:
            tried = ", ".join(dict.fromkeys(a.strategy_name for a in self.attempts)) or "<none>"
            raise ElementNotFound(
                f"Element not found after {self.passes} pass(es), {len(self.attempts)} attempt(s). Tried: {tried}"
            )
        return self.handle

    def trace(self) -> List[Tuple[str, str, int]]:
        """[(strategy_name, outcome, pass_number), ...] in attempt order."""
        return [(a.strategy_name, a.outcome.value, a.pass_number) for a in self.attempts]

    def to_dict(self) -> dict:
        return {
            "found": self.is_found,
            "strategy": self.strategy.name if self.strategy else None,
            "selector": self.strategy.selector if self.strategy else None,
            "passes": self.passes,
            "delays_ms": list(self.delays_ms),
            "attempts": [
                {
                    "strategy": a.strategy_name,
                    "outcome": a.outcome.value,
                    "pass": a.pass_number,
                    "elapsed_ms": a.elapsed_ms,
                }
                for a in self.attempts
            ],
        }
