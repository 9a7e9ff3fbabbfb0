# selfheal/selectors/resolver.py
from __future__ import annotations

"""Self-healing element resolution
----------------------------------
Tries an ordered list of strategies, waiting a bounded time for each to
become visible, and repeats the whole list for a fixed number of passes.
Absence is a normal result (ResolutionResult.not_found), never an exception.
"""

from typing import Any, Awaitable, Callable, List, Optional, Protocol, Sequence, Tuple

from selfheal.selectors.strategy import (
    AttemptOutcome,
    InvalidResolutionArgs,
    ResolutionAttempt,
    ResolutionResult,
    Strategy,
)
from selfheal.utils.config import get_settings
from selfheal.utils.logger import get_logger, log_with_context
from selfheal.utils.timing import Stopwatch, async_sleep_ms, now_ms, sleep_ms

log = get_logger(__name__)

__all__ = [
    "ElementFinder",
    "AsyncElementFinder",
    "Resolver",
    "AsyncResolver",
]


# ---------- Page capability ----------

class ElementFinder(Protocol):
    def locate(self, strategy: Strategy) -> Any: ...

    def wait_for_visible(self, handle: Any, timeout_ms: int) -> bool: ...


class AsyncElementFinder(Protocol):
    def locate(self, strategy: Strategy) -> Any: ...

    async def wait_for_visible(self, handle: Any, timeout_ms: int) -> bool: ...


# ---------- Shared bookkeeping ----------

class _ResolverBase:
    def __init__(self, *, clock: Callable[[], int] = now_ms) -> None:
        self.clock = clock

    @staticmethod
    def _check_args(
        strategies: Sequence[Strategy],
        max_passes: Optional[int],
        per_attempt_timeout_ms: Optional[int],
        inter_pass_delay_ms: Optional[int],
    ) -> Tuple[Tuple[Strategy, ...], int, int, int]:
        explicit = (max_passes, per_attempt_timeout_ms, inter_pass_delay_ms)
        defaults = get_settings().resolution_kwargs() if None in explicit else {}
        passes = defaults["max_passes"] if max_passes is None else max_passes
        timeout = defaults["per_attempt_timeout_ms"] if per_attempt_timeout_ms is None else per_attempt_timeout_ms
        delay = defaults["inter_pass_delay_ms"] if inter_pass_delay_ms is None else inter_pass_delay_ms

        ordered = tuple(strategies)
        if not ordered:
            raise InvalidResolutionArgs("strategies must not be empty")
        for s in ordered:
            if not isinstance(s, Strategy):
                raise InvalidResolutionArgs(f"expected Strategy, got {type(s).__name__}")
        for label, value in (
            ("max_passes", passes),
            ("per_attempt_timeout_ms", timeout),
            ("inter_pass_delay_ms", delay),
        ):
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidResolutionArgs(f"{label} must be an int (got {value!r})")
        if passes < 1:
            raise InvalidResolutionArgs(f"max_passes must be >= 1 (got {passes})")
        if timeout < 0:
            raise InvalidResolutionArgs(f"per_attempt_timeout_ms must be >= 0 (got {timeout})")
        if delay < 0:
            raise InvalidResolutionArgs(f"inter_pass_delay_ms must be >= 0 (got {delay})")
        return ordered, passes, timeout, delay

    @staticmethod
    def _record(
        attempts: List[ResolutionAttempt],
        strategy: Strategy,
        visible: bool,
        pass_number: int,
        elapsed_ms: int,
    ) -> ResolutionAttempt:
        outcome = AttemptOutcome.success if visible else AttemptOutcome.timeout
        attempt = ResolutionAttempt(strategy=strategy, outcome=outcome, pass_number=pass_number, elapsed_ms=elapsed_ms)
        attempts.append(attempt)

        attempt_log = log_with_context(log, strategy=strategy.name, pass_number=pass_number, outcome=outcome.value)
        if visible:
            attempt_log.info(f"✓ Found element using strategy: {strategy.name}")
        else:
            attempt_log.info(f'✗ Strategy "{strategy.name}" failed, trying next...')
        return attempt

    @staticmethod
    def _log_retry(pass_number: int, max_passes: int) -> None:
        log.info(f"Retry attempt {pass_number}/{max_passes - 1}...")

    @staticmethod
    def _log_exhausted(attempts: List[ResolutionAttempt], max_passes: int) -> None:
        log.warning(
            f"✗ Self-healing failed: element not found with any strategy "
            f"({max_passes} pass(es), {len(attempts)} attempt(s))"
        )


# ---------- Sync resolver ----------

class Resolver(_ResolverBase):
    """
    Resolve an element through ordered fallback strategies.

    Each pass walks the strategies left to right; the first one whose match
    becomes visible within `per_attempt_timeout_ms` wins. When a pass finds
    nothing and passes remain, sleep `inter_pass_delay_ms` and start over from
    the first strategy.
    """

    def __init__(
        self,
        finder: ElementFinder,
        *,
        sleep: Callable[[int], None] = sleep_ms,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        super().__init__(clock=clock)
        self.finder = finder
        self.sleep = sleep

    def resolve(
        self,
        strategies: Sequence[Strategy],
        *,
        max_passes: Optional[int] = None,
        per_attempt_timeout_ms: Optional[int] = None,
        inter_pass_delay_ms: Optional[int] = None,
    ) -> ResolutionResult:
        ordered, passes, timeout, delay = self._check_args(
            strategies, max_passes, per_attempt_timeout_ms, inter_pass_delay_ms
        )
        attempts: List[ResolutionAttempt] = []
        delays: List[int] = []

        for pass_number in range(1, passes + 1):
            for strategy in ordered:
                with Stopwatch(clock=self.clock) as sw:
                    handle = self.finder.locate(strategy)
                    visible = bool(self.finder.wait_for_visible(handle, timeout))
                self._record(attempts, strategy, visible, pass_number, sw.elapsed_ms())
                if visible:
                    return ResolutionResult.found(handle, strategy, tuple(attempts), pass_number, tuple(delays))

            if pass_number < passes:
                self._log_retry(pass_number, passes)
                self.sleep(delay)
                delays.append(delay)

        self._log_exhausted(attempts, passes)
        return ResolutionResult.not_found(tuple(attempts), passes, tuple(delays))


# ---------- Async resolver ----------

class AsyncResolver(_ResolverBase):
    """
    Same contract as Resolver, for playwright.async_api pages.

    The visibility wait and the inter-pass delay are awaited, so the caller
    can cancel the task at either point; nothing needs cleaning up.
    """

    def __init__(
        self,
        finder: AsyncElementFinder,
        *,
        sleep: Callable[[int], Awaitable[None]] = async_sleep_ms,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        super().__init__(clock=clock)
        self.finder = finder
        self.sleep = sleep

    async def resolve(
        self,
        strategies: Sequence[Strategy],
        *,
        max_passes: Optional[int] = None,
        per_attempt_timeout_ms: Optional[int] = None,
        inter_pass_delay_ms: Optional[int] = None,
    ) -> ResolutionResult:
        ordered, passes, timeout, delay = self._check_args(
            strategies, max_passes, per_attempt_timeout_ms, inter_pass_delay_ms
        )
        attempts: List[ResolutionAttempt] = []
        delays: List[int] = []

        for pass_number in range(1, passes + 1):
            for strategy in ordered:
                with Stopwatch(clock=self.clock) as sw:
                    handle = self.finder.locate(strategy)
                    visible = bool(await self.finder.wait_for_visible(handle, timeout))
                self._record(attempts, strategy, visible, pass_number, sw.elapsed_ms())
                if visible:
                    return ResolutionResult.found(handle, strategy, tuple(attempts), pass_number, tuple(delays))

            if pass_number < passes:
                self._log_retry(pass_number, passes)
                await self.sleep(delay)
                delays.append(delay)

        self._log_exhausted(attempts, passes)
        return ResolutionResult.not_found(tuple(attempts), passes, tuple(delays))
