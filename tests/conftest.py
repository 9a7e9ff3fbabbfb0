from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pytest

from selfheal.selectors.strategy import Strategy
from selfheal.utils.config import get_settings


class FakeClock:
    """Virtual monotonic clock in ms; advanced by fake waits and sleeps."""

    def __init__(self) -> None:
        self.now = 0

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += max(0, ms)


@dataclass(frozen=True)
class FakeHandle:
    selector: str


@dataclass
class FakeFinder:
    """
    In-memory page: `appears_at` maps selector -> virtual ms at which it becomes visible.
    Selectors not in the map never appear.
    """
    clock: FakeClock
    appears_at: Dict[str, int] = field(default_factory=dict)
    located: List[str] = field(default_factory=list)

    def locate(self, strategy: Strategy) -> FakeHandle:
        self.located.append(strategy.selector)
        return FakeHandle(strategy.selector)

    def wait_for_visible(self, handle: FakeHandle, timeout_ms: int) -> bool:
        at: Optional[int] = self.appears_at.get(handle.selector)
        if at is not None and at <= self.clock.now + timeout_ms:
            self.clock.advance(at - self.clock.now)
            return True
        self.clock.advance(timeout_ms)
        return False


class AsyncFakeFinder(FakeFinder):
    async def wait_for_visible(self, handle: FakeHandle, timeout_ms: int) -> bool:  # type: ignore[override]
        return FakeFinder.wait_for_visible(self, handle, timeout_ms)


class FakeSleeper:
    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.calls: List[int] = []

    def __call__(self, ms: int) -> None:
        self.calls.append(ms)
        self.clock.advance(ms)


class AsyncFakeSleeper(FakeSleeper):
    async def __call__(self, ms: int) -> None:  # type: ignore[override]
        FakeSleeper.__call__(self, ms)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeper(clock: FakeClock) -> FakeSleeper:
    return FakeSleeper(clock)


@pytest.fixture
def two_strategies() -> list[Strategy]:
    return [
        Strategy("by-testid", "[data-testid=x]"),
        Strategy("by-text", "text=Submit"),
    ]


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_finder(clock: FakeClock):
    def _make(appears_at: Optional[Dict[str, int]] = None, *, asynchronous: bool = False) -> FakeFinder:
        cls = AsyncFakeFinder if asynchronous else FakeFinder
        return cls(clock=clock, appears_at=dict(appears_at or {}))
    return _make


@pytest.fixture
def async_sleeper(clock: FakeClock) -> AsyncFakeSleeper:
    return AsyncFakeSleeper(clock)
