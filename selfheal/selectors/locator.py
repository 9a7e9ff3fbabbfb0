# selfheal/selectors/locator.py
from __future__ import annotations

from typing import Any, Optional, Tuple

from playwright.sync_api import Error as PWError, Locator, Page, TimeoutError as PWTimeoutError
from playwright.async_api import (
    Error as AsyncPWError,
    Locator as AsyncLocator,
    Page as AsyncPage,
    TimeoutError as AsyncPWTimeoutError,
)

from selfheal.selectors.strategy import SelectorKind, Strategy
from selfheal.utils.logger import get_logger

log = get_logger(__name__)


def _parse_role_value(value: str) -> Tuple[str, Optional[str]]:
    """
    Accept a few simple role notations for flexibility:

    - "button"                      → role="button"
    - "button|Create Project"       → role="button", name="Create Project"
    - "button name=Create Project"  → same as above (space syntax)

    Returns: (role, accessible_name_or_None)
    """
    v = value.strip()
    if "|" in v:
        role, name = v.split("|", 1)
        return role.strip(), name.strip() or None
    if " name=" in v:
        role, name = v.split(" name=", 1)
        return role.strip(), name.strip() or None
    return v, None


def resolve_locator(page: Any, strategy: Strategy) -> Any:
    """
    Convert a Strategy into a Playwright Locator.
    Works for both sync and async pages; locator construction never awaits.
    """
    kind = strategy.kind
    value = strategy.selector

    if kind == SelectorKind.css:
        return page.locator(value)

    if kind == SelectorKind.text:
        return page.get_by_text(value, exact=False)

    if kind == SelectorKind.role:
        role, name = _parse_role_value(value)
        kwargs = {}
        if name:
            kwargs["name"] = name
        return page.get_by_role(role, **kwargs)  # type: ignore[arg-type]

    if kind == SelectorKind.xpath:
        return page.locator(f"xpath={value}")

    if kind == SelectorKind.testid:
        return page.get_by_test_id(value)

    log.debug(f"Unknown selector kind '{kind}', falling back to css for value={value!r}")
    return page.locator(value)


class PlaywrightFinder:
    """ElementFinder over a sync Playwright Page."""

    def __init__(self, page: Page) -> None:
        self.page = page

    def locate(self, strategy: Strategy) -> Locator:
        return resolve_locator(self.page, strategy)

    def wait_for_visible(self, handle: Locator, timeout_ms: int) -> bool:
        target = handle.first
        try:
            # Playwright treats timeout=0 as "no timeout"; here 0 means "only if visible right now"
            if timeout_ms <= 0:
                return target.is_visible()
            target.wait_for(state="visible", timeout=timeout_ms)
            return True
        except PWTimeoutError:
            return False
        except PWError as e:
            log.debug(f"Locator error treated as miss: {e}")
            return False


class AsyncPlaywrightFinder:
    """AsyncElementFinder over a playwright.async_api Page."""

    def __init__(self, page: AsyncPage) -> None:
        self.page = page

    def locate(self, strategy: Strategy) -> AsyncLocator:
        return resolve_locator(self.page, strategy)

    async def wait_for_visible(self, handle: AsyncLocator, timeout_ms: int) -> bool:
        target = handle.first
        try:
            if timeout_ms <= 0:
                return await target.is_visible()
            await target.wait_for(state="visible", timeout=timeout_ms)
            return True
        except AsyncPWTimeoutError:
            return False
        except AsyncPWError as e:
            log.debug(f"Locator error treated as miss: {e}")
            return False
