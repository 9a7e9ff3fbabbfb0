# selfheal/selectors/helpers.py
from __future__ import annotations

"""Ready-made strategy lists
-----------------------------
Common fallback orders for buttons, inputs and links, plus thin wrappers
that resolve them against a sync Playwright page with settings defaults.
"""

from typing import Any, List, Optional, Sequence

from playwright.sync_api import Locator, Page

from selfheal.selectors.locator import PlaywrightFinder
from selfheal.selectors.resolver import Resolver
from selfheal.selectors.strategy import Strategy
from selfheal.utils.config import get_settings


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def button_strategies(label: str) -> List[Strategy]:
    q = _quote(label)
    return [
        Strategy("role-button", f'button:has-text("{q}")'),
        Strategy("data-testid", f'[data-testid*="{_quote(label.lower())}"]'),
        Strategy("aria-label", f'[aria-label*="{q}"]'),
        Strategy("text-exact", f'text="{q}"'),
    ]


def input_strategies(placeholder: str) -> List[Strategy]:
    q = _quote(placeholder)
    low = _quote(placeholder.lower())
    return [
        Strategy("placeholder", f'input[placeholder*="{q}"]'),
        Strategy("aria-label", f'input[aria-label*="{q}"]'),
        Strategy("data-testid", f'input[data-testid*="{low}"]'),
        Strategy("name-attr", f'input[name*="{low}"]'),
    ]


def link_strategies(text: str, href_fragment: Optional[str] = None) -> List[Strategy]:
    out = [Strategy("link-text", f'a:has-text("{_quote(text)}")')]
    if href_fragment:
        out.append(Strategy("href-contains", f'a[href*="{_quote(href_fragment)}"]'))
    return out


def find_element_with_healing(
    page: Page,
    strategies: Sequence[Strategy],
    **overrides: Any,
) -> Optional[Locator]:
    """
    Resolve `strategies` on `page` and return the matched Locator, or None.
    Keyword overrides: max_passes, per_attempt_timeout_ms, inter_pass_delay_ms.
    """
    kwargs = get_settings().resolution_kwargs()
    kwargs.update({k: v for k, v in overrides.items() if v is not None})
    result = Resolver(PlaywrightFinder(page)).resolve(strategies, **kwargs)
    return result.handle if result else None


def find_button(page: Page, label: str, **overrides: Any) -> Optional[Locator]:
    return find_element_with_healing(page, button_strategies(label), **overrides)


def find_input(page: Page, placeholder: str, **overrides: Any) -> Optional[Locator]:
    return find_element_with_healing(page, input_strategies(placeholder), **overrides)


def find_link(page: Page, text: str, href_fragment: Optional[str] = None, **overrides: Any) -> Optional[Locator]:
    return find_element_with_healing(page, link_strategies(text, href_fragment), **overrides)
