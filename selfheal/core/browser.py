# selfheal/core/browser.py
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from playwright.sync_api import Page, sync_playwright

from selfheal.utils.config import BrowserType, Settings, get_settings
from selfheal.utils.logger import get_logger

log = get_logger(__name__)


@contextmanager
def open_page(settings: Optional[Settings] = None) -> Iterator[Page]:
    """
    Launch the configured browser and yield a fresh page.
    Browser and context are closed on exit, including on errors.
    """
    s = settings or get_settings()
    with sync_playwright() as p:
        browser_type = {
            BrowserType.chromium: p.chromium,
            BrowserType.firefox: p.firefox,
            BrowserType.webkit: p.webkit,
        }[s.BROWSER_TYPE]
        log.debug(f"Launching {s.BROWSER_TYPE.value} (headless={s.HEADLESS})")
        browser = browser_type.launch(**s.playwright_launch_kwargs())
        try:
            context = browser.new_context(**s.playwright_context_kwargs())
            try:
                page = context.new_page()
                page.set_default_navigation_timeout(s.PAGE_LOAD_TIMEOUT)
                yield page
            finally:
                context.close()
        finally:
            browser.close()
