from __future__ import annotations

"""Live probing
---------------
Opens a page, resolves the elements of an element map one by one and
reports which strategy healed each lookup. App-agnostic; the element map
carries all site knowledge.
"""

from typing import Any, Dict, Iterable, List, Optional

from playwright.sync_api import Error as PWError

from selfheal.core.element_map import ElementMap
from selfheal.selectors.locator import PlaywrightFinder
from selfheal.selectors.resolver import Resolver
from selfheal.utils.config import Settings, get_settings
from selfheal.utils.logger import get_logger, log_with_context
from selfheal.utils.timing import measure


def probe_elements(
    page: Any,
    element_map: ElementMap,
    names: Optional[Iterable[str]] = None,
    settings: Optional[Settings] = None,
    resolver: Optional[Resolver] = None,
    **overrides: Any,
) -> List[Dict[str, Any]]:
    """
    Resolve each requested element (all of them when `names` is empty).

    Precedence for resolution knobs: explicit overrides > element spec > settings.
    Unknown names raise KeyError before anything is resolved.
    """
    s = settings or get_settings()
    log = get_logger(__name__)
    wanted = list(names) if names else list(element_map.elements)
    specs = [(name, element_map.element(name)) for name in wanted]
    res = resolver or Resolver(PlaywrightFinder(page))

    rows: List[Dict[str, Any]] = []
    for name, spec in specs:
        kwargs = s.resolution_kwargs()
        kwargs.update(spec.resolution_overrides())
        kwargs.update({k: v for k, v in overrides.items() if v is not None})

        el_log = log_with_context(log, site=element_map.site, element=name)
        el_log.info(f"Resolving '{name}' ({len(spec.strategies)} strategies)")
        result = res.resolve(spec.to_strategies(), **kwargs)
        row = {"element": name, **result.to_dict()}
        rows.append(row)
        if not result:
            el_log.warning(f"'{name}' not found")
    return rows


class Prober:
    """Runs element maps against a live browser page."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.log = get_logger(__name__)

    @measure("probe")
    def run(
        self,
        element_map: ElementMap,
        url: Optional[str] = None,
        names: Optional[Iterable[str]] = None,
        **overrides: Any,
    ) -> dict:
        """
        Returns {"ok": bool, "url": str, "results": [...]}; browser failures
        come back as {"ok": False, "error": str, "error_type": str}.
        """
        # local import keeps the CLI importable without a browser install
        from selfheal.core.browser import open_page

        target = url or element_map.url
        if not target:
            return {"ok": False, "error": f"No URL given and element map '{element_map.site}' has none",
                    "error_type": "ValueError", "site": element_map.site}

        try:
            with open_page(self.settings) as page:
                page.goto(target, wait_until="domcontentloaded")
                rows = probe_elements(page, element_map, names, settings=self.settings, **overrides)
        except PWError as e:
            self.log.exception("Probe failed:")
            return {"ok": False, "error": str(e), "error_type": e.__class__.__name__,
                    "url": target, "site": element_map.site}

        return {
            "ok": all(r["found"] for r in rows),
            "url": target,
            "site": element_map.site,
            "results": rows,
        }

