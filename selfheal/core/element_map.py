# selfheal/core/element_map.py
from __future__ import annotations

"""Element map schema and loader
--------------------------------
Pydantic models for named elements and their fallback strategies, loaded
from YAML (multi-document files supported, ${ENV} substitution applied).

    version: "1"
    site: demo.playwright.dev
    url: https://demo.playwright.dev/todomvc
    elements:
      todo_input:
        strategies:
          - name: placeholder
            selector: 'input[placeholder*="What needs to be done"]'
          - name: role
            kind: role
            selector: "textbox|What needs to be done?"
"""

from pathlib import Path
from typing import Any, Optional
import os
import re

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from selfheal.selectors.strategy import SelectorKind, Strategy


# ---------- Models ----------


class StrategySpec(BaseModel):
    name: str = Field(..., description="Label used in logs and traces")
    selector: str = Field(..., description="Selector understood by the chosen kind")
    kind: SelectorKind = Field(default=SelectorKind.css)

    @field_validator("name", "selector")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty")
        return v

    def to_strategy(self) -> Strategy:
        return Strategy(name=self.name, selector=self.selector, kind=self.kind)


class ElementSpec(BaseModel):
    description: Optional[str] = None
    strategies: list[StrategySpec] = Field(..., min_length=1)

    # Per-element overrides; None falls back to settings
    max_passes: Optional[int] = Field(default=None, ge=1)
    per_attempt_timeout_ms: Optional[int] = Field(default=None, ge=0)
    inter_pass_delay_ms: Optional[int] = Field(default=None, ge=0)

    def to_strategies(self) -> tuple[Strategy, ...]:
        return tuple(s.to_strategy() for s in self.strategies)

    def resolution_overrides(self) -> dict:
        return {
            k: v
            for k, v in {
                "max_passes": self.max_passes,
                "per_attempt_timeout_ms": self.per_attempt_timeout_ms,
                "inter_pass_delay_ms": self.inter_pass_delay_ms,
            }.items()
            if v is not None
        }


class ElementMap(BaseModel):
    version: str = Field(default="1")
    site: str = Field(..., description="Site key, e.g. 'demo.playwright.dev'")
    url: Optional[str] = Field(default=None, description="Default page to probe")
    elements: dict[str, ElementSpec]

    @field_validator("site")
    @classmethod
    def _site_non_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("site cannot be empty")
        return v

    @field_validator("url")
    @classmethod
    def _url_absolute(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v.startswith("http"):
            raise ValueError("url must be an absolute http(s) URL")
        return v

    @field_validator("elements")
    @classmethod
    def _has_elements(cls, v: dict) -> dict:
        if not v:
            raise ValueError("at least one element is required")
        return v

    def element(self, name: str) -> ElementSpec:
        try:
            return self.elements[name]
        except KeyError:
            known = ", ".join(sorted(self.elements)) or "<none>"
            raise KeyError(f"Unknown element '{name}' in {self.site} (known: {known})") from None


# ---------- Helpers ----------

_ENV_REF = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def _subst_env(obj: Any) -> Any:
    """Replace ${NAME} in every string with os.environ[NAME]; unknown names stay as-is."""
    if isinstance(obj, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1), m.group(0)), obj)
    if isinstance(obj, list):
        return [_subst_env(x) for x in obj]
    if isinstance(obj, dict):
        return {k: _subst_env(v) for k, v in obj.items()}
    return obj


def _format_validation_error(ve: ValidationError, header: str) -> str:
    lines = [header]
    for e in ve.errors():
        loc = ".".join(str(p) for p in e.get("loc", []))
        msg = e.get("msg", "invalid value")
        lines.append(f"  - {loc}: {msg}")
    return "\n".join(lines)


# ---------- Public API ----------


def load_element_maps_file(path: Path | str) -> list[ElementMap]:
    """Load one or more element maps from a YAML file (supports multi-document)."""
    map_path = Path(path)
    if not map_path.exists():
        raise FileNotFoundError(f"Element map file not found: {map_path}")
    try:
        docs = list(yaml.safe_load_all(map_path.read_text(encoding="utf-8")))
    except yaml.YAMLError as ye:
        raise ValueError(f"YAML parse error in {map_path}: {ye}") from ye

    out: list[ElementMap] = []
    for idx, data in enumerate(docs, start=1):
        if data is None:
            continue
        if not isinstance(data, dict):
            raise ValueError(f"Document {idx} in {map_path} must be a mapping/object.")
        try:
            out.append(ElementMap.model_validate(_subst_env(data)))
        except ValidationError as ve:
            raise ValueError(
                _format_validation_error(ve, f"Invalid element map '{map_path}' (document {idx}):")
            ) from ve
    if not out:
        raise ValueError(f"No element map documents found in {map_path}")
    return out


def load_element_map(path: Path | str, site: Optional[str] = None) -> ElementMap:
    """
    Load a single element map. In a multi-document file, `site` picks the
    document; without it the file must hold exactly one.
    """
    maps = load_element_maps_file(path)
    sites = ", ".join(m.site for m in maps)
    if site is not None:
        for em in maps:
            if em.site == site:
                return em
        raise ValueError(f"No element map for site '{site}' in {path} (sites: {sites})")
    if len(maps) > 1:
        raise ValueError(f"{path} holds {len(maps)} element maps (sites: {sites}); pick one by site")
    return maps[0]


def find_map_files(root: Path, recursive: bool = True) -> list[Path]:
    if recursive:
        return sorted(list(root.rglob("*.yaml")) + list(root.rglob("*.yml")))
    return sorted(list(root.glob("*.yaml")) + list(root.glob("*.yml")))


__all__ = [
    "StrategySpec",
    "ElementSpec",
    "ElementMap",
    "load_element_map",
    "load_element_maps_file",
    "find_map_files",
]
