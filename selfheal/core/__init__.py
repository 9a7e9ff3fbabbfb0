"""
Core package: element maps and live probing.
Lightweight package init to avoid import cycles.

Consumers should import submodules directly, e.g.:
  from selfheal.core.element_map import load_element_map, ElementMap
  from selfheal.core.probe import Prober, probe_elements
"""

__all__: list[str] = []
