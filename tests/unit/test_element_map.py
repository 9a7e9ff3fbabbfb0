from pathlib import Path
import textwrap

import pytest

from selfheal.core.element_map import load_element_map, load_element_maps_file
from selfheal.selectors.strategy import SelectorKind, Strategy


TODO_MAP = textwrap.dedent(
    """
    version: "1"
    site: demo.playwright.dev
    url: https://demo.playwright.dev/todomvc
    elements:
      todo_input:
        description: New todo field
        per_attempt_timeout_ms: 1500
        strategies:
          - name: placeholder
            selector: 'input[placeholder*="What needs to be done"]'
          - name: role
            kind: role
            selector: "textbox|What needs to be done?"
      clear_completed:
        strategies:
          - name: role-button
            selector: 'button:has-text("Clear completed")'
    """
)


def _write(tmp_path: Path, text: str, name: str = "map.yaml") -> Path:
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")
    return p


def test_load_element_map(tmp_path: Path):
    em = load_element_map(_write(tmp_path, TODO_MAP))

    assert em.site == "demo.playwright.dev"
    assert list(em.elements) == ["todo_input", "clear_completed"]

    todo = em.element("todo_input")
    assert todo.to_strategies() == (
        Strategy("placeholder", 'input[placeholder*="What needs to be done"]'),
        Strategy("role", "textbox|What needs to be done?", kind=SelectorKind.role),
    )
    assert todo.resolution_overrides() == {"per_attempt_timeout_ms": 1500}
    assert em.element("clear_completed").resolution_overrides() == {}


def test_multi_document_file(tmp_path: Path):
    second = textwrap.dedent(
        """
        site: the-internet.herokuapp.com
        elements:
          form_link:
            strategies:
              - {name: link-text, selector: 'a:has-text("Form Authentication")'}
              - {name: href-contains, selector: 'a[href*="login"]'}
        """
    )
    p = _write(tmp_path, TODO_MAP + "---\n" + second)

    maps = load_element_maps_file(p)
    assert [m.site for m in maps] == ["demo.playwright.dev", "the-internet.herokuapp.com"]
    with pytest.raises(ValueError, match="2 element maps"):
        load_element_map(p)


def test_env_substitution(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("APP_HOST", "staging.example.com")
    p = _write(tmp_path, textwrap.dedent(
        """
        site: ${APP_HOST}
        url: https://${APP_HOST}/login
        elements:
          user:
            strategies:
              - {name: id, selector: "#${MISSING_VAR}"}
        """
    ))
    em = load_element_map(p)
    assert em.url == "https://staging.example.com/login"
    assert em.element("user").strategies[0].selector == "#${MISSING_VAR}"


@pytest.mark.parametrize(
    "body, fragment",
    [
        ("site: x\nelements:\n  a:\n    strategies: []\n", "elements.a.strategies"),
        ("site: x\nelements: {}\n", "elements"),
        ("site: x\nurl: ftp://x\nelements:\n  a:\n    strategies: [{name: n, selector: s}]\n", "url"),
        ("site: x\nelements:\n  a:\n    max_passes: 0\n    strategies: [{name: n, selector: s}]\n", "max_passes"),
        ("site: x\nelements:\n  a:\n    strategies: [{name: n, selector: s, kind: shadow}]\n", "kind"),
    ],
)
def test_invalid_maps_report_location(tmp_path: Path, body, fragment):
    with pytest.raises(ValueError) as exc:
        load_element_map(_write(tmp_path, body))
    assert fragment in str(exc.value)


def test_yaml_errors_and_missing_files(tmp_path: Path):
    with pytest.raises(ValueError, match="YAML parse error"):
        load_element_map(_write(tmp_path, "site: [unclosed"))
    with pytest.raises(ValueError, match="must be a mapping"):
        load_element_map(_write(tmp_path, "- just\n- a list\n", "list.yaml"))
    with pytest.raises(FileNotFoundError):
        load_element_map(tmp_path / "nope.yaml")


def test_unknown_element_lists_known_names(tmp_path: Path):
    em = load_element_map(_write(tmp_path, TODO_MAP))
    with pytest.raises(KeyError, match="clear_completed, todo_input"):
        em.element("submit")


def test_pick_document_by_site(tmp_path: Path):
    other = "site: other.app\nelements:\n  a:\n    strategies: [{name: n, selector: s}]\n"
    p = _write(tmp_path, TODO_MAP + "---\n" + other)

    assert load_element_map(p, site="other.app").site == "other.app"
    assert load_element_map(p, site="demo.playwright.dev").url == "https://demo.playwright.dev/todomvc"
    with pytest.raises(ValueError, match="No element map for site 'missing.app'"):
        load_element_map(p, site="missing.app")
