from pathlib import Path
import textwrap

import pytest

from selfheal.core.element_map import load_element_map
from selfheal.core.probe import Prober, probe_elements
from selfheal.selectors.resolver import Resolver


@pytest.fixture
def element_map(tmp_path: Path):
    p = tmp_path / "login.yaml"
    p.write_text(textwrap.dedent(
        """
        site: the-internet.herokuapp.com
        elements:
          form_link:
            strategies:
              - {name: link-text, selector: 'a:has-text("Form Authentication")'}
              - {name: href-contains, selector: 'a[href*="login"]'}
          logout:
            max_passes: 1
            strategies:
              - {name: logout-button, selector: 'a[href="/logout"]'}
        """
    ), encoding="utf-8")
    return load_element_map(p)


def test_probe_reports_each_element(element_map, clock, sleeper, make_finder):
    finder = make_finder({'a[href*="login"]': 0})
    resolver = Resolver(finder, sleep=sleeper, clock=clock)

    rows = probe_elements(None, element_map, resolver=resolver, per_attempt_timeout_ms=100, inter_pass_delay_ms=5)

    form, logout = rows
    assert form["element"] == "form_link"
    assert form["found"] is True
    assert form["strategy"] == "href-contains"
    assert [a["strategy"] for a in form["attempts"]] == ["link-text", "href-contains"]

    # element-level max_passes=1 beats the settings default of 3
    assert logout["found"] is False
    assert logout["passes"] == 1
    assert len(logout["attempts"]) == 1


def test_explicit_override_beats_element_spec(element_map, clock, sleeper, make_finder):
    resolver = Resolver(make_finder(), sleep=sleeper, clock=clock)
    rows = probe_elements(None, element_map, ["logout"], resolver=resolver,
                          max_passes=3, per_attempt_timeout_ms=1, inter_pass_delay_ms=5)
    assert rows[0]["passes"] == 3
    assert sleeper.calls == [5, 5]


def test_unknown_names_fail_before_resolving(element_map, clock, sleeper, make_finder):
    finder = make_finder()
    resolver = Resolver(finder, sleep=sleeper, clock=clock)
    with pytest.raises(KeyError):
        probe_elements(None, element_map, ["form_link", "nope"], resolver=resolver)
    assert finder.located == []


def test_prober_requires_a_url(element_map):
    report = Prober().run(element_map)
    assert report["ok"] is False
    assert report["error_type"] == "ValueError"
