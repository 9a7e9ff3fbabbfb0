# selfheal/cli.py
from __future__ import annotations

"""Command-line interface
------------------------
Validate element maps, view effective config, and probe a live page to see
which strategy heals each element lookup.
"""

import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import click

from selfheal.utils.config import get_settings
from selfheal.utils.logger import bind, get_logger, set_log_level, unbind
from selfheal.core.element_map import find_map_files, load_element_map, load_element_maps_file
from selfheal.core.probe import Prober


# -------- helpers --------


def _echo_json(obj) -> None:
    click.echo(json.dumps(obj, indent=2, ensure_ascii=False, default=str))


def _collect(targets: List[str], maps_dir: Optional[str], recursive: bool) -> List[Path]:
    paths: List[Path] = []
    for p in (Path(t).resolve() for t in targets):
        if p.is_dir():
            paths.extend(find_map_files(p, recursive=True))
        else:
            paths.append(p)
    if maps_dir:
        paths.extend(find_map_files(Path(maps_dir), recursive=recursive))
    return paths


# -------- CLI root --------


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Override LOG_LEVEL from settings",
)
@click.version_option(package_name="selfheal-locator")
def cli(log_level: Optional[str]):
    _ = get_settings()
    if log_level:
        set_log_level(log_level.upper())


# -------- commands --------


@cli.command("config")
def cmd_config():
    """Print effective configuration (after .env & env vars)."""
    _echo_json(get_settings().model_dump(mode="json"))


@cli.command("validate")
@click.argument("targets", nargs=-1, required=False)
@click.option("--dir", "maps_dir", type=click.Path(file_okay=False, dir_okay=True, exists=True),
              help="Validate all element maps under this directory")
@click.option("--recursive/--no-recursive", default=True, show_default=True)
def cmd_validate(targets: List[str], maps_dir: Optional[str], recursive: bool):
    """Validate element map files (supports multi-doc YAML)."""
    if not targets and not maps_dir:
        click.echo("Provide file(s) or --dir to validate.")
        sys.exit(2)

    ok = True
    for fp in _collect(list(targets), maps_dir, recursive):
        try:
            for em in load_element_maps_file(fp):
                n_strats = sum(len(e.strategies) for e in em.elements.values())
                click.echo(f"OK  {fp}  ->  [{em.site}] {len(em.elements)} element(s), {n_strats} strategies")
        except (ValueError, FileNotFoundError) as e:
            ok = False
            click.echo(f"ERR {fp}  ->  {e}")

    sys.exit(0 if ok else 1)


@cli.command("probe")
@click.argument("map_file", type=click.Path(dir_okay=False, exists=True))
@click.option("--url", type=str, default=None, help="Page to open (defaults to the map's url)")
@click.option("--site", type=str, default=None, help="Pick one document from a multi-document map by its site")
@click.option("--element", "elements", multiple=True, help="Element name to resolve (repeatable; default: all)")
@click.option("--max-passes", type=click.IntRange(min=1), default=None, help="Override MAX_PASSES")
@click.option("--timeout-ms", type=click.IntRange(min=0), default=None, help="Override PER_ATTEMPT_TIMEOUT_MS")
@click.option("--delay-ms", type=click.IntRange(min=0), default=None, help="Override INTER_PASS_DELAY_MS")
@click.option("--json-out", type=click.Path(dir_okay=False), default=None, help="Write the probe report to this file")
def cmd_probe(
    map_file: str,
    url: Optional[str],
    site: Optional[str],
    elements: List[str],
    max_passes: Optional[int],
    timeout_ms: Optional[int],
    delay_ms: Optional[int],
    json_out: Optional[str],
):
    """
    Resolve elements of an element map on a live page.

    Examples:
      selfheal probe maps/todomvc.yaml
      selfheal probe maps/todomvc.yaml --element todo_input --timeout-ms 500
      selfheal probe maps/demo_sites.yaml --site the-internet.herokuapp.com
    """
    log = get_logger(__name__)
    try:
        em = load_element_map(map_file, site=site)
    except (ValueError, FileNotFoundError) as e:
        click.echo(f"ERR {map_file}  ->  {e}")
        sys.exit(2)

    unknown = [n for n in elements if n not in em.elements]
    if unknown:
        click.echo(f"Unknown element(s): {', '.join(unknown)}")
        sys.exit(2)

    bind(run_id=datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ"), site=em.site)
    try:
        report = Prober(settings=get_settings()).run(
            em,
            url=url,
            names=list(elements) or None,
            max_passes=max_passes,
            per_attempt_timeout_ms=timeout_ms,
            inter_pass_delay_ms=delay_ms,
        )
    finally:
        unbind("run_id", "site")

    if "error" in report:
        err_type = report.get("error_type")
        click.echo(f"ERR {map_file} -> {err_type + ': ' if err_type else ''}{report['error']}")
    for row in report.get("results", []):
        if row["found"]:
            click.echo(f"OK   {row['element']}  via {row['strategy']}  (pass {row['passes']}, {len(row['attempts'])} attempt(s))")
        else:
            click.echo(f"MISS {row['element']}  after {row['passes']} pass(es), {len(row['attempts'])} attempt(s)")

    if json_out:
        outp = Path(json_out).resolve()
        outp.parent.mkdir(parents=True, exist_ok=True)
        outp.write_text(json.dumps(report, indent=2), encoding="utf-8")
        click.echo(f"Wrote report: {outp}")

    log.debug(f"probe ok={report.get('ok')}")
    sys.exit(0 if report.get("ok") else 1)


def main() -> None:
    cli(prog_name="selfheal")


if __name__ == "__main__":
    main()
