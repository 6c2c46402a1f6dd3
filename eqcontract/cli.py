"""CLI entry point for eqcontract."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import click

from eqcontract.contract import CHECK_NAMES, VerificationResult


# Exit codes
EXIT_OK = 0
EXIT_VIOLATION = 1
EXIT_SETUP_ERROR = 2

# Default config template
CONFIG_TEMPLATE = """\
# Repeat count for consistency_across_repeats and hash_stability
repeats: 20

# Subset of checks to run; empty runs all (see `eqcontract checks`)
checks: []

# Each target names three zero-argument factories as module:attribute.
#   equal:   returns a new instance on every call; all compare equal
#   unequal: returns an instance of the same class that compares unequal
#   foreign: returns an instance of a different class
targets: []
#  - name: point
#    equal: geometry.point:make_point
#    unequal: geometry.point:make_other_point
#    foreign: geometry.point:make_label
"""

project_root_option = click.option(
    "--project-root",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    default=".",
    help="Project root directory (default: cwd).",
)


def _result_to_dict(name: str, result: VerificationResult) -> dict[str, Any]:
    return {
        "target": name,
        "passed": result.passed,
        "checks": [
            {
                "name": r.name,
                "passed": r.passed,
                "detail": r.detail,
                "failures": [
                    {"label": f.label, "message": f.message, "left": f.left, "right": f.right}
                    for f in r.failures
                ],
            }
            for r in result.results
        ],
    }


def _echo_result(name: str, result: VerificationResult) -> None:
    status = "PASS" if result.passed else "FAIL"
    click.echo(f"{name}: {status} ({len(result.failed)} of {len(result.results)} checks failed)")
    for r in result.results:
        click.echo(f"  [{'PASS' if r.passed else 'FAIL'}] {r.name}: {r.detail}")
        for f in r.failures:
            click.echo(f"      {f.describe()}")


@click.group()
def cli() -> None:
    """eqcontract: verify __eq__ and __hash__ contracts."""


@cli.command()
@project_root_option
def init(project_root: str) -> None:
    """Create .eqcontract/config.yaml from the default template."""
    from eqcontract.config import config_path, load_config

    root = Path(project_root)
    path = config_path(root)

    if path.exists():
        click.echo(f"Config already exists at {path}")
        raise SystemExit(1)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(CONFIG_TEMPLATE)

    # Load through the standard path to validate the template
    load_config(root)
    click.echo(f"Created {path}")


@cli.command()
def checks() -> None:
    """List contract checks in run order."""
    for name in CHECK_NAMES:
        click.echo(name)


@cli.command()
@project_root_option
@click.option(
    "--target",
    "targets",
    multiple=True,
    help="Target name from config (repeatable; default: all targets).",
)
@click.option(
    "--repeats",
    type=click.IntRange(min=1),
    default=None,
    help="Override the configured repeat count.",
)
@click.option("--json", "as_json", is_flag=True, help="Print a JSON report.")
@click.option("-v", "--verbose", is_flag=True, help="Log progress to stderr.")
def verify(
    project_root: str,
    targets: tuple[str, ...],
    repeats: int | None,
    as_json: bool,
    verbose: bool,
) -> None:
    """Verify the configured targets' equality/hash contracts.

    Exits 0 when every check passes, 1 on a contract violation and 2 on a
    setup error (config, factory resolution or fixture).
    """
    from eqcontract.config import ConfigError, load_config, select_targets
    from eqcontract.contract import FixtureError, verify as run_verify
    from eqcontract.factories import FactoryError, project_on_path, resolve_target

    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    def setup_failed(message: str) -> None:
        if as_json:
            click.echo(json.dumps({"setup_error": message}, indent=2))
        else:
            click.echo(f"SETUP ERROR: {message}", err=True)
        raise SystemExit(EXIT_SETUP_ERROR)

    root = Path(project_root)
    try:
        config = load_config(root)
        selected = select_targets(config, targets)
    except ConfigError as exc:
        setup_failed(str(exc))

    if not selected:
        setup_failed("No targets configured in .eqcontract/config.yaml")

    effective_repeats = repeats if repeats is not None else config["repeats"]
    only = config["checks"] or None

    reports: list[dict[str, Any]] = []
    any_violation = False
    any_setup_error = False

    with project_on_path(root):
        for target in selected:
            name = target["name"]
            try:
                factories = resolve_target(target)
                result = run_verify(*factories, repeats=effective_repeats, only=only)
            except (FactoryError, FixtureError) as exc:
                any_setup_error = True
                if as_json:
                    reports.append({"target": name, "setup_error": str(exc)})
                else:
                    click.echo(f"{name}: SETUP ERROR: {exc}")
                continue

            any_violation = any_violation or not result.passed
            if as_json:
                reports.append(_result_to_dict(name, result))
            else:
                _echo_result(name, result)

    if as_json:
        click.echo(json.dumps(reports, indent=2))

    if any_setup_error:
        raise SystemExit(EXIT_SETUP_ERROR)
    if any_violation:
        raise SystemExit(EXIT_VIOLATION)
