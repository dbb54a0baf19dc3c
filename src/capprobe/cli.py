"""capprobe CLI — diagnostic commands for inspecting probe results."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import click

from capprobe import __version__
from capprobe.config import (
    CONFIG_FILENAME,
    CapProbeConfig,
    ConfigError,
    load_config,
    validate_config,
)
from capprobe.deferred import Deferred
from capprobe.factory import create_registry
from capprobe.registry import ProbeFailure
from capprobe.reporter import console, reporter, serialize_results

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Exit codes for ``capprobe check``.
EXIT_SUPPORTED = 0
EXIT_UNSUPPORTED = 1
EXIT_PROBE_ERROR = 2

_path_option = click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help=f"Directory containing {CONFIG_FILENAME}.",
)


def _log_level(name: str) -> int:
    """Map a level name to its number, falling back to WARNING."""
    return logging.getLevelNamesMapping().get(name.upper(), logging.WARNING)


def _load(path: str, *, verbose: bool) -> CapProbeConfig:
    try:
        config = load_config(path)
    except ConfigError as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    level = logging.DEBUG if verbose else _log_level(config.logging.level)
    logging.basicConfig(level=level, format=_LOG_FORMAT)
    return config


def _is_verbose() -> bool:
    ctx = click.get_current_context()
    return bool(ctx.obj.get("verbose", False)) if ctx.obj else False


async def _collect_report(
    config: CapProbeConfig, settle_seconds: float
) -> tuple[list[str], dict[str, Any]]:
    """Evaluate all probes, giving asynchronous ones time to settle."""
    registry = create_registry(config)
    results = registry.enumerate_all()
    names = registry.names()

    pending: list[Deferred] = []
    for name in names:
        if name in results:
            continue
        value = registry.lookup(name)
        if isinstance(value, Deferred):
            pending.append(value)

    if pending and settle_seconds > 0:
        logger.debug("Waiting up to %.2fs for %d pending probe(s)", settle_seconds, len(pending))
        tasks = [asyncio.ensure_future(deferred.wait()) for deferred in pending]
        _, unfinished = await asyncio.wait(tasks, timeout=settle_seconds)
        for task in unfinished:
            task.cancel()

    return names, results


async def _check_probe(config: CapProbeConfig, name: str, settle_seconds: float) -> Any:
    """Look up a single probe, waiting for it if it is asynchronous."""
    registry = create_registry(config)
    if name not in registry:
        return None

    value = registry.lookup(name)
    if not isinstance(value, Deferred):
        return value
    if value.resolved:
        return value.result
    try:
        return await asyncio.wait_for(value.wait(), timeout=settle_seconds)
    except TimeoutError:
        return value


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.version_option(version=__version__, prog_name="capprobe")
@click.pass_context
def cli(ctx: click.Context, *, verbose: bool) -> None:
    """capprobe — runtime capability probes for the current environment."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@cli.command()
@_path_option
@click.option("--json-output", "as_json", is_flag=True, help="Output raw JSON instead of a table.")
@click.option(
    "--settle",
    type=float,
    default=None,
    help="Seconds to wait for asynchronous probes (default: report.settle_seconds).",
)
def report(path: str, *, as_json: bool, settle: float | None) -> None:
    """Run every registered probe and show the results.

    Asynchronous probes that have not resolved within the settle time
    are shown as pending.
    """
    config = _load(path, verbose=_is_verbose())
    settle_seconds = config.report.settle_seconds if settle is None else settle

    names, results = asyncio.run(_collect_report(config, settle_seconds))

    if as_json or config.report.format == "json":
        click.echo(json.dumps(serialize_results(names, results), indent=2))
    else:
        reporter.print_results(names, results)


@cli.command()
@click.argument("name")
@_path_option
@click.option(
    "--settle",
    type=float,
    default=None,
    help="Seconds to wait for an asynchronous probe (default: report.settle_seconds).",
)
def check(name: str, path: str, settle: float | None) -> None:
    """Check a single probe; exit 0 if supported, 1 if not, 2 on error."""
    config = _load(path, verbose=_is_verbose())
    settle_seconds = config.report.settle_seconds if settle is None else settle

    try:
        value = asyncio.run(_check_probe(config, name, settle_seconds))
    except Exception as e:
        failure = ProbeFailure(name=name, error=e)
        reporter.print_error(f"{name}: {failure.message}")
        raise SystemExit(EXIT_PROBE_ERROR) from e

    if isinstance(value, Deferred):
        reporter.print_warning(f"{name}: still pending after {settle_seconds:g}s")
        raise SystemExit(EXIT_UNSUPPORTED)
    if value is None:
        reporter.print_warning(f"{name}: unknown probe")
        raise SystemExit(EXIT_UNSUPPORTED)
    if not value:
        reporter.print_error(f"{name}: not supported")
        raise SystemExit(EXIT_UNSUPPORTED)

    reporter.print_success(f"{name}: supported")


@cli.group("config")
def config_group() -> None:
    """Inspect `.capprobe.yml` configuration."""


@config_group.command("validate")
@_path_option
def config_validate(path: str) -> None:
    """Validate `.capprobe.yml` and list any problems."""
    config = _load(path, verbose=_is_verbose())
    errors = validate_config(config)

    if not errors:
        reporter.print_success("Configuration is valid!")
        return

    reporter.print_error(f"Found {len(errors)} configuration error(s):")
    console.print()
    for idx, error in enumerate(errors, start=1):
        console.print(f"  {idx}. [red]{error}[/red]")
    console.print()
    raise click.Abort
