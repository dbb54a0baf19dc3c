"""Terminal reporter with rich output formatting."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.table import Table
from rich.text import Text

from capprobe.deferred import Deferred
from capprobe.registry import ProbeFailure

console = Console()

PENDING = "pending"
ERROR = "error"


def _describe(value: Any) -> tuple[str, str]:
    """Return ``(text, style)`` for a probe result."""
    if isinstance(value, ProbeFailure):
        return f"{ERROR}: {value.message}", "red"
    if isinstance(value, Deferred):
        if value.resolved:
            return _describe(value.result)
        return PENDING, "yellow"
    if value is True:
        return "yes", "green"
    if value is False:
        return "no", "red"
    if value is None:
        return "unknown", "dim"
    return repr(value), "cyan"


def serialize_results(names: list[str], results: dict[str, Any]) -> dict[str, Any]:
    """Turn probe results into JSON-compatible values.

    Names missing from *results* are still pending.  Failures become
    ``{"error": message}``.
    """
    payload: dict[str, Any] = {}
    for name in names:
        if name not in results:
            payload[name] = PENDING
            continue
        value = results[name]
        if isinstance(value, ProbeFailure):
            payload[name] = {ERROR: value.message}
        elif value is None or isinstance(value, (bool, int, float, str)):
            payload[name] = value
        else:
            payload[name] = repr(value)
    return payload


class CLIReporter:
    """Rich terminal output for probe diagnostics."""

    def __init__(self) -> None:
        """Initialize the CLI reporter."""
        self.console = console

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_results(self, names: list[str], results: dict[str, Any]) -> None:
        """Print a table of probe results in registration order."""
        table = Table(title="Capability probes")
        table.add_column("Probe", style="bold")
        table.add_column("Result")

        for name in names:
            text, style = _describe(results[name]) if name in results else (PENDING, "yellow")
            table.add_row(name, Text(text, style=style))

        self.console.print(table)


reporter = CLIReporter()
