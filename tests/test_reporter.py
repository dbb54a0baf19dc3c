"""Tests for the rich terminal reporter."""

from __future__ import annotations

from rich.console import Console

from capprobe.deferred import Deferred
from capprobe.registry import ProbeFailure
from capprobe.reporter import CLIReporter, serialize_results


class TestSerializeResults:
    def test_plain_values(self) -> None:
        payload = serialize_results(["a", "b", "c"], {"a": True, "b": False, "c": None})
        assert payload == {"a": True, "b": False, "c": None}

    def test_missing_names_are_pending(self) -> None:
        assert serialize_results(["late"], {}) == {"late": "pending"}

    def test_failure_marker(self) -> None:
        failure = ProbeFailure(name="x", error=ValueError("bad"))
        assert serialize_results(["x"], {"x": failure}) == {"x": {"error": "ValueError: bad"}}

    def test_other_objects_use_repr(self) -> None:
        assert serialize_results(["x"], {"x": [1, 2]}) == {"x": "[1, 2]"}


class TestCLIReporter:
    def _reporter(self) -> tuple[CLIReporter, Console]:
        reporter = CLIReporter()
        reporter.console = Console(record=True, width=100)
        return reporter, reporter.console

    def test_print_results_table(self) -> None:
        reporter, console = self._reporter()
        pending = Deferred()
        resolved = Deferred()
        resolved.resolve(True)

        reporter.print_results(
            ["yes", "no", "waiting", "done", "broken", "absent"],
            {
                "yes": True,
                "no": False,
                "waiting": pending,
                "done": resolved,
                "broken": ProbeFailure(name="broken", error=RuntimeError("[x]")),
            },
        )

        text = console.export_text()
        assert "Capability probes" in text
        assert "yes" in text
        assert "no" in text
        assert "pending" in text
        assert "error: RuntimeError: [x]" in text

    def test_status_messages(self) -> None:
        reporter, console = self._reporter()
        reporter.print_success("fine")
        reporter.print_warning("careful")
        reporter.print_error("broken")

        text = console.export_text()
        assert "fine" in text
        assert "careful" in text
        assert "broken" in text
