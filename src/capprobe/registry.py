"""Probe registry — named, lazily evaluated, memoized capability probes.

A probe answers "does this environment support feature X" (or "does it
exhibit bug Y").  Probes are registered by name and evaluated on first
lookup; the result replaces the probe body in its slot so the body runs
at most once for the lifetime of the registry.

Example::

    registry = ProbeRegistry()
    registry.register("native-bind", lambda g, d, el: hasattr(g, "bind"))
    if registry("native-bind"):
        ...
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from dataclasses import dataclass
from types import TracebackType
from typing import Any, TypeAlias

from capprobe.deferred import Deferred
from capprobe.environment import ProbeEnvironment, build_environment

logger = logging.getLogger(__name__)

ProbeFn: TypeAlias = Callable[..., Any]
"""``body(global_scope, document, element[, deferred]) -> result``."""


class ProbeRecursionError(RuntimeError):
    """Raised when a probe looks up its own name while being evaluated."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Probe {name!r} was looked up during its own evaluation")
        self.name = name


@dataclass(frozen=True)
class ProbeFailure:
    """Error marker recorded by ``ProbeRegistry.enumerate_all``."""

    name: str
    error: BaseException

    @property
    def message(self) -> str:
        """Human-readable description of the failure."""
        return f"{type(self.error).__name__}: {self.error}"


# ── Slot states ──────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class _Pending:
    body: ProbeFn


@dataclass(frozen=True, slots=True, eq=False)
class _Evaluating:
    pass


@dataclass(frozen=True, slots=True)
class _Resolved:
    value: Any


@dataclass(frozen=True, slots=True)
class _Failed:
    error: BaseException
    traceback: TracebackType | None


_Slot: TypeAlias = _Pending | _Evaluating | _Resolved | _Failed


def _wrap_asynchronous(body: ProbeFn) -> ProbeFn:
    """Adapt an asynchronous probe body to the synchronous call shape.

    Each call creates a fresh ``Deferred``, hands it to *body* as the
    fourth argument and returns it.  Whatever *body* returns is ignored.
    """

    @functools.wraps(body)
    def _run(global_scope: Any, document: Any, element: Any) -> Deferred:
        deferred = Deferred()
        body(global_scope, document, element, deferred)
        return deferred

    return _run


class ProbeRegistry:
    """Registry mapping probe names to memoized results.

    ``lookup`` (or calling the registry) returns a plain result for
    synchronous probes and a ``Deferred`` for asynchronous ones.  Looking
    up an unknown name returns ``None``.
    """

    def __init__(self, environment: ProbeEnvironment | None = None) -> None:
        """Initialize an empty registry bound to *environment*."""
        self._environment = environment if environment is not None else build_environment()
        self._slots: dict[str, _Slot] = {}

    @property
    def environment(self) -> ProbeEnvironment:
        """Handles passed to every probe body."""
        return self._environment

    def register(
        self,
        name: str,
        body: Any,
        *,
        immediate: bool = False,
        asynchronous: bool = False,
    ) -> None:
        """Register a probe under *name*.

        Args:
            name: The feature name, e.g. ``"native-bind"``.
            body: A precomputed result, or a callable receiving
                ``(global_scope, document, element)`` plus a ``Deferred``
                when *asynchronous* is set.
            immediate: Run the probe now and cache its result.
            asynchronous: The probe resolves its ``Deferred`` later instead
                of returning a result.

        Registering an existing name replaces it silently.
        """
        if name in self._slots:
            logger.debug("Replacing probe %s", name)

        if not callable(body):
            self._slots[name] = _Resolved(body)
            logger.debug("Registered precomputed probe %s = %r", name, body)
            return

        probe = _wrap_asynchronous(body) if asynchronous else body
        self._slots[name] = _Pending(probe)
        logger.debug(
            "Registered probe %s (immediate=%s, asynchronous=%s)",
            name,
            immediate,
            asynchronous,
        )
        if immediate:
            self.lookup(name)

    def lookup(self, name: str) -> Any:
        """Return the result of probe *name*, evaluating it on first use.

        Raises:
            ProbeRecursionError: If the probe is already being evaluated.
            BaseException: Whatever the probe body raised, interrupts
                included.  The failure is cached and raised again, with
                its original traceback, on later lookups.
        """
        slot = self._slots.get(name)
        if slot is None:
            return None
        if isinstance(slot, _Resolved):
            return slot.value
        if isinstance(slot, _Failed):
            raise slot.error.with_traceback(slot.traceback)
        if isinstance(slot, _Evaluating):
            raise ProbeRecursionError(name)

        marker = _Evaluating()
        self._slots[name] = marker
        try:
            value = slot.body(*self._environment.handles())
        except BaseException as exc:
            if self._slots.get(name) is marker:
                self._slots[name] = _Failed(exc, exc.__traceback__)
            logger.debug("Probe %s raised %s", name, exc)
            raise

        # The body may have re-registered its own name; the newer slot wins.
        if self._slots.get(name) is marker:
            self._slots[name] = _Resolved(value)
        logger.debug("Probe %s evaluated to %r", name, value)
        return value

    __call__ = lookup

    def is_evaluated(self, name: str) -> bool:
        """Whether probe *name* holds a final value (or a cached failure)."""
        return isinstance(self._slots.get(name), (_Resolved, _Failed))

    def names(self) -> list[str]:
        """Return all registered probe names in registration order."""
        return list(self._slots)

    def __contains__(self, name: object) -> bool:
        return name in self._slots

    def __len__(self) -> int:
        return len(self._slots)

    def enumerate_all(self) -> dict[str, Any]:
        """Evaluate every probe and collect the results.

        Intended for debugging and diagnostics only.  Results of
        asynchronous probes land in the returned mapping when their
        ``Deferred`` resolves, so the mapping may fill in over time.
        Exceptions are recorded as ``ProbeFailure`` markers instead of
        propagating.
        """
        results: dict[str, Any] = {}
        for name in self.names():
            try:
                value = self.lookup(name)
            except Exception as exc:
                logger.warning("Probe %s failed: %s", name, exc)
                results[name] = ProbeFailure(name=name, error=exc)
                continue

            if isinstance(value, Deferred):
                value.add_waiter(functools.partial(results.__setitem__, name))
            else:
                results[name] = value
        return results
