"""Built-in probes registered on every default registry."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from capprobe.hosts import has_member

if TYPE_CHECKING:
    from collections.abc import Iterable

    from capprobe.deferred import Deferred
    from capprobe.registry import ProbeRegistry

logger = logging.getLogger(__name__)

IS_BROWSER = "is-browser"
EVENT_LOOP_TIMER = "event-loop-timer"
BUILTIN_PROBES: tuple[str, ...] = (IS_BROWSER, EVENT_LOOP_TIMER)

# Delay before the timer probe resolves, in seconds.
TIMER_PROBE_DELAY = 0.05


def probe_is_browser(global_scope: Any, document: Any, element: Any) -> bool:
    """A document, a probe element and a ``navigator`` global are present."""
    return document is not None and element is not None and has_member(global_scope, "navigator")


def probe_event_loop_timer(
    global_scope: Any, document: Any, element: Any, deferred: Deferred
) -> None:
    """Resolve ``True`` from a later turn of the running event loop.

    Outside a running loop there is nothing to schedule on, so the probe
    resolves ``False`` at once.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.debug("No running event loop; %s resolves False", EVENT_LOOP_TIMER)
        deferred.resolve(False)
        return
    loop.call_later(TIMER_PROBE_DELAY, deferred.resolve, True)


def register_builtin_probes(registry: ProbeRegistry, *, disabled: Iterable[str] = ()) -> list[str]:
    """Register the built-in probes on *registry*.

    Args:
        registry: Target registry.
        disabled: Built-in probe names to skip.

    Returns:
        Names of the probes that were registered.
    """
    skip = set(disabled)
    registered: list[str] = []

    if IS_BROWSER not in skip:
        registry.register(IS_BROWSER, probe_is_browser, immediate=True)
        registered.append(IS_BROWSER)

    if EVENT_LOOP_TIMER not in skip:
        registry.register(EVENT_LOOP_TIMER, probe_event_loop_timer, asynchronous=True)
        registered.append(EVENT_LOOP_TIMER)

    logger.debug("Registered built-in probes: %s", ", ".join(registered) or "none")
    return registered
