"""Deferred value — a one-shot, multi-waiter result cell.

Asynchronous probes hand a ``Deferred`` back to callers immediately and
resolve it from a later turn of the event loop.  The cell is write-once:
the first ``resolve`` wins and every waiter observes that same value.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


# Disjoint from every probe result, including None and False.
_UNSET: Any = object()


class DeferredPendingError(RuntimeError):
    """Raised when reading the result of an unresolved ``Deferred``."""


class Deferred:
    """A result that is not known yet at creation time.

    Waiters added before resolution are queued and notified in
    last-registered-first order.  Waiters added after resolution run
    immediately and synchronously with the known value.
    """

    def __init__(self) -> None:
        self._result: Any = _UNSET
        self._waiters: list[Callable[[Any], object]] = []

    @property
    def resolved(self) -> bool:
        """Whether ``resolve`` has been called."""
        return self._result is not _UNSET

    @property
    def result(self) -> Any:
        """The resolved value.

        Raises:
            DeferredPendingError: If the deferred is still pending.
        """
        if self._result is _UNSET:
            raise DeferredPendingError("Deferred has not been resolved yet")
        return self._result

    def add_waiter(self, callback: Callable[[Any], object]) -> None:
        """Call *callback* with the result once it is known.

        Runs *callback* right away if the deferred is already resolved.
        """
        if self._result is _UNSET:
            self._waiters.append(callback)
        else:
            callback(self._result)

    register_waiter = add_waiter

    def resolve(self, value: Any) -> None:
        """Set the result and notify queued waiters.

        Only the first call has an effect; later calls are ignored.  A
        waiter that raises is logged and the remaining waiters still run.
        """
        if self._result is not _UNSET:
            logger.debug("Ignoring second resolution of %r with %r", self, value)
            return
        self._result = value
        while self._waiters:
            waiter = self._waiters.pop()
            try:
                waiter(value)
            except Exception:
                logger.exception("Deferred waiter %r failed", waiter)

    async def wait(self) -> Any:
        """Wait on the running event loop until the deferred resolves."""
        if self._result is not _UNSET:
            return self._result

        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()

        def _settle(value: Any) -> None:
            if not future.done():
                future.set_result(value)

        self.add_waiter(_settle)
        return await future

    def __repr__(self) -> str:
        if self._result is _UNSET:
            return f"<Deferred pending waiters={len(self._waiters)}>"
        return f"<Deferred resolved result={self._result!r}>"
