"""Ambient environment handles passed to every probe body."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

PROBE_ELEMENT_TAG = "div"


@dataclass
class ProbeEnvironment:
    """The fixed context objects shared by all probes.

    The same ``element`` instance is reused across probes; a probe that
    mutates it must leave it reusable (see ``capprobe.hosts.clear_element``).
    """

    global_scope: Any
    """Global namespace of the host (module, mapping or object)."""

    document: Any | None = None
    """Optional DOM-like document; ``None`` outside a document host."""

    element: Any | None = None
    """Scratch probe element created from ``document``."""

    def handles(self) -> tuple[Any, Any | None, Any | None]:
        """Positional arguments for a probe body."""
        return (self.global_scope, self.document, self.element)


def build_environment(global_scope: Any = None, document: Any = None) -> ProbeEnvironment:
    """Assemble a ``ProbeEnvironment`` for the current host.

    Args:
        global_scope: Global namespace; defaults to the ``__main__`` module.
        document: DOM-like document offering ``createElement``.  When
            given, a scratch element is created from it.
    """
    if global_scope is None:
        global_scope = sys.modules.get("__main__")

    element = None
    if document is not None:
        create_element = getattr(document, "createElement", None)
        if callable(create_element):
            element = create_element(PROBE_ELEMENT_TAG)
        else:
            logger.debug("Document %r cannot create elements; probe element disabled", document)

    return ProbeEnvironment(global_scope=global_scope, document=document, element=element)
