"""Factory for creating a ``ProbeRegistry`` from configuration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from capprobe.builtin import register_builtin_probes
from capprobe.config import CapProbeConfig
from capprobe.registry import ProbeRegistry

if TYPE_CHECKING:
    from capprobe.environment import ProbeEnvironment

logger = logging.getLogger(__name__)


def create_registry(
    config: CapProbeConfig | None = None,
    *,
    environment: ProbeEnvironment | None = None,
) -> ProbeRegistry:
    """Instantiate a ``ProbeRegistry`` set up according to *config*.

    Registers the built-in probes unless ``probes.builtin`` is off, then
    evaluates every name listed in ``probes.immediate``.  Construct one
    registry per process and pass it to the code that needs it.

    Args:
        config: Loaded configuration; defaults apply when ``None``.
        environment: Handles for probe bodies; built from the current
            host when ``None``.
    """
    config = config if config is not None else CapProbeConfig()
    registry = ProbeRegistry(environment)

    if config.probes.builtin:
        register_builtin_probes(registry, disabled=config.probes.disabled)

    for name in config.probes.immediate:
        if name not in registry:
            logger.warning("Immediate probe %s is not registered; skipping", name)
            continue
        registry.lookup(name)

    return registry
