"""capprobe — lazily evaluated, memoized runtime capability probes."""

from capprobe.deferred import Deferred, DeferredPendingError
from capprobe.environment import ProbeEnvironment, build_environment
from capprobe.registry import ProbeFailure, ProbeRecursionError, ProbeRegistry

__version__ = "0.1.0"

__all__ = [
    "Deferred",
    "DeferredPendingError",
    "ProbeEnvironment",
    "ProbeFailure",
    "ProbeRecursionError",
    "ProbeRegistry",
    "__version__",
    "build_environment",
]
