"""Runtime probes for elapsed time and peak memory."""

import resource
import sys
import time

from .interfaces import RuntimeProbe

# Captured when the package is first imported, the closest we get to interpreter start.
PROCESS_STARTED_AT = time.time()


def peak_memory_bytes() -> int:
    """Peak resident set size of the current process."""
    peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # ru_maxrss is reported in bytes on macOS and kilobytes elsewhere
    return peak if sys.platform == 'darwin' else peak * 1024


class ProcessRuntime(RuntimeProbe):
    """Measure from process start."""

    def __init__(self, started_at: float = PROCESS_STARTED_AT):
        self.started_at = started_at

    def elapsed_seconds(self) -> float:
        return time.time() - self.started_at

    def peak_memory_bytes(self) -> int:
        return peak_memory_bytes()


class RequestRuntime(RuntimeProbe):
    """Measure from the moment a request was received."""

    def __init__(self, started_at: float | None = None):
        self.started_at = time.perf_counter() if started_at is None else started_at

    def elapsed_seconds(self) -> float:
        return time.perf_counter() - self.started_at

    def peak_memory_bytes(self) -> int:
        return peak_memory_bytes()
