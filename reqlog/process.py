"""Process start/end observation for non-HTTP invocations."""

import sys
from contextlib import contextmanager
from typing import Iterator, Optional, Sequence

from reqlog.recorder.interfaces import ProcessInvocation, RuntimeProbe
from reqlog.recorder.lifecycle import LifecycleEventSource
from reqlog.recorder.runtime import ProcessRuntime


def exit_status_from(exc: Optional[BaseException]) -> int:
    """Map how a block ended to a process exit status."""
    if exc is None:
        return 0
    if isinstance(exc, SystemExit):
        if exc.code is None:
            return 0
        # bool is an int subclass, SystemExit(True) exits with 1
        return int(exc.code) if isinstance(exc.code, int) else 1
    return 1


@contextmanager
def observe_process(
    event_source: LifecycleEventSource,
    argv: Optional[Sequence[str]] = None,
    runtime: Optional[RuntimeProbe] = None,
) -> Iterator[ProcessInvocation]:
    """Fire process start/end events around the enclosed block.

    Exceptions from the block, including SystemExit, are re-raised after the
    end event has been emitted.
    """
    invocation = ProcessInvocation(argv=list(sys.argv if argv is None else argv))
    observations = event_source.process_start(invocation, runtime or ProcessRuntime())

    try:
        yield invocation
    except BaseException as e:
        event_source.process_end(observations, exit_status_from(e))
        raise

    event_source.process_end(observations, 0)
