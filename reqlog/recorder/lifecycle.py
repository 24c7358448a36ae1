"""Lifecycle hooks and the event source hosts use to fire them."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from reqlog.config.log import get_logger

from .interfaces import IncomingRequest, OutgoingResponse, ProcessInvocation, RuntimeProbe

log = get_logger(__name__)


class EventPhase(Enum):
    """Points in a request or process life at which records are emitted."""

    REQUEST_START = 'request-start'
    REQUEST_END = 'request-end'
    PROCESS_START = 'process-start'
    PROCESS_END = 'process-end'


class LifecycleState(Enum):
    IDLE = 'idle'
    REQUEST_OBSERVED = 'request_observed'
    RESPONSE_OBSERVED = 'response_observed'
    PROCESS_STARTED = 'process_started'
    PROCESS_ENDED = 'process_ended'


# Allowed transitions per target state
_TRANSITIONS = {
    LifecycleState.REQUEST_OBSERVED: {LifecycleState.IDLE},
    LifecycleState.RESPONSE_OBSERVED: {LifecycleState.REQUEST_OBSERVED},
    LifecycleState.PROCESS_STARTED: {LifecycleState.IDLE},
    LifecycleState.PROCESS_ENDED: {LifecycleState.PROCESS_STARTED},
}


@dataclass
class Observation:
    """Per-invocation lifecycle state.

    ``skipped`` observations belong to excluded routes; they never emit.
    """

    state: LifecycleState = LifecycleState.IDLE
    skipped: bool = False
    runtime: Optional[RuntimeProbe] = None
    history: List[LifecycleState] = field(default_factory=list)

    def can_enter(self, target: LifecycleState) -> bool:
        return self.state in _TRANSITIONS.get(target, set())

    def enter(self, target: LifecycleState) -> None:
        self.history.append(self.state)
        self.state = target

    def finish(self) -> None:
        """Return to IDLE once the end record has been emitted."""
        self.history.append(self.state)
        self.state = LifecycleState.IDLE

    @property
    def completed(self) -> bool:
        return self.state is LifecycleState.IDLE and bool(self.history)


class LifecycleHooks(ABC):
    """Callbacks fired by a LifecycleEventSource."""

    @abstractmethod
    def on_request_start(self, request: IncomingRequest, runtime: Optional[RuntimeProbe] = None) -> Observation:
        pass

    @abstractmethod
    def on_request_end(self, observation: Observation, response: OutgoingResponse) -> None:
        pass

    @abstractmethod
    def on_process_start(self, invocation: ProcessInvocation, runtime: Optional[RuntimeProbe] = None) -> Observation:
        pass

    @abstractmethod
    def on_process_end(self, observation: Observation, exit_status: int) -> None:
        pass


class LifecycleEventSource:
    """Fan lifecycle events out to subscribed hooks.

    A failing hook is logged and never propagates to the host.
    """

    def __init__(self):
        self._hooks: List[LifecycleHooks] = []

    @property
    def hooks(self) -> List[LifecycleHooks]:
        return list(self._hooks)

    def subscribe(self, hooks: LifecycleHooks) -> None:
        self._hooks.append(hooks)

    def request_start(self, request: IncomingRequest, runtime: Optional[RuntimeProbe] = None) -> List[Observation]:
        observations = []
        for hooks in self._hooks:
            try:
                observations.append(hooks.on_request_start(request, runtime))
            except Exception:
                log.error('Lifecycle hook failed', hook='on_request_start', exc_info=True)
                observations.append(Observation(skipped=True))
        return observations

    def request_end(self, observations: List[Observation], response: OutgoingResponse) -> None:
        for hooks, observation in zip(self._hooks, observations):
            try:
                hooks.on_request_end(observation, response)
            except Exception:
                log.error('Lifecycle hook failed', hook='on_request_end', exc_info=True)

    def process_start(self, invocation: ProcessInvocation, runtime: Optional[RuntimeProbe] = None) -> List[Observation]:
        observations = []
        for hooks in self._hooks:
            try:
                observations.append(hooks.on_process_start(invocation, runtime))
            except Exception:
                log.error('Lifecycle hook failed', hook='on_process_start', exc_info=True)
                observations.append(Observation(skipped=True))
        return observations

    def process_end(self, observations: List[Observation], exit_status: int) -> None:
        for hooks, observation in zip(self._hooks, observations):
            try:
                hooks.on_process_end(observation, exit_status)
            except Exception:
                log.error('Lifecycle hook failed', hook='on_process_end', exc_info=True)
