"""Lifecycle event recording."""

from .interfaces import IncomingRequest, LogSink, OutgoingResponse, ProcessInvocation, RuntimeProbe, UserIdentity
from .lifecycle import EventPhase, LifecycleEventSource, LifecycleHooks, LifecycleState, Observation
from .recorder import GUEST_USER_ID, GUEST_USERNAME, LOG_CATEGORY, EventRecorder
from .runtime import ProcessRuntime, RequestRuntime
from .sinks import RecordingSink, StructlogSink
from .snapshots import RequestSnapshot, ResponseSnapshot

__all__ = [
    'GUEST_USER_ID',
    'GUEST_USERNAME',
    'LOG_CATEGORY',
    'EventPhase',
    'EventRecorder',
    'IncomingRequest',
    'LifecycleEventSource',
    'LifecycleHooks',
    'LifecycleState',
    'LogSink',
    'Observation',
    'OutgoingResponse',
    'ProcessInvocation',
    'ProcessRuntime',
    'RecordingSink',
    'RequestRuntime',
    'RequestSnapshot',
    'ResponseSnapshot',
    'RuntimeProbe',
    'StructlogSink',
    'UserIdentity',
]
