"""Request context utilities for per-request state management."""

from __future__ import annotations

import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class RequestContext:
    """Structured context data attached to each inbound request."""

    correlation_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    method: Optional[str] = None
    path: Optional[str] = None

    def to_dict(self, include_none: bool = False) -> Dict[str, Any]:
        """Serialize context for structured logging."""
        result: Dict[str, Any] = {}

        for key, value in {
            'correlation_id': self.correlation_id,
            'method': self.method,
            'path': self.path,
        }.items():
            if include_none or value is not None:
                result[key] = value

        return result


request_context_var: ContextVar[Optional[RequestContext]] = ContextVar('request_context', default=None)


def get_request_context() -> Optional[RequestContext]:
    """Return the active request context, if any."""

    return request_context_var.get()


def set_request_context(context: Optional[RequestContext]) -> None:
    """Replace the current request context."""

    request_context_var.set(context)


__all__ = [
    'RequestContext',
    'get_request_context',
    'set_request_context',
    'request_context_var',
]
