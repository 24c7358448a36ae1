"""Request logging domain exceptions."""

from typing import Any, Dict, Optional


class RequestLogException(Exception):
    """Base exception carrying a context payload for further processing."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class ConfigurationError(RequestLogException):
    """Invalid request logging configuration. Raised at startup only."""

    def __init__(self, message: str, field: str, value: Any = None):
        super().__init__(message, context={'field': field, 'value': value})
        self.field = field
        self.value = value


class HandlerError(RequestLogException):
    """Failure while gathering context for a lifecycle event."""

    pass


class RuntimeAnomaly(RequestLogException):
    """Unexpected but harmless condition, reported as a warning."""

    pass


class RouteResolutionError(RequestLogException):
    """The host could not resolve a route for the current request."""

    pass


__all__ = ['ConfigurationError', 'HandlerError', 'RequestLogException', 'RouteResolutionError', 'RuntimeAnomaly']
