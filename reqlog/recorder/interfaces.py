"""Contracts between the recorder and its host environment."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence

HeaderSnapshot = Mapping[str, Sequence[str]]


@dataclass(frozen=True)
class UserIdentity:
    """Authenticated user behind a request."""

    id: str
    username: str


class IncomingRequest(ABC):
    """Read access to the request being observed.

    Every accessor may raise; the recorder logs the failure and keeps
    whatever context it gathered so far.
    """

    @abstractmethod
    def get_method(self) -> str:
        pass

    @abstractmethod
    def get_absolute_url(self) -> str:
        pass

    @abstractmethod
    def get_headers(self) -> HeaderSnapshot:
        pass

    @abstractmethod
    def get_body_params(self) -> Any:
        pass

    @abstractmethod
    def get_user_ip(self) -> Optional[str]:
        pass

    @abstractmethod
    def get_referrer(self) -> Optional[str]:
        pass

    @abstractmethod
    def get_user_agent(self) -> Optional[str]:
        pass

    @abstractmethod
    def get_identity(self) -> Optional[UserIdentity]:
        """Return the authenticated user, or None for guests."""
        pass

    @abstractmethod
    def resolve_route(self) -> str:
        """Resolve the route identifier. Raises RouteResolutionError when no route matches."""
        pass


class OutgoingResponse(ABC):
    """Read access to the response sent for an observed request."""

    @abstractmethod
    def get_status_code(self) -> int:
        pass

    @abstractmethod
    def get_format(self) -> Optional[str]:
        pass

    @abstractmethod
    def is_stream(self) -> bool:
        pass

    @abstractmethod
    def get_content_length(self) -> Optional[int]:
        pass

    @abstractmethod
    def get_headers(self) -> HeaderSnapshot:
        pass


@dataclass(frozen=True)
class ProcessInvocation:
    """A non-HTTP invocation such as a CLI command."""

    argv: Sequence[str]


class RuntimeProbe(ABC):
    """Timing and memory figures attached to end events."""

    @abstractmethod
    def elapsed_seconds(self) -> float:
        pass

    @abstractmethod
    def peak_memory_bytes(self) -> int:
        pass


class LogSink(ABC):
    """Destination of emitted records."""

    @abstractmethod
    def info(self, message: str, category: str, context: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    def warning(self, message: str, category: str, context: Dict[str, Any], exc: Optional[BaseException] = None) -> None:
        pass

    @abstractmethod
    def error(self, message: str, category: str, context: Dict[str, Any], exc: Optional[BaseException] = None) -> None:
        pass
