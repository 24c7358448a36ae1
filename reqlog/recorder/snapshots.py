"""Eager, in-memory implementations of the host contracts.

Useful for hosts that already hold every value up front, and in tests.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from reqlog.sanitization.exceptions import RouteResolutionError

from .interfaces import IncomingRequest, OutgoingResponse, UserIdentity


@dataclass
class RequestSnapshot(IncomingRequest):
    method: str = 'GET'
    url: str = '/'
    headers: Dict[str, List[str]] = field(default_factory=dict)
    body_params: Any = field(default_factory=dict)
    user_ip: Optional[str] = None
    referrer: Optional[str] = None
    user_agent: Optional[str] = None
    identity: Optional[UserIdentity] = None
    route: Optional[str] = None

    def get_method(self) -> str:
        return self.method

    def get_absolute_url(self) -> str:
        return self.url

    def get_headers(self) -> Dict[str, List[str]]:
        return self.headers

    def get_body_params(self) -> Any:
        return self.body_params

    def get_user_ip(self) -> Optional[str]:
        return self.user_ip

    def get_referrer(self) -> Optional[str]:
        return self.referrer

    def get_user_agent(self) -> Optional[str]:
        return self.user_agent

    def get_identity(self) -> Optional[UserIdentity]:
        return self.identity

    def resolve_route(self) -> str:
        if self.route is None:
            raise RouteResolutionError(f'No route matches {self.url}')
        return self.route


@dataclass
class ResponseSnapshot(OutgoingResponse):
    status_code: int = 200
    format: Optional[str] = None
    stream: bool = False
    content_length: Optional[int] = None
    headers: Dict[str, List[str]] = field(default_factory=dict)

    def get_status_code(self) -> int:
        return self.status_code

    def get_format(self) -> Optional[str]:
        return self.format

    def is_stream(self) -> bool:
        return self.stream

    def get_content_length(self) -> Optional[int]:
        return self.content_length

    def get_headers(self) -> Dict[str, List[str]]:
        return self.headers
