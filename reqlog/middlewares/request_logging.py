"""Starlette adapters feeding requests and responses into the lifecycle event source."""

from __future__ import annotations

from typing import Any, AsyncIterator, Callable, Dict, Iterator, List, Optional
from urllib.parse import parse_qs

import orjson
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match

from reqlog.recorder.interfaces import IncomingRequest, OutgoingResponse, UserIdentity
from reqlog.recorder.lifecycle import LifecycleEventSource, Observation
from reqlog.recorder.runtime import RequestRuntime
from reqlog.sanitization.exceptions import RouteResolutionError


def _multi_value_headers(items) -> Dict[str, List[str]]:
    headers: Dict[str, List[str]] = {}
    for name, value in items:
        headers.setdefault(name, []).append(value)
    return headers


def _media_type(content_type: str) -> str:
    return content_type.split(';', 1)[0].strip().lower()


def _is_json(media_type: str) -> bool:
    return media_type == 'application/json' or media_type.endswith('+json')


def has_parsable_body(content_type: str) -> bool:
    """Whether a request body of this content type is decoded into params."""
    media_type = _media_type(content_type)
    return _is_json(media_type) or media_type == 'application/x-www-form-urlencoded'


def parse_body_params(body: bytes, content_type: str) -> Any:
    """Decode JSON and urlencoded bodies. Other content types yield no params."""
    if not body:
        return {}

    media_type = _media_type(content_type)
    if _is_json(media_type):
        return orjson.loads(body)

    if media_type == 'application/x-www-form-urlencoded':
        parsed = parse_qs(body.decode('utf-8'), keep_blank_values=True)
        return {key: values[0] if len(values) == 1 else values for key, values in parsed.items()}

    return {}


class StarletteIncomingRequest(IncomingRequest):
    """IncomingRequest backed by a Starlette request.

    ``body`` is None when the content type is not decoded into params.
    """

    def __init__(self, request: Request, body: Optional[bytes], body_error: Optional[Exception] = None):
        self.request = request
        self.body = body
        self.body_error = body_error

    def get_method(self) -> str:
        return self.request.method

    def get_absolute_url(self) -> str:
        return str(self.request.url)

    def get_headers(self) -> Dict[str, List[str]]:
        return _multi_value_headers(self.request.headers.items())

    def get_body_params(self) -> Any:
        if self.body_error is not None:
            raise self.body_error
        return parse_body_params(self.body or b'', self.request.headers.get('content-type', ''))

    def get_user_ip(self) -> Optional[str]:
        return self.request.client.host if self.request.client else None

    def get_referrer(self) -> Optional[str]:
        return self.request.headers.get('referer')

    def get_user_agent(self) -> Optional[str]:
        return self.request.headers.get('user-agent')

    def get_identity(self) -> Optional[UserIdentity]:
        # Only present when an AuthenticationMiddleware runs before us
        user = self.request.scope.get('user')
        if user is None or not getattr(user, 'is_authenticated', False):
            return None

        try:
            identity = user.identity
        except (AttributeError, NotImplementedError):
            identity = user.display_name
        return UserIdentity(id=str(identity), username=user.display_name)

    def resolve_route(self) -> str:
        app = self.request.scope.get('app')
        router = getattr(app, 'router', None)
        for route in _leaf_routes(getattr(router, 'routes', [])):
            match, _ = route.matches(self.request.scope)
            if match != Match.FULL:
                continue

            template = _route_template(route)
            if template:
                return template

        raise RouteResolutionError(f'No route matches {self.request.url.path}')


def _leaf_routes(routes) -> Iterator[Any]:
    # Routers added with include_router may stay nested; expand them to their prefixed routes
    for route in routes:
        expand = getattr(route, 'effective_route_contexts', None)
        if callable(expand):
            yield from expand()
        else:
            yield route


def _route_template(route) -> Optional[str]:
    for candidate in (route, getattr(route, 'starlette_route', None)):
        template = getattr(candidate, 'path', None) or getattr(candidate, 'name', None)
        if template:
            return template
    return None


class StarletteOutgoingResponse(OutgoingResponse):
    """OutgoingResponse for a response whose body has been fully sent."""

    def __init__(self, response: Response, bytes_sent: int):
        self.response = response
        self.bytes_sent = bytes_sent

    def get_status_code(self) -> int:
        return self.response.status_code

    def get_format(self) -> Optional[str]:
        content_type = self.response.media_type or self.response.headers.get('content-type')
        return content_type.split(';', 1)[0].strip() if content_type else None

    def is_stream(self) -> bool:
        return 'content-length' not in self.response.headers

    def get_content_length(self) -> Optional[int]:
        return self.bytes_sent

    def get_headers(self) -> Dict[str, List[str]]:
        return _multi_value_headers(self.response.headers.items())


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Fire request lifecycle events around every HTTP request.

    The end event fires once the response body has been fully sent. Aborted
    responses never produce one.
    """

    def __init__(self, app, event_source: LifecycleEventSource):
        super().__init__(app)
        self.event_source = event_source

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        runtime = RequestRuntime()

        # Only bodies that become params are buffered, uploads stream through untouched
        body: Optional[bytes] = None
        body_error: Optional[Exception] = None
        if has_parsable_body(request.headers.get('content-type', '')):
            try:
                body = await request.body()
            except Exception as e:
                body_error = e

        observations = self.event_source.request_start(StarletteIncomingRequest(request, body, body_error), runtime)

        response = await call_next(request)
        response.body_iterator = self._observe_body(response, response.body_iterator, observations)
        return response

    async def _observe_body(self, response: Response, body_iterator: AsyncIterator, observations: List[Observation]) -> AsyncIterator:
        sent = 0
        async for chunk in body_iterator:
            sent += len(chunk.encode('utf-8') if isinstance(chunk, str) else chunk)
            yield chunk

        self.event_source.request_end(observations, StarletteOutgoingResponse(response, sent))
