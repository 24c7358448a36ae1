"""Route exclusion checks."""

from typing import Callable

from reqlog.config.log import get_logger

from .config import SanitizationConfig

log = get_logger(__name__)


class RouteExclusionMatcher:
    """Decide whether a request should be observed at all."""

    def __init__(self, config: SanitizationConfig):
        self.excluded_routes = config.excluded_routes

    def is_excluded(self, resolve_route: Callable[[], str]) -> bool:
        """Return True when the resolved route is in the excluded set.

        ``resolve_route`` is only called when exclusions are configured.
        A failed resolution never excludes the request.
        """
        if not self.excluded_routes:
            return False

        try:
            route = resolve_route()
        except Exception as e:
            log.debug('Route resolution failed, request stays observed', error=str(e))
            return False

        return route in self.excluded_routes
