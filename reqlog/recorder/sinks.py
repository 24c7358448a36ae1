"""Log sinks that receive emitted records."""

from typing import Any, Dict, List, Optional, Tuple

from structlog.types import FilteringBoundLogger

from reqlog.config.log import get_logger

from .interfaces import LogSink


class StructlogSink(LogSink):
    """Render each record as one structlog event.

    The context is spread into the event dict, so downstream processors see
    ``user``, ``request``, ``headers`` and friends as top level keys.
    """

    def __init__(self, logger: Optional[FilteringBoundLogger] = None):
        self.logger = logger or get_logger('reqlog')

    def info(self, message: str, category: str, context: Dict[str, Any]) -> None:
        self.logger.info(message, category=category, **context)

    def warning(self, message: str, category: str, context: Dict[str, Any], exc: Optional[BaseException] = None) -> None:
        self.logger.warning(message, category=category, exc_info=exc, **context)

    def error(self, message: str, category: str, context: Dict[str, Any], exc: Optional[BaseException] = None) -> None:
        self.logger.error(message, category=category, exc_info=exc, **context)


class RecordingSink(LogSink):
    """Keep records in memory. Used by tests and for local debugging."""

    def __init__(self):
        self.records: List[Tuple[str, str, str, Dict[str, Any], Optional[BaseException]]] = []

    def info(self, message: str, category: str, context: Dict[str, Any]) -> None:
        self.records.append(('info', message, category, context, None))

    def warning(self, message: str, category: str, context: Dict[str, Any], exc: Optional[BaseException] = None) -> None:
        self.records.append(('warning', message, category, context, exc))

    def error(self, message: str, category: str, context: Dict[str, Any], exc: Optional[BaseException] = None) -> None:
        self.records.append(('error', message, category, context, exc))

    def by_level(self, level: str) -> List[Tuple[str, str, str, Dict[str, Any], Optional[BaseException]]]:
        return [record for record in self.records if record[0] == level]
