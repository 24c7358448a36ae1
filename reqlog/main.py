from typing import Optional, Sequence

from fastapi import FastAPI

from reqlog.config import ConfigurationService, setup_config
from reqlog.config.log import configure_structlog, get_logger
from reqlog.config.models import ConfigModel
from reqlog.middlewares.request_context import RequestContextMiddleware
from reqlog.middlewares.request_logging import RequestLoggingMiddleware
from reqlog.process import observe_process
from reqlog.recorder.interfaces import LogSink
from reqlog.recorder.lifecycle import LifecycleEventSource
from reqlog.recorder.recorder import EventRecorder
from reqlog.routers.health import router as health_router


def create_app(config: Optional[ConfigModel] = None, sink: Optional[LogSink] = None) -> FastAPI:
    """Application factory for creating FastAPI instances.

    Args:
        config: Optional configuration. If None, loads default config.
        sink: Optional log sink for request records. Defaults to structlog.

    Returns:
        Configured FastAPI application instance.

    Raises:
        ConfigurationError: If the request logging options are invalid.
    """
    config_service = ConfigurationService(config=config)
    config = config_service.get_config()

    configure_structlog(config.logging)

    app = FastAPI(title='reqlog', version='0.1.0')
    app.state.config = config
    app.state.config_service = config_service

    # Validated before the app ever serves a request
    event_source = LifecycleEventSource()
    app.state.event_source = event_source
    app.state.recorder = None
    if config.request_logging.enabled:
        recorder = EventRecorder(config.request_logging.to_sanitization_config(), sink=sink, category=config.request_logging.category)
        recorder.register_for_lifecycle(event_source)
        app.state.recorder = recorder

    app.include_router(health_router, prefix='/api', tags=['health'])

    # Middlewares run LIFO: request context wraps request logging
    app.add_middleware(RequestLoggingMiddleware, event_source=event_source)
    app.add_middleware(RequestContextMiddleware, correlation_header=config.correlation_header)

    get_logger(__name__).debug('Application created', request_logging=config.request_logging.enabled)
    return app


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Serve the application, observing the server process itself."""
    import uvicorn

    setup_config()
    config = ConfigurationService().get_config()
    app = create_app(config)

    with observe_process(app.state.event_source, argv):
        uvicorn.run(app, host=config.host, port=config.port)


if __name__ == '__main__':
    main()
