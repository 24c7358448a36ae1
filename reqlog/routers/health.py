from fastapi import APIRouter, Request

from reqlog.config.log import get_logger

router = APIRouter()
log = get_logger(__name__)


@router.get('/health')
async def health(request: Request):
    """Liveness plus whether request/response records are being emitted."""
    recorder = getattr(request.app.state, 'recorder', None)
    request_logging = recorder is not None and recorder.registered
    log.debug('Health check ok', request_logging=request_logging)
    return {'status': 'ok', 'requestLogging': request_logging}
