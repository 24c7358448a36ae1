import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from reqlog.recorder.lifecycle import LifecycleEventSource
from reqlog.recorder.recorder import EventRecorder
from reqlog.recorder.sinks import RecordingSink
from reqlog.routers.health import router
from reqlog.sanitization.config import build_sanitization_config


def make_client(recorder=None) -> TestClient:
    app = FastAPI()
    app.state.recorder = recorder
    app.include_router(router, prefix='/api')
    return TestClient(app)


def registered_recorder() -> EventRecorder:
    recorder = EventRecorder(build_sanitization_config(), sink=RecordingSink())
    recorder.register_for_lifecycle(LifecycleEventSource())
    return recorder


@pytest.mark.parametrize(
    'recorder_factory,expected',
    [
        (lambda: None, False),
        (lambda: EventRecorder(build_sanitization_config(), sink=RecordingSink()), False),
        (registered_recorder, True),
    ],
)
def test_health_check(recorder_factory, expected):
    response = make_client(recorder_factory()).get('/api/health')

    assert response.status_code == 200
    assert response.json() == {'status': 'ok', 'requestLogging': expected}
