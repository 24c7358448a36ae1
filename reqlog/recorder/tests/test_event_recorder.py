"""Tests for EventRecorder."""

from unittest.mock import Mock

import pytest

from reqlog.recorder.interfaces import ProcessInvocation, RuntimeProbe, UserIdentity
from reqlog.recorder.lifecycle import LifecycleEventSource, LifecycleState, Observation
from reqlog.recorder.recorder import GUEST_USER_ID, GUEST_USERNAME, LOG_CATEGORY, EventRecorder
from reqlog.recorder.sinks import RecordingSink
from reqlog.recorder.snapshots import RequestSnapshot, ResponseSnapshot
from reqlog.sanitization.config import MASKED, build_sanitization_config
from reqlog.sanitization.exceptions import HandlerError, RuntimeAnomaly


class FixedRuntime(RuntimeProbe):
    def elapsed_seconds(self) -> float:
        return 1.5

    def peak_memory_bytes(self) -> int:
        return 2048


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def config():
    return build_sanitization_config(
        excluded_routes=['/api/health'],
        headers_to_mask=['cookie'],
        max_header_value_length=256,
        body_param_patterns=['/password/i'],
    )


@pytest.fixture
def recorder(config, sink):
    return EventRecorder(config, sink=sink, runtime=FixedRuntime())


def login_request(**overrides):
    values = dict(
        method='POST',
        url='http://testserver/login',
        headers={'Cookie': ['abc'], 'X-Custom': ['v']},
        body_params={'LoginForm': {'username': 'u1', 'password': 'p1'}},
        user_ip='10.0.0.7',
        route='/login',
    )
    values.update(overrides)
    return RequestSnapshot(**values)


class TestRequestStart:
    def test_login_scenario(self, recorder, sink):
        observation = recorder.on_request_start(login_request())

        assert observation.state is LifecycleState.REQUEST_OBSERVED
        assert len(sink.records) == 1
        level, message, category, context, _ = sink.records[0]
        assert (level, message, category) == ('info', 'Incoming request', LOG_CATEGORY)
        assert context['phase'] == 'request-start'
        assert context['headers'] == {'Cookie': MASKED, 'X-Custom': 'v'}
        assert context['request']['bodyParams'] == {'LoginForm': {'username': 'u1', 'password': MASKED}}
        assert context['request']['method'] == 'POST'
        assert context['request']['absoluteUrl'] == 'http://testserver/login'
        assert context['request']['userIp'] == '10.0.0.7'

    def test_guest_user(self, recorder, sink):
        recorder.on_request_start(login_request())

        assert sink.records[0][3]['user'] == {'id': GUEST_USER_ID, 'username': GUEST_USERNAME}

    def test_authenticated_user(self, recorder, sink):
        recorder.on_request_start(login_request(identity=UserIdentity(id='42', username='alice')))

        assert sink.records[0][3]['user'] == {'id': '42', 'username': 'alice'}

    def test_excluded_route_emits_nothing(self, recorder, sink):
        observation = recorder.on_request_start(login_request(route='/api/health'))

        assert observation.skipped is True
        assert sink.records == []

    def test_unresolved_route_is_observed(self, recorder, sink):
        observation = recorder.on_request_start(login_request(route=None))

        assert observation.skipped is False
        assert len(sink.by_level('info')) == 1

    def test_gathering_failure_keeps_partial_record(self, recorder, sink):
        request = login_request()
        request.get_body_params = Mock(side_effect=ValueError('malformed body'))

        recorder.on_request_start(request)

        errors = sink.by_level('error')
        infos = sink.by_level('info')
        assert len(errors) == 1 and len(infos) == 1

        _, message, category, error_context, exc = errors[0]
        assert isinstance(exc, HandlerError)
        assert isinstance(exc.__cause__, ValueError)
        assert 'malformed body' in message
        assert category == LOG_CATEGORY
        assert error_context['handler'] == 'on_request_start'
        assert error_context['partialContext']['request'] == {'method': 'POST', 'absoluteUrl': 'http://testserver/login'}

        record = infos[0][3]
        assert record['user'] == {'id': GUEST_USER_ID, 'username': GUEST_USERNAME}
        assert record['request'] == {'method': 'POST', 'absoluteUrl': 'http://testserver/login'}
        assert record['headers'] == {}

    def test_duplicate_headers_warn_without_changing_output(self, recorder, sink):
        recorder.on_request_start(login_request(headers={'Accept': ['a', 'b']}))

        warnings = sink.by_level('warning')
        assert len(warnings) == 1
        assert isinstance(warnings[0][4], RuntimeAnomaly)
        assert warnings[0][3] == {'headers': {'Accept': ['a', 'b']}}
        assert sink.by_level('info')[0][3]['headers'] == {'Accept': 'a'}


class TestRequestEnd:
    def test_response_record(self, recorder, sink):
        observation = recorder.on_request_start(login_request())
        response = ResponseSnapshot(status_code=201, format='application/json', content_length=17, headers={'Set-Cookie': ['s=1'], 'Content-Type': ['application/json']})

        recorder.on_request_end(observation, response)

        context = sink.records[-1][3]
        assert sink.records[-1][1] == 'Outgoing response'
        assert context['phase'] == 'request-end'
        assert context['response'] == {'statusCode': 201, 'format': 'application/json', 'isStream': False, 'contentLength': 17}
        assert context['headers'] == {'Set-Cookie': 's=1', 'Content-Type': 'application/json'}
        assert context['execTimeSec'] == 1.5
        assert context['memoryPeakUsageBytes'] == 2048
        assert observation.completed

    def test_stream_has_no_content_length(self, recorder, sink):
        observation = recorder.on_request_start(login_request())

        recorder.on_request_end(observation, ResponseSnapshot(stream=True, content_length=99))

        assert sink.records[-1][3]['response'] == {'statusCode': 200, 'format': None, 'isStream': True}

    def test_request_runtime_overrides_default(self, recorder, sink):
        runtime = Mock(spec=RuntimeProbe)
        runtime.elapsed_seconds.return_value = 0.25
        runtime.peak_memory_bytes.return_value = 10

        observation = recorder.on_request_start(login_request(), runtime)
        recorder.on_request_end(observation, ResponseSnapshot())

        assert sink.records[-1][3]['execTimeSec'] == 0.25
        assert sink.records[-1][3]['memoryPeakUsageBytes'] == 10

    def test_skipped_observation_emits_nothing(self, recorder, sink):
        observation = recorder.on_request_start(login_request(route='/api/health'))

        recorder.on_request_end(observation, ResponseSnapshot())

        assert sink.records == []

    def test_second_end_is_an_anomaly(self, recorder, sink):
        observation = recorder.on_request_start(login_request())
        recorder.on_request_end(observation, ResponseSnapshot())

        recorder.on_request_end(observation, ResponseSnapshot())

        assert len(sink.by_level('info')) == 2
        warnings = sink.by_level('warning')
        assert len(warnings) == 1
        assert warnings[0][3]['handler'] == 'on_request_end'

    def test_end_without_start_is_an_anomaly(self, recorder, sink):
        recorder.on_request_end(Observation(), ResponseSnapshot())

        assert sink.by_level('info') == []
        assert len(sink.by_level('warning')) == 1

    def test_response_failure_keeps_partial_record(self, recorder, sink):
        observation = recorder.on_request_start(login_request())
        response = ResponseSnapshot(status_code=500)
        response.get_headers = Mock(side_effect=RuntimeError('headers gone'))

        recorder.on_request_end(observation, response)

        assert len(sink.by_level('error')) == 1
        record = sink.records[-1]
        assert record[1] == 'Outgoing response'
        assert record[3]['response']['statusCode'] == 500
        assert 'execTimeSec' not in record[3]
        assert observation.completed


class TestProcessEvents:
    def test_process_start_and_end(self, recorder, sink):
        observation = recorder.on_process_start(ProcessInvocation(argv=['yii', 'migrate/up', '--interactive=0']))
        assert observation.state is LifecycleState.PROCESS_STARTED

        recorder.on_process_end(observation, 0)

        start, end = sink.records
        assert start[1] == 'CLI command start'
        assert start[3] == {'phase': 'process-start', 'command': 'yii migrate/up --interactive=0'}
        assert end[1] == 'CLI command end'
        assert end[3] == {'phase': 'process-end', 'exitStatus': 0, 'execTimeSec': 1.5, 'memoryPeakUsageBytes': 2048}
        assert observation.completed

    def test_process_end_for_request_observation_is_rejected(self, recorder, sink):
        observation = recorder.on_request_start(login_request())

        recorder.on_process_end(observation, 1)

        assert [r[1] for r in sink.by_level('info')] == ['Incoming request']
        assert len(sink.by_level('warning')) == 1


class TestRegistration:
    def test_double_registration_fires_hooks_once(self, recorder, sink):
        source = LifecycleEventSource()

        assert recorder.register_for_lifecycle(source) is True
        assert recorder.register_for_lifecycle(source) is False

        warnings = sink.by_level('warning')
        assert len(warnings) == 1
        assert isinstance(warnings[0][4], HandlerError)

        observations = source.request_start(login_request())
        source.request_end(observations, ResponseSnapshot())

        assert [r[1] for r in sink.by_level('info')] == ['Incoming request', 'Outgoing response']
        assert recorder.registered is True
