"""Tests for the structlog backed log sink."""

import logging

import orjson
import pytest
import structlog
from structlog.testing import capture_logs

from reqlog.config.log import configure_structlog
from reqlog.config.models import LoggingConfig
from reqlog.recorder.sinks import StructlogSink
from reqlog.sanitization.exceptions import HandlerError


class TestStructlogSink:
    def test_info_spreads_context(self):
        with capture_logs() as logs:
            StructlogSink().info(
                'Incoming request',
                'requestResponseData',
                {'user': {'id': '0', 'username': '[guest]'}, 'request': {'method': 'GET'}},
            )

        (entry,) = logs
        assert entry['event'] == 'Incoming request'
        assert entry['log_level'] == 'info'
        assert entry['category'] == 'requestResponseData'
        assert entry['user'] == {'id': '0', 'username': '[guest]'}
        assert entry['request'] == {'method': 'GET'}
        assert 'exc_info' not in entry

    @pytest.mark.parametrize('level', ['warning', 'error'])
    def test_exception_is_passed_as_exc_info(self, level):
        exc = HandlerError('Failed to gather context', {'handler': 'on_request_start'})

        with capture_logs() as logs:
            getattr(StructlogSink(), level)('Failed to gather context', 'requestResponseData', {'handler': 'on_request_start'}, exc=exc)

        (entry,) = logs
        assert entry['log_level'] == level
        assert entry['category'] == 'requestResponseData'
        assert entry['handler'] == 'on_request_start'
        assert entry['exc_info'] is exc


class TestStructlogSinkRendering:
    @pytest.fixture
    def log_file(self, tmp_path):
        configure_structlog(LoggingConfig(console_enabled=False, file_enabled=True, log_file_dir=str(tmp_path)))
        yield tmp_path / 'app.log'

        root = logging.getLogger()
        for handler in list(root.handlers):
            handler.close()
            root.removeHandler(handler)
        structlog.reset_defaults()

    def test_records_render_as_json_lines(self, log_file):
        sink = StructlogSink()
        sink.info('Outgoing response', 'requestResponseData', {'response': {'statusCode': 200}})
        sink.error('Failed to gather context in on_request_start: boom', 'requestResponseData', {'handler': 'on_request_start'}, exc=HandlerError('boom'))

        info, error = [orjson.loads(line) for line in log_file.read_text().splitlines()]
        assert info['event'] == 'Outgoing response'
        assert info['category'] == 'requestResponseData'
        assert info['response'] == {'statusCode': 200}
        assert info['level'] == 'info'
        assert error['level'] == 'error'
        assert error['handler'] == 'on_request_start'
        assert 'HandlerError: boom' in error['exception']
