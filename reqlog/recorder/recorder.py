"""Build sanitized records for every lifecycle event and hand them to a sink."""

from __future__ import annotations

from typing import Any, Dict, Optional

from reqlog.sanitization.body import BodyParamSanitizer
from reqlog.sanitization.config import SanitizationConfig
from reqlog.sanitization.exceptions import HandlerError, RuntimeAnomaly
from reqlog.sanitization.headers import HeaderSanitizer
from reqlog.sanitization.routes import RouteExclusionMatcher

from .interfaces import IncomingRequest, LogSink, OutgoingResponse, ProcessInvocation, RuntimeProbe
from .lifecycle import EventPhase, LifecycleEventSource, LifecycleHooks, LifecycleState, Observation
from .runtime import ProcessRuntime
from .sinks import StructlogSink

LOG_CATEGORY = 'requestResponseData'
GUEST_USER_ID = '0'
GUEST_USERNAME = '[guest]'


def _partial_copy(context: Dict[str, Any]) -> Dict[str, Any]:
    return {key: dict(value) if isinstance(value, dict) else value for key, value in context.items()}


class EventRecorder(LifecycleHooks):
    """Observe request/response pairs and process runs.

    Failures while gathering context are logged with whatever was gathered so
    far, and the best-effort record is still emitted.
    """

    def __init__(
        self,
        config: SanitizationConfig,
        sink: Optional[LogSink] = None,
        category: str = LOG_CATEGORY,
        runtime: Optional[RuntimeProbe] = None,
    ):
        self.config = config
        self.sink = sink or StructlogSink()
        self.category = category
        self.runtime = runtime or ProcessRuntime()
        self.route_matcher = RouteExclusionMatcher(config)
        self.header_sanitizer = HeaderSanitizer(config, report_anomaly=self._report_anomaly)
        self.body_sanitizer = BodyParamSanitizer(config)
        self._registered = False

    @property
    def registered(self) -> bool:
        return self._registered

    def register_for_lifecycle(self, source: LifecycleEventSource) -> bool:
        """Subscribe to ``source``. Registering twice only logs a warning."""
        if self._registered:
            error = HandlerError('Attempt to register lifecycle hooks after they were already registered')
            self.sink.warning(error.message, self.category, {}, exc=error)
            return False

        source.subscribe(self)
        self._registered = True
        return True

    def on_request_start(self, request: IncomingRequest, runtime: Optional[RuntimeProbe] = None) -> Observation:
        if self.route_matcher.is_excluded(request.resolve_route):
            return Observation(skipped=True)

        observation = Observation(runtime=runtime)
        observation.enter(LifecycleState.REQUEST_OBSERVED)

        context: Dict[str, Any] = {
            'phase': EventPhase.REQUEST_START.value,
            'user': {},
            'request': {},
            'headers': {},
        }

        try:
            identity = request.get_identity()
            context['user']['id'] = GUEST_USER_ID if identity is None else str(identity.id)
            context['user']['username'] = GUEST_USERNAME if identity is None else identity.username
            context['request']['method'] = request.get_method()
            context['request']['absoluteUrl'] = request.get_absolute_url()
            context['request']['bodyParams'] = self.body_sanitizer.sanitize(request.get_body_params())
            context['request']['referrer'] = request.get_referrer()
            context['request']['userIp'] = request.get_user_ip()
            context['request']['userAgent'] = request.get_user_agent()
            context['headers'] = self.header_sanitizer.sanitize_snapshot(request.get_headers())
        except Exception as e:
            self._report_handler_error('on_request_start', context, e)

        # Emit even when gathering failed, a partial record beats none
        self.sink.info('Incoming request', self.category, context)
        return observation

    def on_request_end(self, observation: Observation, response: OutgoingResponse) -> None:
        if not self._advance(observation, LifecycleState.RESPONSE_OBSERVED, 'on_request_end'):
            return

        context: Dict[str, Any] = {'phase': EventPhase.REQUEST_END.value, 'response': {}, 'headers': {}}

        try:
            context['response']['statusCode'] = response.get_status_code()
            context['response']['format'] = response.get_format()
            if response.is_stream():
                context['response']['isStream'] = True
            else:
                context['response']['isStream'] = False
                context['response']['contentLength'] = response.get_content_length()

            context['headers'] = self.header_sanitizer.sanitize_snapshot(response.get_headers())
            self._add_runtime_figures(context, observation)
        except Exception as e:
            self._report_handler_error('on_request_end', context, e)

        self.sink.info('Outgoing response', self.category, context)
        observation.finish()

    def on_process_start(self, invocation: ProcessInvocation, runtime: Optional[RuntimeProbe] = None) -> Observation:
        observation = Observation(runtime=runtime)
        observation.enter(LifecycleState.PROCESS_STARTED)

        context: Dict[str, Any] = {'phase': EventPhase.PROCESS_START.value}
        try:
            if invocation.argv:
                context['command'] = ' '.join(str(arg) for arg in invocation.argv)
        except Exception as e:
            self._report_handler_error('on_process_start', context, e)

        self.sink.info('CLI command start', self.category, context)
        return observation

    def on_process_end(self, observation: Observation, exit_status: int) -> None:
        if not self._advance(observation, LifecycleState.PROCESS_ENDED, 'on_process_end'):
            return

        context: Dict[str, Any] = {'phase': EventPhase.PROCESS_END.value}
        try:
            context['exitStatus'] = exit_status
            self._add_runtime_figures(context, observation)
        except Exception as e:
            self._report_handler_error('on_process_end', context, e)

        self.sink.info('CLI command end', self.category, context)
        observation.finish()

    def _advance(self, observation: Observation, target: LifecycleState, handler: str) -> bool:
        if observation.skipped:
            return False

        if not observation.can_enter(target):
            self._report_anomaly(
                RuntimeAnomaly(
                    'Lifecycle event received out of order',
                    {'handler': handler, 'state': observation.state.value, 'target': target.value},
                )
            )
            return False

        observation.enter(target)
        return True

    def _add_runtime_figures(self, context: Dict[str, Any], observation: Observation) -> None:
        runtime = observation.runtime or self.runtime
        context['execTimeSec'] = runtime.elapsed_seconds()
        context['memoryPeakUsageBytes'] = runtime.peak_memory_bytes()

    def _report_anomaly(self, anomaly: RuntimeAnomaly) -> None:
        self.sink.warning(anomaly.message, self.category, anomaly.context, exc=anomaly)

    def _report_handler_error(self, handler: str, context: Dict[str, Any], exc: Exception) -> None:
        error = HandlerError(f'Failed to gather context in {handler}: {exc}', context=_partial_copy(context))
        error.__cause__ = exc
        self.sink.error(error.message, self.category, {'handler': handler, 'partialContext': error.context}, exc=error)
