"""Sanitization pipeline: route exclusion, header and body parameter redaction."""

from .body import MAX_DEPTH, BodyParamSanitizer
from .config import MASKED, TRUNCATED, TRUNCATED_MARKER, SanitizationConfig, build_sanitization_config, compile_mask_pattern
from .exceptions import ConfigurationError, HandlerError, RequestLogException, RouteResolutionError, RuntimeAnomaly
from .headers import HeaderSanitizer
from .routes import RouteExclusionMatcher

__all__ = [
    'MASKED',
    'MAX_DEPTH',
    'TRUNCATED',
    'TRUNCATED_MARKER',
    'BodyParamSanitizer',
    'ConfigurationError',
    'HandlerError',
    'HeaderSanitizer',
    'RequestLogException',
    'RouteExclusionMatcher',
    'RouteResolutionError',
    'RuntimeAnomaly',
    'SanitizationConfig',
    'build_sanitization_config',
    'compile_mask_pattern',
]
