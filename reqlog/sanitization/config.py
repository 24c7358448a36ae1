"""Validated, immutable sanitization settings."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, Pattern, Tuple

from .exceptions import ConfigurationError

MASKED = '[Masked]'
TRUNCATED = '[Truncated]'
TRUNCATED_MARKER = '...' + TRUNCATED

# Delimited pattern flags, e.g. '/password/i'
_PATTERN_FLAGS = {
    'i': re.IGNORECASE,
    'm': re.MULTILINE,
    's': re.DOTALL,
    'x': re.VERBOSE,
    'u': 0,
}
_BRACKET_DELIMITERS = {'(': ')', '{': '}', '[': ']', '<': '>'}


@dataclass(frozen=True)
class SanitizationConfig:
    """Sanitization settings shared read-only by every lifecycle event."""

    excluded_routes: FrozenSet[str] = field(default_factory=frozenset)
    headers_to_mask: FrozenSet[str] = field(default_factory=frozenset)
    max_header_value_length: int = 256
    body_param_mask_patterns: Tuple[Pattern[str], ...] = ()


def _matching_bracket(raw: str, opener: str, closer: str) -> int:
    """Index of the closer balancing raw[0], skipping escaped characters. -1 if unbalanced."""
    depth = 0
    index = 0
    while index < len(raw):
        char = raw[index]
        if char == '\\':
            index += 2
            continue
        if char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return index
        index += 1
    return -1


def _split_delimited(raw: str) -> Tuple[str, str] | None:
    """Split '/body/flags' into (body, flags). Returns None for bare patterns."""
    opener = raw[0]
    if opener.isalnum() or opener.isspace() or opener == '\\':
        return None

    closer = _BRACKET_DELIMITERS.get(opener)
    end = raw.rfind(opener) if closer is None else _matching_bracket(raw, opener, closer)
    if end <= 0:
        return None

    flags = raw[end + 1 :]
    if any(flag not in _PATTERN_FLAGS for flag in flags):
        return None
    return raw[1:end], flags


def compile_mask_pattern(raw: str) -> Pattern[str]:
    """Compile a key mask pattern.

    Accepts delimited patterns such as ``/password/i`` or ``#token#`` as well
    as bare regular expressions. Raises ``re.error`` for invalid syntax.
    """
    split = _split_delimited(raw)
    if split is None:
        return re.compile(raw)

    body, flag_chars = split
    flags = 0
    for char in flag_chars:
        flags |= _PATTERN_FLAGS[char]
    return re.compile(body, flags)


def _require_string_list(field_name: str, values: Any) -> list:
    if values is None or isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
        raise ConfigurationError(f'{field_name} must be a list of strings', field=field_name, value=values)

    items = list(values)
    for item in items:
        if not isinstance(item, str) or not item:
            raise ConfigurationError(f'Every {field_name} entry must be a non-empty string', field=field_name, value=item)
    return items


def build_sanitization_config(
    excluded_routes: Any = (),
    headers_to_mask: Any = (),
    max_header_value_length: Any = 256,
    body_param_patterns: Any = (),
) -> SanitizationConfig:
    """Validate raw options and build a SanitizationConfig.

    Raises:
        ConfigurationError: When any option is invalid.
    """
    routes = frozenset(_require_string_list('excludedRoutes', excluded_routes))
    masked_headers = frozenset(name.lower() for name in _require_string_list('headersToMask', headers_to_mask))

    if isinstance(max_header_value_length, bool) or not isinstance(max_header_value_length, int):
        raise ConfigurationError('maxHeaderValueLength must be an integer', field='maxHeaderValueLength', value=max_header_value_length)
    if max_header_value_length <= 1:
        raise ConfigurationError('maxHeaderValueLength must be greater than 1', field='maxHeaderValueLength', value=max_header_value_length)

    patterns = []
    for raw in _require_string_list('postParamPatternsToMask', body_param_patterns):
        try:
            pattern = compile_mask_pattern(raw)
            pattern.search('')
        except re.error as e:
            raise ConfigurationError(f'Invalid postParamPatternsToMask pattern {raw!r}: {e}', field='postParamPatternsToMask', value=raw) from e
        patterns.append(pattern)

    return SanitizationConfig(
        excluded_routes=routes,
        headers_to_mask=masked_headers,
        max_header_value_length=max_header_value_length,
        body_param_mask_patterns=tuple(patterns),
    )


__all__ = ['MASKED', 'TRUNCATED', 'TRUNCATED_MARKER', 'SanitizationConfig', 'build_sanitization_config', 'compile_mask_pattern']
