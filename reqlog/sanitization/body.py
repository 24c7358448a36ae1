"""Recursive, depth-bounded redaction of body parameters."""

from typing import Any, Mapping, Sequence

from .config import MASKED, TRUNCATED, SanitizationConfig

MAX_DEPTH = 3


class BodyParamSanitizer:
    """Mask body parameters by key name.

    Mappings and sequences are walked up to ``MAX_DEPTH`` levels; anything
    nested deeper is replaced by ``TRUNCATED``. Sequence items are matched
    against the patterns by their position (``'0'``, ``'1'``, ...).
    """

    def __init__(self, config: SanitizationConfig):
        self.patterns = config.body_param_mask_patterns

    def is_masked_key(self, key: Any) -> bool:
        name = key if isinstance(key, str) else str(key)
        return any(pattern.search(name) for pattern in self.patterns)

    def sanitize(self, params: Any, depth: int = 0) -> Any:
        if isinstance(params, Mapping):
            items = params.items()
        elif isinstance(params, Sequence) and not isinstance(params, (str, bytes, bytearray)):
            items = enumerate(params)
        else:
            return params

        if depth >= MAX_DEPTH:
            return TRUNCATED

        sanitized = {}
        for key, value in items:
            sanitized[key] = MASKED if self.is_masked_key(key) else self.sanitize(value, depth + 1)

        if isinstance(params, Mapping):
            return sanitized
        return list(sanitized.values())
