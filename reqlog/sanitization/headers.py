"""Header flattening, masking and truncation."""

from typing import Callable, Dict, Mapping, Optional, Sequence, Tuple

from .config import MASKED, TRUNCATED_MARKER, SanitizationConfig
from .exceptions import RuntimeAnomaly

HeaderSnapshot = Mapping[str, Sequence[str]]
AnomalyReporter = Callable[[RuntimeAnomaly], None]


class HeaderSanitizer:
    """Mask and truncate header values before they reach the logs."""

    def __init__(self, config: SanitizationConfig, report_anomaly: Optional[AnomalyReporter] = None):
        self.headers_to_mask = config.headers_to_mask
        self.max_value_length = config.max_header_value_length
        self.report_anomaly = report_anomaly

    def flatten(self, headers: HeaderSnapshot) -> Tuple[Dict[str, str], bool]:
        """Keep the first value of every header.

        Returns the flat mapping and whether any header carried several values.
        """
        flat: Dict[str, str] = {}
        duplicated = False

        for name, values in headers.items():
            if isinstance(values, (str, bytes)):
                values = [values]
            if len(values) > 1:
                duplicated = True
            flat[name] = values[0] if values else ''

        if duplicated and self.report_anomaly is not None:
            snapshot = {name: list(values) if not isinstance(values, (str, bytes)) else [values] for name, values in headers.items()}
            self.report_anomaly(RuntimeAnomaly('Several values were found for the same header name. Check attached context', {'headers': snapshot}))

        return flat, duplicated

    def sanitize(self, headers: Mapping[str, str]) -> Dict[str, str]:
        sanitized: Dict[str, str] = {}

        for name, value in headers.items():
            if name.lower() in self.headers_to_mask:
                sanitized[name] = MASKED
                continue

            value = value if isinstance(value, str) else str(value)
            if len(value) > self.max_value_length:
                keep = self.max_value_length - len(TRUNCATED_MARKER)
                sanitized[name] = value[:keep] + TRUNCATED_MARKER if keep > 0 else TRUNCATED_MARKER
                continue

            sanitized[name] = value

        return sanitized

    def sanitize_snapshot(self, headers: HeaderSnapshot) -> Dict[str, str]:
        flat, _ = self.flatten(headers)
        return self.sanitize(flat)
