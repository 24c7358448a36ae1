from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field

from reqlog.common.utils import get_app_dir
from reqlog.config.yaml import dump_yaml, safe_load_with_env
from reqlog.sanitization.config import SanitizationConfig, build_sanitization_config


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default='INFO', description='Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)')
    console_enabled: bool = Field(default=True, description='Enable console logging')
    file_enabled: bool = Field(default=False, description='Enable file logging')
    log_file_dir: str | None = Field(default=None, description='Log directory (defaults to ~/.reqlog/logs)')
    max_file_size: str = Field(default='10MB', description='Maximum log file size before rotation')
    backup_count: int = Field(default=4, description='Number of backup files to keep')


class RequestLoggingConfig(BaseModel):
    """Raw request/response logging options.

    Values are kept as given and validated by ``to_sanitization_config`` so
    that every violation surfaces as a ConfigurationError at startup.
    """

    model_config = ConfigDict(populate_by_name=True)

    enabled: bool = Field(default=True)
    category: str = Field(default='requestResponseData', description='Log category attached to every record')
    excluded_routes: Any = Field(default_factory=list, alias='excludedRoutes')
    headers_to_mask: Any = Field(default_factory=lambda: ['cookie', 'x-forwarded-for'], alias='headersToMask')
    max_header_value_length: Any = Field(default=256, alias='maxHeaderValueLength')
    post_param_patterns_to_mask: Any = Field(default_factory=lambda: ['/password/i'], alias='postParamPatternsToMask')

    def to_sanitization_config(self) -> SanitizationConfig:
        return build_sanitization_config(
            excluded_routes=self.excluded_routes,
            headers_to_mask=self.headers_to_mask,
            max_header_value_length=self.max_header_value_length,
            body_param_patterns=self.post_param_patterns_to_mask,
        )


class ConfigModel(BaseModel):
    """Configuration model with validation."""

    model_config = ConfigDict(extra='allow', populate_by_name=True)

    version: str = Field(default='1', description='Config version')
    host: str = Field(default='127.0.0.1')
    port: int = Field(default=8000, ge=1, le=65535)
    dev: bool = Field(default=False)
    correlation_header: str = Field(default='X-Correlation-ID')
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description='Logging configuration')
    request_logging: RequestLoggingConfig = Field(default_factory=RequestLoggingConfig, alias='requestLogging')

    @classmethod
    def load(cls, config_path: str | None = None) -> 'ConfigModel':
        """Load configuration from YAML file.

        Tries multiple locations in order:
        1. Explicit config_path if provided
        2. ~/.reqlog/config.yaml in user home directory
        3. ./config.yaml in current directory
        """
        config_paths: List[str] = []
        if config_path:
            config_paths.append(config_path)
        else:
            home_config = get_app_dir() / 'config.yaml'
            if home_config.exists():
                config_paths.append(str(home_config))
            config_paths.append('config.yaml')

        # Later files override earlier ones
        data = {}
        for path in config_paths:
            try:
                with open(path, 'r') as f:
                    file_data = safe_load_with_env(f) or {}
                    data.update(file_data)
            except FileNotFoundError:
                continue
            except ValueError as e:
                raise ValueError(f'Invalid YAML in config file {path}: {e}')
            except OSError as e:
                raise ValueError(f'Error reading config file {path}: {e}')

        return cls(**data)

    def save(self, config_path: str) -> None:
        """Save configuration to YAML file."""
        with open(config_path, 'w') as f:
            dump_yaml(self.model_dump(by_alias=True), f)
