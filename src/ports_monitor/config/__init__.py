"""Shared configuration helpers and dataclasses."""

from .errors import ConfigurationError
from .runtime import env_bool, env_float, env_int, env_is_set, env_str
from .settings import (
    DEFAULT_COMMAND_TIMEOUT_SECONDS,
    DEFAULT_GRACE_PERIOD_SECONDS,
    DEFAULT_MAX_BUFFER_BYTES,
    DEFAULT_SETTLE_PERIOD_SECONDS,
    MonitorConfig,
    detect_platform,
)

__all__ = [
    "ConfigurationError",
    "DEFAULT_COMMAND_TIMEOUT_SECONDS",
    "DEFAULT_GRACE_PERIOD_SECONDS",
    "DEFAULT_MAX_BUFFER_BYTES",
    "DEFAULT_SETTLE_PERIOD_SECONDS",
    "MonitorConfig",
    "detect_platform",
    "env_bool",
    "env_float",
    "env_int",
    "env_is_set",
    "env_str",
]
