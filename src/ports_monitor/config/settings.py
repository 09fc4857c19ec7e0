"""Monitor configuration threaded explicitly through parsers, runner and terminator."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError
from .runtime import env_float, env_int, env_is_set, env_str


DEFAULT_COMMAND_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_BUFFER_BYTES = 10 * 1024 * 1024
DEFAULT_GRACE_PERIOD_SECONDS = 0.8
DEFAULT_SETTLE_PERIOD_SECONDS = 0.3


def detect_platform(raw: Optional[str] = None) -> str:
    """Map ``sys.platform`` style identifiers onto the three platform keys.

    Unknown platforms are returned unchanged so that selection can fail loudly later.
    """
    value = raw if raw is not None else sys.platform
    if value.startswith("linux"):
        return "linux"
    if value == "darwin":
        return "darwin"
    if value in ("win32", "cygwin"):
        return "win32"
    return value


@dataclass(frozen=True)
class MonitorConfig:
    """Immutable runtime settings for one invocation."""

    platform: str
    command_timeout_seconds: float = DEFAULT_COMMAND_TIMEOUT_SECONDS
    max_buffer_bytes: int = DEFAULT_MAX_BUFFER_BYTES
    grace_period_seconds: float = DEFAULT_GRACE_PERIOD_SECONDS
    settle_period_seconds: float = DEFAULT_SETTLE_PERIOD_SECONDS
    color: Optional[bool] = None

    def __post_init__(self) -> None:
        if self.command_timeout_seconds <= 0:
            raise ConfigurationError.invalid_value(
                "command_timeout_seconds", self.command_timeout_seconds, "Must be positive"
            )
        if self.max_buffer_bytes <= 0:
            raise ConfigurationError.invalid_value("max_buffer_bytes", self.max_buffer_bytes, "Must be positive")
        if self.grace_period_seconds < 0:
            raise ConfigurationError.invalid_value(
                "grace_period_seconds", self.grace_period_seconds, "Must be non-negative"
            )
        if self.settle_period_seconds < 0:
            raise ConfigurationError.invalid_value(
                "settle_period_seconds", self.settle_period_seconds, "Must be non-negative"
            )

    @property
    def is_windows(self) -> bool:
        return self.platform == "win32"

    @classmethod
    def from_env(cls, platform: Optional[str] = None) -> "MonitorConfig":
        """Build a config from the host platform and ``PORTS_MONITOR_*`` environment variables."""
        resolved_platform = detect_platform(platform if platform is not None else env_str("PORTS_MONITOR_PLATFORM"))
        timeout = env_float("PORTS_MONITOR_TIMEOUT_SECONDS", DEFAULT_COMMAND_TIMEOUT_SECONDS)
        max_buffer = env_int("PORTS_MONITOR_MAX_BUFFER_BYTES", DEFAULT_MAX_BUFFER_BYTES)
        return cls(
            platform=resolved_platform,
            command_timeout_seconds=float(timeout),
            max_buffer_bytes=int(max_buffer),
            color=_color_preference(),
        )


def _color_preference() -> Optional[bool]:
    # NO_COLOR wins over FORCE_COLOR; presence alone is significant for both
    if env_is_set("NO_COLOR"):
        return False
    if env_is_set("FORCE_COLOR"):
        return True
    return None


__all__ = [
    "DEFAULT_COMMAND_TIMEOUT_SECONDS",
    "DEFAULT_GRACE_PERIOD_SECONDS",
    "DEFAULT_MAX_BUFFER_BYTES",
    "DEFAULT_SETTLE_PERIOD_SECONDS",
    "MonitorConfig",
    "detect_platform",
]
