"""Exception classes for port enumeration and process termination.

Exception classes support two patterns:
1. No-argument raise: raise ToolUnavailableError()
2. Contextual attributes: err = ToolUnavailableError(tools=("ss", "netstat")); raise err
"""

from typing import Any, Optional, Sequence


class PortsMonitorError(Exception):
    """Base exception for all ports monitor errors.

    Supports keyword arguments that are stored as attributes for debugging.
    """

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        if not message:
            doc = (self.__class__.__doc__ or "").strip()
            message = doc.splitlines()[0] if doc else "Ports monitor error occurred"
        super().__init__(message)
        for key, value in kwargs.items():
            setattr(self, key, value)


class InvalidPidError(PortsMonitorError, ValueError):
    """Process id is not a positive integer."""

    def __init__(self, pid: Any = None, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = f"Invalid PID: {pid}"
        super().__init__(message, pid=pid, **kwargs)


class ToolUnavailableError(PortsMonitorError):
    """Every diagnostic tool for this platform failed or produced no output."""

    def __init__(self, message: str = "", *, tools: Sequence[str] = (), **kwargs: Any) -> None:
        if not message:
            message = f"Unable to read ports; tried: {', '.join(tools) or 'nothing'}"
        super().__init__(message, tools=tuple(tools), **kwargs)


class UnsupportedPlatformError(PortsMonitorError):
    """Host operating system is not supported."""

    def __init__(self, platform: Optional[str] = None, message: str = "", **kwargs: Any) -> None:
        if not message:
            message = f"Unsupported platform: {platform}"
        super().__init__(message, platform=platform, **kwargs)


__all__ = [
    "InvalidPidError",
    "PortsMonitorError",
    "ToolUnavailableError",
    "UnsupportedPlatformError",
]
