"""Per-platform port enumerators and the strategy that picks one for the host."""

from typing import Dict, Type

from ..config import MonitorConfig
from ..exceptions import UnsupportedPlatformError
from .base import PortEnumerator, Runner
from .linux import LinuxPortEnumerator
from .macos import MacosPortEnumerator
from .windows import WindowsPortEnumerator

ENUMERATORS: Dict[str, Type[PortEnumerator]] = {
    "linux": LinuxPortEnumerator,
    "darwin": MacosPortEnumerator,
    "win32": WindowsPortEnumerator,
}


def select_enumerator(config: MonitorConfig, runner: Runner) -> PortEnumerator:
    """Return the enumerator for ``config.platform`` or raise ``UnsupportedPlatformError``."""
    enumerator_cls = ENUMERATORS.get(config.platform)
    if enumerator_cls is None:
        raise UnsupportedPlatformError(config.platform)
    return enumerator_cls(runner)


__all__ = [
    "ENUMERATORS",
    "LinuxPortEnumerator",
    "MacosPortEnumerator",
    "PortEnumerator",
    "Runner",
    "WindowsPortEnumerator",
    "select_enumerator",
]
