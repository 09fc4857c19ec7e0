"""Shared contract for per-platform port enumerators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Protocol, Sequence

from ..command_runner import CommandResult
from ..models import PortRecord

MAX_PORT = 65535


class Runner(Protocol):
    """Anything that can execute an argument vector and capture its output."""

    async def run(self, args: Sequence[str]) -> CommandResult: ...


class PortEnumerator(ABC):
    """Turns one platform's diagnostic tool output into canonical port records."""

    platform: str = ""

    def __init__(self, runner: Runner) -> None:
        self.runner = runner

    @abstractmethod
    async def enumerate(self) -> List[PortRecord]:
        """Return a fresh snapshot of bound sockets; every record has a valid port."""


def is_valid_port(port: Optional[int]) -> bool:
    return port is not None and 0 < port <= MAX_PORT


def keep_resolved(records: Iterable[Optional[PortRecord]]) -> List[PortRecord]:
    """Drop unparseable lines and records whose port did not resolve."""
    return [record for record in records if record is not None and is_valid_port(record.port)]


def split_lines(*outputs: str) -> List[str]:
    lines: List[str] = []
    for output in outputs:
        lines.extend(output.splitlines())
    return lines


def parse_pid(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    raw = raw.strip()
    if not raw.isdecimal():
        return None
    pid = int(raw)
    return pid if pid > 0 else None


__all__ = [
    "MAX_PORT",
    "PortEnumerator",
    "Runner",
    "is_valid_port",
    "keep_resolved",
    "parse_pid",
    "split_lines",
]
