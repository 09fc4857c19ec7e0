"""Canonical data shapes shared by parsers, the inventory pipeline and the terminator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class TransportProtocol(str, Enum):
    TCP = "tcp"
    UDP = "udp"


class StopStrategy(str, Enum):
    """Which escalation path a termination attempt took (or would take)."""

    GRACEFUL = "graceful"
    FORCE = "force"
    GRACEFUL_THEN_FORCE = "graceful-then-force"


UDP_STATE = "UNCONN"


@dataclass(frozen=True)
class PortRecord:
    """One bound socket and the process that owns it."""

    protocol: str
    port: int
    address: str = ""
    state: str = ""
    pid: Optional[int] = None
    process_name: Optional[str] = None

    @property
    def command(self) -> Optional[str]:
        # Mirrors process_name; kept for parity with the JSON shape consumers expect.
        return self.process_name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "protocol": self.protocol,
            "port": self.port,
            "address": self.address,
            "state": self.state,
            "pid": self.pid,
            "processName": self.process_name,
            "command": self.command,
        }


@dataclass(frozen=True)
class FilterCriteria:
    """Conjunctive query over port records; ``None`` fields impose no constraint."""

    port: Optional[int] = None
    pid: Optional[int] = None
    protocol: Optional[str] = None
    process_name: Optional[str] = None
    state: Optional[str] = None
    address: Optional[str] = None
    query: Optional[str] = None

    def is_empty(self) -> bool:
        return all(
            value is None or value == ""
            for value in (self.port, self.pid, self.protocol, self.process_name, self.state, self.address, self.query)
        )


@dataclass(frozen=True)
class StopOutcome:
    """Result of one termination attempt for a single pid."""

    pid: int
    success: bool
    strategy: Optional[StopStrategy] = None
    error: Optional[str] = None
    dry_run: bool = False

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "pid": self.pid,
            "strategy": self.strategy.value if self.strategy is not None else None,
            "success": self.success,
        }
        if self.error is not None:
            payload["error"] = self.error
        if self.dry_run:
            payload["dryRun"] = True
        return payload


__all__ = [
    "FilterCriteria",
    "PortRecord",
    "StopOutcome",
    "StopStrategy",
    "TransportProtocol",
    "UDP_STATE",
]
