"""Linux port enumeration from ``ss`` with a ``netstat`` fallback."""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from ..endpoint import normalize_state, parse_endpoint
from ..exceptions import ToolUnavailableError
from ..models import UDP_STATE, PortRecord, TransportProtocol
from .base import PortEnumerator, keep_resolved, parse_pid, split_lines

logger = logging.getLogger(__name__)

SS_COMMAND = ("ss", "-tunlpH")
NETSTAT_COMMAND = ("netstat", "-tunlp")

_SS_OWNER = re.compile(r'"([^"]+)".*?pid=(\d+)')
_NETSTAT_OWNER = re.compile(r"^(\d+)/(.*)$")
_NETSTAT_PROTOCOL = re.compile(r"^(tcp|udp)", re.IGNORECASE)

_UNAVAILABLE_MESSAGE = "Unable to read ports on Linux. Install `ss` (iproute2) or `netstat` and retry."


def parse_ss_line(line: str) -> Optional[PortRecord]:
    """Parse one ``ss -tunlpH`` row.

    Columns are ``Netid State Recv-Q Send-Q Local Peer [users:(...)]``; the owner
    annotation looks like ``users:(("nginx",pid=812,fd=6))``.
    """
    parts = line.split()
    if len(parts) < 6:
        return None

    endpoint = parse_endpoint(parts[4])
    if endpoint.port is None:
        return None

    process_name = None
    pid = None
    marker = line.find("users:(")
    if marker != -1:
        owner = _SS_OWNER.search(line[marker:])
        if owner:
            process_name = owner.group(1)
            pid = parse_pid(owner.group(2))

    return PortRecord(
        protocol=parts[0].lower(),
        port=endpoint.port,
        address=endpoint.address,
        state=normalize_state(parts[1]),
        pid=pid,
        process_name=process_name,
    )


def parse_netstat_line(line: str) -> Optional[PortRecord]:
    """Parse one ``netstat -tunlp`` row.

    TCP rows carry a state column before ``PID/Program``; UDP rows do not.
    """
    parts = line.split()
    if len(parts) < 6 or not _NETSTAT_PROTOCOL.match(parts[0]):
        return None

    family = parts[0].lower()
    endpoint = parse_endpoint(parts[3])
    if endpoint.port is None:
        return None

    if family.startswith("tcp"):
        protocol = TransportProtocol.TCP.value
        state = normalize_state(parts[5])
        owner_column = parts[6] if len(parts) > 6 else ""
    else:
        protocol = TransportProtocol.UDP.value
        state = UDP_STATE
        owner_column = parts[5]

    owner = _NETSTAT_OWNER.match(owner_column)
    pid = parse_pid(owner.group(1)) if owner else None
    process_name = (owner.group(2) or None) if owner else None

    return PortRecord(
        protocol=protocol,
        port=endpoint.port,
        address=endpoint.address,
        state=state,
        pid=pid,
        process_name=process_name,
    )


def parse_ss_output(text: str) -> List[PortRecord]:
    return keep_resolved(parse_ss_line(line) for line in split_lines(text))


def parse_netstat_output(text: str) -> List[PortRecord]:
    return keep_resolved(parse_netstat_line(line) for line in split_lines(text))


class LinuxPortEnumerator(PortEnumerator):
    platform = "linux"

    async def enumerate(self) -> List[PortRecord]:
        ss_result = await self.runner.run(SS_COMMAND)
        if ss_result.ok and ss_result.stdout.strip():
            return parse_ss_output(ss_result.stdout)

        logger.info("ss unavailable or empty (%s); falling back to netstat", ss_result.stderr.strip() or "no output")
        netstat_result = await self.runner.run(NETSTAT_COMMAND)
        if netstat_result.ok and netstat_result.stdout.strip():
            return parse_netstat_output(netstat_result.stdout)

        logger.warning("netstat unavailable or empty: %s", netstat_result.stderr.strip() or "no output")
        raise ToolUnavailableError(_UNAVAILABLE_MESSAGE, tools=(SS_COMMAND[0], NETSTAT_COMMAND[0]))


__all__ = [
    "LinuxPortEnumerator",
    "NETSTAT_COMMAND",
    "SS_COMMAND",
    "parse_netstat_line",
    "parse_netstat_output",
    "parse_ss_line",
    "parse_ss_output",
]
