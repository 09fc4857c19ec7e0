"""Windows port enumeration from ``netstat -ano`` joined with ``tasklist``."""

from __future__ import annotations

import asyncio
import csv
import dataclasses
import logging
import re
from typing import Dict, List, Optional

from ..endpoint import normalize_state, parse_endpoint
from ..models import UDP_STATE, PortRecord, TransportProtocol
from .base import PortEnumerator, keep_resolved, parse_pid, split_lines

logger = logging.getLogger(__name__)

NETSTAT_TCP_COMMAND = ("netstat", "-ano", "-p", "tcp")
NETSTAT_UDP_COMMAND = ("netstat", "-ano", "-p", "udp")
TASKLIST_COMMAND = ("tasklist", "/FO", "CSV", "/NH")

_EXE_SUFFIX = re.compile(r"\.exe$", re.IGNORECASE)


def parse_tasklist_csv(text: str) -> Dict[int, str]:
    """Build a pid -> image name lookup from ``tasklist /FO CSV /NH`` output."""
    names: Dict[int, str] = {}
    rows = csv.reader(line.strip() for line in text.splitlines() if line.strip())
    for row in rows:
        if len(row) < 2:
            continue
        pid = parse_pid(row[1])
        if pid is None:
            continue
        names[pid] = _EXE_SUFFIX.sub("", row[0])
    return names


def parse_netstat_line(line: str) -> Optional[PortRecord]:
    """Parse one ``netstat -ano`` row.

    TCP: ``Proto Local Foreign State PID``; UDP: ``Proto Local Foreign PID``.
    """
    parts = line.split()
    if len(parts) < 4:
        return None

    proto = parts[0].upper()
    if proto == "TCP":
        if len(parts) < 5:
            return None
        protocol = TransportProtocol.TCP.value
        state = normalize_state(parts[3])
        raw_pid = parts[4]
    elif proto == "UDP":
        protocol = TransportProtocol.UDP.value
        state = UDP_STATE
        raw_pid = parts[3]
    else:
        return None

    endpoint = parse_endpoint(parts[1])
    if endpoint.port is None:
        return None

    return PortRecord(
        protocol=protocol,
        port=endpoint.port,
        address=endpoint.address,
        state=state,
        pid=parse_pid(raw_pid),
    )


def parse_netstat_output(text: str) -> List[PortRecord]:
    return keep_resolved(parse_netstat_line(line) for line in split_lines(text))


def attach_process_names(records: List[PortRecord], names: Dict[int, str]) -> List[PortRecord]:
    """Fill in process names for records whose pid appears in the lookup."""
    enriched = []
    for record in records:
        if record.pid is not None and record.pid in names:
            record = dataclasses.replace(record, process_name=names[record.pid])
        enriched.append(record)
    return enriched


class WindowsPortEnumerator(PortEnumerator):
    """Empty netstat output yields an empty list rather than an error on this platform."""

    platform = "win32"

    async def enumerate(self) -> List[PortRecord]:
        tcp_result, udp_result, tasklist_result = await asyncio.gather(
            self.runner.run(NETSTAT_TCP_COMMAND),
            self.runner.run(NETSTAT_UDP_COMMAND),
            self.runner.run(TASKLIST_COMMAND),
        )

        if tasklist_result.ok:
            names = parse_tasklist_csv(tasklist_result.stdout)
        else:
            logger.info("tasklist failed; process names will be missing: %s", tasklist_result.stderr.strip())
            names = {}

        records = parse_netstat_output("\n".join((tcp_result.stdout, udp_result.stdout)))
        if not records and not (tcp_result.ok or udp_result.ok):
            logger.warning("netstat failed for both tcp and udp; returning no ports")
        return attach_process_names(records, names)


__all__ = [
    "NETSTAT_TCP_COMMAND",
    "NETSTAT_UDP_COMMAND",
    "TASKLIST_COMMAND",
    "WindowsPortEnumerator",
    "attach_process_names",
    "parse_netstat_line",
    "parse_netstat_output",
    "parse_tasklist_csv",
]
