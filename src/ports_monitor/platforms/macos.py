"""macOS port enumeration from two concurrent ``lsof`` listings."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import List, Optional

from ..endpoint import normalize_state, parse_endpoint
from ..exceptions import ToolUnavailableError
from ..models import UDP_STATE, PortRecord, TransportProtocol
from .base import PortEnumerator, keep_resolved, parse_pid, split_lines

logger = logging.getLogger(__name__)

LSOF_TCP_COMMAND = ("lsof", "-nP", "-iTCP", "-sTCP:LISTEN")
LSOF_UDP_COMMAND = ("lsof", "-nP", "-iUDP")

_HEADER = re.compile(r"^COMMAND\s+PID\s+", re.IGNORECASE)
# COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME
_ROW = re.compile(r"^(\S+)\s+(\d+)\s+(?:\S+\s+){4,5}(TCP|UDP)\s+(.+)$", re.IGNORECASE)
_TRAILING_STATE = re.compile(r"\(([^)]+)\)\s*$")
_TRAILING_ANNOTATION = re.compile(r"\s*\([^)]*\)\s*$")

_UNAVAILABLE_MESSAGE = "Unable to read ports on macOS. Ensure `lsof` is available."


def parse_lsof_line(line: str) -> Optional[PortRecord]:
    trimmed = line.strip()
    if not trimmed or _HEADER.match(trimmed):
        return None

    match = _ROW.match(trimmed)
    if match is None:
        return None

    process_name, raw_pid, raw_protocol, details = match.groups()
    protocol = raw_protocol.lower()

    state_match = _TRAILING_STATE.search(details)
    if state_match:
        state = normalize_state(state_match.group(1))
    elif protocol == TransportProtocol.UDP.value:
        state = UDP_STATE
    else:
        state = ""

    local = _TRAILING_ANNOTATION.sub("", details).strip().split("->")[0].strip()
    endpoint = parse_endpoint(local)
    if endpoint.port is None:
        return None

    return PortRecord(
        protocol=protocol,
        port=endpoint.port,
        address=endpoint.address,
        state=state,
        pid=parse_pid(raw_pid),
        process_name=process_name,
    )


def parse_lsof_output(text: str) -> List[PortRecord]:
    return keep_resolved(parse_lsof_line(line) for line in split_lines(text))


class MacosPortEnumerator(PortEnumerator):
    platform = "darwin"

    async def enumerate(self) -> List[PortRecord]:
        tcp_result, udp_result = await asyncio.gather(
            self.runner.run(LSOF_TCP_COMMAND),
            self.runner.run(LSOF_UDP_COMMAND),
        )
        # lsof exits 1 when nothing matches, so output rather than status decides
        combined = "\n".join((tcp_result.stdout, udp_result.stdout))
        if combined.strip():
            return parse_lsof_output(combined)

        logger.warning(
            "lsof produced no output (tcp: %s; udp: %s)",
            tcp_result.stderr.strip() or "empty",
            udp_result.stderr.strip() or "empty",
        )
        raise ToolUnavailableError(_UNAVAILABLE_MESSAGE, tools=(LSOF_TCP_COMMAND[0],))


__all__ = [
    "LSOF_TCP_COMMAND",
    "LSOF_UDP_COMMAND",
    "MacosPortEnumerator",
    "parse_lsof_line",
    "parse_lsof_output",
]
