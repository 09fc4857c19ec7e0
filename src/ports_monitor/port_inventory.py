"""
Port inventory pipeline.

Enumerates bound sockets with the platform enumerator selected for the host,
removes duplicate reports, orders by port then pid, and filters with
``FilterCriteria``. Every call is a fresh snapshot; nothing is cached.

Usage:
    from ports_monitor.port_inventory import enumerate_ports, filter_ports
    from ports_monitor.models import FilterCriteria

    records = await enumerate_ports()
    web = filter_ports(records, FilterCriteria(protocol="tcp", port=8080))
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Tuple

from .command_runner import CommandRunner
from .config import MonitorConfig
from .models import FilterCriteria, PortRecord
from .platforms import PortEnumerator, Runner, select_enumerator

logger = logging.getLogger(__name__)


def record_key(record: PortRecord) -> Tuple[Any, ...]:
    return (
        record.protocol or "",
        record.port or "",
        record.address or "",
        record.state or "",
        record.pid or "",
        record.process_name or "",
    )


def dedupe_records(records: Iterable[PortRecord]) -> List[PortRecord]:
    """Keep the first occurrence of each record key, preserving encounter order."""
    seen = set()
    unique: List[PortRecord] = []
    for record in records:
        key = record_key(record)
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)
    return unique


def sort_records(records: Iterable[PortRecord]) -> List[PortRecord]:
    """Order by port, then pid; a missing port or pid sorts as 0. Stable for ties."""
    return sorted(records, key=lambda record: (record.port or 0, record.pid or 0))


def aggregate_records(records: Iterable[PortRecord]) -> List[PortRecord]:
    return sort_records(dedupe_records(records))


async def enumerate_ports(
    config: Optional[MonitorConfig] = None,
    *,
    enumerator: Optional[PortEnumerator] = None,
    runner: Optional[Runner] = None,
) -> List[PortRecord]:
    """
    Return the deduplicated, sorted port records for this host.

    Args:
        config: Runtime settings; defaults to ``MonitorConfig.from_env()``
        enumerator: Pre-built enumerator, bypassing platform selection
        runner: Command runner handed to the selected enumerator

    Raises:
        UnsupportedPlatformError: If no enumerator exists for the platform
        ToolUnavailableError: If the platform's diagnostic tools all failed
    """
    if enumerator is None:
        resolved_config = config if config is not None else MonitorConfig.from_env()
        resolved_runner = runner if runner is not None else CommandRunner.from_config(resolved_config)
        enumerator = select_enumerator(resolved_config, resolved_runner)

    raw = await enumerator.enumerate()
    records = aggregate_records(raw)
    logger.debug(
        "Enumerated %d port records (%d before dedupe) via %s", len(records), len(raw), type(enumerator).__name__
    )
    return records


def _lower(value: Any) -> str:
    if value is None:
        return ""
    return str(value).lower()


def _present(value: Any) -> bool:
    return value is not None and value != ""


def matches_criteria(record: PortRecord, criteria: FilterCriteria) -> bool:
    """Return True when *record* satisfies every present criterion."""
    if criteria.port is not None and record.port != int(criteria.port):
        return False

    if criteria.pid is not None and record.pid != int(criteria.pid):
        return False

    if _present(criteria.protocol) and _lower(record.protocol) != _lower(criteria.protocol):
        return False

    if _present(criteria.process_name):
        actual = _lower(record.process_name or record.command)
        if _lower(criteria.process_name) not in actual:
            return False

    if _present(criteria.state) and _lower(record.state) != _lower(criteria.state):
        return False

    if _present(criteria.address) and _lower(criteria.address) not in _lower(record.address):
        return False

    if _present(criteria.query):
        haystack = " ".join(
            _lower(value)
            for value in (
                record.protocol,
                record.port,
                record.address,
                record.state,
                record.pid,
                record.process_name,
                record.command,
            )
        )
        if _lower(criteria.query) not in haystack:
            return False

    return True


def filter_ports(records: Iterable[PortRecord], criteria: Optional[FilterCriteria] = None) -> List[PortRecord]:
    """Return the records matching *criteria* in their original order."""
    if criteria is None or criteria.is_empty():
        return list(records)
    return [record for record in records if matches_criteria(record, criteria)]


__all__ = [
    "aggregate_records",
    "dedupe_records",
    "enumerate_ports",
    "filter_ports",
    "matches_criteria",
    "record_key",
    "sort_records",
]
