"""Render port records as a fixed-width table or as JSON."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence, TextIO

import orjson

from .config import MonitorConfig
from .models import PortRecord, StopOutcome, UDP_STATE

_ANSI = {
    "reset": "\x1b[0m",
    "bold": "\x1b[1m",
    "dim": "\x1b[2m",
    "cyan": "\x1b[36m",
    "blue": "\x1b[34m",
    "magenta": "\x1b[35m",
    "green": "\x1b[32m",
    "yellow": "\x1b[33m",
    "red": "\x1b[31m",
}

# (key, title, width)
_COLUMNS = (
    ("idx", "#", 4),
    ("protocol", "PROTO", 7),
    ("port", "PORT", 7),
    ("address", "ADDRESS", 24),
    ("state", "STATE", 13),
    ("pid", "PID", 8),
    ("process", "PROCESS", 20),
)

EMPTY_MESSAGE = "No matching open ports found."


def supports_color(config: Optional[MonitorConfig], stream: TextIO) -> bool:
    if config is not None and config.color is not None:
        return config.color
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def colorize(text: str, code: str, enabled: bool = True) -> str:
    if not enabled or code not in _ANSI:
        return text
    return f"{_ANSI[code]}{text}{_ANSI['reset']}"


def pad(value: Any, width: int) -> str:
    text = "" if value is None else str(value)
    if len(text) >= width:
        return text[: width - 1] + "~"
    return text.ljust(width)


def _cell_color(key: str, raw: str) -> Optional[str]:
    if key == "protocol":
        return {"tcp": "blue", "udp": "magenta"}.get(raw)
    if key == "state" and raw:
        if raw == "LISTEN":
            return "green"
        if raw == UDP_STATE:
            return "yellow"
        return "red"
    return None


def _row_view(index: int, record: PortRecord) -> Dict[str, str]:
    return {
        "idx": str(index),
        "protocol": record.protocol or "",
        "port": str(record.port or ""),
        "address": record.address or "",
        "state": record.state or "",
        "pid": str(record.pid) if record.pid else "",
        "process": record.process_name or record.command or "",
    }


def format_ports_table(records: Sequence[PortRecord], color: bool = False) -> str:
    if not records:
        return colorize(EMPTY_MESSAGE, "yellow", color)

    header = " ".join(pad(title, width) for _, title, width in _COLUMNS)
    separator = " ".join("-" * width for _, _, width in _COLUMNS)
    lines: List[str] = [
        colorize(colorize(header, "bold", color), "cyan", color),
        colorize(separator, "dim", color),
    ]

    for index, record in enumerate(records, start=1):
        view = _row_view(index, record)
        cells = []
        for key, _, width in _COLUMNS:
            raw = view[key]
            if key == "pid" and not raw and color:
                cells.append(colorize(pad("-", width), "dim"))
                continue
            cell = pad(raw, width)
            code = _cell_color(key, raw)
            cells.append(colorize(cell, code, color) if code else cell)
        lines.append(" ".join(cells))

    return "\n".join(lines)


def format_stop_summary(outcomes: Sequence[StopOutcome]) -> str:
    lines = []
    for outcome in outcomes:
        if outcome.success:
            strategy = outcome.strategy.value if outcome.strategy else "unknown"
            verb = "Would stop" if outcome.dry_run else "Stopped"
            lines.append(f"{verb} PID {outcome.pid} ({strategy}).")
        else:
            lines.append(f"Failed PID {outcome.pid}: {outcome.error or 'process still running'}.")
    succeeded = sum(1 for outcome in outcomes if outcome.success)
    lines.append(f"Done: {succeeded}/{len(outcomes)} successful.")
    return "\n".join(lines)


def to_json(items: Iterable[Any]) -> str:
    """Serialize records/outcomes (anything with ``to_dict``) as indented JSON."""
    payload = [item.to_dict() if hasattr(item, "to_dict") else item for item in items]
    return orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode("utf-8")


__all__ = [
    "EMPTY_MESSAGE",
    "colorize",
    "format_ports_table",
    "format_stop_summary",
    "supports_color",
    "to_json",
]
