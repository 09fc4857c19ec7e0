"""Tokenizer for local endpoint strings such as ``127.0.0.1:53`` or ``[::1]:8080``."""

from __future__ import annotations

import re
from typing import NamedTuple, Optional

_BRACKETED = re.compile(r"^\[(.*)\]:(\d+)$")
_PLAIN = re.compile(r"^(.*):(\d+)$")


class Endpoint(NamedTuple):
    address: str
    port: Optional[int]


def parse_endpoint(token: Optional[str]) -> Endpoint:
    """Split an endpoint token into address and port.

    Never raises: anything that does not end in ``:<digits>`` comes back with
    ``port=None`` and the original token as the address, and callers drop it.
    """
    if not token or not isinstance(token, str):
        return Endpoint("", None)

    match = _BRACKETED.match(token) or _PLAIN.match(token)
    if match is None:
        return Endpoint(token, None)
    return Endpoint(match.group(1), int(match.group(2)))


def normalize_state(state: Optional[str]) -> str:
    if not state:
        return ""
    return str(state).upper()


__all__ = ["Endpoint", "normalize_state", "parse_endpoint"]
