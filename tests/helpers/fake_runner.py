from __future__ import annotations

from typing import Dict, List, Mapping, Sequence, Tuple

from ports_monitor.command_runner import CommandResult

MISSING = CommandResult(stdout="", stderr="command not found", ok=False, returncode=None)


def ok(stdout: str) -> CommandResult:
    return CommandResult(stdout=stdout, stderr="", ok=True, returncode=0)


def failed(stderr: str = "boom", stdout: str = "", returncode: int = 1) -> CommandResult:
    return CommandResult(stdout=stdout, stderr=stderr, ok=False, returncode=returncode)


class FakeRunner:
    """Canned command results keyed by argument vector; unknown commands look missing."""

    def __init__(self, results: Mapping[Sequence[str], CommandResult] | None = None):
        self.results: Dict[Tuple[str, ...], CommandResult] = {tuple(k): v for k, v in (results or {}).items()}
        self.calls: List[Tuple[str, ...]] = []

    async def run(self, args: Sequence[str]) -> CommandResult:
        key = tuple(args)
        self.calls.append(key)
        return self.results.get(key, MISSING)
