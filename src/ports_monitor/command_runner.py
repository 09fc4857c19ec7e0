"""Run external diagnostic and control commands without raising on failure."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from .config import DEFAULT_COMMAND_TIMEOUT_SECONDS, DEFAULT_MAX_BUFFER_BYTES, MonitorConfig

logger = logging.getLogger(__name__)

_READ_CHUNK_BYTES = 64 * 1024


@dataclass(frozen=True)
class CommandResult:
    """Captured output of one command; ``ok`` is False for every kind of failure."""

    stdout: str
    stderr: str
    ok: bool
    returncode: Optional[int] = None


class _BufferExceeded(Exception):
    pass


class CommandRunner:
    """Executes argument vectors with a timeout and a per-stream output cap.

    Missing executables, non-zero exits, timeouts and oversized output are all
    reported as ``CommandResult(ok=False)`` so callers decide what a failure means.
    """

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_COMMAND_TIMEOUT_SECONDS,
        max_buffer_bytes: int = DEFAULT_MAX_BUFFER_BYTES,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.max_buffer_bytes = max_buffer_bytes

    @classmethod
    def from_config(cls, config: MonitorConfig) -> "CommandRunner":
        return cls(timeout_seconds=config.command_timeout_seconds, max_buffer_bytes=config.max_buffer_bytes)

    async def run(self, args: Sequence[str]) -> CommandResult:
        command_line = " ".join(args)
        logger.debug("Running command: %s", command_line)
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, PermissionError) as exc:  # policy_guard: allow-silent-handler
            logger.debug("Command %s could not be started: %s", command_line, exc)
            return CommandResult(stdout="", stderr=str(exc), ok=False)
        except OSError as exc:  # policy_guard: allow-silent-handler
            logger.debug("Command %s failed to launch: %s", command_line, exc)
            return CommandResult(stdout="", stderr=str(exc), ok=False)

        stdout_chunks: list[bytes] = []
        stderr_chunks: list[bytes] = []
        readers = [
            asyncio.ensure_future(self._read_capped(proc.stdout, stdout_chunks)),
            asyncio.ensure_future(self._read_capped(proc.stderr, stderr_chunks)),
        ]
        try:
            await asyncio.wait_for(asyncio.gather(*readers, proc.wait()), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            _cancel_pending(readers)
            await _kill(proc)
            message = f"Command timed out after {self.timeout_seconds}s: {command_line}"
            logger.debug(message)
            return CommandResult(stdout=_decode(stdout_chunks), stderr=message, ok=False, returncode=proc.returncode)
        except _BufferExceeded:
            _cancel_pending(readers)
            await _kill(proc)
            message = f"Command output exceeded {self.max_buffer_bytes} bytes: {command_line}"
            logger.debug(message)
            return CommandResult(stdout=_decode(stdout_chunks), stderr=message, ok=False, returncode=proc.returncode)

        stdout = _decode(stdout_chunks)
        stderr = _decode(stderr_chunks)
        ok = proc.returncode == 0
        if not ok:
            logger.debug("Command %s exited with %s: %s", command_line, proc.returncode, stderr.strip())
        return CommandResult(stdout=stdout, stderr=stderr, ok=ok, returncode=proc.returncode)

    async def _read_capped(self, stream: Optional[asyncio.StreamReader], sink: list[bytes]) -> None:
        if stream is None:
            return
        total = 0
        while True:
            chunk = await stream.read(_READ_CHUNK_BYTES)
            if not chunk:
                return
            total += len(chunk)
            if total > self.max_buffer_bytes:
                raise _BufferExceeded()
            sink.append(chunk)


def _cancel_pending(tasks: list) -> None:
    for task in tasks:
        if not task.done():
            task.cancel()


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is not None:
        return
    try:
        proc.kill()
    except ProcessLookupError:  # policy_guard: allow-silent-handler
        return
    await proc.wait()


def _decode(chunks: list[bytes]) -> str:
    return b"".join(chunks).decode("utf-8", errors="replace")


__all__ = ["CommandResult", "CommandRunner"]
