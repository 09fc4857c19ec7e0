"""
Escalating process termination.

A target is asked to exit gracefully, given a grace period, probed, and only
then killed outright and probed again after a short settle period. With
``force`` the graceful stage is skipped. The outcome is decided by the liveness
probe alone since neither signal form confirms delivery synchronously.

Usage:
    from ports_monitor.process_terminator import stop_processes

    outcomes = await stop_processes([1234, 5678])
"""

from __future__ import annotations

import asyncio
import logging
import math
import signal
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Protocol

import psutil

from .command_runner import CommandRunner
from .config import MonitorConfig
from .exceptions import InvalidPidError
from .models import StopOutcome, StopStrategy

logger = logging.getLogger(__name__)

LivenessProbe = Callable[[int], bool]
Sleep = Callable[[float], Awaitable[None]]


class TerminationStage(str, Enum):
    IDLE = "idle"
    GRACEFUL_SENT = "graceful-sent"
    FORCE_SENT = "force-sent"
    STOPPED = "stopped"
    FAILED = "failed"


class SignalSender(Protocol):
    async def graceful(self, pid: int) -> None: ...

    async def force(self, pid: int) -> None: ...


class PosixSignalSender:
    """Delivers SIGTERM / SIGKILL through psutil."""

    async def graceful(self, pid: int) -> None:
        self._send(pid, signal.SIGTERM)

    async def force(self, pid: int) -> None:
        self._send(pid, signal.SIGKILL)

    @staticmethod
    def _send(pid: int, sig: int) -> None:
        try:
            psutil.Process(pid).send_signal(sig)
        except psutil.NoSuchProcess:  # policy_guard: allow-silent-handler
            logger.debug("Process %s already gone before signal %s", pid, sig)
        except psutil.AccessDenied:  # policy_guard: allow-silent-handler
            # Outcome is decided by the liveness probe
            logger.warning("Permission denied sending signal %s to process %s", sig, pid)


class WindowsSignalSender:
    """Asks ``taskkill`` to close (then force-close) a process."""

    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner

    async def graceful(self, pid: int) -> None:
        await self._taskkill(("taskkill", "/PID", str(pid)))

    async def force(self, pid: int) -> None:
        await self._taskkill(("taskkill", "/F", "/PID", str(pid)))

    async def _taskkill(self, args) -> None:
        result = await self.runner.run(args)
        if not result.ok:
            logger.debug("%s failed: %s", " ".join(args), result.stderr.strip())


def default_signal_sender(config: MonitorConfig) -> SignalSender:
    if config.is_windows:
        return WindowsSignalSender(CommandRunner.from_config(config))
    return PosixSignalSender()


def is_process_alive(pid: Any) -> bool:
    """
    Side-effect-free liveness check; non-positive or non-integer ids are never alive.

    A process that exists but refuses the probe for lack of permission counts
    as alive. Ids beyond the platform pid range are never alive.
    """
    if isinstance(pid, bool) or not isinstance(pid, int) or pid <= 0:
        return False
    try:
        return psutil.pid_exists(pid)
    except OverflowError:  # policy_guard: allow-silent-handler
        return False


def normalize_pid(value: Any) -> int:
    """Coerce *value* to a positive integer pid or raise ``InvalidPidError``."""
    if isinstance(value, bool):
        raise InvalidPidError(value)
    if isinstance(value, int):
        pid = value
    elif isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise InvalidPidError(value)
        pid = int(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped.isdecimal():
            raise InvalidPidError(value)
        pid = int(stripped)
    else:
        raise InvalidPidError(value)

    if pid <= 0:
        raise InvalidPidError(value)
    return pid


def unique_valid_pids(pids: Iterable[Any]) -> List[int]:
    """Drop invalid ids and repeats, keeping first-seen order."""
    unique: List[int] = []
    for raw in pids:
        try:
            pid = normalize_pid(raw)
        except InvalidPidError:  # policy_guard: allow-silent-handler
            logger.debug("Ignoring invalid pid %r", raw)
            continue
        if pid not in unique:
            unique.append(pid)
    return unique


class ProcessTerminator:
    """Runs the escalation protocol with injectable signalling, probing and sleeping."""

    def __init__(
        self,
        config: Optional[MonitorConfig] = None,
        *,
        signal_sender: Optional[SignalSender] = None,
        liveness_probe: Optional[LivenessProbe] = None,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self.config = config if config is not None else MonitorConfig.from_env()
        self.signal_sender = signal_sender if signal_sender is not None else default_signal_sender(self.config)
        self.liveness_probe = liveness_probe if liveness_probe is not None else is_process_alive
        self.sleep = sleep if sleep is not None else asyncio.sleep
        # Serializes protocol runs so no two targets' stages ever interleave
        self._lock = asyncio.Lock()

    async def stop_process(self, pid: Any, *, force: bool = False, dry_run: bool = False) -> StopOutcome:
        """
        Stop a single process.

        Raises:
            InvalidPidError: If *pid* is not a positive integer
        """
        pid_number = normalize_pid(pid)

        if dry_run:
            strategy = StopStrategy.FORCE if force else StopStrategy.GRACEFUL_THEN_FORCE
            logger.info("Dry run: would stop process %s using %s", pid_number, strategy.value)
            return StopOutcome(pid=pid_number, success=True, strategy=strategy, dry_run=True)

        async with self._lock:
            if force:
                return await self._force_only(pid_number)
            return await self._graceful_then_force(pid_number)

    async def stop_processes(
        self, pids: Iterable[Any], *, force: bool = False, dry_run: bool = False
    ) -> List[StopOutcome]:
        """Stop each unique valid pid in turn; failures become ``success=False`` outcomes."""
        outcomes: List[StopOutcome] = []
        for pid in unique_valid_pids(pids):
            try:
                outcome = await self.stop_process(pid, force=force, dry_run=dry_run)
            except Exception as exc:  # policy_guard: allow-broad-except
                logger.warning("Failed to stop process %s: %s", pid, exc)
                outcome = StopOutcome(pid=pid, success=False, error=str(exc) or type(exc).__name__)
            outcomes.append(outcome)
        return outcomes

    async def _force_only(self, pid: int) -> StopOutcome:
        await self.signal_sender.force(pid)
        _log_stage(pid, TerminationStage.IDLE, TerminationStage.FORCE_SENT)
        stopped = not self.liveness_probe(pid)
        _log_stage(pid, TerminationStage.FORCE_SENT, _final_stage(stopped))
        return StopOutcome(pid=pid, success=stopped, strategy=StopStrategy.FORCE)

    async def _graceful_then_force(self, pid: int) -> StopOutcome:
        await self.signal_sender.graceful(pid)
        _log_stage(pid, TerminationStage.IDLE, TerminationStage.GRACEFUL_SENT)
        await self.sleep(self.config.grace_period_seconds)

        if not self.liveness_probe(pid):
            _log_stage(pid, TerminationStage.GRACEFUL_SENT, TerminationStage.STOPPED)
            return StopOutcome(pid=pid, success=True, strategy=StopStrategy.GRACEFUL)

        logger.info("Process %s still alive after %.1fs grace period; forcing", pid, self.config.grace_period_seconds)
        await self.signal_sender.force(pid)
        _log_stage(pid, TerminationStage.GRACEFUL_SENT, TerminationStage.FORCE_SENT)
        await self.sleep(self.config.settle_period_seconds)

        stopped = not self.liveness_probe(pid)
        _log_stage(pid, TerminationStage.FORCE_SENT, _final_stage(stopped))
        return StopOutcome(pid=pid, success=stopped, strategy=StopStrategy.GRACEFUL_THEN_FORCE)


def _final_stage(stopped: bool) -> TerminationStage:
    return TerminationStage.STOPPED if stopped else TerminationStage.FAILED


def _log_stage(pid: int, previous: TerminationStage, current: TerminationStage) -> None:
    if current is TerminationStage.FAILED:
        logger.warning("Process %s survived termination (%s -> %s)", pid, previous.value, current.value)
        return
    logger.info("Process %s: %s -> %s", pid, previous.value, current.value)


async def stop_process(
    pid: Any,
    *,
    force: bool = False,
    dry_run: bool = False,
    config: Optional[MonitorConfig] = None,
) -> StopOutcome:
    """Stop one process with a default ``ProcessTerminator``."""
    return await ProcessTerminator(config).stop_process(pid, force=force, dry_run=dry_run)


async def stop_processes(
    pids: Iterable[Any],
    *,
    force: bool = False,
    dry_run: bool = False,
    config: Optional[MonitorConfig] = None,
) -> List[StopOutcome]:
    """Stop many processes sequentially with a default ``ProcessTerminator``."""
    return await ProcessTerminator(config).stop_processes(pids, force=force, dry_run=dry_run)


__all__ = [
    "PosixSignalSender",
    "ProcessTerminator",
    "SignalSender",
    "TerminationStage",
    "WindowsSignalSender",
    "default_signal_sender",
    "is_process_alive",
    "normalize_pid",
    "stop_process",
    "stop_processes",
    "unique_valid_pids",
]
