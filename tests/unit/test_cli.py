"""Tests for the list/stop command-line front-end."""

from __future__ import annotations

import argparse
from unittest.mock import AsyncMock, MagicMock

import orjson
import pytest

from ports_monitor import cli
from ports_monitor.config import MonitorConfig
from ports_monitor.exceptions import ToolUnavailableError
from ports_monitor.models import PortRecord, StopOutcome, StopStrategy

RECORDS = [
    PortRecord(protocol="udp", port=53, address="0.0.0.0", state="UNCONN"),
    PortRecord(protocol="tcp", port=3000, address="0.0.0.0", state="LISTEN", pid=1234, process_name="node"),
    PortRecord(protocol="tcp", port=3000, address="::", state="LISTEN", pid=1234, process_name="node"),
]

CONFIG = MonitorConfig(platform="linux", color=False)


@pytest.fixture
def fake_inventory(monkeypatch):
    enumerate_mock = AsyncMock(return_value=list(RECORDS))
    monkeypatch.setattr(cli, "enumerate_ports", enumerate_mock)
    monkeypatch.setattr(cli, "setup_logging", lambda verbose=False: None)
    monkeypatch.setattr(cli.MonitorConfig, "from_env", classmethod(lambda cls, platform=None: CONFIG))
    return enumerate_mock


def _stop_args(**overrides) -> argparse.Namespace:
    values = {"pid": None, "port": None, "protocol": None, "force": False, "dry_run": False, "yes": False, "json": False}
    values.update(overrides)
    return argparse.Namespace(**values)


def test_list_defaults_to_table(fake_inventory, capsys):
    assert cli.main([]) == 0

    out = capsys.readouterr().out
    assert "PROTO" in out
    assert "node" in out


def test_list_json_with_filters(fake_inventory, capsys):
    assert cli.main(["list", "--protocol", "tcp", "--json"]) == 0

    payload = orjson.loads(capsys.readouterr().out)
    assert [row["port"] for row in payload] == [3000, 3000]
    assert {row["processName"] for row in payload} == {"node"}


def test_enumeration_errors_exit_non_zero(monkeypatch, capsys):
    monkeypatch.setattr(cli, "enumerate_ports", AsyncMock(side_effect=ToolUnavailableError("Unable to read ports")))
    monkeypatch.setattr(cli, "setup_logging", lambda verbose=False: None)
    monkeypatch.setattr(cli.MonitorConfig, "from_env", classmethod(lambda cls, platform=None: CONFIG))

    assert cli.main(["list"]) == 1
    assert "Error: Unable to read ports" in capsys.readouterr().err


def test_stop_requires_a_target(fake_inventory, capsys):
    assert cli.main(["stop", "--yes"]) == 1
    assert "Stop requires --pid N or --port N" in capsys.readouterr().err


class TestRunStop:
    @pytest.mark.asyncio
    async def test_no_owner_found(self, fake_inventory, capsys) -> None:
        terminator = MagicMock()

        assert await cli.run_stop(_stop_args(port=53, yes=True), CONFIG, terminator) == 0

        assert cli.NO_TARGETS_MESSAGE in capsys.readouterr().out
        terminator.stop_processes.assert_not_called()

    @pytest.mark.asyncio
    async def test_refuses_without_confirmation(self, fake_inventory, capsys) -> None:
        terminator = MagicMock()

        assert await cli.run_stop(_stop_args(port=3000), CONFIG, terminator) == 0

        assert "Refusing to stop 1 process(es)" in capsys.readouterr().out
        terminator.stop_processes.assert_not_called()

    @pytest.mark.asyncio
    async def test_stops_unique_owner_pids(self, fake_inventory, capsys) -> None:
        terminator = MagicMock()
        terminator.stop_processes = AsyncMock(return_value=[StopOutcome(pid=1234, success=True, strategy=StopStrategy.GRACEFUL)])

        assert await cli.run_stop(_stop_args(port=3000, yes=True, force=True), CONFIG, terminator) == 0

        terminator.stop_processes.assert_awaited_once_with([1234], force=True, dry_run=False)
        out = capsys.readouterr().out
        assert "Stopped PID 1234 (graceful)." in out
        assert "Done: 1/1 successful." in out

    @pytest.mark.asyncio
    async def test_dry_run_json(self, fake_inventory, capsys) -> None:
        terminator = MagicMock()
        terminator.stop_processes = AsyncMock(
            return_value=[StopOutcome(pid=1234, success=True, strategy=StopStrategy.FORCE, dry_run=True)]
        )

        assert await cli.run_stop(_stop_args(pid=1234, dry_run=True, json=True, force=True), CONFIG, terminator) == 0

        assert orjson.loads(capsys.readouterr().out) == [{"pid": 1234, "strategy": "force", "success": True, "dryRun": True}]

    @pytest.mark.asyncio
    async def test_failed_stop_exits_non_zero(self, fake_inventory, capsys) -> None:
        terminator = MagicMock()
        terminator.stop_processes = AsyncMock(
            return_value=[StopOutcome(pid=1234, success=False, strategy=StopStrategy.GRACEFUL_THEN_FORCE)]
        )

        assert await cli.run_stop(_stop_args(pid=1234, yes=True), CONFIG, terminator) == 1
        assert "Failed PID 1234" in capsys.readouterr().out
