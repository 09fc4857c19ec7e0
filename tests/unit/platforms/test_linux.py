"""Tests for the Linux ss/netstat parsers and fallback policy."""

from __future__ import annotations

import pytest

from ports_monitor.exceptions import ToolUnavailableError
from ports_monitor.models import PortRecord
from ports_monitor.platforms.linux import (
    NETSTAT_COMMAND,
    SS_COMMAND,
    LinuxPortEnumerator,
    parse_netstat_line,
    parse_netstat_output,
    parse_ss_line,
    parse_ss_output,
)
from tests.helpers.fake_runner import FakeRunner, failed, ok
from tests.helpers.sample_output import NETSTAT_LINUX_OUTPUT, SS_OUTPUT


class TestParseSsLine:
    def test_parses_listener_with_owner(self) -> None:
        record = parse_ss_line('tcp LISTEN 0 511 0.0.0.0:3000 0.0.0.0:* users:(("node",pid=1234,fd=21))')

        assert record == PortRecord(
            protocol="tcp",
            port=3000,
            address="0.0.0.0",
            state="LISTEN",
            pid=1234,
            process_name="node",
        )
        assert record.command == "node"

    def test_socket_without_owner_has_no_pid(self) -> None:
        record = parse_ss_line("udp UNCONN 0 0 127.0.0.53%lo:53 0.0.0.0:*")

        assert record is not None
        assert record.pid is None
        assert record.process_name is None
        assert record.state == "UNCONN"
        assert record.address == "127.0.0.53%lo"

    def test_bracketed_ipv6_address(self) -> None:
        record = parse_ss_line('tcp LISTEN 0 4096 [::]:22 [::]:* users:(("sshd",pid=812,fd=4))')

        assert record is not None
        assert record.address == "::"
        assert record.port == 22

    def test_first_owner_wins_when_several_share_socket(self) -> None:
        record = parse_ss_line(
            'tcp LISTEN 0 128 127.0.0.1:5432 0.0.0.0:* users:(("postgres",pid=901,fd=7),("postgres",pid=902,fd=7))'
        )

        assert record is not None
        assert record.pid == 901

    def test_short_lines_are_ignored(self) -> None:
        assert parse_ss_line("tcp LISTEN 0") is None
        assert parse_ss_line("") is None

    def test_unresolvable_port_is_dropped(self) -> None:
        assert parse_ss_line("tcp LISTEN 0 128 * *:*") is None


def test_parse_ss_output_keeps_only_resolved_rows() -> None:
    records = parse_ss_output(SS_OUTPUT)

    assert [record.port for record in records] == [3000, 53, 22, 5432]
    assert all(record.port is not None for record in records)


class TestParseNetstatLine:
    def test_tcp_row(self) -> None:
        record = parse_netstat_line("tcp 0 0 0.0.0.0:3000 0.0.0.0:* LISTEN 1234/node")

        assert record == PortRecord(protocol="tcp", port=3000, address="0.0.0.0", state="LISTEN", pid=1234, process_name="node")

    def test_tcp6_maps_to_tcp(self) -> None:
        record = parse_netstat_line("tcp6 0 0 :::22 :::* LISTEN 812/sshd")

        assert record is not None
        assert record.protocol == "tcp"
        assert record.address == "::"
        assert record.port == 22

    def test_udp_row_is_unconn_with_owner_in_sixth_column(self) -> None:
        record = parse_netstat_line("udp 0 0 0.0.0.0:68 0.0.0.0:* 600/dhclient")

        assert record is not None
        assert record.protocol == "udp"
        assert record.state == "UNCONN"
        assert record.pid == 600
        assert record.process_name == "dhclient"

    def test_dash_owner_means_unknown(self) -> None:
        record = parse_netstat_line("udp6 0 0 :::5353 :::* -")

        assert record is not None
        assert record.pid is None
        assert record.process_name is None

    def test_header_lines_are_ignored(self) -> None:
        assert parse_netstat_line("Proto Recv-Q Send-Q Local Address Foreign Address State PID/Program name") is None
        assert parse_netstat_line("Active Internet connections (only servers)") is None


def test_parse_netstat_output() -> None:
    records = parse_netstat_output(NETSTAT_LINUX_OUTPUT)

    assert [(record.protocol, record.port) for record in records] == [
        ("tcp", 3000),
        ("tcp", 22),
        ("udp", 68),
        ("udp", 5353),
    ]


class TestLinuxPortEnumerator:
    @pytest.mark.asyncio
    async def test_uses_ss_when_available(self) -> None:
        runner = FakeRunner({SS_COMMAND: ok(SS_OUTPUT)})

        records = await LinuxPortEnumerator(runner).enumerate()

        assert len(records) == 4
        assert runner.calls == [SS_COMMAND]

    @pytest.mark.asyncio
    async def test_falls_back_to_netstat_when_ss_fails(self) -> None:
        runner = FakeRunner({SS_COMMAND: failed("ss: not found"), NETSTAT_COMMAND: ok(NETSTAT_LINUX_OUTPUT)})

        records = await LinuxPortEnumerator(runner).enumerate()

        assert [record.port for record in records] == [3000, 22, 68, 5353]
        assert runner.calls == [SS_COMMAND, NETSTAT_COMMAND]

    @pytest.mark.asyncio
    async def test_falls_back_when_ss_output_is_blank(self) -> None:
        runner = FakeRunner({SS_COMMAND: ok("  \n"), NETSTAT_COMMAND: ok(NETSTAT_LINUX_OUTPUT)})

        records = await LinuxPortEnumerator(runner).enumerate()

        assert records
        assert runner.calls == [SS_COMMAND, NETSTAT_COMMAND]

    @pytest.mark.asyncio
    async def test_raises_when_both_tools_fail(self) -> None:
        runner = FakeRunner()

        with pytest.raises(ToolUnavailableError, match="ss") as excinfo:
            await LinuxPortEnumerator(runner).enumerate()

        assert "netstat" in str(excinfo.value)
        assert excinfo.value.tools == ("ss", "netstat")
