"""Integration tests: real subprocesses through fake ssh/scp executables.

These tests run the dispatcher end to end, including process launch,
combined output capture and exit codes, against local shell commands.
"""

import asyncio
import io

from rich.console import Console

from distsh.config import ShellConfig
from distsh.errors import DispatchError, HostTimeout, NoCommandError
from distsh.shell import DistShell


def _shell(hosts: list[str], **config) -> tuple[DistShell, io.StringIO]:
    buf = io.StringIO()
    console = Console(file=buf, width=500, highlight=False)
    return DistShell(hosts, config=ShellConfig(**config), console=console), buf


def test_per_host_commands(fake_transport):
    """df / echo -n '' / echo 3 on three hosts all succeed."""
    shell, _ = _shell(["h1", "h2", "h3"])
    shell.add_command("h1", "df")
    shell.add_command("h2", "echo", "-n", "''")
    shell.add_command("h3", "echo", "3")

    asyncio.run(shell.execute())

    assert shell.failed_hosts() == []
    assert shell.get_host_stdout("h3") == b"3\n"
    assert shell.get_host_stdout("h2") == b""
    assert shell.get_host_stdout("h1") != b""


def test_failing_and_unreachable_hosts(fake_transport):
    """Non-zero exits and unreachable hosts are folded into one report."""
    shell, buf = _shell(["h1", "down1", "h2", "h3"], max_batch=2)
    shell.add_command("h1", "sh", "-c", "'echo oops >&2; exit 3'")
    shell.add_command("down1", "true")
    shell.add_command("h2", "echo", "fine")

    try:
        asyncio.run(shell.execute())
    except DispatchError as exc:
        error = exc
    else:
        raise AssertionError("expected DispatchError")

    assert str(error) == "h1,down1,h3"
    # Reason: stderr is captured together with stdout.
    assert shell.get_host_stdout("h1") == b"oops\n"
    assert b"Connection refused" in shell.get_host_stdout("down1")
    assert shell.get_host_stdout("h2") == b"fine\n"
    assert isinstance(shell.hosts[3].error, NoCommandError)
    assert "ERROR: Failed to exec command on host h1: exit status 3" in buf.getvalue()


def test_timeout_kills_hung_host(fake_transport):
    """A hung host is killed after the timeout; others finish normally."""
    shell, _ = _shell(["slow", "quick"], timeout=0.5)
    shell.add_command("slow", "exec", "sleep", "30")
    shell.add_command("quick", "echo", "done")

    try:
        asyncio.run(shell.execute())
    except DispatchError as exc:
        assert str(exc) == "slow"

    assert isinstance(shell.hosts[0].error, HostTimeout)
    assert shell.get_host_stdout("quick") == b"done\n"


def test_get_file(fake_transport, tmp_path):
    """get_file copies host:path into the destination directory."""
    src = tmp_path / "motd"
    src.write_text("hello\n")
    dest = tmp_path / "out"
    dest.mkdir()
    shell, buf = _shell(["h1", "down1"])

    try:
        asyncio.run(shell.get_file(str(src), str(dest)))
    except DispatchError as exc:
        assert str(exc) == "down1"

    assert (dest / "motd").read_text() == "hello\n"
    lines = buf.getvalue().splitlines()
    assert "h1: SUCCESS" in lines
    assert any(line.startswith("down1: ERROR ssh: connect to host down1") for line in lines)
