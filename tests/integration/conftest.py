"""Integration test fixtures: fake ssh/scp executables on $PATH.

The fake ssh drops its -o options and the host name and runs the command
locally; the fake scp copies host:path from the local filesystem. This
exercises the real subprocess plumbing without any remote machine.
"""

import os
import stat
from pathlib import Path

import pytest


FAKE_SSH = """#!/bin/sh
while [ "$1" = "-o" ]; do shift 2; done
host="$1"; shift
case "$host" in
    down*) echo "ssh: connect to host $host port 22: Connection refused" >&2; exit 255 ;;
esac
exec sh -c "$*"
"""

FAKE_SCP = """#!/bin/sh
while [ "$1" = "-o" ]; do shift 2; done
src="$1"; dest="$2"
host="${src%%:*}"
path="${src#*:}"
case "$host" in
    down*) echo "ssh: connect to host $host port 22: Connection refused" >&2; exit 255 ;;
esac
exec cp "$path" "$dest"
"""


def _install(bin_dir: Path, name: str, body: str) -> None:
    script = bin_dir / name
    script.write_text(body)
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


@pytest.fixture
def fake_transport(tmp_path, monkeypatch) -> Path:
    """Put fake ssh and scp first on $PATH.

    Hosts whose name starts with "down" behave as unreachable.

    Returns:
        Path: The directory holding the fake executables.
    """
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    _install(bin_dir, "ssh", FAKE_SSH)
    _install(bin_dir, "scp", FAKE_SCP)
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
    return bin_dir
