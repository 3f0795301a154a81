"""SSH/SCP transport layer for remote command execution and file retrieval."""

import asyncio
import logging
import shutil
from dataclasses import dataclass

from distsh.errors import HostTimeout, LocalCommandError, TransportError, TransportNotFound


logger = logging.getLogger(__name__)

# Non-interactive option sets. A host with an unknown key or one that would
# prompt for a password fails instead of blocking the batch.
SSH_OPTIONS = ["-o", "StrictHostKeyChecking=no", "-o", "BatchMode=yes"]
SCP_OPTIONS = ["-o", "BatchMode=yes", "-o", "StrictHostKeyChecking=no"]


@dataclass
class RunResult:
    """Result of one transport invocation against a node.

    Attributes:
        node: The node the transport targeted.
        output: Combined stdout and stderr.
        returncode: Exit code of the transport process.
    """

    node: str
    output: bytes
    returncode: int


def find_program(name: str) -> str:
    """Locate a transport executable on $PATH.

    Args:
        name: Program name, "ssh" or "scp".

    Returns:
        str: Absolute path of the executable.

    Raises:
        TransportNotFound: If the program is not on $PATH.
    """
    path = shutil.which(name)
    if path is None:
        raise TransportNotFound(name)
    return path


def build_ssh_cmd(ssh: str, node: str, cmd: str, args: list[str]) -> list[str]:
    """Build the argv for running cmd on node.

    Args:
        ssh: Path to the ssh executable.
        node: Target host.
        cmd: Remote command.
        args: Remote command arguments.

    Returns:
        list[str]: Full argv, e.g. ["ssh", "-o", ..., "node", "uptime"].
    """
    return [ssh, *SSH_OPTIONS, node, cmd, *args]


def build_scp_cmd(scp: str, node: str, remote_path: str, destination: str) -> list[str]:
    """Build the argv for copying node:remote_path to a local destination.

    Args:
        scp: Path to the scp executable.
        node: Source host.
        remote_path: File path on the source host.
        destination: Local file or directory.

    Returns:
        list[str]: Full argv.
    """
    return [scp, *SCP_OPTIONS, f"{node}:{remote_path}", destination]


async def run_transport(
    node: str, argv: list[str], timeout: float | None = None
) -> RunResult:
    """Run one transport process and capture its combined output.

    Args:
        node: Node the invocation targets, recorded on the result.
        argv: Full command line from build_ssh_cmd or build_scp_cmd.
        timeout: Seconds to wait before killing the process. None waits forever.

    Returns:
        RunResult: The process output and exit code.

    Raises:
        TransportError: If the process cannot be launched.
        HostTimeout: If the process outlives the timeout.
    """
    logger.debug("exec %s", " ".join(argv))
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except OSError as exc:
        raise TransportError(str(exc)) from exc

    try:
        stdout_bytes, _ = await asyncio.wait_for(proc.communicate(), timeout)
    except asyncio.TimeoutError:
        try:
            proc.kill()
        except ProcessLookupError:
            # Already exited between the timeout and the kill.
            pass
        await proc.wait()
        raise HostTimeout(timeout) from None

    return RunResult(
        node=node,
        output=stdout_bytes or b"",
        returncode=proc.returncode or 0,
    )


async def run_cmd_output(cmd: str, *args: str) -> list[str]:
    """Run a local program and return its stdout as a list of lines.

    A trailing empty line left by the final newline is dropped.

    Args:
        cmd: Program to run.
        *args: Program arguments.

    Returns:
        list[str]: stdout lines.

    Raises:
        LocalCommandError: If the program cannot be launched or exits non-zero.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            cmd,
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise LocalCommandError(f"{cmd}: {exc}\noutput:") from exc

    stdout_bytes, _ = await proc.communicate()
    output = (stdout_bytes or b"").decode(errors="replace")

    if proc.returncode:
        raise LocalCommandError(f"{cmd}: exit status {proc.returncode}\noutput:{output}")

    lines = output.split("\n")
    if lines[-1] == "":
        lines = lines[:-1]
    return lines
