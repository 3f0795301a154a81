"""Batched concurrent dispatch of commands and file copies to many hosts.

Usage::

    shell = DistShell(["host1", "host2", "host3"])
    shell.add_command("host1", "/bin/df")
    shell.add_command("host2", "/bin/echo", "-n", "''")
    shell.add_command("host3", "/bin/echo", "3")
    await shell.execute()
    shell.dump_all_stdout()

Work items are launched in synchronous batches of at most
``config.max_batch``: every item in a batch reports exactly one status
message, and the next batch starts only after all of them have been drained.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from rich.console import Console

from distsh.config import ShellConfig
from distsh.errors import CommandFailed, DispatchError, HostError, NoCommandError
from distsh.host import Host, build_hosts
from distsh.ssh import build_scp_cmd, build_ssh_cmd, find_program, run_transport


logger = logging.getLogger(__name__)

# Returned by get_host_stdout for an identity that is not in the session.
NO_OUTPUT = b"no output"


@dataclass
class Outcome:
    """What a work item reports for its host.

    Attributes:
        status: One-line status message, drained by the controller.
        output: New captured output, or None to leave the host's untouched.
        error: Failure of this run, or None on success.
    """

    status: str
    output: bytes | None = None
    error: HostError | None = None


# Type alias for a per-host work function.
WorkFunction = Callable[[Host], Awaitable[Outcome]]


class DistShell:
    """A fixed set of hosts plus the configuration used to dispatch to them."""

    def __init__(
        self,
        hosts: list[str],
        config: ShellConfig | None = None,
        console: Console | None = None,
    ):
        self.hosts = build_hosts(hosts)
        self.config = config or ShellConfig()
        self.console = console or Console(highlight=False)

    def enable_monitoring(self) -> None:
        """Print host status messages during dispatch (the default)."""
        self.config.monitor = True

    def disable_monitoring(self) -> None:
        """Suppress host status messages during dispatch."""
        self.config.monitor = False

    def set_max_batch(self, n: int) -> None:
        """Change the maximum number of work items in flight.

        Raises:
            pydantic.ValidationError: If n < 1.
        """
        self.config.max_batch = n

    def _find(self, name: str) -> Host | None:
        for host in self.hosts:
            if host.name == name:
                return host
        return None

    def add_command(self, name: str, command: str, *args: str) -> bool:
        """Assign a command to one host.

        Args:
            name: Host identity.
            command: Command to run remotely.
            *args: Command arguments.

        Returns:
            bool: False if no host has that identity.
        """
        host = self._find(name)
        if host is None:
            return False
        host.cmd = command
        host.args = list(args)
        return True

    async def execute_all(self, command: str, *args: str) -> None:
        """Assign one command to every host and execute it.

        Raises:
            DispatchError: If any host failed.
            TransportNotFound: If ssh is not on $PATH.
        """
        for host in self.hosts:
            host.cmd = command
            host.args = list(args)
        await self.execute()

    async def execute(self) -> None:
        """Run each host's assigned command.

        Raises:
            DispatchError: Listing every failed host, after all hosts settle.
            TransportNotFound: If ssh is not on $PATH. No host is run.
        """
        if not self.hosts:
            return
        ssh = find_program("ssh")
        timeout = self.config.timeout

        async def run_command(host: Host) -> Outcome:
            if not host.cmd:
                return Outcome(
                    status=f"ERROR: host {host.name} has no available command to execute",
                    error=NoCommandError(),
                )
            try:
                result = await run_transport(
                    host.name, build_ssh_cmd(ssh, host.name, host.cmd, host.args), timeout
                )
            except HostError as exc:
                return Outcome(
                    status=f"ERROR: Failed to exec command on host {host.name}: {exc}",
                    output=b"",
                    error=exc,
                )
            if result.returncode != 0:
                err = CommandFailed(result.returncode)
                return Outcome(
                    status=f"ERROR: Failed to exec command on host {host.name}: {err}",
                    output=result.output,
                    error=err,
                )
            return Outcome(
                status=f"INFO: completed running command on host {host.name}",
                output=result.output,
            )

        await self._dispatch(run_command)

    async def get_file(self, remote_path: str, destination: str) -> None:
        """Copy remote_path from every host into a local destination.

        All hosts copy into the same destination; choosing a path that does
        not collide is the caller's job.

        Args:
            remote_path: /path/to/file on each host.
            destination: Local /path/to/destination/[dir|file].

        Raises:
            DispatchError: Listing every failed host, after all hosts settle.
            TransportNotFound: If scp is not on $PATH. No host is run.
        """
        if not self.hosts:
            return
        scp = find_program("scp")
        timeout = self.config.timeout

        async def fetch(host: Host) -> Outcome:
            try:
                result = await run_transport(
                    host.name, build_scp_cmd(scp, host.name, remote_path, destination), timeout
                )
            except HostError as exc:
                return Outcome(status=f"{host.name}: ERROR : {exc}", output=b"", error=exc)
            if result.returncode != 0:
                err = CommandFailed(result.returncode)
                text = result.output.decode(errors="replace")
                return Outcome(
                    status=f"{host.name}: ERROR {text}: {err}",
                    output=result.output,
                    error=err,
                )
            return Outcome(status=f"{host.name}: SUCCESS", output=result.output)

        await self._dispatch(fetch)

    async def _run_item(
        self, host: Host, work: WorkFunction, queue: "asyncio.Queue[str]"
    ) -> None:
        """Run one work item and report exactly one status message.

        Only this task writes to host while it runs.
        """
        try:
            outcome = await work(host)
        except Exception as exc:
            # Reason: the controller drains one message per launch, so an
            # unexpected failure must still be reported as this host's status.
            logger.exception("work item for %s raised", host.name)
            outcome = Outcome(
                status=f"ERROR: host {host.name}: {exc}",
                error=HostError(str(exc)),
            )

        host.error = outcome.error
        if outcome.output is not None:
            host.stdout = outcome.output
        await queue.put(outcome.status)

    async def _dispatch(self, work: WorkFunction) -> None:
        """Run work for every host in synchronous batches of max_batch.

        Args:
            work: Per-host work function.

        Raises:
            DispatchError: If any host's error is set once all batches settle.
        """
        max_batch = self.config.max_batch
        queue: asyncio.Queue[str] = asyncio.Queue(maxsize=max_batch)
        total = len(self.hosts)
        running: list[asyncio.Task] = []
        launched = 0

        for host in self.hosts:
            running.append(asyncio.create_task(self._run_item(host, work, queue)))
            launched += 1

            # The batch is full or there are no more hosts, so collect a
            # status for every item in flight before launching more.
            if len(running) >= max_batch or launched >= total:
                logger.debug("draining batch of %d (%d/%d launched)", len(running), launched, total)
                for _ in range(len(running)):
                    status = await queue.get()
                    if self.config.monitor:
                        self.console.out(status, highlight=False)
                await asyncio.gather(*running)
                running = []

        failed = self.failed_hosts()
        if failed:
            logger.debug("%d of %d hosts failed: %s", len(failed), total, ",".join(failed))
            raise DispatchError(failed)

    def failed_hosts(self) -> list[str]:
        """Identities whose most recent run failed, in session order."""
        return [host.name for host in self.hosts if host.error is not None]

    def get_host_stdout(self, name: str) -> bytes:
        """Return a host's captured output, or NO_OUTPUT for an unknown host."""
        host = self._find(name)
        if host is None:
            return NO_OUTPUT
        return host.stdout

    def _write_raw(self, output: bytes) -> None:
        """Write captured output to the console's stream unchanged.

        Rich would expand tabs and drop carriage returns, so the bytes skip it.
        """
        stream = self.console.file
        stream.write(output.decode(errors="replace"))
        stream.flush()

    def dump_host_stdout(self, name: str) -> None:
        """Print a host's captured output. Unknown hosts print nothing."""
        host = self._find(name)
        if host is None:
            logger.debug("dump_host_stdout: unknown host %s", name)
            return
        self.console.out(f"Dumping output for cmd '{host.cmd}' from host {host.name}:", highlight=False)
        self._write_raw(host.stdout)

    def dump_all_stdout(self) -> None:
        """Print every host's captured output in session order."""
        for host in self.hosts:
            self.console.out(f"Dumping output for host: {host.name}", highlight=False)
            self._write_raw(host.stdout)
