"""Exception hierarchy for distsh.

Per-host failures (HostError subclasses) are stored on the Host record and
never raised out of a dispatch. Only the aggregate DispatchError and the
environment-fatal TransportNotFound reach the caller.
"""


class DistShellError(Exception):
    """Base class for all distsh errors."""

    pass


class HostError(DistShellError):
    """Failure of a single host's most recent work item."""

    pass


class NoCommandError(HostError):
    """Raised for a host that was dispatched without an assigned command."""

    def __init__(self) -> None:
        super().__init__("no available command to execute")


class CommandFailed(HostError):
    """The transport ran but exited non-zero.

    Attributes:
        returncode: Exit status of the ssh/scp process.
    """

    def __init__(self, returncode: int) -> None:
        self.returncode = returncode
        super().__init__(f"exit status {returncode}")


class HostTimeout(HostError):
    """The transport did not finish within the configured per-host timeout.

    Attributes:
        seconds: The timeout that was exceeded.
    """

    def __init__(self, seconds: float) -> None:
        self.seconds = seconds
        super().__init__(f"timed out after {seconds:g}s")


class TransportError(HostError):
    """The transport process could not be launched."""

    pass


class DispatchError(DistShellError):
    """Aggregate failure report for a dispatch call.

    The message is the comma-joined list of failed host identities in
    session order, e.g. ``"h1,h3"``.

    Attributes:
        hosts: Failed host identities in session order.
    """

    def __init__(self, hosts: list[str]) -> None:
        self.hosts = list(hosts)
        super().__init__(",".join(self.hosts))


class TransportNotFound(DistShellError):
    """A transport executable (ssh or scp) is not on $PATH.

    This is an environment failure, not a per-host one: no host is
    dispatched when it is raised.
    """

    def __init__(self, program: str) -> None:
        self.program = program
        super().__init__(f"Unable to find {program} in $PATH")


class LocalCommandError(DistShellError):
    """A local command run through run_cmd_output failed."""

    pass
