"""Per-host record: identity, assigned work and the outcome of its last run."""

from dataclasses import dataclass, field

from distsh.errors import HostError


@dataclass
class Host:
    """State of one target node within a dispatch session.

    Attributes:
        name: Host identity (hostname or address), unique within a session.
        cmd: Command assigned to this host. Empty until assigned.
        args: Arguments passed after cmd.
        stdout: Combined stdout/stderr bytes of the most recent run.
        error: Failure of the most recent run, or None on success.
    """

    name: str
    cmd: str = ""
    args: list[str] = field(default_factory=list)
    stdout: bytes = b""
    error: HostError | None = None


def build_hosts(names: list[str]) -> list[Host]:
    """Create one empty Host per identity, preserving order.

    Args:
        names: Host identities.

    Returns:
        list[Host]: Fresh records in the given order.

    Raises:
        ValueError: If an identity appears more than once.
    """
    seen: set[str] = set()
    hosts: list[Host] = []
    for name in names:
        if name in seen:
            raise ValueError(f"Duplicate host '{name}' in host list.")
        seen.add(name)
        hosts.append(Host(name=name))
    return hosts
