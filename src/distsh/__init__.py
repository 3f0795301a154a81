"""distsh: batched concurrent command dispatch over ssh."""

from distsh.config import ShellConfig, load_config
from distsh.errors import (
    CommandFailed,
    DispatchError,
    DistShellError,
    HostError,
    HostTimeout,
    LocalCommandError,
    NoCommandError,
    TransportError,
    TransportNotFound,
)
from distsh.host import Host
from distsh.shell import NO_OUTPUT, DistShell
from distsh.ssh import run_cmd_output

__version__ = "0.1.0"

__all__ = [
    "CommandFailed",
    "DispatchError",
    "DistShell",
    "DistShellError",
    "Host",
    "HostError",
    "HostTimeout",
    "LocalCommandError",
    "NO_OUTPUT",
    "NoCommandError",
    "ShellConfig",
    "TransportError",
    "TransportNotFound",
    "load_config",
    "run_cmd_output",
]
