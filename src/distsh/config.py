"""Dispatch session configuration loading and validation."""

from pathlib import Path

import tomllib
from pydantic import BaseModel, ConfigDict, field_validator


DEFAULT_CONFIG_PATH = Path.home() / ".config" / "distsh" / "config.toml"


class ShellConfig(BaseModel):
    """Dispatch session configuration.

    Attributes:
        hosts: Default host list used by the CLI when --hosts is omitted.
        monitor: Print one status line per completed work item.
        max_batch: Maximum number of work items in flight at once.
        timeout: Per-host timeout in seconds. None waits forever.
    """

    model_config = ConfigDict(validate_assignment=True)

    hosts: list[str] = []
    monitor: bool = True
    max_batch: int = 50
    timeout: float | None = None

    @field_validator("hosts", mode="before")
    @classmethod
    def split_hosts(cls, v: str | list[str]) -> list[str]:
        """Accept a comma-separated string as well as a list.

        Args:
            v: Raw hosts value, e.g. "h1,h2" or ["h1", "h2"].

        Returns:
            list[str]: Host identities with blanks removed.
        """
        if isinstance(v, str):
            v = v.split(",")
        return [h.strip() for h in v if h and h.strip()]

    @field_validator("max_batch")
    @classmethod
    def check_max_batch(cls, v: int) -> int:
        """Reject batch sizes below 1.

        Raises:
            ValueError: If v < 1.
        """
        if v < 1:
            raise ValueError(f"max_batch must be >= 1, got {v}")
        return v

    @field_validator("timeout")
    @classmethod
    def check_timeout(cls, v: float | None) -> float | None:
        """Reject non-positive timeouts.

        Raises:
            ValueError: If v is not None and v <= 0.
        """
        if v is not None and v <= 0:
            raise ValueError(f"timeout must be > 0, got {v}")
        return v


def load_config(path: Path | None = None) -> ShellConfig:
    """Load dispatch defaults from a TOML file.

    The file holds the ShellConfig keys at top level, e.g.::

        hosts = ["node1", "node2"]   # or "node1,node2"
        max_batch = 20
        monitor = false
        timeout = 30

    The CLI uses these when --hosts, --batch, --quiet or --timeout are not
    given. A missing file yields ShellConfig() defaults: monitoring on, 50
    hosts per batch, no timeout and no hosts.

    Args:
        path: Path to the config file. Defaults to ~/.config/distsh/config.toml.

    Returns:
        ShellConfig: The loaded and validated configuration.

    Raises:
        pydantic.ValidationError: If the config file contains invalid values.
    """
    config_path = path or DEFAULT_CONFIG_PATH

    if not config_path.exists():
        return ShellConfig()

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    return ShellConfig(**data)
