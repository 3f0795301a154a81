"""Shared test fixtures for the distsh test suite."""

import shutil

import pytest


@pytest.fixture
def fake_which(monkeypatch):
    """Pretend ssh and scp are installed under /usr/bin.

    Records every program looked up so tests can assert on it.
    """

    class FakeWhich:
        def __init__(self):
            self.calls: list[str] = []
            self.missing: set[str] = set()

        def __call__(self, name: str, *args, **kwargs):
            self.calls.append(name)
            if name in self.missing:
                return None
            return f"/usr/bin/{name}"

    which = FakeWhich()
    monkeypatch.setattr(shutil, "which", which)
    yield which


@pytest.fixture
def tmp_config(tmp_path):
    """Create a temporary config.toml and return a ShellConfig.

    Args:
        tmp_path: pytest built-in fixture for temp directory.

    Returns:
        tuple: (ShellConfig, Path) - the loaded config and path to the config file.
    """
    config_dir = tmp_path / "distsh"
    config_dir.mkdir()
    config_file = config_dir / "config.toml"
    config_file.write_text(
        'hosts = ["node1", "node2"]\n'
        "monitor = false\n"
        "max_batch = 4\n"
    )
    from distsh.config import load_config
    config = load_config(config_file)
    yield config, config_file
