"""distsh CLI entry point."""

import asyncio
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from distsh import __version__
from distsh.config import ShellConfig, load_config
from distsh.errors import DispatchError, TransportNotFound
from distsh.shell import DistShell


app = typer.Typer(
    name="distsh",
    help="distsh: Run a command or fetch a file on many hosts in batches.",
    no_args_is_help=True,
)

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"distsh {__version__}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    """Route library logging to stderr through rich.

    Args:
        verbose: Log at DEBUG instead of WARNING.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """distsh: Run a command or fetch a file on many hosts in batches."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config()


def _build_shell(
    config: ShellConfig,
    hosts: Optional[str],
    batch: Optional[int],
    timeout: Optional[float],
    quiet: bool,
) -> DistShell:
    """Apply command-line overrides on top of the loaded config.

    Raises:
        typer.Exit: If no hosts are given or an override is invalid.
    """
    overrides: dict = {}
    if hosts is not None:
        overrides["hosts"] = hosts
    if batch is not None:
        overrides["max_batch"] = batch
    if timeout is not None:
        overrides["timeout"] = timeout
    if quiet:
        overrides["monitor"] = False

    try:
        # Reason: model_copy(update=...) skips validation, so re-validate
        # through the constructor to reject e.g. --batch 0.
        config = ShellConfig(**{**config.model_dump(), **overrides})
    except ValueError as exc:
        err_console.print(f"Error: {exc}", markup=False)
        raise typer.Exit(code=1)

    if not config.hosts:
        err_console.print("Error: no hosts given. Use --hosts or set hosts in the config file.")
        raise typer.Exit(code=1)

    try:
        return DistShell(config.hosts, config=config, console=console)
    except ValueError as exc:
        err_console.print(f"Error: {exc}", markup=False)
        raise typer.Exit(code=1)


def _dispatch(coro) -> int:
    """Run a dispatch coroutine and return the exit code.

    Raises:
        typer.Exit: If a transport executable is missing.
    """
    try:
        asyncio.run(coro)
    except TransportNotFound as exc:
        err_console.print(f"Error: {exc}", markup=False)
        raise typer.Exit(code=1)
    except DispatchError as exc:
        err_console.print(f"Failed hosts: {exc}", markup=False)
        return 1
    return 0


@app.command("run", context_settings={"allow_interspersed_args": False})
def run_cmd(
    ctx: typer.Context,
    cmd: str = typer.Argument(..., help="Command to run on every host."),
    args: Optional[list[str]] = typer.Argument(None, help="Command arguments."),
    hosts: Optional[str] = typer.Option(None, "--hosts", "-H", help="Comma-separated host list."),
    batch: Optional[int] = typer.Option(None, "--batch", "-b", help="Max hosts in flight at once."),
    timeout: Optional[float] = typer.Option(None, "--timeout", "-t", help="Per-host timeout in seconds."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Don't print per-host status lines."),
    dump: bool = typer.Option(True, "--dump/--no-dump", help="Print each host's output afterwards."),
) -> None:
    """Run a command on every host.

    Hosts are dispatched in batches; each batch finishes before the next one
    starts. Exits 1 and lists the failed hosts if any host failed.

    Args:
        ctx: Typer context carrying the loaded config.
        cmd: Command to run.
        args: Arguments passed to the command.
        hosts: Comma-separated hosts. Defaults to hosts from the config file.
        batch: Override for max_batch.
        timeout: Override for the per-host timeout.
        quiet: Disable the per-host status stream.
        dump: Print all captured output after the dispatch settles.
    """
    config: ShellConfig = ctx.obj["config"]
    shell = _build_shell(config, hosts, batch, timeout, quiet)

    code = _dispatch(shell.execute_all(cmd, *(args or [])))
    if dump:
        shell.dump_all_stdout()
    if code:
        raise typer.Exit(code=code)


@app.command("get")
def get_cmd(
    ctx: typer.Context,
    remote_path: str = typer.Argument(..., help="File path on each host."),
    destination: str = typer.Argument(..., help="Local destination file or directory."),
    hosts: Optional[str] = typer.Option(None, "--hosts", "-H", help="Comma-separated host list."),
    batch: Optional[int] = typer.Option(None, "--batch", "-b", help="Max hosts in flight at once."),
    timeout: Optional[float] = typer.Option(None, "--timeout", "-t", help="Per-host timeout in seconds."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Don't print per-host status lines."),
) -> None:
    """Copy a file from every host into a local destination.

    Every host copies into the same destination, so point it at a
    directory or run once per host when the file names collide.
    """
    config: ShellConfig = ctx.obj["config"]
    shell = _build_shell(config, hosts, batch, timeout, quiet)
    code = _dispatch(shell.get_file(remote_path, destination))
    if code:
        raise typer.Exit(code=code)
