"""CLI main module for forksh."""

import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Optional

import typer
from loguru import logger

from forksh.cli.render import Renderer, create_cli_renderer
from forksh.config import get_settings
from forksh.core.shell import Shell
from forksh.errors import ConfigurationError, SpawnError

app = typer.Typer(
    name="forksh",
    help="A small fork/exec command interpreter.",
    add_completion=False,
    rich_markup_mode="rich",
)

LogLevelOption = typer.Option(None, "--log-level", help="Log level (overrides FORKSH_LOG_LEVEL)")


def _exit_code(status: int) -> int:
    """Map a shell status onto a process exit code."""
    return status & 0xFF


def _build_shell(log_level: Optional[str]) -> Shell:
    try:
        settings = get_settings(log_level)
    except ConfigurationError as e:
        typer.echo(f"forksh: invalid configuration: {e}", err=True)
        raise typer.Exit(2) from e
    return Shell(settings)


def run_lines(shell: Shell, lines: Iterable[str], last_status: int = 0) -> int:
    """Dispatch lines in order until one requests exit."""
    status = last_status
    for line in lines:
        result = shell.dispatch_line(line.rstrip("\n"), status)
        status = result.status
        if result.shell_should_exit:
            break
    return status


def _run_interactive(shell: Shell, renderer: Renderer) -> int:
    status = 0
    while True:
        try:
            line = renderer.get_user_input(shell.settings.prompt)
        except KeyboardInterrupt:
            continue
        except EOFError:
            renderer.info("Goodbye!")
            break

        try:
            result = shell.dispatch_line(line, status)
        except SpawnError as e:
            renderer.error(f"shell terminated: {e}")
            raise
        status = result.status
        if result.shell_should_exit:
            break
    return status


def _finish(status: int) -> None:
    raise typer.Exit(_exit_code(status))


@app.callback(invoke_without_command=True)
def main_callback(ctx: typer.Context) -> None:
    if ctx.invoked_subcommand is None:
        # Default to the interactive loop
        repl(log_level=None)


@app.command()
def repl(log_level: Optional[str] = LogLevelOption) -> None:
    """Start the interactive read loop."""
    shell = _build_shell(log_level)
    try:
        if sys.stdin.isatty():
            renderer = create_cli_renderer()
            renderer.welcome()
            status = _run_interactive(shell, renderer)
        else:
            status = run_lines(shell, sys.stdin)
    except SpawnError as e:
        logger.error("shell.terminate reason={}", e)
        raise typer.Exit(1) from e
    _finish(status)


@app.command()
def run(
    command: str = typer.Option(..., "-c", "--command", help="Command line to execute"),
    log_level: Optional[str] = LogLevelOption,
) -> None:
    """Run a single command line."""
    shell = _build_shell(log_level)
    try:
        result = shell.dispatch_line(command, 0)
    except SpawnError as e:
        logger.error("shell.terminate reason={}", e)
        raise typer.Exit(1) from e
    _finish(result.status)


@app.command()
def script(
    path: Path = typer.Argument(..., help="File with one command line per line"),
    log_level: Optional[str] = LogLevelOption,
) -> None:
    """Run each line of a script file."""
    shell = _build_shell(log_level)
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError as e:
        typer.echo(f"forksh: {path}: {e.strerror}", err=True)
        raise typer.Exit(1) from e

    try:
        status = run_lines(shell, lines)
    except SpawnError as e:
        logger.error("shell.terminate reason={}", e)
        raise typer.Exit(1) from e
    _finish(status)


if __name__ == "__main__":
    app()
