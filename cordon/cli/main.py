"""CLI entry point.

Provides the main CLI application with commands for:
- build: Print the bwrap argv for a command
- run: Run a command inside the sandbox
- check: Report whether the sandbox helper is usable
- version: Show version information
"""

import asyncio
import json
from typing import Annotated, Any, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from cordon import __version__
from cordon.exceptions import (
    InvalidArgumentError,
    ProcessFailedError,
    ProcessTimedOutError,
    SandboxUnavailableError,
)
from cordon.logging_config import configure_logging
from cordon.sandbox.runner import SandboxRunner
from cordon.settings import get_settings

app = typer.Typer(
    name="cordon",
    help="Run commands inside a bubblewrap sandbox",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)

EXIT_INVALID_ARGUMENT = 2
EXIT_SANDBOX_UNAVAILABLE = 3
EXIT_TIMEOUT = 124


@app.callback()
def main(
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="DEBUG, INFO, WARNING or ERROR"),
    ] = None,
) -> None:
    """Configure logging before any command runs."""
    level = log_level.upper() if log_level else None
    if level is not None and level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        raise typer.BadParameter(f"Unknown log level '{log_level}'", param_hint="--log-level")
    configure_logging(level)  # type: ignore[arg-type]


def parse_bind_spec(spec: str) -> str | dict[str, Any]:
    """Parse a --bind value.

    ``PATH`` binds PATH read-only onto itself, ``SRC:DST`` binds SRC
    read-only at DST and ``SRC:DST:rw`` binds it writable.
    """
    parts = spec.split(":")
    if len(parts) == 1:
        return spec
    if len(parts) == 2:
        return {"from": parts[0], "to": parts[1], "read_only": True}
    if len(parts) == 3 and parts[2] in ("ro", "rw"):
        return {"from": parts[0], "to": parts[1], "read_only": parts[2] == "ro"}
    raise typer.BadParameter(f"Invalid bind '{spec}'. Use PATH, SRC:DST or SRC:DST:rw")


def exit_status(returncode: int | None) -> int:
    """Shell-style exit status for a failed child: 128 + N when killed by signal N."""
    if returncode is None or returncode == 0:
        return 1
    if returncode < 0:
        return 128 - returncode
    return returncode


def parse_env_pairs(pairs: list[str]) -> dict[str, str]:
    env: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Invalid environment variable '{pair}'. Use KEY=VALUE")
        env[key] = value
    return env


BindOption = Annotated[
    Optional[list[str]],
    typer.Option("--bind", "-b", help="Extra bind: PATH, SRC:DST or SRC:DST:rw"),
]
CommandArgument = Annotated[
    list[str],
    typer.Argument(help="Command to run inside the sandbox (put it after --)"),
]


@app.command()
def build(
    command: CommandArgument,
    bind: BindOption = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the argv as a JSON array"),
    ] = False,
) -> None:
    """Print the bwrap command line for COMMAND without running it."""
    runner = SandboxRunner.from_settings()
    binds = [parse_bind_spec(spec) for spec in bind or []]

    try:
        argv = runner.build(command, binds)
    except SandboxUnavailableError as e:
        err_console.print(f"[red]Sandbox unavailable:[/red] {e}")
        raise typer.Exit(EXIT_SANDBOX_UNAVAILABLE) from e
    except InvalidArgumentError as e:
        err_console.print(f"[red]Invalid argument:[/red] {e}")
        raise typer.Exit(EXIT_INVALID_ARGUMENT) from e

    if as_json:
        console.print_json(json.dumps(argv))
    else:
        for token in argv:
            console.print(token, markup=False, highlight=False, soft_wrap=True)


@app.command()
def run(
    command: CommandArgument,
    bind: BindOption = None,
    workdir: Annotated[
        Optional[str],
        typer.Option("--workdir", "-w", help="Working directory for the bwrap process"),
    ] = None,
    env: Annotated[
        Optional[list[str]],
        typer.Option("--env", "-e", help="Extra environment variable KEY=VALUE"),
    ] = None,
    timeout: Annotated[
        Optional[float],
        typer.Option("--timeout", "-t", help="Seconds before the process is killed"),
    ] = None,
    expose_env: Annotated[
        bool,
        typer.Option("--expose-env", help="Show the environment passed to the process"),
    ] = False,
) -> None:
    """Run COMMAND inside the sandbox and exit with its status."""
    settings = get_settings()
    runner = SandboxRunner.from_settings(settings)
    binds = [parse_bind_spec(spec) for spec in bind or []]
    env_vars = parse_env_pairs(env) if env else None

    try:
        result = asyncio.run(
            runner.run(
                command,
                extra_binds=binds,
                working_dir=workdir,
                env=env_vars,
                timeout=timeout if timeout is not None else settings.sandbox_timeout_seconds,
                options={"expose_environment": expose_env},
            )
        )
    except SandboxUnavailableError as e:
        err_console.print(f"[red]Sandbox unavailable:[/red] {e}")
        raise typer.Exit(EXIT_SANDBOX_UNAVAILABLE) from e
    except InvalidArgumentError as e:
        err_console.print(f"[red]Invalid argument:[/red] {e}")
        raise typer.Exit(EXIT_INVALID_ARGUMENT) from e
    except ProcessTimedOutError as e:
        err_console.print(f"[red]Timed out:[/red] {e}")
        raise typer.Exit(EXIT_TIMEOUT) from e
    except ProcessFailedError as e:
        if e.stdout:
            console.out(e.stdout, end="")
        if e.stderr:
            err_console.out(e.stderr, end="")
        raise typer.Exit(exit_status(e.returncode)) from e

    if result.stdout:
        console.out(result.stdout, end="")
    if result.stderr:
        err_console.out(result.stderr, end="")

    if expose_env:
        table = Table(title="Environment", show_header=True)
        table.add_column("Variable", style="cyan")
        table.add_column("Value")
        for key, value in sorted(result.get_env().items()):
            table.add_row(key, value)
        err_console.print(table)


@app.command()
def check() -> None:
    """Show whether the sandbox helper can be used on this host."""
    runner = SandboxRunner.from_settings()
    status = runner.check_runtime()

    table = Table(title="Sandbox Runtime", show_header=True)
    table.add_column("Check", style="cyan")
    table.add_column("Result")
    table.add_row("Binary", status["binary"])
    table.add_row(
        "Available",
        "[green]yes[/green]" if status["binary_available"] else "[red]no[/red]",
    )
    table.add_row("/lib64 bound", "yes" if status["lib64_bound"] else "no")
    console.print(table)

    for error in status["errors"]:
        console.print(f"[yellow]• {error}[/yellow]")

    if not status["binary_available"]:
        raise typer.Exit(EXIT_SANDBOX_UNAVAILABLE)


@app.command()
def version() -> None:
    """Show Cordon version information."""
    console.print(
        Panel(
            f"[bold]Cordon[/bold] v{__version__}\n"
            "Validated bubblewrap sandbox invocations",
            title="Version",
            border_style="blue",
        )
    )


# Entry point for: python -m cordon.cli.main
if __name__ == "__main__":
    app()
