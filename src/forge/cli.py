"""Forge error tooling CLI.

Commands:
    kinds     List every error kind with its domain and recovery eligibility
    classify  Classify an error message the way the resilience layer would
    backoff   Show the delay schedule of a retry policy
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from forge import __version__
from forge.core.config import ResilienceConfig, RetryPolicy
from forge.core.errors import ErrorDomain, ErrorKind, normalize
from forge.core.logging import configure_logging
from forge.execution import FALLBACK_KINDS, RETRYABLE_KINDS, calculate_delay

console = Console()

app = typer.Typer(
    name="forge-errors",
    help="Inspect Forge error classification and retry behavior",
    add_completion=False,
)


def _check(flag: bool) -> str:
    return "[green]✓[/green]" if flag else "[dim]-[/dim]"


# =============================================================================
# Global options
# =============================================================================


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"Forge Resilience v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    log_level: Annotated[
        str,
        typer.Option(
            "--log-level",
            "-L",
            help="Logging level (DEBUG, INFO, WARNING, ERROR)",
            envvar="FORGE_LOG_LEVEL",
        ),
    ] = "WARNING",
    log_format: Annotated[
        str,
        typer.Option(
            "--log-format",
            help="Log format: json, console, or both",
            envvar="FORGE_LOG_FORMAT",
        ),
    ] = "console",
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            help="Path for log file output (required for --log-format both)",
            envvar="FORGE_LOG_FILE",
        ),
    ] = None,
) -> None:
    """Forge Resilience - error classification and recovery tooling."""
    level = log_level.upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        console.print(f"[red]Invalid log level:[/red] {escape(log_level)}")
        raise typer.Exit(2)
    if log_format not in ("json", "console", "both"):
        console.print(f"[red]Invalid log format:[/red] {escape(log_format)}")
        raise typer.Exit(2)

    try:
        configure_logging(level=level, format=log_format, file_path=log_file)  # type: ignore[arg-type]
    except ValueError as e:
        console.print(f"[red]Cannot configure logging:[/red] {escape(str(e))}")
        raise typer.Exit(2) from None


# =============================================================================
# Commands
# =============================================================================


@app.command()
def kinds(
    domain: Annotated[
        str | None,
        typer.Option("--domain", "-d", help="Only show kinds of this domain"),
    ] = None,
) -> None:
    """List every error kind with its domain and recovery eligibility."""
    selected: ErrorDomain | None = None
    if domain is not None:
        try:
            selected = ErrorDomain(domain.lower())
        except ValueError:
            valid = ", ".join(d.value for d in ErrorDomain)
            console.print(f"[red]Unknown domain:[/red] {escape(domain)} (expected one of: {valid})")
            raise typer.Exit(2) from None

    table = Table(title="Error Kinds", show_header=True, header_style="bold")
    table.add_column("Kind", style="cyan")
    table.add_column("Domain")
    table.add_column("Retry", justify="center")
    table.add_column("Fallback", justify="center")

    for kind in ErrorKind:
        if selected is not None and kind.domain != selected:
            continue
        table.add_row(
            kind.value,
            kind.domain.value,
            _check(kind in RETRYABLE_KINDS),
            _check(kind in FALLBACK_KINDS),
        )

    console.print(table)


@app.command()
def classify(
    message: str = typer.Argument(..., help="Error message to classify"),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output the classification as JSON",
    ),
) -> None:
    """Classify an error message the way the resilience layer would.

    The message is wrapped in a plain exception and normalized, exactly as a
    failing operation raising it would be inside with_retry or with_fallback.
    """
    error = normalize(Exception(message))
    retryable = error.recoverable and error.kind in RETRYABLE_KINDS
    fallback = error.kind in FALLBACK_KINDS

    if json_output:
        console.print_json(
            data={
                "kind": error.kind.value,
                "domain": error.kind.domain.value,
                "message": error.message,
                "recoverable": error.recoverable,
                "retryable": retryable,
                "fallback": fallback,
            }
        )
        return

    table = Table(show_header=False, box=None)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Kind", f"[cyan]{error.kind.value}[/cyan]")
    table.add_row("Domain", error.kind.domain.value)
    table.add_row("Recoverable", _check(error.recoverable))
    table.add_row("Retried", _check(retryable))
    table.add_row("Falls back", _check(fallback))
    console.print(table)


@app.command()
def backoff(
    config_file: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="YAML file with a 'retry' section",
            exists=True,
            readable=True,
        ),
    ] = None,
    attempts: Annotated[
        int | None, typer.Option("--attempts", "-n", help="Override max_attempts")
    ] = None,
    initial_delay: Annotated[
        float | None, typer.Option("--initial-delay", help="Override initial_delay (seconds)")
    ] = None,
    max_delay: Annotated[
        float | None, typer.Option("--max-delay", help="Override max_delay (seconds)")
    ] = None,
    multiplier: Annotated[
        float | None, typer.Option("--multiplier", help="Override backoff_multiplier")
    ] = None,
) -> None:
    """Show the delay schedule of a retry policy.

    Exit codes:
      0: Schedule printed
      2: Config file unreadable or policy invalid
    """
    base = RetryPolicy()
    if config_file is not None:
        try:
            base = ResilienceConfig.from_yaml(config_file).retry
        except (OSError, yaml.YAMLError, ValidationError) as e:
            console.print(f"[red]Cannot load config:[/red] {escape(str(e))}")
            raise typer.Exit(2) from None

    overrides = {
        "max_attempts": attempts,
        "initial_delay": initial_delay,
        "max_delay": max_delay,
        "backoff_multiplier": multiplier,
    }
    try:
        policy = RetryPolicy.model_validate(
            {**base.model_dump(), **{k: v for k, v in overrides.items() if v is not None}}
        )
    except ValidationError as e:
        console.print(f"[red]Invalid retry policy:[/red] {escape(str(e))}")
        raise typer.Exit(2) from None

    table = Table(title="Retry Schedule", show_header=True, header_style="bold")
    table.add_column("After attempt", justify="right", style="cyan")
    table.add_column("Delay (s)", justify="right")
    table.add_column("Elapsed (s)", justify="right", style="dim")

    elapsed = 0.0
    for attempt in range(policy.max_attempts - 1):
        delay = calculate_delay(attempt, policy)
        elapsed += delay
        table.add_row(str(attempt + 1), f"{delay:.2f}", f"{elapsed:.2f}")

    console.print(
        f"max_attempts={policy.max_attempts} initial_delay={policy.initial_delay} "
        f"max_delay={policy.max_delay} backoff_multiplier={policy.backoff_multiplier}"
    )
    if policy.max_attempts == 1:
        console.print("[dim]Single attempt: no retries are scheduled.[/dim]")
    else:
        console.print(table)


if __name__ == "__main__":
    app()
