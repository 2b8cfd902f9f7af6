"""
YieldFetch CLI - Main entry point.

Downloads the US Treasury daily yield curve XML files, one per year.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.traceback import install as install_rich_traceback

from yieldfetch import __app_name__, __version__
from yieldfetch.core.config import (
    AppConfig,
    ConfigError,
    RetryPolicy,
    load_app_config,
    write_default_config,
)
from yieldfetch.core.logging import setup_logging

# Load environment variables from .env (if present)
load_dotenv()

install_rich_traceback(show_locals=False, width=120)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name=__app_name__,
    help="US Treasury yield curve downloader",
    rich_markup_mode="rich",
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]{__app_name__}[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """YieldFetch - US Treasury yield curve downloader."""
    pass


def _load_config(config_path: Optional[Path], **overrides) -> AppConfig:
    """Load configuration and apply command line overrides."""
    try:
        config = load_app_config(config_path)
        return config.with_overrides(**overrides)
    except ConfigError as e:
        err_console.print(f"[red]Error loading config:[/red] {e}")
        if e.details:
            err_console.print(f"[dim]{e.details}[/dim]")
        raise typer.Exit(2)
    except ValueError as e:
        err_console.print(f"[red]Invalid option:[/red] {e}")
        raise typer.Exit(2)


# =============================================================================
# Download Command
# =============================================================================


@app.command()
def download(
    destination: Optional[Path] = typer.Argument(
        None,
        help="Destination directory (overrides config)",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file (default: ./yieldfetch.yaml if present)",
    ),
    max_attempts: Optional[int] = typer.Option(
        None,
        "--max-attempts",
        "-n",
        help="Attempt ceiling; at most N-1 attempts run",
    ),
    first_year: Optional[int] = typer.Option(
        None,
        "--first-year",
        help="First year to download",
    ),
    retry_policy: Optional[RetryPolicy] = typer.Option(
        None,
        "--retry-policy",
        help="Where a new attempt starts after a failure",
        case_sensitive=False,
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Abort the whole run after this many seconds",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level (DEBUG, INFO, WARNING, ERROR)",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Write JSON logs to this file",
    ),
) -> None:
    """Download every yearly yield curve file.

    Examples:
        yieldfetch download data/yieldcurves
        yieldfetch download --config yieldfetch.yaml --max-attempts 3
    """
    from yieldfetch.core.orchestrator import run_download

    config = _load_config(
        config_path,
        destination_dir=destination,
        max_attempts=max_attempts,
        retry_policy=retry_policy,
        source__first_year=first_year,
        logging__level=log_level,
        logging__file=log_file,
    )

    setup_logging(
        level=config.logging.level,
        log_file=config.logging.file,
        json_format=config.logging.json_format,
        rich_console=config.logging.rich_console,
    )

    try:
        result = asyncio.run(run_download(config, timeout=timeout))
    except (asyncio.TimeoutError, TimeoutError):
        err_console.print(f"[red]Download timed out after {timeout}s[/red]")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        err_console.print("[yellow]Download interrupted[/yellow]")
        raise typer.Exit(130)

    summary = result.to_dict()
    table = Table(title="Download Summary", show_header=True, header_style="bold magenta")
    table.add_column("Field", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("State", summary["state"])
    table.add_row("Attempts", f"{summary['attempts']} (ceiling {summary['max_attempts']})")
    table.add_row("Requests", str(summary["requests"]))
    table.add_row("Files published", str(summary["published"]))
    if summary["duration_seconds"] is not None:
        table.add_row("Duration", f"{summary['duration_seconds']:.1f}s")
    if summary["last_error"]:
        error = summary["last_error"]
        table.add_row("Last error", f"{error['kind']} on {error['year']}: {error['message']}")
    console.print(table)

    if not result.ok:
        raise typer.Exit(1)


# =============================================================================
# Plan Command
# =============================================================================


@app.command()
def plan(
    destination: Optional[Path] = typer.Argument(
        None,
        help="Destination directory (overrides config)",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file",
    ),
) -> None:
    """Show the years, URLs and files a download would touch."""
    from yieldfetch.core.fetch.years import build_url, destination_name, fetch_range

    config = _load_config(config_path, destination_dir=destination)

    table = Table(title="Download Plan", show_header=True, header_style="bold magenta")
    table.add_column("Year", style="cyan")
    table.add_column("URL")
    table.add_column("Destination")
    table.add_column("Exists", justify="center")

    for year in fetch_range(config.source.first_year):
        target = config.destination_dir / destination_name(year)
        table.add_row(
            str(year),
            build_url(year, config.source.base_url, config.source.dataset),
            str(target),
            "[green]yes[/green]" if target.exists() else "[dim]no[/dim]",
        )

    console.print(table)


# =============================================================================
# Init Command
# =============================================================================


@app.command()
def init(
    path: Path = typer.Option(
        Path("yieldfetch.yaml"),
        "--path",
        "-p",
        help="Where to write the configuration file",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration",
    ),
) -> None:
    """Write a default configuration file."""
    try:
        written = write_default_config(path, force=force)
    except ConfigError as e:
        err_console.print(f"[red]{e}[/red] (use --force to overwrite)")
        raise typer.Exit(1)

    console.print(Panel.fit(
        f"[bold green]OK - configuration written to[/bold green] [cyan]{written}[/cyan]\n\n"
        "Next steps:\n"
        "  1. Review the destination directory and retry settings\n"
        f"  2. Preview the run: [yellow]{__app_name__} plan[/yellow]\n"
        f"  3. Download: [yellow]{__app_name__} download[/yellow]",
        title="[bold]Initialization Complete[/bold]",
        border_style="green",
    ))


# =============================================================================
# Entry Point
# =============================================================================


def run() -> None:
    """Run the CLI application."""
    app()


if __name__ == "__main__":
    run()
