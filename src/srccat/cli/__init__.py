"""
CLI for srccat.

Lists and prints the source files of a directory, respecting .gitignore and
skipping files that are rarely worth reading.
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from srccat.core.config import LoggingConfig, SrccatConfig, load_config
from srccat.core.errors import SrccatError
from srccat.core.models import OutputFormat
from srccat.services.formatters import render
from srccat.services.progress import ProgressReporter
from srccat.services.scan_service import scan_directory

# Status console: progress, log records and errors. stdout is reserved for output.
console = Console(stderr=True)

app = typer.Typer(
    name="srccat",
    help=(
        "List and display contents of source code files in a directory, "
        "respecting .gitignore and excluding unnecessary files"
    ),
    add_completion=False,
)


def _configure_logging(cfg: LoggingConfig, verbose: bool) -> None:
    """Route srccat log records to the status console."""
    package_logger = logging.getLogger("srccat")
    for handler in list(package_logger.handlers):
        if isinstance(handler, RichHandler):
            package_logger.removeHandler(handler)

    handler = RichHandler(console=console, show_path=False, show_time=False)
    handler.setFormatter(logging.Formatter(cfg.format))
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else cfg.level.upper())


def _load_settings(config_path: Optional[Path]) -> SrccatConfig:
    try:
        return load_config(config_path)
    except (OSError, ValueError, TypeError) as e:
        console.print(f"[bold red]Error:[/bold red] invalid configuration: {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def main(
    directory: Path = typer.Option(..., "--dir", "-d", help="Directory to process"),
    output_format: OutputFormat = typer.Option(
        OutputFormat.TEXT, "--format", "-f", help="Output format", case_sensitive=False
    ),
    list_only: bool = typer.Option(
        False, "--list", "-l", help="Output only the list of file names"
    ),
    exclude: Optional[list[str]] = typer.Option(
        None, "--exclude", "-e", help="Custom exclude patterns (e.g. '*.css', '*.md')"
    ),
    workers: Optional[int] = typer.Option(
        None, "--workers", "-w", min=1, help="Number of parallel workers"
    ),
    sort: bool = typer.Option(False, "--sort", help="Order output by path"),
    follow_symlinks: Optional[bool] = typer.Option(
        None,
        "--follow-symlinks/--no-follow-symlinks",
        help="Follow symlinks that stay inside the directory",
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Configuration file (.yaml, .yml or .json)"
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Do not print progress"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """List and display the contents of source files under a directory."""
    cfg = _load_settings(config_path)
    _configure_logging(cfg.logging, verbose)

    if list_only:
        output_format = OutputFormat.LIST
    if workers is not None:
        cfg.scan.max_workers = workers
        cfg.scan.max_in_flight = max(cfg.scan.max_in_flight, workers)
    if follow_symlinks is not None:
        cfg.scan.follow_symlinks = follow_symlinks

    reporter = ProgressReporter(
        console=Console(stderr=True, quiet=True) if quiet else console,
        interval=cfg.scan.progress_interval,
    )

    try:
        results = scan_directory(
            directory,
            output_format=output_format,
            exclude_patterns=exclude or [],
            config=cfg.scan,
            reporter=reporter,
        )
    except SrccatError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] invalid configuration: {escape(str(e))}")
        raise typer.Exit(1)

    records = results.sorted() if sort else results.records()
    render(records, output_format)
