"""Helpers shared by CLI commands."""

from datetime import datetime
from typing import Optional, Tuple

import pendulum
import typer
from rich.console import Console

from ..config import Config
from ..pipeline import Services, build_services

console = Console()

DEFAULT_WINDOW_DAYS = 7


def load_services() -> Services:
    """Load config and build services, exiting with a hint on failure."""
    config = Config()
    try:
        return build_services(config)
    except FileNotFoundError:
        console.print("[red]Configuration not found. Run 'rssletter init' first.[/red]")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


def parse_window(start: Optional[str], end: Optional[str]) -> Tuple[datetime, datetime]:
    """Parse CLI dates; defaults to the last seven days."""
    try:
        end_date = pendulum.parse(end) if end else pendulum.now("UTC")
        start_date = pendulum.parse(start) if start else end_date.subtract(days=DEFAULT_WINDOW_DAYS)
    except ValueError as e:
        console.print(f"[red]Invalid date: {e}[/red]")
        raise typer.Exit(1)

    if start_date > end_date:
        console.print("[red]--start must not be after --end[/red]")
        raise typer.Exit(1)

    return start_date, end_date
