"""Import and refresh commands."""

import asyncio
import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..ingestion import BulkOperationResult, import_records
from .common import load_services

console = Console()


def print_bulk_result(result: BulkOperationResult, title: str = "Import Summary") -> None:
    """Print created/skipped/error counts."""
    table = Table(title=title)
    table.add_column("Created", style="green", justify="right")
    table.add_column("Skipped", style="yellow", justify="right")
    table.add_column("Errors", style="red", justify="right")
    table.add_column("Total", style="bold", justify="right")
    table.add_row(str(result.created), str(result.skipped), str(result.errors), str(result.total))
    console.print(table)

    if result.failed_guids:
        console.print("\n[bold red]Failed articles:[/bold red]")
        for guid in result.failed_guids:
            console.print(f"  - {guid}")


def import_command(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file with a list of article records"),
) -> None:
    """Import article records exported by a feed poller."""
    try:
        with open(path) as f:
            records = json.load(f)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {path}: {e}[/red]")
        raise typer.Exit(1)

    if not isinstance(records, list):
        console.print("[red]Expected a JSON list of article records.[/red]")
        raise typer.Exit(1)

    services = load_services()
    try:
        result = import_records(services.engine, records)
    finally:
        services.close()

    print_bulk_result(result)
    if result.errors:
        raise typer.Exit(1)


def refresh_command() -> None:
    """Poll every enabled feed now and store new articles."""
    services = load_services()

    try:
        outcomes = asyncio.run(services.refresher.refresh_all())
    finally:
        services.close()

    if not outcomes:
        console.print("[yellow]No enabled feeds.[/yellow]")
        return

    table = Table(title="Refresh Summary")
    table.add_column("Feed", style="cyan")
    table.add_column("Items", justify="right")
    table.add_column("Created", style="green", justify="right")
    table.add_column("Skipped", style="yellow", justify="right")
    table.add_column("Errors", style="red", justify="right")
    table.add_column("Status")

    failed = 0
    for result, stats in outcomes:
        if not result.success:
            failed += 1
        table.add_row(
            result.feed_id,
            str(result.item_count),
            str(stats.created),
            str(stats.skipped),
            str(stats.errors),
            "[green]ok[/green]" if result.success else f"[red]{result.error}[/red]",
        )

    console.print(table)
    if failed == len(outcomes):
        raise typer.Exit(1)
