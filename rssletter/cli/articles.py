"""Articles command implementation."""

from typing import List, Optional

import typer
from rich.console import Console

from ..ranking import print_articles_table
from .common import load_services, parse_window

console = Console()


def articles_command(
    feeds: Optional[List[str]] = typer.Option(None, "--feed", "-f", help="Feed id (repeatable). Default: all feeds"),
    start: Optional[str] = typer.Option(None, "--start", help="Window start. Default: 7 days before --end"),
    end: Optional[str] = typer.Option(None, "--end", help="Window end. Default: now"),
    limit: int = typer.Option(100, "--limit", "-l", help="Maximum articles to show", min=1),
) -> None:
    """Show stored articles in a window, newest first, with source counts."""
    start_date, end_date = parse_window(start, end)
    services = load_services()

    try:
        feed_ids = feeds or [feed.id for feed in services.config.get_feeds()]
        if not feed_ids:
            console.print("[yellow]No feeds configured.[/yellow]")
            return
        scored = services.retriever.retrieve(feed_ids, start_date, end_date, limit)
    finally:
        services.close()

    if not scored:
        console.print("[yellow]No articles in this window.[/yellow]")
        return

    print_articles_table(scored)
