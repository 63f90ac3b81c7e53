"""Feed management commands."""

import typer
from rich.console import Console
from rich.table import Table

from ..config import Config, FeedConfig, load_feeds, save_feeds

console = Console()
feeds_app = typer.Typer(help="Manage RSS feeds")


@feeds_app.command("list")
def feeds_list() -> None:
    """List all configured feeds."""
    config = Config()

    try:
        feeds = load_feeds(config.feeds_path)
    except FileNotFoundError:
        console.print("[red]Feeds file not found. Run 'rssletter init' first.[/red]")
        raise typer.Exit(1)

    if not feeds:
        console.print("[yellow]No feeds configured.[/yellow]")
        return

    table = Table(title="Configured Feeds")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="magenta")
    table.add_column("Refresh", style="green", justify="right")
    table.add_column("Enabled", style="yellow")
    table.add_column("URL", style="blue")

    for feed in feeds:
        table.add_row(
            feed.id,
            feed.name,
            f"{feed.refresh_interval_minutes}m",
            "✓" if feed.enabled else "✗",
            feed.url,
        )

    console.print(table)


@feeds_app.command("add")
def feeds_add(
    feed_id: str = typer.Option(..., "--id", help="Stable feed identifier"),
    name: str = typer.Option(..., "--name", "-n", help="Feed name"),
    url: str = typer.Option(..., "--url", "-u", help="RSS feed URL"),
    refresh_interval: int = typer.Option(
        60,
        "--refresh-interval",
        "-r",
        help="Minimum minutes between polls",
        min=1,
    ),
) -> None:
    """Add a new RSS feed."""
    config = Config()

    try:
        feeds = load_feeds(config.feeds_path)
    except FileNotFoundError:
        feeds = []

    if any(f.id == feed_id or f.url == url for f in feeds):
        console.print(f"[red]Feed '{feed_id}' or URL already exists.[/red]")
        raise typer.Exit(1)

    feeds.append(
        FeedConfig(
            id=feed_id,
            name=name,
            url=url,
            enabled=True,
            refresh_interval_minutes=refresh_interval,
        )
    )
    save_feeds(feeds, config.feeds_path)

    console.print(f"[green]✅ Added feed: {feed_id}[/green]")


@feeds_app.command("remove")
def feeds_remove(
    feed_id: str = typer.Argument(..., help="Feed id to remove"),
) -> None:
    """Remove a feed. Articles already stored keep their feed ids."""
    config = Config()

    try:
        feeds = load_feeds(config.feeds_path)
    except FileNotFoundError:
        console.print("[red]Feeds file not found.[/red]")
        raise typer.Exit(1)

    remaining = [f for f in feeds if f.id != feed_id]

    if len(remaining) == len(feeds):
        console.print(f"[red]Feed '{feed_id}' not found.[/red]")
        raise typer.Exit(1)

    save_feeds(remaining, config.feeds_path)
    console.print(f"[green]✅ Removed feed: {feed_id}[/green]")
