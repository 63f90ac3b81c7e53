"""Init command implementation."""

from pathlib import Path
from typing import List

import typer
from rich.console import Console
from rich.panel import Panel

from ..config import Config, ConfigModel, FeedConfig, default_config_path, save_config, save_feeds
from ..db import Database, init_database, validate_connection

console = Console()


def create_default_feeds() -> List[FeedConfig]:
    """A few general technology feeds to start from."""
    return [
        FeedConfig(id="hn", name="Hacker News", url="https://news.ycombinator.com/rss"),
        FeedConfig(id="ars", name="Ars Technica", url="https://feeds.arstechnica.com/arstechnica/index"),
        FeedConfig(id="verge", name="The Verge", url="https://www.theverge.com/rss/index.xml"),
        FeedConfig(id="techcrunch", name="TechCrunch", url="https://techcrunch.com/feed/"),
    ]


def init_command(
    config_dir: Path = typer.Option(
        default_config_path().parent,
        "--config-dir",
        "-c",
        help="Configuration directory",
    ),
    storage: str = typer.Option("postgres", "--storage", help="Storage backend (postgres, memory)"),
    db_host: str = typer.Option("localhost", "--db-host", help="Postgres host"),
    db_port: int = typer.Option(5432, "--db-port", help="Postgres port"),
    db_name: str = typer.Option("rssletter", "--db-name", help="Database name"),
    db_user: str = typer.Option("rssletter", "--db-user", help="Database user"),
    seed_feeds: bool = typer.Option(
        True,
        "--seed-feeds/--no-seed-feeds",
        help="Seed a few default feeds",
    ),
) -> None:
    """Initialize rssletter configuration and database."""
    console.print(Panel.fit("rssletter - Initialization", style="bold blue"))

    if storage not in ("postgres", "memory"):
        console.print(f"[red]Unknown storage backend: {storage}[/red]")
        raise typer.Exit(1)

    config_dir.mkdir(parents=True, exist_ok=True)
    config_path = config_dir / "config.yaml"
    feeds_path = config_dir / "feeds.yaml"

    config = ConfigModel(
        storage=storage,
        postgres={
            "host": db_host,
            "port": db_port,
            "database": db_name,
            "user": db_user,
            "password_env": "RSSLETTER_DB_PASSWORD",
        },
    )

    save_config(config, config_path)
    console.print(f"✅ Created config: {config_path}")

    feeds = create_default_feeds() if seed_feeds else []
    save_feeds(feeds, feeds_path)
    console.print(f"✅ Created feeds: {feeds_path} ({len(feeds)} feeds)")

    if storage == "postgres":
        console.print("\n[bold]Testing database connection...[/bold]")
        database = Database(Config(config_path, config=config).get_db_config())
        try:
            if not validate_connection(database):
                console.print(
                    "[red]❌ Database connection failed![/red]\n"
                    "Please ensure Postgres is running and credentials are correct.\n"
                    "Set the password via environment variable: "
                    "[bold]export RSSLETTER_DB_PASSWORD=your_password[/bold]"
                )
                raise typer.Exit(1)
            console.print("✅ Database connection successful")

            console.print("\n[bold]Initializing database schema...[/bold]")
            try:
                init_database(database)
            except Exception as e:
                console.print(f"[red]❌ Failed to initialize database: {e}[/red]")
                raise typer.Exit(1)
            console.print("✅ Database schema initialized")
        finally:
            database.close()

    console.print(
        Panel(
            f"[green]✅ rssletter initialized successfully![/green]\n\n"
            f"Configuration: {config_path}\n"
            f"Feeds: {feeds_path}\n\n"
            f"Next steps:\n"
            f"1. Set database password: [bold]export RSSLETTER_DB_PASSWORD=your_password[/bold]\n"
            f"2. Set LLM API key: [bold]export OPENAI_API_KEY=your_key[/bold]\n"
            f"3. Run: [bold]rssletter refresh[/bold] then [bold]rssletter generate[/bold]",
            style="green",
        )
    )
