"""Main CLI application."""

import typer
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

from ..log import setup_logging
from .articles import articles_command
from .feeds import feeds_app
from .generate import generate_command
from .ingest import import_command, refresh_command
from .init import init_command
from .serve import serve_command

app = typer.Typer(
    name="rssletter",
    help="RSS deduplication and AI newsletter generation",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    setup_logging("DEBUG" if verbose else "INFO")


# Register commands
app.command("init")(init_command)
app.command("import")(import_command)
app.command("refresh")(refresh_command)
app.command("articles")(articles_command)
app.command("generate")(generate_command)
app.command("serve")(serve_command)
app.add_typer(feeds_app, name="feeds", help="Manage RSS feeds")


if __name__ == "__main__":
    app()
