"""Generate command implementation."""

import asyncio
from typing import List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console, Group
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich.text import Text

from ..errors import NewsletterValidationError
from ..generation import GenerationController, GenerationRequest, GenerationState, GenerationUpdate
from ..pipeline import Services
from .common import load_services, parse_window

console = Console()

STATE_STYLES = {
    GenerationState.IDLE: "dim",
    GenerationState.PREPARING: "yellow",
    GenerationState.STREAMING: "cyan",
    GenerationState.COMPLETE: "green",
    GenerationState.FAILED: "red",
}


def _bullets(items: List[str]) -> str:
    return "\n".join(f"{i}. {item}" for i, item in enumerate(items, 1))


def render_update(update: GenerationUpdate) -> Group:
    """Render the newsletter snapshot as it fills in."""
    newsletter = update.newsletter
    status = Text(f"● {update.state.value}", style=STATE_STYLES[update.state])
    if update.articles_found is not None:
        status.append(f"  ({update.articles_found} articles)", style="dim")

    parts = [status]
    if newsletter.get("suggestedTitles"):
        parts.append(Panel(_bullets(newsletter["suggestedTitles"]), title="Titles", title_align="left"))
    if newsletter.get("suggestedSubjectLines"):
        parts.append(Panel(_bullets(newsletter["suggestedSubjectLines"]), title="Subject lines", title_align="left"))
    if newsletter.get("body"):
        parts.append(Panel(Markdown(newsletter["body"]), title="Body", title_align="left"))
    if newsletter.get("topAnnouncements"):
        parts.append(Panel(_bullets(newsletter["topAnnouncements"]), title="Top announcements", title_align="left"))
    if newsletter.get("additionalInfo"):
        parts.append(Panel(newsletter["additionalInfo"], title="Additional info", title_align="left"))
    if update.error:
        parts.append(Text(update.error, style="bold red"))

    return Group(*parts)


async def _run_generation(services: Services, request: GenerationRequest, live: Live) -> GenerationController:
    session = services.new_session()
    controller = session.start(request)

    async for update in controller.updates():
        live.update(render_update(update))

    return controller


def generate_command(
    feeds: Optional[List[str]] = typer.Option(None, "--feed", "-f", help="Feed id (repeatable). Default: all feeds"),
    start: Optional[str] = typer.Option(None, "--start", help="Window start. Default: 7 days before --end"),
    end: Optional[str] = typer.Option(None, "--end", help="Window end. Default: now"),
    user_input: Optional[str] = typer.Option(None, "--input", "-i", help="Extra instructions for the newsletter"),
    save: bool = typer.Option(False, "--save", help="Save the newsletter when generation completes"),
) -> None:
    """Generate a newsletter from the articles in a window, streaming it live."""
    start_date, end_date = parse_window(start, end)
    services = load_services()

    try:
        feed_ids = feeds or [feed.id for feed in services.config.get_feeds() if feed.enabled]
        try:
            request = GenerationRequest(
                feed_ids=feed_ids,
                start_date=start_date,
                end_date=end_date,
                user_input=user_input,
            )
        except ValidationError as e:
            console.print(f"[red]Invalid request: {e}[/red]")
            raise typer.Exit(1)

        try:
            with Live(console=console, refresh_per_second=8) as live:
                controller = asyncio.run(_run_generation(services, request, live))
        except KeyboardInterrupt:
            console.print("\n[yellow]Generation cancelled by user[/yellow]")
            raise typer.Exit(1)

        if controller.state == GenerationState.FAILED:
            console.print(f"[red]❌ {controller.error_message}[/red]")
            raise typer.Exit(1)

        usage = services.provider.get_usage_stats()
        console.print(
            f"[dim]Model: {usage['model']}, tokens: {usage['total_tokens']}, "
            f"estimated cost: ${usage['estimated_cost']:.4f}[/dim]"
        )

        if save:
            try:
                record = controller.save(services.newsletter_store)
            except NewsletterValidationError as e:
                console.print(f"[red]❌ Not saved: {e}[/red]")
                raise typer.Exit(1)
            console.print(f"[green]✅ Saved newsletter #{record.id}[/green]")
    finally:
        services.close()
