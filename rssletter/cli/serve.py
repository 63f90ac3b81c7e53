"""Serve command implementation."""

from typing import Optional

import typer
import uvicorn

from ..api import create_app
from .common import load_services


def serve_command(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address. Default: from config"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port. Default: from config"),
) -> None:
    """Run the HTTP API."""
    services = load_services()
    server = services.config.config.server

    uvicorn.run(
        create_app(services),
        host=host or server.host,
        port=port or server.port,
        log_config=None,
    )
