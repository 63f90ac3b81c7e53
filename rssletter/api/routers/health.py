"""Health check endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends

from ... import __version__
from ...pipeline import Services
from ..dependencies import get_services

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(services: Annotated[Services, Depends(get_services)]):
    """Liveness check with the configured backends."""
    return {
        "status": "ok",
        "version": __version__,
        "storage": services.config.config.storage,
        "provider": type(services.provider).__name__,
    }
