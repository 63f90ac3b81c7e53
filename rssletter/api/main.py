"""FastAPI application factory."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .. import __version__
from ..errors import (
    DuplicateGuidError,
    GenerationStateError,
    NewsletterValidationError,
    NotFoundError,
    describe_error,
)
from ..pipeline import Services
from .routers import articles, health, newsletter


def _error_response(status_code: int, error: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": describe_error(error)})


def create_app(services: Services) -> FastAPI:
    """Create the API around an already-built service graph."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        for session in app.state.sessions.values():
            session.close()
        services.close()

    app = FastAPI(
        title="rssletter",
        description="Deduplicated RSS articles and AI-written newsletters",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.services = services
    app.state.sessions = {}

    app.include_router(health.router)
    app.include_router(articles.router)
    app.include_router(newsletter.router)

    @app.exception_handler(NewsletterValidationError)
    async def newsletter_validation_handler(request: Request, exc: NewsletterValidationError):
        return _error_response(422, exc)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error_response(404, exc)

    @app.exception_handler(DuplicateGuidError)
    async def duplicate_handler(request: Request, exc: DuplicateGuidError):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(GenerationStateError)
    async def state_handler(request: Request, exc: GenerationStateError):
        return _error_response(409, exc)

    return app
