"""Newsletter preparation, generation and history endpoints."""

from typing import Annotated, AsyncIterator, List

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from ...generation import GenerationRequest, GenerationSession, PrepareResult, save_generated_newsletter
from ...models import NewsletterRecord
from ...pipeline import Services
from ..dependencies import get_services, get_session
from ..models import SaveNewsletterRequest

router = APIRouter(prefix="/api/newsletter", tags=["newsletter"])


@router.post("/prepare", response_model=PrepareResult)
async def prepare(
    request: GenerationRequest,
    services: Annotated[Services, Depends(get_services)],
):
    """Refresh stale feeds and count the articles in the window.

    Advisory only: generation does not depend on the outcome.
    """
    return await services.preparer.prepare(request)


@router.post("/generate-stream")
async def generate_stream(
    request: GenerationRequest,
    session: Annotated[GenerationSession, Depends(get_session)],
):
    """Stream the newsletter as it is generated.

    The response is newline-delimited JSON, one GenerationUpdate per line.
    The last line has state "complete" or "failed". A repeated request from
    the same X-Session-Id attaches to the running generation. Generation is
    cancelled once every attached client has disconnected.
    """

    async def stream() -> AsyncIterator[str]:
        # Subscribe before the controller task gets a chance to run
        controller = session.start(request)
        async for update in controller.updates():
            yield update.model_dump_json(by_alias=True) + "\n"

    return StreamingResponse(stream(), media_type="application/x-ndjson")


@router.post("/save", response_model=NewsletterRecord, status_code=201)
def save(
    body: SaveNewsletterRequest,
    services: Annotated[Services, Depends(get_services)],
):
    """Save a complete newsletter. Incomplete newsletters are rejected with 422."""
    return save_generated_newsletter(
        services.newsletter_store,
        body.newsletter,
        feed_ids=body.feed_ids,
        start_date=body.start_date,
        end_date=body.end_date,
        user_input=body.user_input,
        article_count=body.article_count,
    )


@router.get("/history", response_model=List[NewsletterRecord])
def history(
    services: Annotated[Services, Depends(get_services)],
    limit: Annotated[int, Query(ge=1, le=200, description="Max results")] = 20,
):
    """Most recently saved newsletters first."""
    return services.newsletter_store.list_newsletters(limit=limit)
