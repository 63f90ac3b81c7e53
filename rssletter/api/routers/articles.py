"""Article import and retrieval endpoints."""

from datetime import datetime
from typing import Annotated, Any, Dict, List

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from ...ingestion import import_records
from ...pipeline import Services
from ...ranking import WindowedRetriever
from ..dependencies import get_services
from ..models import BulkImportResponse, ScoredArticleResponse

router = APIRouter(prefix="/api/articles", tags=["articles"])


def get_retriever(services: Annotated[Services, Depends(get_services)]) -> WindowedRetriever:
    """Dependency to get the windowed retriever."""
    return services.retriever


@router.post("/bulk", response_model=BulkImportResponse)
def bulk_import(
    records: Annotated[List[Dict[str, Any]], Body(description="Article records from a feed poller")],
    services: Annotated[Services, Depends(get_services)],
):
    """Import article observations.

    Records are processed one by one; a bad record is counted in errors
    and never stops the batch.
    """
    result = import_records(services.engine, records)
    return BulkImportResponse(
        created=result.created,
        skipped=result.skipped,
        errors=result.errors,
        total=result.total,
        failed_guids=result.failed_guids,
    )


@router.get("", response_model=List[ScoredArticleResponse])
def list_articles(
    retriever: Annotated[WindowedRetriever, Depends(get_retriever)],
    feed_ids: Annotated[List[str], Query(alias="feedId", description="Feeds to select from")],
    start: Annotated[datetime, Query(alias="startDate", description="Window start (inclusive)")],
    end: Annotated[datetime, Query(alias="endDate", description="Window end (inclusive)")],
    limit: Annotated[int, Query(ge=1, le=1000, description="Max results")] = 100,
):
    """Articles seen through any of the feeds in the window, newest first."""
    try:
        scored = retriever.retrieve(feed_ids, start, end, limit)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return [
        ScoredArticleResponse(
            guid=item.article.guid,
            title=item.article.title,
            link=item.article.link,
            summary=item.article.summary,
            author=item.article.author,
            pub_date=item.article.pub_date,
            primary_feed_id=item.article.primary_feed_id,
            source_feed_ids=item.article.source_feed_ids,
            source_count=item.source_count,
            categories=item.article.categories,
            image_url=item.article.image_url,
        )
        for item in scored
    ]
