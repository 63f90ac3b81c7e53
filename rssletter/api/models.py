"""Request and response models for the HTTP API."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SaveNewsletterRequest(BaseModel):
    """A generated newsletter and the request it came from."""

    model_config = ConfigDict(populate_by_name=True)

    feed_ids: List[str] = Field(..., alias="feedIds", min_length=1)
    start_date: datetime = Field(..., alias="startDate")
    end_date: datetime = Field(..., alias="endDate")
    user_input: Optional[str] = Field(None, alias="userInput")
    article_count: int = Field(0, alias="articleCount", ge=0)
    newsletter: Dict[str, Any] = Field(..., description="Newsletter in camelCase keys")


class BulkImportResponse(BaseModel):
    """Outcome of a bulk import."""

    created: int
    skipped: int
    errors: int
    total: int
    failed_guids: List[str] = Field(default_factory=list, serialization_alias="failedGuids")


class ScoredArticleResponse(BaseModel):
    """One retrieved article with its source count."""

    model_config = ConfigDict(populate_by_name=True)

    guid: str
    title: str
    link: str
    summary: Optional[str] = None
    author: Optional[str] = None
    pub_date: datetime = Field(..., serialization_alias="pubDate")
    primary_feed_id: str = Field(..., serialization_alias="primaryFeedId")
    source_feed_ids: List[str] = Field(..., serialization_alias="sourceFeedIds")
    source_count: int = Field(..., serialization_alias="sourceCount")
    categories: List[str] = Field(default_factory=list)
    image_url: Optional[str] = Field(None, serialization_alias="imageUrl")
