"""Data models for ingestion."""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.base import as_utc


class ArticleCandidate(BaseModel):
    """One observation of an article through one feed."""

    model_config = ConfigDict(populate_by_name=True)

    guid: str = Field(..., min_length=1, description="Feed-supplied unique identifier")
    feed_id: str = Field(..., alias="feedId", min_length=1, description="Feed it was observed through")
    title: str = Field(..., description="Article title")
    link: str = Field(..., description="Article URL")
    content: Optional[str] = Field(None, description="Full content")
    summary: Optional[str] = Field(None, description="Summary/description")
    pub_date: datetime = Field(..., alias="pubDate", description="Publication date")
    author: Any = Field(None, description="Author in whatever shape the parser produced")
    categories: List[str] = Field(default_factory=list, description="Categories/tags")
    image_url: Optional[str] = Field(None, alias="imageUrl", description="Lead image URL")

    @field_validator("pub_date")
    @classmethod
    def normalize_pub_date(cls, v: datetime) -> datetime:
        return as_utc(v)

    @field_validator("categories", mode="before")
    @classmethod
    def default_categories(cls, v: Any) -> Any:
        return [] if v is None else v


class FeedResult(BaseModel):
    """Result of fetching an RSS feed."""

    feed_id: str = Field(..., description="Feed identifier")
    feed_url: str = Field(..., description="RSS feed URL")
    success: bool = Field(..., description="Whether fetch was successful")
    items: List[ArticleCandidate] = Field(default_factory=list, description="Parsed feed items")
    error: Optional[str] = Field(None, description="Error message if failed")
    item_count: int = Field(0, description="Number of items fetched")


class BulkOperationResult(BaseModel):
    """Outcome counts of a batch ingestion."""

    created: int = Field(0, description="Candidates stored, as a new article or a merge into a known one")
    skipped: int = Field(0, description="Candidates that lost a concurrent create of the same guid")
    errors: int = Field(0, description="Candidates that failed")
    failed_guids: List[str] = Field(default_factory=list, description="Guids of failed candidates")

    @property
    def total(self) -> int:
        return self.created + self.skipped + self.errors
