"""Article model for deduplicated RSS articles."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from .base import DBModel, as_utc


class Article(DBModel):
    """An article observed through one or more feeds."""

    guid: str = Field(..., description="Feed-supplied unique identifier (dedup key)")
    primary_feed_id: str = Field(..., description="Feed the article was first observed through")
    source_feed_ids: List[str] = Field(..., description="Every feed the article was observed through")
    title: str = Field(..., description="Article title")
    link: str = Field(..., description="Article URL")
    content: Optional[str] = Field(None, description="Full content, if the feed carries it")
    summary: Optional[str] = Field(None, description="Feed summary/description")
    pub_date: datetime = Field(..., description="Publication timestamp")
    author: Optional[str] = Field(None, description="Canonical author string")
    categories: List[str] = Field(default_factory=list, description="Feed categories/tags")
    image_url: Optional[str] = Field(None, description="Lead image URL")

    @field_validator("pub_date")
    @classmethod
    def normalize_pub_date(cls, v: datetime) -> datetime:
        return as_utc(v)

    @model_validator(mode="after")
    def check_source_feeds(self) -> "Article":
        """sourceFeedIds must be non-empty, duplicate-free and contain the primary feed."""
        if not self.source_feed_ids:
            raise ValueError("source_feed_ids must not be empty")
        if len(set(self.source_feed_ids)) != len(self.source_feed_ids):
            raise ValueError(f"source_feed_ids contains duplicates: {self.source_feed_ids}")
        if self.primary_feed_id not in self.source_feed_ids:
            raise ValueError("source_feed_ids must contain primary_feed_id")
        return self

    @property
    def source_count(self) -> int:
        """Number of distinct feeds corroborating this article."""
        return len(self.source_feed_ids)
