"""Persisted newsletter model."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from .base import DBModel


class NewsletterRecord(DBModel):
    """A saved, complete newsletter and the request that produced it."""

    feed_ids: List[str] = Field(..., description="Feeds the newsletter was generated from")
    start_date: datetime = Field(..., description="Window start (inclusive)")
    end_date: datetime = Field(..., description="Window end (inclusive)")
    user_input: Optional[str] = Field(None, description="Free-text instructions from the user")
    article_count: int = Field(0, description="Articles the newsletter was generated from", ge=0)
    suggested_titles: List[str] = Field(..., description="Five title suggestions")
    suggested_subject_lines: List[str] = Field(..., description="Five email subject lines")
    body: str = Field(..., description="Newsletter body")
    top_announcements: List[str] = Field(..., description="Five top announcements")
    additional_info: Optional[str] = Field(None, description="Extra notes from the model")
