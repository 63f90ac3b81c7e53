"""Feed model."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import DBModel


class Feed(DBModel):
    """RSS feed tracked by the store. Only its identifier matters to the core."""

    feed_id: str = Field(..., description="Stable feed identifier")
    name: str = Field(..., description="Feed name")
    url: str = Field(..., description="RSS feed URL")
    enabled: bool = Field(True, description="Whether the feed is enabled")
    refresh_interval_minutes: int = Field(60, description="Minimum minutes between polls")
    last_fetched_at: Optional[datetime] = Field(None, description="Last successful poll")
