"""Data models for newsletter generation."""

import hashlib
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..models.base import as_utc

NEWSLETTER_LIST_LENGTH = 5


class GenerationRequest(BaseModel):
    """A user-selected set of feeds and window to build a newsletter from."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    feed_ids: List[str] = Field(..., alias="feedIds", min_length=1, description="Feeds to draw from")
    start_date: datetime = Field(..., alias="startDate", description="Window start (inclusive)")
    end_date: datetime = Field(..., alias="endDate", description="Window end (inclusive)")
    user_input: Optional[str] = Field(None, alias="userInput", description="Free-text instructions")

    @field_validator("feed_ids")
    @classmethod
    def unique_feed_ids(cls, v: List[str]) -> List[str]:
        feeds = list(dict.fromkeys(f.strip() for f in v if f and f.strip()))
        if not feeds:
            raise ValueError("at least one feed id is required")
        return feeds

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, v: datetime) -> datetime:
        return as_utc(v)

    @field_validator("user_input")
    @classmethod
    def blank_input_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v if v and v.strip() else None

    @model_validator(mode="after")
    def check_window(self) -> "GenerationRequest":
        if self.start_date > self.end_date:
            raise ValueError("startDate must not be after endDate")
        return self

    @property
    def key(self) -> str:
        """Stable identity of the request; feed order does not matter."""
        identity = "|".join(
            [
                ",".join(sorted(self.feed_ids)),
                self.start_date.isoformat(),
                self.end_date.isoformat(),
                self.user_input or "",
            ]
        )
        return hashlib.sha256(identity.encode()).hexdigest()


class NewsletterDraft(BaseModel):
    """In-progress newsletter: every field optional, arrays of any length."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    suggested_titles: Optional[List[str]] = Field(None, alias="suggestedTitles")
    suggested_subject_lines: Optional[List[str]] = Field(None, alias="suggestedSubjectLines")
    body: Optional[str] = Field(None)
    top_announcements: Optional[List[str]] = Field(None, alias="topAnnouncements")
    additional_info: Optional[str] = Field(None, alias="additionalInfo")

    def to_public(self) -> Dict[str, Any]:
        """Populated fields only, camelCase keys."""
        return self.model_dump(by_alias=True, exclude_none=True)


class GeneratedNewsletter(BaseModel):
    """Final newsletter shape, enforced at the save boundary."""

    model_config = ConfigDict(populate_by_name=True)

    suggested_titles: List[str] = Field(
        ...,
        alias="suggestedTitles",
        min_length=NEWSLETTER_LIST_LENGTH,
        max_length=NEWSLETTER_LIST_LENGTH,
        description="Five title suggestions",
    )
    suggested_subject_lines: List[str] = Field(
        ...,
        alias="suggestedSubjectLines",
        min_length=NEWSLETTER_LIST_LENGTH,
        max_length=NEWSLETTER_LIST_LENGTH,
        description="Five email subject lines",
    )
    body: str = Field(..., description="Newsletter body in Markdown")
    top_announcements: List[str] = Field(
        ...,
        alias="topAnnouncements",
        min_length=NEWSLETTER_LIST_LENGTH,
        max_length=NEWSLETTER_LIST_LENGTH,
        description="Five most important announcements",
    )
    additional_info: Optional[str] = Field(None, alias="additionalInfo", description="Optional extra notes")


class PrepareResult(BaseModel):
    """Advisory numbers reported before generation starts."""

    model_config = ConfigDict(populate_by_name=True)

    feeds_to_refresh: int = Field(0, alias="feedsToRefresh", ge=0)
    articles_found: int = Field(0, alias="articlesFound", ge=0)


class GenerationState(str, Enum):
    """Lifecycle of one generation request."""

    IDLE = "idle"
    PREPARING = "preparing"
    STREAMING = "streaming"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (GenerationState.COMPLETE, GenerationState.FAILED)


class GenerationUpdate(BaseModel):
    """One observation of a generation, as sent to streaming clients."""

    model_config = ConfigDict(populate_by_name=True)

    state: GenerationState
    newsletter: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None
    articles_found: Optional[int] = Field(None, alias="articlesFound")
