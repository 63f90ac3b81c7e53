"""Shared fixtures."""

from datetime import datetime, timezone
from typing import Any

import pytest

from rssletter.db import InMemoryArticleStore, InMemoryFeedState, InMemoryNewsletterStore
from rssletter.ingestion import ArticleCandidate, IngestionEngine
from rssletter.ranking import WindowedRetriever


def make_candidate(guid: str, feed_id: str, pub_date: datetime = None, **overrides: Any) -> ArticleCandidate:
    fields = {
        "guid": guid,
        "feed_id": feed_id,
        "title": f"Title of {guid}",
        "link": f"https://example.com/{guid}",
        "summary": f"Summary of {guid}",
        "pub_date": pub_date or datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc),
    }
    fields.update(overrides)
    return ArticleCandidate(**fields)


@pytest.fixture
def article_store() -> InMemoryArticleStore:
    return InMemoryArticleStore()


@pytest.fixture
def newsletter_store() -> InMemoryNewsletterStore:
    return InMemoryNewsletterStore()


@pytest.fixture
def feed_state() -> InMemoryFeedState:
    return InMemoryFeedState()


@pytest.fixture
def engine(article_store) -> IngestionEngine:
    return IngestionEngine(article_store)


@pytest.fixture
def retriever(article_store) -> WindowedRetriever:
    return WindowedRetriever(article_store)


@pytest.fixture
def complete_newsletter() -> dict:
    return {
        "suggestedTitles": [f"Title {i}" for i in range(1, 6)],
        "suggestedSubjectLines": [f"Subject {i}" for i in range(1, 6)],
        "body": "## This week\n\nEverything that happened.",
        "topAnnouncements": [f"Announcement {i}" for i in range(1, 6)],
        "additionalInfo": "Thanks for reading.",
    }
