"""Tests for the Postgres stores against a fake connection."""

from contextlib import contextmanager
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from psycopg import errors as pg_errors

from rssletter.config import FeedConfig
from rssletter.db import FeedManager, PostgresArticleStore, PostgresNewsletterStore
from rssletter.errors import DuplicateGuidError, NotFoundError
from rssletter.models import Article, NewsletterRecord

T = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeDatabase:
    """Hands out one mocked connection whose cursor returns queued rows."""

    def __init__(self) -> None:
        self.cursor = MagicMock()
        self.conn = MagicMock()
        self.conn.cursor.return_value.__enter__.return_value = self.cursor

    @contextmanager
    def connection(self):
        yield self.conn


def article_row(**overrides) -> dict:
    row = {
        "id": 1,
        "guid": "abc",
        "primary_feed_id": "f1",
        "source_feed_ids": ["f1"],
        "title": "X",
        "link": "https://example.com/abc",
        "content": None,
        "summary": None,
        "pub_date": T,
        "author": "Alice",
        "categories": [],
        "image_url": None,
        "created_at": T,
        "updated_at": T,
    }
    row.update(overrides)
    return row


def make_article() -> Article:
    return Article(
        guid="abc",
        primary_feed_id="f1",
        source_feed_ids=["f1"],
        title="X",
        link="https://example.com/abc",
        pub_date=T,
    )


class TestPostgresArticleStore:
    def test_find_by_guid_missing(self) -> None:
        database = FakeDatabase()
        database.cursor.fetchone.return_value = None

        assert PostgresArticleStore(database).find_by_guid("abc") is None

    def test_create_returns_stored_row(self) -> None:
        database = FakeDatabase()
        database.cursor.fetchone.return_value = article_row()

        article = PostgresArticleStore(database).create_article(make_article())

        assert article.id == 1
        params = database.cursor.execute.call_args.args[1]
        assert params[0] == "abc"
        assert params[2] == ["f1"]

    def test_unique_violation_becomes_duplicate_guid(self) -> None:
        database = FakeDatabase()
        database.cursor.execute.side_effect = pg_errors.UniqueViolation("duplicate key value")

        with pytest.raises(DuplicateGuidError) as excinfo:
            PostgresArticleStore(database).create_article(make_article())

        assert excinfo.value.guid == "abc"

    def test_append_updates_when_feed_is_new(self) -> None:
        database = FakeDatabase()
        database.cursor.fetchone.return_value = article_row(source_feed_ids=["f1", "f2"])

        article = PostgresArticleStore(database).append_source_feed("abc", "f2")

        assert article.source_feed_ids == ["f1", "f2"]
        assert database.cursor.execute.call_count == 1
        sql, params = database.cursor.execute.call_args.args
        assert "array_append" in sql
        assert params == {"guid": "abc", "feed_id": "f2"}

    def test_append_existing_feed_reads_current_row(self) -> None:
        database = FakeDatabase()
        database.cursor.fetchone.side_effect = [None, article_row(source_feed_ids=["f1", "f2"])]

        article = PostgresArticleStore(database).append_source_feed("abc", "f2")

        assert article.source_feed_ids == ["f1", "f2"]
        assert database.cursor.execute.call_count == 2

    def test_append_missing_guid(self) -> None:
        database = FakeDatabase()
        database.cursor.fetchone.side_effect = [None, None]

        with pytest.raises(NotFoundError):
            PostgresArticleStore(database).append_source_feed("missing", "f2")

    def test_query_by_feeds_and_window(self) -> None:
        database = FakeDatabase()
        database.cursor.fetchall.return_value = [article_row(), article_row(id=2, guid="def")]

        articles = PostgresArticleStore(database).query_by_feeds_and_window(("f1", "f2"), T, T, 10)

        assert [a.guid for a in articles] == ["abc", "def"]
        sql, params = database.cursor.execute.call_args.args
        assert "ORDER BY pub_date DESC, id ASC" in sql
        assert params["feed_ids"] == ["f1", "f2"]
        assert params["limit"] == 10


class TestPostgresNewsletterStore:
    def test_save_and_list(self) -> None:
        row = {
            "id": 7,
            "feed_ids": ["f1"],
            "start_date": T,
            "end_date": T,
            "user_input": None,
            "article_count": 3,
            "suggested_titles": ["t"] * 5,
            "suggested_subject_lines": ["s"] * 5,
            "body": "Body",
            "top_announcements": ["a"] * 5,
            "additional_info": None,
            "created_at": T,
            "updated_at": T,
        }
        database = FakeDatabase()
        database.cursor.fetchone.return_value = row
        database.cursor.fetchall.return_value = [row]
        store = PostgresNewsletterStore(database)

        saved = store.save_newsletter(NewsletterRecord.model_validate({**row, "id": None}))

        assert saved.id == 7
        assert saved.article_count == 3
        assert [r.id for r in store.list_newsletters(limit=5)] == [7]


class TestFeedManager:
    def test_sync_feeds(self) -> None:
        database = FakeDatabase()
        feeds = [
            FeedConfig(id="f1", name="One", url="https://one.example/rss"),
            FeedConfig(id="f2", name="Two", url="https://two.example/rss", enabled=False),
        ]

        feed_map = FeedManager(database).sync_feeds(feeds)

        assert feed_map == {"f1": "One", "f2": "Two"}
        assert database.cursor.execute.call_count == 2

    def test_get_feeds(self) -> None:
        database = FakeDatabase()
        database.cursor.fetchall.return_value = [
            {
                "feed_id": "f1",
                "name": "One",
                "url": "https://one.example/rss",
                "enabled": True,
                "refresh_interval_minutes": 30,
                "last_fetched_at": T,
                "created_at": T,
                "updated_at": T,
            }
        ]

        [feed] = FeedManager(database).get_feeds()

        assert feed.feed_id == "f1"
        assert feed.last_fetched_at == T

    def test_last_fetched(self) -> None:
        database = FakeDatabase()
        database.cursor.fetchone.side_effect = [None, {"last_fetched_at": T}]
        manager = FeedManager(database)

        assert manager.get_last_fetched("f1") is None
        assert manager.get_last_fetched("f1") == T
