"""Tests for rssletter.ingestion.engine."""

import logging
import threading
from datetime import datetime, timezone
from unittest.mock import patch

from rssletter.db import InMemoryArticleStore
from rssletter.errors import DuplicateGuidError
from rssletter.ingestion import IngestionEngine, import_records

from .conftest import make_candidate

T = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
T2 = datetime(2024, 1, 15, 18, 0, tzinfo=timezone.utc)


class RacingStore(InMemoryArticleStore):
    """Another writer inserts the guid between find_by_guid and create_article."""

    def __init__(self, winner_feed: str) -> None:
        super().__init__()
        self.winner_feed = winner_feed

    def create_article(self, article):
        if article.guid not in self._articles:
            super().create_article(
                article.model_copy(
                    update={
                        "primary_feed_id": self.winner_feed,
                        "source_feed_ids": [self.winner_feed],
                        "title": "Winner title",
                    }
                )
            )
        raise DuplicateGuidError(article.guid)


class TestIngestOne:
    def test_first_observation_creates_article(self, engine, article_store) -> None:
        article = engine.ingest_one(make_candidate("abc", "f1", T, title="X"))

        assert article.id is not None
        assert article.primary_feed_id == "f1"
        assert article.source_feed_ids == ["f1"]
        assert article.title == "X"
        assert len(article_store) == 1

    def test_reobservation_from_same_feed_is_idempotent(self, engine, article_store) -> None:
        first = engine.ingest_one(make_candidate("abc", "f1", T, title="X"))
        second = engine.ingest_one(make_candidate("abc", "f1", T2, title="Changed"))

        assert second == first
        assert article_store.find_by_guid("abc").source_feed_ids == ["f1"]
        assert len(article_store) == 1

    def test_second_feed_is_appended_and_content_kept(self, engine, article_store) -> None:
        engine.ingest_one(make_candidate("abc", "f1", T, title="X"))
        merged = engine.ingest_one(make_candidate("abc", "f2", T2, title="Y"))

        assert len(article_store) == 1
        assert merged.title == "X"
        assert merged.pub_date == T
        assert merged.primary_feed_id == "f1"
        assert merged.source_feed_ids == ["f1", "f2"]

    def test_source_feeds_keep_first_occurrence_order(self, engine) -> None:
        for feed in ["f3", "f1", "f2", "f1", "f3"]:
            engine.ingest_one(make_candidate("abc", feed, T))

        assert engine.store.find_by_guid("abc").source_feed_ids == ["f3", "f1", "f2"]

    def test_author_is_normalized(self, engine) -> None:
        article = engine.ingest_one(make_candidate("abc", "f1", T, author={"name": ["Ann", "Bo"]}))
        assert article.author == "Ann, Bo"

    def test_missing_author_uses_fallback(self, article_store) -> None:
        engine = IngestionEngine(article_store, fallback_author="Newsroom")
        article = engine.ingest_one(make_candidate("abc", "f1", T, author=""))
        assert article.author == "Newsroom"

    def test_default_fallback_author(self, engine) -> None:
        article = engine.ingest_one(make_candidate("abc", "f1", T))
        assert article.author == "Demo user"

    def test_create_race_still_records_losing_feed(self) -> None:
        store = RacingStore(winner_feed="f1")
        engine = IngestionEngine(store)

        article = engine.ingest_one(make_candidate("abc", "f2", T, title="Loser title"))

        assert article.primary_feed_id == "f1"
        assert article.title == "Winner title"
        assert article.source_feed_ids == ["f1", "f2"]


class TestIngestBatch:
    def test_counts_add_up(self, engine) -> None:
        engine.ingest_one(make_candidate("known", "f1", T))
        candidates = [
            make_candidate("new-1", "f1", T),
            make_candidate("known", "f1", T),
            make_candidate("known", "f2", T),
            make_candidate("new-2", "f2", T),
        ]

        result = engine.ingest_batch(candidates)

        assert result.created == 4
        assert result.skipped == 0
        assert result.errors == 0
        assert result.total == len(candidates)

    def test_failure_does_not_stop_batch(self, engine, article_store, caplog) -> None:
        candidates = [make_candidate(f"g{i}", "f1", T) for i in range(3)]
        original = article_store.create_article

        def flaky_create(article):
            if article.guid == "g1":
                raise RuntimeError("disk full")
            return original(article)

        with patch.object(article_store, "create_article", side_effect=flaky_create):
            with caplog.at_level(logging.ERROR):
                result = engine.ingest_batch(candidates)

        assert (result.created, result.skipped, result.errors) == (2, 0, 1)
        assert result.failed_guids == ["g1"]
        assert "g1" in caplog.text
        assert article_store.find_by_guid("g2") is not None

    def test_no_rollback_of_earlier_items(self, engine, article_store) -> None:
        with patch.object(article_store, "append_source_feed", side_effect=RuntimeError("boom")):
            engine.ingest_one(make_candidate("a", "f1", T))
            result = engine.ingest_batch([make_candidate("b", "f1", T), make_candidate("a", "f2", T)])

        assert result.created == 1
        assert result.errors == 1
        assert article_store.find_by_guid("b") is not None

    def test_duplicate_key_race_counts_as_skipped(self) -> None:
        engine = IngestionEngine(RacingStore(winner_feed="f1"))
        result = engine.ingest_batch([make_candidate("abc", "f2", T)])

        assert (result.created, result.skipped, result.errors) == (0, 1, 0)

    def test_merge_into_known_guid_counts_as_created(self, engine, article_store) -> None:
        engine.ingest_one(make_candidate("g", "f1", T))

        result = engine.ingest_batch([make_candidate("g", "f2", T)])

        assert (result.created, result.skipped, result.errors) == (1, 0, 0)
        assert article_store.find_by_guid("g").source_feed_ids == ["f1", "f2"]

    def test_empty_batch(self, engine) -> None:
        result = engine.ingest_batch([])
        assert result.total == 0

    def test_concurrent_batches_never_duplicate_feeds(self, engine, article_store) -> None:
        engine.ingest_one(make_candidate("shared", "f0", T))
        feeds = [f"f{i}" for i in range(1, 9)]

        def worker(feed_id: str) -> None:
            engine.ingest_batch([make_candidate("shared", feed_id, T), make_candidate("shared", "f1", T)])

        threads = [threading.Thread(target=worker, args=(feed,)) for feed in feeds]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        source_feed_ids = article_store.find_by_guid("shared").source_feed_ids
        assert source_feed_ids[0] == "f0"
        assert sorted(source_feed_ids) == sorted(["f0", *feeds])


class TestImportRecords:
    def test_camel_case_records(self, engine, article_store) -> None:
        records = [
            {"guid": "abc", "feedId": "f1", "title": "X", "link": "https://x", "pubDate": "2024-01-15T12:00:00Z"},
            {"guid": "abc", "feedId": "f2", "title": "Y", "link": "https://y", "pubDate": "2024-01-15T18:00:00Z"},
        ]

        result = import_records(engine, records)

        assert (result.created, result.skipped, result.errors) == (2, 0, 0)
        stored = article_store.find_by_guid("abc")
        assert stored.title == "X"
        assert stored.source_feed_ids == ["f1", "f2"]

    def test_invalid_records_are_errors(self, engine) -> None:
        records = [
            {"guid": "ok", "feedId": "f1", "title": "X", "link": "https://x", "pubDate": "2024-01-15T12:00:00Z"},
            {"guid": "no-date", "feedId": "f1", "title": "X", "link": "https://x"},
            {"feedId": "f1", "title": "X", "link": "https://x", "pubDate": "2024-01-15T12:00:00Z"},
        ]

        result = import_records(engine, records)

        assert result.created == 1
        assert result.errors == 2
        assert result.total == len(records)
        assert result.failed_guids == ["no-date", "<missing guid>"]

    def test_null_categories_default_to_empty(self, engine) -> None:
        records = [
            {
                "guid": "abc",
                "feedId": "f1",
                "title": "X",
                "link": "https://x",
                "pubDate": "2024-01-15T12:00:00Z",
                "categories": None,
            }
        ]
        import_records(engine, records)
        assert engine.store.find_by_guid("abc").categories == []
