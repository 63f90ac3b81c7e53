"""In-process stores for tests, demos and single-process runs."""

import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from ..errors import DuplicateGuidError, NotFoundError
from ..models import Article, NewsletterRecord
from .articles import ArticleStore
from .feeds import FeedStateStore
from .newsletters import NewsletterStore


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryArticleStore(ArticleStore):
    """Article store held in a dict keyed by guid.

    A single lock serializes every mutation, so the set-add in
    append_source_feed is atomic across threads. Insertion order is the
    store-native tie-break order.
    """

    def __init__(self) -> None:
        self._articles: Dict[str, Article] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._articles)

    def find_by_guid(self, guid: str) -> Optional[Article]:
        with self._lock:
            article = self._articles.get(guid)
            return article.model_copy(deep=True) if article else None

    def create_article(self, article: Article) -> Article:
        with self._lock:
            if article.guid in self._articles:
                raise DuplicateGuidError(article.guid)
            now = _now()
            stored = article.model_copy(
                deep=True,
                update={"id": self._next_id, "created_at": now, "updated_at": now},
            )
            self._next_id += 1
            self._articles[stored.guid] = stored
            return stored.model_copy(deep=True)

    def append_source_feed(self, guid: str, feed_id: str) -> Article:
        with self._lock:
            article = self._articles.get(guid)
            if article is None:
                raise NotFoundError(f"No article with guid '{guid}'")
            if feed_id not in article.source_feed_ids:
                article = article.model_copy(
                    update={
                        "source_feed_ids": [*article.source_feed_ids, feed_id],
                        "updated_at": _now(),
                    }
                )
                self._articles[guid] = article
            return article.model_copy(deep=True)

    def query_by_feeds_and_window(
        self,
        feed_ids: Sequence[str],
        start: datetime,
        end: datetime,
        limit: int,
    ) -> List[Article]:
        wanted = set(feed_ids)
        with self._lock:
            matches = [
                article.model_copy(deep=True)
                for article in self._articles.values()
                if (article.primary_feed_id in wanted or wanted.intersection(article.source_feed_ids))
                and start <= article.pub_date <= end
            ]
        # sort is stable: equal pub_dates keep insertion order
        matches.sort(key=lambda a: a.pub_date, reverse=True)
        return matches[:limit]


class InMemoryNewsletterStore(NewsletterStore):
    """Newsletter store held in a list."""

    def __init__(self) -> None:
        self._records: List[NewsletterRecord] = []
        self._lock = threading.Lock()

    def save_newsletter(self, record: NewsletterRecord) -> NewsletterRecord:
        with self._lock:
            now = _now()
            stored = record.model_copy(
                deep=True,
                update={"id": len(self._records) + 1, "created_at": now, "updated_at": now},
            )
            self._records.append(stored)
            return stored.model_copy(deep=True)

    def list_newsletters(self, limit: int = 20) -> List[NewsletterRecord]:
        with self._lock:
            return [r.model_copy(deep=True) for r in reversed(self._records)][:limit]


class InMemoryFeedState(FeedStateStore):
    """Poll bookkeeping held in a dict."""

    def __init__(self) -> None:
        self._last_fetched: Dict[str, datetime] = {}
        self._lock = threading.Lock()

    def get_last_fetched(self, feed_id: str) -> Optional[datetime]:
        with self._lock:
            return self._last_fetched.get(feed_id)

    def mark_fetched(self, feed_id: str, fetched_at: datetime) -> None:
        with self._lock:
            self._last_fetched[feed_id] = fetched_at
