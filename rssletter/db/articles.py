"""Article storage and cross-feed deduplication primitives."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence

from psycopg import errors as pg_errors

from ..errors import DuplicateGuidError, NotFoundError
from ..models import Article
from .connection import Database


class ArticleStore(ABC):
    """Persistent keyed storage for articles."""

    @abstractmethod
    def find_by_guid(self, guid: str) -> Optional[Article]:
        """Return the article with this guid, or None."""

    @abstractmethod
    def create_article(self, article: Article) -> Article:
        """
        Insert a new article.

        Raises:
            DuplicateGuidError: an article with the same guid already exists
        """

    @abstractmethod
    def append_source_feed(self, guid: str, feed_id: str) -> Article:
        """
        Atomically add feed_id to the article's source_feed_ids.

        Idempotent: a feed already present is not added twice, even when
        several writers race on the same guid.

        Raises:
            NotFoundError: no article with this guid
        """

    @abstractmethod
    def query_by_feeds_and_window(
        self,
        feed_ids: Sequence[str],
        start: datetime,
        end: datetime,
        limit: int,
    ) -> List[Article]:
        """Articles matching any feed within [start, end], newest first."""


ARTICLE_COLUMNS = """
    id, guid, primary_feed_id, source_feed_ids, title, link, content,
    summary, pub_date, author, categories, image_url, created_at, updated_at
"""


class PostgresArticleStore(ArticleStore):
    """Article store backed by the rss_articles table."""

    def __init__(self, database: Database) -> None:
        """Initialize article storage."""
        self.database = database

    def find_by_guid(self, guid: str) -> Optional[Article]:
        with self.database.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"SELECT {ARTICLE_COLUMNS} FROM rss_articles WHERE guid = %s",
                    (guid,),
                )
                row = cur.fetchone()
        return Article.model_validate(row) if row else None

    def create_article(self, article: Article) -> Article:
        try:
            with self.database.connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        f"""
                        INSERT INTO rss_articles (
                            guid, primary_feed_id, source_feed_ids, title, link,
                            content, summary, pub_date, author, categories, image_url
                        ) VALUES (
                            %s, %s, %s::text[], %s, %s, %s, %s, %s, %s, %s::text[], %s
                        )
                        RETURNING {ARTICLE_COLUMNS}
                        """,
                        (
                            article.guid,
                            article.primary_feed_id,
                            list(article.source_feed_ids),
                            article.title,
                            article.link,
                            article.content,
                            article.summary,
                            article.pub_date,
                            article.author,
                            list(article.categories),
                            article.image_url,
                        ),
                    )
                    row = cur.fetchone()
        except pg_errors.UniqueViolation as e:
            raise DuplicateGuidError(article.guid) from e
        return Article.model_validate(row)

    def append_source_feed(self, guid: str, feed_id: str) -> Article:
        with self.database.connection() as conn:
            with conn.cursor() as cur:
                # The row lock taken by UPDATE makes a concurrent writer
                # re-evaluate the ANY() guard against the committed array.
                cur.execute(
                    f"""
                    UPDATE rss_articles
                    SET source_feed_ids = array_append(source_feed_ids, %(feed_id)s::text)
                    WHERE guid = %(guid)s
                      AND NOT (%(feed_id)s::text = ANY(source_feed_ids))
                    RETURNING {ARTICLE_COLUMNS}
                    """,
                    {"guid": guid, "feed_id": feed_id},
                )
                row = cur.fetchone()
                if row is None:
                    # Already present (or missing): read the current state
                    cur.execute(
                        f"SELECT {ARTICLE_COLUMNS} FROM rss_articles WHERE guid = %s",
                        (guid,),
                    )
                    row = cur.fetchone()
        if row is None:
            raise NotFoundError(f"No article with guid '{guid}'")
        return Article.model_validate(row)

    def query_by_feeds_and_window(
        self,
        feed_ids: Sequence[str],
        start: datetime,
        end: datetime,
        limit: int,
    ) -> List[Article]:
        with self.database.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    SELECT {ARTICLE_COLUMNS}
                    FROM rss_articles
                    WHERE (primary_feed_id = ANY(%(feed_ids)s::text[])
                           OR source_feed_ids && %(feed_ids)s::text[])
                      AND pub_date >= %(start)s
                      AND pub_date <= %(end)s
                    ORDER BY pub_date DESC, id ASC
                    LIMIT %(limit)s
                    """,
                    {
                        "feed_ids": list(feed_ids),
                        "start": start,
                        "end": end,
                        "limit": limit,
                    },
                )
                rows = cur.fetchall()
        return [Article.model_validate(row) for row in rows]
