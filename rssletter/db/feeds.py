"""Feed management and poll bookkeeping in the database."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from ..config import FeedConfig
from ..models import Feed
from .connection import Database


class FeedStateStore(ABC):
    """Tracks when each feed was last polled."""

    @abstractmethod
    def get_last_fetched(self, feed_id: str) -> Optional[datetime]:
        """Last successful poll of the feed, or None if never polled."""

    @abstractmethod
    def mark_fetched(self, feed_id: str, fetched_at: datetime) -> None:
        """Record a successful poll."""


class FeedManager(FeedStateStore):
    """Manage feeds in database."""

    def __init__(self, database: Database) -> None:
        self.database = database

    def sync_feeds(self, feeds: List[FeedConfig]) -> Dict[str, str]:
        """
        Sync feeds from config to database.

        Returns:
            Mapping of feed id to feed name
        """
        feed_map = {}

        with self.database.connection() as conn:
            with conn.cursor() as cur:
                for feed in feeds:
                    cur.execute(
                        """
                        INSERT INTO feeds (feed_id, name, url, enabled, refresh_interval_minutes)
                        VALUES (%s, %s, %s, %s, %s)
                        ON CONFLICT (feed_id) DO UPDATE SET
                            name = EXCLUDED.name,
                            url = EXCLUDED.url,
                            enabled = EXCLUDED.enabled,
                            refresh_interval_minutes = EXCLUDED.refresh_interval_minutes
                        """,
                        (
                            feed.id,
                            feed.name,
                            feed.url,
                            feed.enabled,
                            feed.refresh_interval_minutes,
                        ),
                    )
                    feed_map[feed.id] = feed.name

        return feed_map

    def get_feeds(self) -> List[Feed]:
        """Get all feeds from database."""
        with self.database.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT feed_id, name, url, enabled, refresh_interval_minutes,
                           last_fetched_at, created_at, updated_at
                    FROM feeds
                    ORDER BY name
                    """
                )
                rows = cur.fetchall()
        return [Feed.model_validate(row) for row in rows]

    def get_last_fetched(self, feed_id: str) -> Optional[datetime]:
        with self.database.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT last_fetched_at FROM feeds WHERE feed_id = %s",
                    (feed_id,),
                )
                row = cur.fetchone()
        return row["last_fetched_at"] if row else None

    def mark_fetched(self, feed_id: str, fetched_at: datetime) -> None:
        with self.database.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "UPDATE feeds SET last_fetched_at = %s WHERE feed_id = %s",
                    (fetched_at, feed_id),
                )
