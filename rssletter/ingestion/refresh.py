"""Feed refresh collaborator used by the prepare phase."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Tuple

import pendulum

from ..config import FeedConfig
from ..db.feeds import FeedStateStore
from .engine import IngestionEngine
from .models import BulkOperationResult, FeedResult
from .rss_fetcher import RSSFetcher

logger = logging.getLogger(__name__)


class FeedRefresher(ABC):
    """Decides whether a feed is stale and polls it."""

    @abstractmethod
    async def needs_refresh(self, feed_id: str) -> bool:
        """Whether the feed must be polled before its window is complete."""

    @abstractmethod
    async def refresh(self, feed_id: str) -> bool:
        """Poll the feed and ingest its items. Returns False on failure."""


class RSSFeedRefresher(FeedRefresher):
    """Refresh configured feeds over HTTP and ingest what they return."""

    def __init__(
        self,
        feeds: List[FeedConfig],
        fetcher: RSSFetcher,
        engine: IngestionEngine,
        feed_state: FeedStateStore,
    ) -> None:
        """
        Initialize the refresher.

        Args:
            feeds: Configured feeds, looked up by id
            fetcher: RSS fetcher used to poll
            engine: Ingestion engine that stores polled items
            feed_state: Where poll times are recorded
        """
        self.feeds: Dict[str, FeedConfig] = {feed.id: feed for feed in feeds}
        self.fetcher = fetcher
        self.engine = engine
        self.feed_state = feed_state

    async def needs_refresh(self, feed_id: str) -> bool:
        feed = self.feeds.get(feed_id)
        if feed is None or not feed.enabled:
            logger.debug("Feed %s is not configured or disabled; not refreshing", feed_id)
            return False

        last_fetched = await asyncio.to_thread(self.feed_state.get_last_fetched, feed_id)
        if last_fetched is None:
            return True

        age = pendulum.now("UTC") - pendulum.instance(last_fetched)
        return age.total_seconds() >= feed.refresh_interval_minutes * 60

    async def _ingest_result(self, result: FeedResult) -> BulkOperationResult:
        stats = await asyncio.to_thread(self.engine.ingest_batch, result.items)
        await asyncio.to_thread(self.feed_state.mark_fetched, result.feed_id, pendulum.now("UTC"))
        logger.info(
            "Refreshed %s: %d created, %d skipped, %d errors",
            result.feed_id,
            stats.created,
            stats.skipped,
            stats.errors,
        )
        return stats

    async def refresh(self, feed_id: str) -> bool:
        feed = self.feeds.get(feed_id)
        if feed is None:
            logger.warning("Cannot refresh unknown feed %s", feed_id)
            return False

        result = await self.fetcher.fetch_feed(feed)
        if not result.success:
            logger.warning("Refresh of %s failed: %s", feed_id, result.error)
            return False

        await self._ingest_result(result)
        return True

    async def refresh_all(self) -> List[Tuple[FeedResult, BulkOperationResult]]:
        """Poll every enabled feed regardless of staleness."""
        results = await self.fetcher.fetch_all_feeds(list(self.feeds.values()))
        outcomes = []
        for result in results:
            stats = await self._ingest_result(result) if result.success else BulkOperationResult()
            outcomes.append((result, stats))
        return outcomes
