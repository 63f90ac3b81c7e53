"""Prepare phase: refresh stale feeds, then count what the window holds."""

import asyncio
import logging
from typing import List, Optional

from ..ingestion.refresh import FeedRefresher
from ..ranking import WindowedRetriever
from .models import GenerationRequest, PrepareResult

logger = logging.getLogger(__name__)


class GenerationPreparer:
    """Best-effort, advisory preparation ahead of generation."""

    def __init__(
        self,
        retriever: WindowedRetriever,
        refresher: Optional[FeedRefresher] = None,
        max_concurrent_refresh: int = 5,
        article_limit: int = 100,
    ) -> None:
        """
        Initialize the preparer.

        Args:
            retriever: Windowed retriever used to count articles
            refresher: Feed refresher; None disables refreshing
            max_concurrent_refresh: Max parallel staleness checks and refreshes
            article_limit: Retrieval cap, same as the controller uses
        """
        self.retriever = retriever
        self.refresher = refresher
        self.max_concurrent_refresh = max_concurrent_refresh
        self.article_limit = article_limit

    async def _is_stale(self, semaphore: asyncio.Semaphore, feed_id: str) -> bool:
        async with semaphore:
            try:
                return await self.refresher.needs_refresh(feed_id)
            except Exception as e:
                logger.warning("Could not check freshness of feed %s: %s", feed_id, e)
                return False

    async def _refresh(self, semaphore: asyncio.Semaphore, feed_id: str) -> bool:
        async with semaphore:
            try:
                refreshed = await self.refresher.refresh(feed_id)
            except Exception as e:
                logger.warning("Refresh of feed %s raised: %s", feed_id, e)
                return False

            if not refreshed:
                logger.warning("Refresh of feed %s did not succeed", feed_id)
            return refreshed

    async def refresh_stale_feeds(self, feed_ids: List[str]) -> List[str]:
        """
        Refresh every stale feed in parallel.

        Returns:
            The feeds that were found stale (whether or not refreshing worked)
        """
        if self.refresher is None or not feed_ids:
            return []

        semaphore = asyncio.Semaphore(self.max_concurrent_refresh)

        checks = await asyncio.gather(*[self._is_stale(semaphore, feed_id) for feed_id in feed_ids])
        stale = [feed_id for feed_id, is_stale in zip(feed_ids, checks) if is_stale]

        if stale:
            logger.info("Refreshing %d stale feed(s): %s", len(stale), ", ".join(stale))
            await asyncio.gather(*[self._refresh(semaphore, feed_id) for feed_id in stale])

        return stale

    async def prepare(self, request: GenerationRequest) -> PrepareResult:
        """Refresh stale feeds and report how many articles the window holds."""
        stale = await self.refresh_stale_feeds(request.feed_ids)

        articles = await asyncio.to_thread(
            self.retriever.retrieve,
            request.feed_ids,
            request.start_date,
            request.end_date,
            self.article_limit,
        )

        return PrepareResult(feeds_to_refresh=len(stale), articles_found=len(articles))
