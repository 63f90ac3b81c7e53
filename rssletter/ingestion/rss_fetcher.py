"""RSS feed fetcher with concurrent processing."""

import asyncio
import calendar
import logging
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional

import feedparser
import httpx
import pendulum
from pydantic import ValidationError

from ..config import FeedConfig
from .models import ArticleCandidate, FeedResult

logger = logging.getLogger(__name__)


def _parse_date(entry: Mapping[str, Any]) -> Optional[datetime]:
    """feedparser exposes dates as UTC struct_time tuples."""
    for key in ("published_parsed", "updated_parsed"):
        parsed = entry.get(key)
        if parsed:
            return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)
    return None


def _extract_image(entry: Mapping[str, Any]) -> Optional[str]:
    """First image from media:content, media:thumbnail or an image enclosure."""
    for key in ("media_content", "media_thumbnail"):
        media = entry.get(key) or []
        if media and media[0].get("url"):
            return media[0]["url"]
    for link in entry.get("links") or []:
        if link.get("rel") == "enclosure" and str(link.get("type", "")).startswith("image/"):
            return link.get("href")
    return None


def parse_entry(entry: Mapping[str, Any], feed_id: str, fetched_at: datetime) -> Optional[ArticleCandidate]:
    """Convert one feedparser entry into a candidate, or None if unusable."""
    link = entry.get("link")
    guid = entry.get("id") or link
    if not guid or not link:
        return None

    content = None
    if entry.get("content"):
        content = entry["content"][0].get("value")

    try:
        return ArticleCandidate(
            guid=guid,
            feed_id=feed_id,
            title=entry.get("title") or link,
            link=link,
            content=content,
            summary=entry.get("summary") or entry.get("description"),
            pub_date=_parse_date(entry) or fetched_at,
            # author_detail carries {"name": ...}; keep the raw shape
            author=entry.get("author_detail") or entry.get("author"),
            categories=[tag.get("term") for tag in entry.get("tags") or [] if tag.get("term")],
            image_url=_extract_image(entry),
        )
    except ValidationError as e:
        logger.warning("Skipping malformed entry %s from %s: %s", guid, feed_id, e)
        return None


class RSSFetcher:
    """Fetch and parse RSS feeds."""

    def __init__(self, timeout: float = 30.0, max_concurrent: int = 5, max_items: int = 100) -> None:
        """Initialize RSS fetcher."""
        self.timeout = timeout
        self.max_concurrent = max_concurrent
        self.max_items = max_items

    async def fetch_feed(self, feed: FeedConfig) -> FeedResult:
        """Fetch and parse a single RSS feed."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                response = await client.get(feed.url)
                response.raise_for_status()

            parsed = feedparser.parse(response.text)

            if parsed.bozo and not parsed.entries:
                return FeedResult(
                    feed_id=feed.id,
                    feed_url=feed.url,
                    success=False,
                    error=f"Invalid RSS feed: {parsed.bozo_exception}",
                )

            fetched_at = pendulum.now("UTC")
            items = []
            for entry in parsed.entries[: self.max_items]:
                candidate = parse_entry(entry, feed.id, fetched_at)
                if candidate is not None:
                    items.append(candidate)

            return FeedResult(
                feed_id=feed.id,
                feed_url=feed.url,
                success=True,
                items=items,
                item_count=len(items),
            )

        except httpx.HTTPError as e:
            return FeedResult(
                feed_id=feed.id,
                feed_url=feed.url,
                success=False,
                error=f"HTTP error: {e}",
            )

    async def fetch_all_feeds(self, feeds: List[FeedConfig]) -> List[FeedResult]:
        """Fetch all enabled RSS feeds concurrently."""
        enabled_feeds = [f for f in feeds if f.enabled]

        if not enabled_feeds:
            return []

        semaphore = asyncio.Semaphore(self.max_concurrent)

        async def fetch_with_semaphore(feed: FeedConfig) -> FeedResult:
            async with semaphore:
                return await self.fetch_feed(feed)

        tasks = [fetch_with_semaphore(feed) for feed in enabled_feeds]
        return await asyncio.gather(*tasks)

