"""Windowed retrieval across feeds with importance scoring."""

import logging
from datetime import datetime
from typing import Iterable, List

from rich.console import Console
from rich.table import Table

from ..db.articles import ArticleStore
from ..models.base import as_utc
from .models import ScoredArticle

console = Console()
logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100


def _unique(feed_ids: Iterable[str]) -> List[str]:
    """De-duplicate while keeping the caller's order."""
    return list(dict.fromkeys(feed_ids))


class WindowedRetriever:
    """Select articles for a time window across an arbitrary set of feeds."""

    def __init__(self, store: ArticleStore) -> None:
        self.store = store

    def retrieve(
        self,
        feed_ids: Iterable[str],
        start_date: datetime,
        end_date: datetime,
        limit: int = DEFAULT_LIMIT,
    ) -> List[ScoredArticle]:
        """
        Fetch the newest articles seen through any of the feeds in the window.

        An article matches when its primary feed or any of its source feeds
        is in feed_ids and its pub_date lies in [start_date, end_date].
        Results are newest first, capped at limit, and each carries a
        source_count freshly computed from source_feed_ids.

        Args:
            feed_ids: Feeds to select from
            start_date: Window start (inclusive)
            end_date: Window end (inclusive)
            limit: Maximum number of articles returned

        Returns:
            Scored articles, most recent first
        """
        start_date, end_date = as_utc(start_date), as_utc(end_date)
        if start_date > end_date:
            raise ValueError(f"start_date {start_date} is after end_date {end_date}")

        feeds = _unique(feed_ids)
        if not feeds or limit <= 0:
            return []

        articles = self.store.query_by_feeds_and_window(feeds, start_date, end_date, limit)
        logger.debug(
            "Retrieved %d articles for %d feeds between %s and %s",
            len(articles),
            len(feeds),
            start_date,
            end_date,
        )
        return [ScoredArticle.from_article(article) for article in articles[:limit]]


def print_articles_table(scored: List[ScoredArticle]) -> None:
    """Print retrieved articles with their source counts."""
    table = Table(title=f"{len(scored)} articles")
    table.add_column("Published", style="yellow")
    table.add_column("Sources", style="green", justify="right")
    table.add_column("Title", style="cyan")
    table.add_column("Feeds", style="dim")

    for item in scored:
        table.add_row(
            item.article.pub_date.strftime("%Y-%m-%d %H:%M"),
            str(item.source_count),
            item.article.title,
            ", ".join(item.article.source_feed_ids),
        )

    console.print(table)
