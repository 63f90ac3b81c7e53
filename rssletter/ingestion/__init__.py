"""RSS ingestion and cross-feed deduplication."""

from .authors import normalize_author
from .engine import IngestionEngine, import_records
from .models import ArticleCandidate, BulkOperationResult, FeedResult
from .refresh import FeedRefresher, RSSFeedRefresher
from .rss_fetcher import RSSFetcher

__all__ = [
    "ArticleCandidate",
    "BulkOperationResult",
    "FeedRefresher",
    "FeedResult",
    "IngestionEngine",
    "RSSFeedRefresher",
    "RSSFetcher",
    "import_records",
    "normalize_author",
]
