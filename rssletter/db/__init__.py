"""Storage for rssletter."""

from .articles import ArticleStore, PostgresArticleStore
from .connection import Database
from .feeds import FeedManager, FeedStateStore
from .init import init_database, validate_connection
from .memory import InMemoryArticleStore, InMemoryFeedState, InMemoryNewsletterStore
from .newsletters import NewsletterStore, PostgresNewsletterStore

__all__ = [
    "ArticleStore",
    "Database",
    "FeedManager",
    "FeedStateStore",
    "InMemoryArticleStore",
    "InMemoryFeedState",
    "InMemoryNewsletterStore",
    "NewsletterStore",
    "PostgresArticleStore",
    "PostgresNewsletterStore",
    "init_database",
    "validate_connection",
]
