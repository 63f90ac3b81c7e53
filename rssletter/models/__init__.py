"""Data models for rssletter."""

from .article import Article
from .feed import Feed
from .newsletter import NewsletterRecord

__all__ = ["Article", "Feed", "NewsletterRecord"]
