"""rssletter - multi-feed RSS deduplication and AI newsletter generation."""

__version__ = "0.1.0"
