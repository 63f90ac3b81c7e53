"""API routers."""

from . import articles, health, newsletter

__all__ = ["articles", "health", "newsletter"]
