"""Article retrieval and importance scoring."""

from .models import ScoredArticle
from .retrieval import DEFAULT_LIMIT, WindowedRetriever, print_articles_table

__all__ = [
    "DEFAULT_LIMIT",
    "ScoredArticle",
    "WindowedRetriever",
    "print_articles_table",
]
