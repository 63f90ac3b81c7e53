"""Ranking models."""

from pydantic import BaseModel, Field

from ..models import Article


class ScoredArticle(BaseModel):
    """An article annotated with its corroboration breadth."""

    article: Article = Field(..., description="Stored article")
    source_count: int = Field(..., description="Distinct feeds the article was observed through", ge=1)

    @classmethod
    def from_article(cls, article: Article) -> "ScoredArticle":
        return cls(article=article, source_count=len(article.source_feed_ids))
