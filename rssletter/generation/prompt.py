"""Prompt building for newsletter generation."""

from typing import List

import pendulum

from ..ranking import ScoredArticle
from .models import NEWSLETTER_LIST_LENGTH, GenerationRequest


def _format_date(value) -> str:
    return pendulum.instance(value).format("MMM DD, YYYY")


def _truncate(text: str, max_chars: int) -> str:
    text = " ".join(text.split())
    if len(text) > max_chars:
        return text[:max_chars].rstrip() + "..."
    return text


def format_article_summaries(articles: List[ScoredArticle], max_content_chars: int = 1500) -> str:
    """Render articles for the model, most corroborated stories flagged."""
    blocks = []

    for index, item in enumerate(articles, 1):
        article = item.article
        lines = [f"{index}. {article.title}"]
        lines.append(f"   Published: {_format_date(article.pub_date)}")
        lines.append(f"   Reported by {item.source_count} feed(s)")
        lines.append(f"   Link: {article.link}")

        text = article.summary or article.content
        if text and max_content_chars > 0:
            lines.append(f"   Summary: {_truncate(text, max_content_chars)}")

        blocks.append("\n".join(lines))

    return "\n\n".join(blocks)


def build_newsletter_prompt(
    request: GenerationRequest,
    articles: List[ScoredArticle],
    max_content_chars: int = 1500,
) -> str:
    """Build the user prompt for one newsletter."""
    start = _format_date(request.start_date)
    end = _format_date(request.end_date)
    summaries = format_article_summaries(articles, max_content_chars)

    prompt = f"""Write a newsletter covering {len(articles)} articles published between {start} and {end}.

Articles reported by more feeds are more important; lead with them.

Articles:
{summaries}

Requirements:
- suggestedTitles: exactly {NEWSLETTER_LIST_LENGTH} newsletter title options
- suggestedSubjectLines: exactly {NEWSLETTER_LIST_LENGTH} email subject lines
- body: the full newsletter in Markdown, grouping related stories and linking sources
- topAnnouncements: exactly {NEWSLETTER_LIST_LENGTH} one-sentence highlights, most important first
- additionalInfo: optional notes for the editor"""

    if request.user_input:
        prompt += f"\n\nAdditional instructions from the editor:\n{request.user_input}"

    return prompt
