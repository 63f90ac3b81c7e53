"""Save boundary: the only place the final newsletter shape is enforced."""

import logging
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional, Union

from pydantic import ValidationError

from ..db.newsletters import NewsletterStore
from ..errors import NewsletterValidationError
from ..models import NewsletterRecord
from ..models.base import as_utc
from .models import GeneratedNewsletter, NewsletterDraft

logger = logging.getLogger(__name__)


def _format_validation_error(error: ValidationError) -> str:
    problems = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"]) or "newsletter"
        problems.append(f"{location}: {detail['msg']}")
    return "; ".join(problems)


def validate_newsletter(newsletter: Union[Mapping[str, Any], NewsletterDraft]) -> GeneratedNewsletter:
    """
    Check a newsletter against the strict final shape.

    Raises:
        NewsletterValidationError: any field is missing or a list is not
            exactly five items long
    """
    if isinstance(newsletter, NewsletterDraft):
        newsletter = newsletter.to_public()

    try:
        return GeneratedNewsletter.model_validate(newsletter)
    except ValidationError as e:
        raise NewsletterValidationError(_format_validation_error(e)) from e


def save_generated_newsletter(
    store: NewsletterStore,
    newsletter: Union[Mapping[str, Any], NewsletterDraft],
    feed_ids: Iterable[str],
    start_date: datetime,
    end_date: datetime,
    user_input: Optional[str] = None,
    article_count: int = 0,
) -> NewsletterRecord:
    """
    Validate and persist a generated newsletter.

    Nothing is truncated or padded; an invalid newsletter never reaches
    the store.

    Returns:
        The stored record, with its id
    """
    validated = validate_newsletter(newsletter)

    record = NewsletterRecord(
        feed_ids=list(feed_ids),
        start_date=as_utc(start_date),
        end_date=as_utc(end_date),
        user_input=user_input,
        article_count=article_count,
        suggested_titles=validated.suggested_titles,
        suggested_subject_lines=validated.suggested_subject_lines,
        body=validated.body,
        top_announcements=validated.top_announcements,
        additional_info=validated.additional_info,
    )

    saved = store.save_newsletter(record)
    logger.info("Saved newsletter %s for feeds %s", saved.id, ", ".join(saved.feed_ids))
    return saved
