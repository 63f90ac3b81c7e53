"""Saved newsletter storage."""

from abc import ABC, abstractmethod
from typing import List

from ..models import NewsletterRecord
from .connection import Database


class NewsletterStore(ABC):
    """Persistent storage for complete newsletters."""

    @abstractmethod
    def save_newsletter(self, record: NewsletterRecord) -> NewsletterRecord:
        """Persist a newsletter and return it with its id."""

    @abstractmethod
    def list_newsletters(self, limit: int = 20) -> List[NewsletterRecord]:
        """Most recently saved newsletters first."""


NEWSLETTER_COLUMNS = """
    id, feed_ids, start_date, end_date, user_input, article_count, suggested_titles,
    suggested_subject_lines, body, top_announcements, additional_info,
    created_at, updated_at
"""


class PostgresNewsletterStore(NewsletterStore):
    """Newsletter store backed by the newsletters table."""

    def __init__(self, database: Database) -> None:
        self.database = database

    def save_newsletter(self, record: NewsletterRecord) -> NewsletterRecord:
        with self.database.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    INSERT INTO newsletters (
                        feed_ids, start_date, end_date, user_input, article_count,
                        suggested_titles, suggested_subject_lines, body,
                        top_announcements, additional_info
                    ) VALUES (
                        %s::text[], %s, %s, %s, %s, %s::text[], %s::text[], %s, %s::text[], %s
                    )
                    RETURNING {NEWSLETTER_COLUMNS}
                    """,
                    (
                        list(record.feed_ids),
                        record.start_date,
                        record.end_date,
                        record.user_input,
                        record.article_count,
                        list(record.suggested_titles),
                        list(record.suggested_subject_lines),
                        record.body,
                        list(record.top_announcements),
                        record.additional_info,
                    ),
                )
                row = cur.fetchone()
        return NewsletterRecord.model_validate(row)

    def list_newsletters(self, limit: int = 20) -> List[NewsletterRecord]:
        with self.database.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    SELECT {NEWSLETTER_COLUMNS} FROM newsletters
                    ORDER BY created_at DESC, id DESC
                    LIMIT %s
                    """,
                    (limit,),
                )
                rows = cur.fetchall()
        return [NewsletterRecord.model_validate(row) for row in rows]
