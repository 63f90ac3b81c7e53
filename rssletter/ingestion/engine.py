"""Deduplicating ingestion of article observations."""

import logging
from typing import Any, Iterable, Mapping, Sequence, Tuple

from pydantic import ValidationError

from ..db.articles import ArticleStore
from ..errors import DuplicateGuidError
from ..models import Article
from .authors import normalize_author
from .models import ArticleCandidate, BulkOperationResult

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_AUTHOR = "Demo user"


class IngestionEngine:
    """Decide create-vs-merge for each observed article."""

    def __init__(self, store: ArticleStore, fallback_author: str = DEFAULT_FALLBACK_AUTHOR) -> None:
        """
        Initialize the engine.

        Args:
            store: Article store to read and mutate
            fallback_author: Author stored when none can be derived
        """
        self.store = store
        self.fallback_author = fallback_author

    def _build_article(self, candidate: ArticleCandidate) -> Article:
        """First observation of a guid."""
        return Article(
            guid=candidate.guid,
            primary_feed_id=candidate.feed_id,
            source_feed_ids=[candidate.feed_id],
            title=candidate.title,
            link=candidate.link,
            content=candidate.content,
            summary=candidate.summary,
            pub_date=candidate.pub_date,
            author=normalize_author(candidate.author) or self.fallback_author,
            categories=list(candidate.categories),
            image_url=candidate.image_url,
        )

    def _ingest(self, candidate: ArticleCandidate) -> Tuple[Article, bool]:
        """
        Ingest one candidate.

        Returns:
            Tuple of (article, raced), where raced means a concurrent create
            of the same guid won and this feed was merged into it
        """
        existing = self.store.find_by_guid(candidate.guid)

        if existing is None:
            try:
                return self.store.create_article(self._build_article(candidate)), False
            except DuplicateGuidError:
                # Another feed created it between our lookup and insert
                logger.debug("Lost create race for %s; merging feed %s", candidate.guid, candidate.feed_id)
                return self.store.append_source_feed(candidate.guid, candidate.feed_id), True
        elif candidate.feed_id in existing.source_feed_ids:
            return existing, False

        # Content fields always come from the first observation
        return self.store.append_source_feed(candidate.guid, candidate.feed_id), False

    def ingest_one(self, candidate: ArticleCandidate) -> Article:
        """Store a first observation, or record another feed for a known guid."""
        article, _ = self._ingest(candidate)
        return article

    def ingest_batch(self, candidates: Sequence[ArticleCandidate]) -> BulkOperationResult:
        """
        Ingest candidates one by one; a failure never stops the batch.

        Returns:
            Counts where created + skipped + errors == len(candidates)
        """
        result = BulkOperationResult()

        for candidate in candidates:
            try:
                _, raced = self._ingest(candidate)
            except Exception as e:
                result.errors += 1
                result.failed_guids.append(candidate.guid)
                logger.error("Failed to ingest article %s: %s", candidate.guid, e)
                continue

            if raced:
                result.skipped += 1
            else:
                result.created += 1

        return result


def import_records(engine: IngestionEngine, records: Iterable[Mapping[str, Any]]) -> BulkOperationResult:
    """
    Bulk import entry point for raw records from an upstream poller.

    Records that do not parse as candidates are counted as errors.
    """
    candidates = []
    invalid = BulkOperationResult()

    for record in records:
        try:
            candidates.append(ArticleCandidate.model_validate(record))
        except ValidationError as e:
            guid = str(record.get("guid", "<missing guid>")) if isinstance(record, Mapping) else "<invalid record>"
            invalid.errors += 1
            invalid.failed_guids.append(guid)
            logger.error("Rejected invalid article record %s: %s", guid, e)

    result = engine.ingest_batch(candidates)
    result.errors += invalid.errors
    result.failed_guids.extend(invalid.failed_guids)
    return result
