"""Error kinds raised across ingestion, retrieval and generation."""

from typing import Optional


class RssletterError(Exception):
    """Base class for all rssletter errors."""


class NotFoundError(RssletterError):
    """A lookup found nothing."""


class DuplicateGuidError(RssletterError):
    """A concurrent create already stored an article with this guid."""

    def __init__(self, guid: str) -> None:
        super().__init__(f"Article with guid '{guid}' already exists")
        self.guid = guid


class NewsletterValidationError(RssletterError):
    """A newsletter does not satisfy the final shape at save time."""


class CapabilityError(RssletterError):
    """The structured-generation backend failed."""


class GenerationTimeoutError(RssletterError, TimeoutError):
    """The generation backend made no progress within the configured bound."""

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"No output from the model for {timeout_seconds:g} seconds")
        self.timeout_seconds = timeout_seconds


class GenerationCancelledError(RssletterError):
    """Generation was abandoned before it completed."""


class GenerationStateError(RssletterError):
    """An operation was attempted in the wrong generation state."""


GENERIC_ERROR_MESSAGE = "An unexpected error occurred during newsletter generation."


def describe_error(error: Optional[BaseException]) -> str:
    """Return a human-readable message for an error shown to end users."""
    if error is None:
        return GENERIC_ERROR_MESSAGE
    if isinstance(error, GenerationTimeoutError):
        return f"Newsletter generation timed out: {error}. Please try again."
    if isinstance(error, CapabilityError):
        return f"The AI model failed to generate the newsletter: {error}"
    if isinstance(error, NotFoundError):
        return f"Nothing to generate from: {error}"
    if isinstance(error, NewsletterValidationError):
        return f"The newsletter is incomplete and cannot be saved: {error}"
    if isinstance(error, GenerationCancelledError):
        return "Newsletter generation was cancelled."
    if isinstance(error, GenerationStateError):
        return str(error)
    return GENERIC_ERROR_MESSAGE
