"""Newsletter preparation, streaming generation and saving."""

from .controller import (
    GenerationController,
    GenerationObserver,
    GenerationSession,
    StartLatch,
    merge_snapshot,
)
from .llm_provider import LLMProvider, MockLLMProvider, OpenAIProvider
from .models import (
    NEWSLETTER_LIST_LENGTH,
    GeneratedNewsletter,
    GenerationRequest,
    GenerationState,
    GenerationUpdate,
    NewsletterDraft,
    PrepareResult,
)
from .preparation import GenerationPreparer
from .prompt import build_newsletter_prompt
from .saving import save_generated_newsletter, validate_newsletter

__all__ = [
    "NEWSLETTER_LIST_LENGTH",
    "LLMProvider",
    "OpenAIProvider",
    "MockLLMProvider",
    "GenerationRequest",
    "NewsletterDraft",
    "GeneratedNewsletter",
    "PrepareResult",
    "GenerationState",
    "GenerationUpdate",
    "GenerationPreparer",
    "GenerationController",
    "GenerationObserver",
    "GenerationSession",
    "StartLatch",
    "merge_snapshot",
    "build_newsletter_prompt",
    "save_generated_newsletter",
    "validate_newsletter",
]
