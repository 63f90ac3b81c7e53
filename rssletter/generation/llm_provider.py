"""LLM provider interface and implementations."""

import asyncio
import copy
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, List, Optional, Type

import openai
from openai import AsyncOpenAI
from pydantic import BaseModel
from pydantic_core import from_json

from ..errors import CapabilityError

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = """You are an expert newsletter editor. You turn RSS articles into a
concise, engaging newsletter.

Respond with a single JSON object that conforms to this JSON schema:
{schema}

Emit the fields in the order they appear in the schema."""


class LLMProvider(ABC):
    """Abstract base class for structured-generation providers."""

    @abstractmethod
    def stream_structured(self, prompt: str, schema: Type[BaseModel]) -> AsyncIterator[Dict[str, Any]]:
        """
        Generate an object shaped like schema, streaming partial results.

        Args:
            prompt: User prompt
            schema: Pydantic model describing the target object

        Returns:
            Async iterator of partial objects, each a superset of the
            previous; the last one is the final object

        Raises:
            CapabilityError: the backend failed
        """

    @abstractmethod
    def get_usage_stats(self) -> Dict:
        """Get usage statistics."""


def parse_partial_json(buffer: str) -> Optional[Dict[str, Any]]:
    """Parse a JSON object prefix; an unterminated trailing string is kept as-is."""
    try:
        value = from_json(buffer, allow_partial="trailing-strings")
    except ValueError:
        return None
    return value if isinstance(value, dict) else None


class OpenAIProvider(LLMProvider):
    """OpenAI implementation of LLM provider."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
        temperature: float = 0.4,
    ) -> None:
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Model name to use
            base_url: Custom base URL (for testing or compatible servers)
            temperature: Sampling temperature
        """
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        self.model = model
        self.temperature = temperature
        self.prompt_tokens = 0
        self.completion_tokens = 0
        self.api_calls = 0

        # Token cost estimates (per 1K tokens)
        self.cost_per_1k_tokens = {
            "gpt-4o": {"input": 0.0025, "output": 0.01},
            "gpt-4o-mini": {"input": 0.00015, "output": 0.0006},
            "gpt-4.1": {"input": 0.002, "output": 0.008},
            "gpt-4.1-mini": {"input": 0.0004, "output": 0.0016},
        }

    async def stream_structured(self, prompt: str, schema: Type[BaseModel]) -> AsyncIterator[Dict[str, Any]]:
        """Stream JSON from the chat completions API and parse it incrementally."""
        system = SYSTEM_PROMPT.format(schema=json.dumps(schema.model_json_schema(by_alias=True), indent=2))
        buffer = ""

        self.api_calls += 1
        try:
            stream = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
                response_format={"type": "json_object"},
                stream=True,
                stream_options={"include_usage": True},
            )
        except openai.OpenAIError as e:
            raise CapabilityError(f"OpenAI request failed: {e}") from e

        try:
            async for chunk in stream:
                if chunk.usage:
                    self.prompt_tokens += chunk.usage.prompt_tokens
                    self.completion_tokens += chunk.usage.completion_tokens

                if not chunk.choices:
                    continue

                delta = chunk.choices[0].delta.content
                if not delta:
                    continue

                buffer += delta
                partial = parse_partial_json(buffer)
                if partial:
                    yield partial
        except openai.OpenAIError as e:
            raise CapabilityError(f"OpenAI stream failed: {e}") from e
        finally:
            await stream.close()

        if not buffer.strip():
            raise CapabilityError("The model returned an empty response")

        try:
            final = from_json(buffer)
        except ValueError as e:
            raise CapabilityError(f"The model returned invalid JSON: {e}") from e

        if not isinstance(final, dict):
            raise CapabilityError("The model did not return a JSON object")

        yield final

    def get_usage_stats(self) -> Dict:
        """Get usage statistics."""
        estimated_cost = 0.0
        if self.model in self.cost_per_1k_tokens:
            rates = self.cost_per_1k_tokens[self.model]
            estimated_cost = (
                (self.prompt_tokens / 1000) * rates["input"]
                + (self.completion_tokens / 1000) * rates["output"]
            )

        return {
            "total_tokens": self.prompt_tokens + self.completion_tokens,
            "api_calls": self.api_calls,
            "estimated_cost": estimated_cost,
            "model": self.model,
        }


MOCK_NEWSLETTER: Dict[str, Any] = {
    "suggestedTitles": [
        "This Week Across Your Feeds",
        "The Stories Everyone Covered",
        "Signal Over Noise",
        "Your Weekly Briefing",
        "What Mattered This Week",
    ],
    "suggestedSubjectLines": [
        "Your weekly roundup is here",
        "5 stories you should not miss",
        "The week in review",
        "What your feeds agreed on",
        "Catch up in five minutes",
    ],
    "body": (
        "## Top stories\n\n"
        "The most widely reported stories of the week lead this issue.\n\n"
        "## Also worth reading\n\n"
        "A roundup of the remaining articles from your feeds."
    ),
    "topAnnouncements": [
        "Announcement one",
        "Announcement two",
        "Announcement three",
        "Announcement four",
        "Announcement five",
    ],
    "additionalInfo": "Generated by the mock provider.",
}


class MockLLMProvider(LLMProvider):
    """Mock LLM provider for testing and offline runs."""

    def __init__(
        self,
        newsletter: Optional[Dict[str, Any]] = None,
        chunk_delay: float = 0.0,
        fail_after: Optional[int] = None,
        stall_after: Optional[int] = None,
    ) -> None:
        """
        Initialize mock provider.

        Args:
            newsletter: Final object to stream (defaults to MOCK_NEWSLETTER)
            chunk_delay: Seconds to sleep before each partial
            fail_after: Raise CapabilityError after this many partials
            stall_after: Stop producing output after this many partials
        """
        self.newsletter = newsletter if newsletter is not None else MOCK_NEWSLETTER
        self.chunk_delay = chunk_delay
        self.fail_after = fail_after
        self.stall_after = stall_after
        self.calls: List[str] = []

    def _partials(self) -> List[Dict[str, Any]]:
        """Fill fields in order: list items one by one, strings in halves."""
        partials = []
        current: Dict[str, Any] = {}

        for key, value in self.newsletter.items():
            if isinstance(value, list):
                current[key] = []
                for element in value:
                    current[key].append(element)
                    partials.append(copy.deepcopy(current))
            elif isinstance(value, str) and len(value) > 1:
                current[key] = value[: len(value) // 2]
                partials.append(copy.deepcopy(current))
                current[key] = value
                partials.append(copy.deepcopy(current))
            else:
                current[key] = value
                partials.append(copy.deepcopy(current))

        return partials

    async def stream_structured(self, prompt: str, schema: Type[BaseModel]) -> AsyncIterator[Dict[str, Any]]:
        """Mock streaming generation."""
        self.calls.append(prompt)

        for index, partial in enumerate(self._partials()):
            if self.fail_after is not None and index >= self.fail_after:
                raise CapabilityError("Mock provider failure")
            if self.stall_after is not None and index >= self.stall_after:
                await asyncio.Event().wait()
            if self.chunk_delay:
                await asyncio.sleep(self.chunk_delay)
            yield partial

    def get_usage_stats(self) -> Dict:
        """Get mock usage statistics."""
        return {
            "total_tokens": len(self.calls) * 100,
            "api_calls": len(self.calls),
            "estimated_cost": 0.0,
            "model": "mock",
        }
