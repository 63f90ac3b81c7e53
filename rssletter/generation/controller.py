"""Streaming newsletter generation.

A GenerationController drives one request through

    IDLE -> PREPARING -> STREAMING -> COMPLETE
               |             |
               +-> FAILED <--+

Observers see every state change and every snapshot. Snapshots only ever
grow: a field once present is never removed, and lists and strings never
get shorter. The five-item shape of the final newsletter is not checked
while streaming; that happens when saving.
"""

import asyncio
import logging
import threading
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Set

from pydantic import ValidationError

from ..db.newsletters import NewsletterStore
from ..errors import (
    CapabilityError,
    GenerationCancelledError,
    GenerationStateError,
    GenerationTimeoutError,
    NotFoundError,
    describe_error,
)
from ..models import NewsletterRecord
from ..ranking import ScoredArticle, WindowedRetriever
from .llm_provider import LLMProvider
from .models import GenerationRequest, GenerationState, GenerationUpdate, NewsletterDraft, PrepareResult
from .preparation import GenerationPreparer
from .prompt import build_newsletter_prompt
from .saving import save_generated_newsletter

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    GenerationState.IDLE: {GenerationState.PREPARING},
    GenerationState.PREPARING: {GenerationState.STREAMING, GenerationState.FAILED},
    GenerationState.STREAMING: {GenerationState.COMPLETE, GenerationState.FAILED},
    GenerationState.COMPLETE: set(),
    GenerationState.FAILED: set(),
}


def _merge_value(old: Any, new: Any) -> Any:
    if new is None:
        return old
    if old is None:
        return new
    if isinstance(old, str) and isinstance(new, str):
        return new if len(new) >= len(old) else old
    if isinstance(old, list) and isinstance(new, list):
        merged = [_merge_value(o, n) for o, n in zip(old, new)]
        longer = old if len(old) > len(new) else new
        return merged + longer[len(merged):]
    return new


def merge_snapshot(previous: Dict[str, Any], partial: Dict[str, Any]) -> Dict[str, Any]:
    """Fold a partial object into the previous snapshot without retracting anything."""
    merged = dict(previous)
    for key, value in partial.items():
        merged[key] = _merge_value(merged.get(key), value)
    return merged


class GenerationObserver:
    """Receives generation events. Override the hooks you need."""

    def on_state(self, state: GenerationState) -> None:
        pass

    def on_snapshot(self, snapshot: NewsletterDraft) -> None:
        pass

    def on_complete(self, result: NewsletterDraft) -> None:
        pass

    def on_error(self, error: BaseException, message: str) -> None:
        pass


class _QueueObserver(GenerationObserver):
    """Turns controller events into GenerationUpdates on a queue."""

    def __init__(self, controller: "GenerationController", queue: "asyncio.Queue[GenerationUpdate]") -> None:
        self.controller = controller
        self.queue = queue

    def on_state(self, state: GenerationState) -> None:
        self.queue.put_nowait(self.controller.current_update())

    def on_snapshot(self, snapshot: NewsletterDraft) -> None:
        self.queue.put_nowait(self.controller.current_update())


async def _next_partial(iterator: AsyncIterator[Dict[str, Any]]) -> Dict[str, Any]:
    return await iterator.__anext__()


class GenerationController:
    """Runs one generation request as a single asyncio task."""

    def __init__(
        self,
        request: GenerationRequest,
        retriever: WindowedRetriever,
        provider: LLMProvider,
        preparer: Optional[GenerationPreparer] = None,
        timeout_seconds: float = 120.0,
        article_limit: int = 100,
        max_content_chars: int = 1500,
    ) -> None:
        """
        Initialize the controller.

        Args:
            request: Feeds, window and instructions to generate from
            retriever: Windowed retriever for the request's articles
            provider: Structured-generation backend
            preparer: Optional prepare phase (feed refresh); failures are ignored
            timeout_seconds: Max wait for the next streamed chunk
            article_limit: Max articles included in the prompt
            max_content_chars: Per-article content included in the prompt
        """
        self.request = request
        self.retriever = retriever
        self.provider = provider
        self.preparer = preparer
        self.timeout_seconds = timeout_seconds
        self.article_limit = article_limit
        self.max_content_chars = max_content_chars

        self.state = GenerationState.IDLE
        self.snapshot: Optional[NewsletterDraft] = None
        self.result: Optional[NewsletterDraft] = None
        self.error: Optional[BaseException] = None
        self.preparation: Optional[PrepareResult] = None
        self.article_count: Optional[int] = None

        self._raw: Dict[str, Any] = {}
        self._observers: List[GenerationObserver] = []
        self._task: Optional["asyncio.Task[Optional[NewsletterDraft]]"] = None
        self._consumers = 0

    @property
    def error_message(self) -> Optional[str]:
        if self.state != GenerationState.FAILED:
            return None
        return describe_error(self.error)

    def subscribe(self, observer: GenerationObserver) -> None:
        self._observers.append(observer)

    def unsubscribe(self, observer: GenerationObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def _notify(self, hook: str, *args: Any) -> None:
        for observer in list(self._observers):
            try:
                getattr(observer, hook)(*args)
            except Exception:
                logger.exception("Generation observer %r failed in %s", observer, hook)

    def _transition(self, state: GenerationState) -> None:
        if state not in ALLOWED_TRANSITIONS[self.state]:
            raise GenerationStateError(f"Cannot move from {self.state.value} to {state.value}")
        logger.debug("Generation %s: %s -> %s", self.request.key[:8], self.state.value, state.value)
        self.state = state
        self._notify("on_state", state)

    def _fail(self, error: BaseException) -> None:
        if self.state.is_terminal:
            return
        self.error = error
        self._transition(GenerationState.FAILED)
        message = describe_error(error)
        if isinstance(error, GenerationCancelledError):
            logger.info("Generation cancelled")
        else:
            logger.error("Generation failed: %s", error)
        self._notify("on_error", error, message)

    def _apply_partial(self, partial: Dict[str, Any]) -> bool:
        merged = merge_snapshot(self._raw, partial)
        try:
            snapshot = NewsletterDraft.model_validate(merged)
        except ValidationError as e:
            logger.debug("Skipping malformed partial output: %s", e)
            return False

        self._raw = merged
        self.snapshot = snapshot
        self._notify("on_snapshot", snapshot)
        return True

    async def _prepare(self) -> List[ScoredArticle]:
        if self.preparer is not None:
            try:
                self.preparation = await self.preparer.prepare(self.request)
            except Exception as e:
                logger.warning("Preparation failed; generating from stored articles: %s", e)

        articles = await asyncio.to_thread(
            self.retriever.retrieve,
            self.request.feed_ids,
            self.request.start_date,
            self.request.end_date,
            self.article_limit,
        )
        if not articles:
            raise NotFoundError("no articles were published in the selected feeds and date range")

        self.article_count = len(articles)
        return articles

    async def _stream(self, prompt: str) -> NewsletterDraft:
        iterator = self.provider.stream_structured(prompt, NewsletterDraft)
        last_valid = False

        try:
            while True:
                try:
                    partial = await asyncio.wait_for(_next_partial(iterator), timeout=self.timeout_seconds)
                except StopAsyncIteration:
                    break
                except asyncio.TimeoutError:
                    raise GenerationTimeoutError(self.timeout_seconds) from None

                if not isinstance(partial, dict):
                    logger.debug("Ignoring non-object output: %r", partial)
                    last_valid = False
                    continue

                last_valid = self._apply_partial(partial)
        finally:
            await iterator.aclose()

        if self.snapshot is None:
            raise CapabilityError("The model produced no output")
        if not last_valid:
            raise CapabilityError("The model's final output did not match the newsletter format")

        return self.snapshot

    async def _execute(self) -> Optional[NewsletterDraft]:
        try:
            articles = await self._prepare()
            prompt = build_newsletter_prompt(self.request, articles, self.max_content_chars)

            self._transition(GenerationState.STREAMING)
            result = await self._stream(prompt)
        except asyncio.CancelledError:
            self._fail(GenerationCancelledError("generation was cancelled"))
            raise
        except Exception as e:
            self._fail(e)
            return None

        self.result = result
        self._transition(GenerationState.COMPLETE)
        logger.info("Generation complete from %d articles", self.article_count)
        self._notify("on_complete", result)
        return result

    async def run(self) -> Optional[NewsletterDraft]:
        """
        Run generation to completion in the current task.

        Returns:
            The final newsletter, or None if generation failed (see error)
        """
        self._transition(GenerationState.PREPARING)
        return await self._execute()

    def _on_task_done(self, task: "asyncio.Task[Optional[NewsletterDraft]]") -> None:
        # Cancelled before the coroutine ever ran
        if task.cancelled() and not self.state.is_terminal:
            self._fail(GenerationCancelledError("generation was cancelled"))

    def start(self) -> "asyncio.Task[Optional[NewsletterDraft]]":
        """Start generation in a background task. Repeated calls return the same task."""
        if self._task is None:
            self._transition(GenerationState.PREPARING)
            self._task = asyncio.create_task(self._execute())
            self._task.add_done_callback(self._on_task_done)
        return self._task

    @property
    def task(self) -> Optional["asyncio.Task[Optional[NewsletterDraft]]"]:
        return self._task

    def cancel(self) -> bool:
        """Abandon the in-flight generation. Nothing is persisted."""
        if self._task is None or self.state.is_terminal:
            return False
        return self._task.cancel()

    def current_update(self) -> GenerationUpdate:
        return GenerationUpdate(
            state=self.state,
            newsletter=self.snapshot.to_public() if self.snapshot else {},
            error=self.error_message,
            articles_found=self.article_count,
        )

    async def updates(self) -> AsyncIterator[GenerationUpdate]:
        """
        Yield the current update, then one per state change or snapshot.

        Starts generation if needed. Stops after the terminal update;
        closing the iterator early cancels generation once no other
        consumer is still iterating.
        """
        queue: "asyncio.Queue[GenerationUpdate]" = asyncio.Queue()
        observer = _QueueObserver(self, queue)
        self.subscribe(observer)
        self._consumers += 1

        try:
            if self.state == GenerationState.IDLE:
                self.start()

            current = self.current_update()
            yield current
            if current.state.is_terminal:
                return

            while True:
                update = await queue.get()
                yield update
                if update.state.is_terminal:
                    return
        finally:
            self.unsubscribe(observer)
            self._consumers -= 1
            if self._consumers == 0:
                self.cancel()

    def save(self, store: NewsletterStore) -> NewsletterRecord:
        """
        Persist the completed newsletter.

        Raises:
            GenerationStateError: generation has not completed
            NewsletterValidationError: the result is not a complete newsletter
        """
        if self.state != GenerationState.COMPLETE or self.result is None:
            raise GenerationStateError(f"Only a complete newsletter can be saved (state: {self.state.value})")

        return save_generated_newsletter(
            store,
            self.result,
            feed_ids=self.request.feed_ids,
            start_date=self.request.start_date,
            end_date=self.request.end_date,
            user_input=self.request.user_input,
            article_count=self.article_count or 0,
        )


class StartLatch:
    """Remembers which request keys have fired."""

    def __init__(self) -> None:
        self._fired: Set[str] = set()
        self._lock = threading.Lock()

    def try_fire(self, key: str) -> bool:
        """Return True the first time a key is seen, False afterwards."""
        with self._lock:
            if key in self._fired:
                return False
            self._fired.add(key)
            return True

    def release(self, key: str) -> None:
        with self._lock:
            self._fired.discard(key)


class GenerationSession:
    """Starts at most one generation per request at a time.

    A repeated start for a request that is still running returns the
    running controller. Once it finishes, the same request may run again.
    One session belongs to one client; the API keeps one per X-Session-Id.
    """

    def __init__(self, controller_factory: Callable[[GenerationRequest], GenerationController]) -> None:
        self.controller_factory = controller_factory
        self.latch = StartLatch()
        self._controllers: Dict[str, GenerationController] = {}

    def _release(self, key: str, controller: GenerationController) -> None:
        if self._controllers.get(key) is controller:
            del self._controllers[key]
            self.latch.release(key)

    def start(self, request: GenerationRequest) -> GenerationController:
        key = request.key
        if not self.latch.try_fire(key):
            return self._controllers[key]

        try:
            controller = self.controller_factory(request)
        except Exception:
            self.latch.release(key)
            raise

        self._controllers[key] = controller
        task = controller.start()
        task.add_done_callback(lambda _: self._release(key, controller))
        return controller

    def close(self) -> None:
        """Cancel every generation still running."""
        for controller in list(self._controllers.values()):
            controller.cancel()
