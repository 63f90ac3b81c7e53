"""Wire stores, ingestion, retrieval and generation together from config."""

import logging
from dataclasses import dataclass
from typing import Optional

from ..config import Config
from ..db import (
    ArticleStore,
    Database,
    FeedManager,
    FeedStateStore,
    InMemoryArticleStore,
    InMemoryFeedState,
    InMemoryNewsletterStore,
    NewsletterStore,
    PostgresArticleStore,
    PostgresNewsletterStore,
)
from ..generation import (
    GenerationController,
    GenerationPreparer,
    GenerationRequest,
    GenerationSession,
    LLMProvider,
    MockLLMProvider,
    OpenAIProvider,
)
from ..ingestion import IngestionEngine, RSSFeedRefresher, RSSFetcher
from ..ranking import WindowedRetriever

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything one process needs, built once from config."""

    config: Config
    article_store: ArticleStore
    newsletter_store: NewsletterStore
    feed_state: FeedStateStore
    engine: IngestionEngine
    retriever: WindowedRetriever
    fetcher: RSSFetcher
    refresher: RSSFeedRefresher
    preparer: GenerationPreparer
    provider: LLMProvider
    database: Optional[Database] = None

    def new_controller(self, request: GenerationRequest) -> GenerationController:
        generation = self.config.config.generation
        return GenerationController(
            request,
            retriever=self.retriever,
            provider=self.provider,
            preparer=self.preparer,
            timeout_seconds=generation.timeout_seconds,
            article_limit=generation.article_limit,
            max_content_chars=generation.max_content_chars,
        )

    def new_session(self) -> GenerationSession:
        return GenerationSession(self.new_controller)

    def close(self) -> None:
        if self.database is not None:
            self.database.close()


def get_llm_provider(config: Config) -> LLMProvider:
    """Get configured LLM provider."""
    llm_config = config.get_llm_config()

    if llm_config.get("provider") == "openai":
        api_key = llm_config.get("api_key")
        if not api_key:
            logger.warning("No OpenAI API key found. Using mock LLM provider.")
            return MockLLMProvider()

        return OpenAIProvider(
            api_key=api_key,
            model=llm_config.get("model", "gpt-4o-mini"),
            base_url=llm_config.get("base_url"),
            temperature=llm_config.get("temperature", 0.4),
        )
    elif llm_config.get("provider") == "mock":
        return MockLLMProvider()
    else:
        logger.warning("Unknown LLM provider %r. Using mock provider.", llm_config.get("provider"))
        return MockLLMProvider()


def build_services(config: Config, provider: Optional[LLMProvider] = None) -> Services:
    """
    Build the service graph for the configured storage backend.

    Args:
        config: Loaded configuration
        provider: Overrides the configured LLM provider (tests, demos)
    """
    settings = config.config
    feeds = config.get_feeds()
    database = None

    if settings.storage == "memory":
        article_store: ArticleStore = InMemoryArticleStore()
        newsletter_store: NewsletterStore = InMemoryNewsletterStore()
        feed_state: FeedStateStore = InMemoryFeedState()
    elif settings.storage == "postgres":
        database = Database(config.get_db_config())
        article_store = PostgresArticleStore(database)
        newsletter_store = PostgresNewsletterStore(database)
        feed_manager = FeedManager(database)
        feed_manager.sync_feeds(feeds)
        feed_state = feed_manager
    else:
        raise ValueError(f"Unknown storage backend: {settings.storage}")

    engine = IngestionEngine(article_store, fallback_author=settings.ingestion.fallback_author)
    retriever = WindowedRetriever(article_store)
    fetcher = RSSFetcher(
        timeout=settings.ingestion.fetch_timeout,
        max_concurrent=settings.generation.max_concurrent_refresh,
        max_items=settings.ingestion.max_items_per_feed,
    )
    refresher = RSSFeedRefresher(feeds, fetcher, engine, feed_state)
    preparer = GenerationPreparer(
        retriever,
        refresher,
        max_concurrent_refresh=settings.generation.max_concurrent_refresh,
        article_limit=settings.generation.article_limit,
    )

    logger.debug("Built services with %s storage and %d feeds", settings.storage, len(feeds))

    return Services(
        config=config,
        article_store=article_store,
        newsletter_store=newsletter_store,
        feed_state=feed_state,
        engine=engine,
        retriever=retriever,
        fetcher=fetcher,
        refresher=refresher,
        preparer=preparer,
        provider=provider or get_llm_provider(config),
        database=database,
    )
