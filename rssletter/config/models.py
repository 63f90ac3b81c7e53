"""Configuration models."""

from typing import Optional

from pydantic import BaseModel, Field


class PostgresConfig(BaseModel):
    """Postgres configuration."""

    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    database: str = Field("rssletter", description="Database name")
    user: str = Field("rssletter", description="Database user")
    password: Optional[str] = Field(None, description="Database password")
    password_env: Optional[str] = Field(None, description="Environment variable for password")


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: str = Field("openai", description="LLM provider (openai, mock)")
    model: str = Field("gpt-4o-mini", description="Model name")
    api_key_env: Optional[str] = Field("OPENAI_API_KEY", description="Environment variable for API key")
    api_key: Optional[str] = Field(None, description="API key (prefer api_key_env)")
    base_url: Optional[str] = Field(None, description="Base URL for API (e.g., for Ollama)")
    temperature: float = Field(0.4, ge=0.0, le=2.0)


class IngestionConfig(BaseModel):
    """Ingestion and feed refresh settings."""

    fallback_author: str = Field("Demo user", description="Author stored when none can be derived")
    fetch_timeout: float = Field(30.0, description="Feed HTTP timeout in seconds", gt=0)
    max_items_per_feed: int = Field(100, description="Max items taken from one poll", ge=1)


class GenerationConfig(BaseModel):
    """Newsletter generation settings."""

    article_limit: int = Field(100, description="Max articles fed to the model", ge=1, le=1000)
    timeout_seconds: float = Field(
        120.0,
        description="Seconds to wait for the next streamed chunk before failing",
        gt=0,
    )
    max_concurrent_refresh: int = Field(5, description="Parallel feed refreshes during prepare", ge=1)
    max_content_chars: int = Field(1500, description="Per-article content included in the prompt", ge=0)


class ServerConfig(BaseModel):
    """HTTP server settings."""

    host: str = Field("127.0.0.1")
    port: int = Field(8000)


class ConfigModel(BaseModel):
    """Main configuration model."""

    storage: str = Field("postgres", description="Storage backend (postgres, memory)")
    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    log_level: str = Field("INFO")


class FeedConfig(BaseModel):
    """Feed configuration from feeds.yaml."""

    id: str = Field(..., description="Stable feed identifier")
    name: str = Field(..., description="Feed name")
    url: str = Field(..., description="RSS feed URL")
    enabled: bool = Field(True, description="Whether feed is enabled")
    refresh_interval_minutes: int = Field(60, description="Minimum minutes between polls", ge=1)
