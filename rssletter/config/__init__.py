"""Configuration management for rssletter."""

from .loader import Config, default_config_path, load_config, load_feeds, save_config, save_feeds
from .models import (
    ConfigModel,
    FeedConfig,
    GenerationConfig,
    IngestionConfig,
    LLMConfig,
    PostgresConfig,
    ServerConfig,
)

__all__ = [
    "Config",
    "ConfigModel",
    "FeedConfig",
    "GenerationConfig",
    "IngestionConfig",
    "LLMConfig",
    "PostgresConfig",
    "ServerConfig",
    "default_config_path",
    "load_config",
    "load_feeds",
    "save_config",
    "save_feeds",
]
