"""Configuration loader."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from .models import ConfigModel, FeedConfig

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "RSSLETTER_CONFIG"


def default_config_path() -> Path:
    """Config path from RSSLETTER_CONFIG, else ~/.config/rssletter/config.yaml."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".config" / "rssletter" / "config.yaml"


class Config:
    """Configuration manager."""

    def __init__(self, config_path: Optional[Path] = None, config: Optional[ConfigModel] = None) -> None:
        """Initialize config manager. An explicit model skips loading from disk."""
        if config_path is None:
            config_path = default_config_path()
        self.config_path = config_path
        self._config: Optional[ConfigModel] = config

    @property
    def config(self) -> ConfigModel:
        """Get loaded config."""
        if self._config is None:
            self._config = load_config(self.config_path)
        return self._config

    @property
    def feeds_path(self) -> Path:
        """feeds.yaml lives next to config.yaml."""
        return self.config_path.parent / "feeds.yaml"

    def get_feeds(self) -> List[FeedConfig]:
        """Load configured feeds; a missing feeds file means no feeds."""
        try:
            return load_feeds(self.feeds_path)
        except FileNotFoundError:
            logger.warning("Feeds file not found: %s", self.feeds_path)
            return []

    def get_db_config(self) -> Dict[str, Any]:
        """Get database configuration dict."""
        db_config = self.config.postgres.model_dump()

        # Handle password from environment if specified
        if db_config.get("password_env"):
            password = os.environ.get(db_config["password_env"])
            if password:
                db_config["password"] = password

        return db_config

    def get_llm_config(self) -> Dict[str, Any]:
        """Get LLM configuration dict."""
        llm_config = self.config.llm.model_dump()

        # Handle API key from environment if specified
        if llm_config.get("api_key_env"):
            api_key = os.environ.get(llm_config["api_key_env"])
            if api_key:
                llm_config["api_key"] = api_key

        return llm_config


def load_config(config_path: Path) -> ConfigModel:
    """Load configuration from YAML file."""
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path) as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            config_data = {}

        return ConfigModel(**config_data)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}")
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}")


def load_feeds(feeds_path: Path) -> List[FeedConfig]:
    """Load feeds from YAML file."""
    if not feeds_path.exists():
        raise FileNotFoundError(f"Feeds file not found: {feeds_path}")

    try:
        with open(feeds_path) as f:
            feeds_data = yaml.safe_load(f)

        if feeds_data is None or "feeds" not in feeds_data:
            return []

        feeds = []
        for feed_data in feeds_data["feeds"]:
            try:
                feeds.append(FeedConfig(**feed_data))
            except ValidationError as e:
                logger.warning("Skipping invalid feed %s: %s", feed_data.get("id", "unknown"), e)

        return feeds
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in feeds file: {e}")


def save_config(config: ConfigModel, config_path: Path) -> None:
    """Save configuration to YAML file."""
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        yaml.dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)


def save_feeds(feeds: List[FeedConfig], feeds_path: Path) -> None:
    """Save feeds to YAML file."""
    feeds_path.parent.mkdir(parents=True, exist_ok=True)

    feeds_data = {"feeds": [feed.model_dump() for feed in feeds]}

    with open(feeds_path, "w") as f:
        yaml.dump(feeds_data, f, default_flow_style=False, sort_keys=False)
