"""Tests for rssletter.config."""

import pytest

from rssletter.config import (
    Config,
    ConfigModel,
    FeedConfig,
    load_config,
    load_feeds,
    save_config,
    save_feeds,
)
from rssletter.generation import MockLLMProvider, OpenAIProvider
from rssletter.pipeline import build_services, get_llm_provider


class TestConfigLoader:
    def test_defaults(self) -> None:
        config = ConfigModel()

        assert config.storage == "postgres"
        assert config.ingestion.fallback_author == "Demo user"
        assert config.generation.article_limit == 100
        assert config.generation.timeout_seconds == 120.0

    def test_round_trip_through_yaml(self, tmp_path) -> None:
        path = tmp_path / "config.yaml"
        save_config(ConfigModel(storage="memory", generation={"timeout_seconds": 30}), path)

        loaded = load_config(path)

        assert loaded.storage == "memory"
        assert loaded.generation.timeout_seconds == 30

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("storage: [unclosed")

        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config(path)

    def test_invalid_values(self, tmp_path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("generation:\n  timeout_seconds: -1\n")

        with pytest.raises(ValueError, match="Invalid configuration"):
            load_config(path)

    def test_empty_file_uses_defaults(self, tmp_path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("")

        assert load_config(path).storage == "postgres"

    def test_env_path(self, tmp_path, monkeypatch) -> None:
        path = tmp_path / "custom.yaml"
        monkeypatch.setenv("RSSLETTER_CONFIG", str(path))

        assert Config().config_path == path


class TestFeeds:
    def test_invalid_feeds_are_skipped(self, tmp_path) -> None:
        path = tmp_path / "feeds.yaml"
        path.write_text(
            "feeds:\n"
            "  - id: f1\n    name: One\n    url: https://one.example/rss\n"
            "  - name: No id\n    url: https://two.example/rss\n"
        )

        feeds = load_feeds(path)

        assert [f.id for f in feeds] == ["f1"]

    def test_feeds_live_next_to_config(self, tmp_path) -> None:
        config = Config(tmp_path / "config.yaml")
        save_feeds([FeedConfig(id="f1", name="One", url="https://one.example/rss")], config.feeds_path)

        assert [f.id for f in config.get_feeds()] == ["f1"]

    def test_missing_feeds_file_is_empty(self, tmp_path) -> None:
        assert Config(tmp_path / "config.yaml").get_feeds() == []


class TestSecrets:
    def test_api_key_from_env(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("MY_KEY", "sk-test")
        config = Config(tmp_path / "config.yaml", config=ConfigModel(llm={"api_key_env": "MY_KEY"}))

        assert config.get_llm_config()["api_key"] == "sk-test"
        assert isinstance(get_llm_provider(config), OpenAIProvider)

    def test_no_api_key_falls_back_to_mock(self, tmp_path, monkeypatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        config = Config(tmp_path / "config.yaml", config=ConfigModel())

        assert isinstance(get_llm_provider(config), MockLLMProvider)

    def test_password_from_env(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("DB_PW", "secret")
        config = Config(tmp_path / "config.yaml", config=ConfigModel(postgres={"password_env": "DB_PW"}))

        assert config.get_db_config()["password"] == "secret"


class TestBuildServices:
    def test_memory_backend(self, tmp_path) -> None:
        config = Config(tmp_path / "config.yaml", config=ConfigModel(storage="memory", llm={"provider": "mock"}))

        services = build_services(config)

        assert isinstance(services.provider, MockLLMProvider)
        assert services.engine.store is services.article_store
        assert services.database is None

    def test_unknown_backend(self, tmp_path) -> None:
        config = Config(tmp_path / "config.yaml", config=ConfigModel(storage="sqlite"))

        with pytest.raises(ValueError):
            build_services(config)
