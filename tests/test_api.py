"""Tests for the HTTP API."""

import json
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from rssletter.api import create_app
from rssletter.api.dependencies import DEFAULT_SESSION_ID, get_session
from rssletter.config import Config, ConfigModel
from rssletter.generation import MockLLMProvider
from rssletter.generation.llm_provider import MOCK_NEWSLETTER
from rssletter.pipeline import build_services

WINDOW = {"startDate": "2024-01-14T00:00:00Z", "endDate": "2024-01-16T00:00:00Z"}


def record(guid: str, feed_id: str, **overrides) -> dict:
    data = {
        "guid": guid,
        "feedId": feed_id,
        "title": f"Title of {guid}",
        "link": f"https://example.com/{guid}",
        "pubDate": "2024-01-15T12:00:00Z",
        "author": {"name": ["Ann", "Bo"]},
    }
    data.update(overrides)
    return data


@pytest.fixture
def services(tmp_path):
    config = Config(tmp_path / "config.yaml", config=ConfigModel(storage="memory"))
    return build_services(config, provider=MockLLMProvider())


@pytest.fixture
def client(services):
    with TestClient(create_app(services)) as client:
        yield client


def read_ndjson(response) -> list:
    return [json.loads(line) for line in response.text.splitlines() if line.strip()]


class TestHealth:
    def test_health(self, client) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["storage"] == "memory"
        assert response.json()["provider"] == "MockLLMProvider"


class TestArticles:
    def test_bulk_import_counts(self, client) -> None:
        response = client.post(
            "/api/articles/bulk",
            json=[record("abc", "f1"), record("abc", "f2", title="Other"), record("abc", "f1"), {"guid": "bad"}],
        )

        assert response.status_code == 200
        body = response.json()
        assert (body["created"], body["skipped"], body["errors"], body["total"]) == (3, 0, 1, 4)
        assert body["failedGuids"] == ["bad"]

    def test_list_articles_with_source_count(self, client) -> None:
        client.post("/api/articles/bulk", json=[record("abc", "f1"), record("abc", "f2", title="Other")])

        response = client.get("/api/articles", params={"feedId": ["f1"], **WINDOW})

        assert response.status_code == 200
        [article] = response.json()
        assert article["title"] == "Title of abc"
        assert article["sourceFeedIds"] == ["f1", "f2"]
        assert article["sourceCount"] == 2
        assert article["author"] == "Ann, Bo"

    def test_inverted_window_is_422(self, client) -> None:
        response = client.get(
            "/api/articles",
            params={"feedId": "f1", "startDate": WINDOW["endDate"], "endDate": WINDOW["startDate"]},
        )

        assert response.status_code == 422


class TestNewsletter:
    def test_prepare_counts_articles(self, client) -> None:
        client.post("/api/articles/bulk", json=[record("a", "f1"), record("b", "f2")])

        response = client.post("/api/newsletter/prepare", json={"feedIds": ["f1", "f2"], **WINDOW})

        assert response.status_code == 200
        assert response.json() == {"feedsToRefresh": 0, "articlesFound": 2}

    def test_malformed_request_is_422(self, client) -> None:
        response = client.post("/api/newsletter/prepare", json={"feedIds": [], **WINDOW})
        assert response.status_code == 422

        response = client.post("/api/newsletter/generate-stream", json={"startDate": "yesterday"})
        assert response.status_code == 422

    def test_generate_stream(self, client) -> None:
        client.post("/api/articles/bulk", json=[record("a", "f1"), record("a", "f2")])

        response = client.post("/api/newsletter/generate-stream", json={"feedIds": ["f1"], **WINDOW})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/x-ndjson")
        updates = read_ndjson(response)
        assert updates[0]["state"] == "preparing"
        assert updates[-1]["state"] == "complete"
        assert updates[-1]["newsletter"] == MOCK_NEWSLETTER
        assert updates[-1]["articlesFound"] == 1
        assert "streaming" in {u["state"] for u in updates}

    def test_generate_stream_empty_window_fails(self, client) -> None:
        response = client.post("/api/newsletter/generate-stream", json={"feedIds": ["f1"], **WINDOW})

        updates = read_ndjson(response)
        assert updates[-1]["state"] == "failed"
        assert updates[-1]["error"].startswith("Nothing to generate")

    def test_generate_stream_uses_client_session(self, client) -> None:
        client.post("/api/articles/bulk", json=[record("a", "f1")])

        response = client.post(
            "/api/newsletter/generate-stream",
            json={"feedIds": ["f1"], **WINDOW},
            headers={"X-Session-Id": "tab-1"},
        )

        assert read_ndjson(response)[-1]["state"] == "complete"
        assert set(client.app.state.sessions) == {"tab-1"}

    async def test_sessions_are_per_client(self, services) -> None:
        app = create_app(services)
        request = SimpleNamespace(app=app)

        first = await get_session(request, "tab-1")
        other = await get_session(request, "tab-2")

        assert await get_session(request, "tab-1") is first
        assert other is not first
        assert await get_session(request) is not first
        assert set(app.state.sessions) == {"tab-1", "tab-2", DEFAULT_SESSION_ID}

    def test_save_and_history(self, client) -> None:
        payload = {"feedIds": ["f1"], **WINDOW, "articleCount": 3, "newsletter": MOCK_NEWSLETTER}

        response = client.post("/api/newsletter/save", json=payload)

        assert response.status_code == 201
        saved = response.json()
        assert saved["id"] == 1
        assert saved["suggested_titles"] == MOCK_NEWSLETTER["suggestedTitles"]

        history = client.get("/api/newsletter/history").json()
        assert [item["id"] for item in history] == [1]

    def test_save_incomplete_is_422(self, client) -> None:
        newsletter = dict(MOCK_NEWSLETTER, suggestedTitles=MOCK_NEWSLETTER["suggestedTitles"][:4])
        payload = {"feedIds": ["f1"], **WINDOW, "newsletter": newsletter}

        response = client.post("/api/newsletter/save", json=payload)

        assert response.status_code == 422
        assert "suggestedTitles" in response.json()["detail"]
        assert client.get("/api/newsletter/history").json() == []
