"""
tests.test_api

HTTP surface tests: the app runs its real lifespan with an injected in-memory
store, a scripted model provider and a mocked outbound HTTP client.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from typing import Any

import httpx
import pytest
import pytest_asyncio

from dreamer_watch.api.app import create_app
from dreamer_watch.llm.base import ChatModel, ModelConfigError
from dreamer_watch.llm.registry import MODELS, ModelInfo
from dreamer_watch.settings import Settings
from dreamer_watch.store.memory import MemoryStore
from dreamer_watch.store.repositories.search_cache import SearchCacheRepo, search_cache_key
from tests.fakes import RELATED, ScriptedModel


class FakeModels:
    def __init__(self) -> None:
        self.requested: list[str | None] = []

    def get_model(self, model_id: str | None = None) -> ChatModel:
        self.requested.append(model_id)
        if model_id not in (None, "anthropic:claude-3-5-haiku-20241022"):
            raise ModelConfigError(f"Model provider for {model_id!r} is not configured")
        return ScriptedModel(
            objects={"nextaction": {"next": "proceed"}, "related": RELATED},
            steps=[(["Automatic movements ", "wind themselves."], [])],
        )

    def enabled_models(self) -> list[ModelInfo]:
        return [MODELS[0]]

    async def close(self) -> None:
        return None


def _upstream(request: httpx.Request) -> httpx.Response:
    return httpx.Response(500, json={"error": "not reachable in tests"})


@pytest_asyncio.fixture
async def client(settings: Settings, store: MemoryStore) -> AsyncIterator[httpx.AsyncClient]:
    http = httpx.AsyncClient(transport=httpx.MockTransport(_upstream))
    app = create_app(settings=settings, store=store, models=FakeModels(), http=http)
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
            yield c
    await http.aclose()


def _events(body: str) -> list[tuple[str, dict[str, Any]]]:
    events = []
    for frame in body.split("\n\n"):
        if not frame.strip():
            continue
        lines = dict(line.split(": ", 1) for line in frame.splitlines())
        events.append((lines["event"], json.loads(lines["data"])))
    return events


@pytest.mark.asyncio
async def test_chat_streams_events_and_persists(client: httpx.AsyncClient) -> None:
    r = await client.post("/api/chat", json={"chatId": "c1", "input": "How do automatics work?"})

    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/event-stream")
    assert r.headers["x-chat-id"] == "c1"

    events = _events(r.text)
    assert events[0] == ("status", {"step": "start", "chatId": "c1"})
    name, done = events[-1]
    assert name == "done"
    assert done == {"chatId": "c1", "path": "/search/c1", "nextAction": "proceed", "error": None}
    answers = [data["text"] for name, data in events if name == "answer"]
    assert answers[-1] == "Automatic movements wind themselves."

    r = await client.get("/api/chats/c1")
    assert r.status_code == 200
    chat = r.json()
    assert chat["title"] == "How do automatics work?"
    assert chat["userId"] == "anonymous"
    assert [m.get("type") for m in chat["messages"]] == [
        "input",
        "answer",
        "related",
        "followup",
        "end",
    ]


@pytest.mark.asyncio
async def test_chat_rejects_unknown_model(client: httpx.AsyncClient) -> None:
    r = await client.post("/api/chat", json={"input": "hi", "model": "groq:llama"})
    assert r.status_code == 400
    assert "not configured" in r.json()["detail"]


@pytest.mark.asyncio
async def test_chat_rejects_ambiguous_submission(client: httpx.AsyncClient) -> None:
    r = await client.post("/api/chat", json={"input": "hi", "skip": True})
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_chat_listing_sharing_and_clearing(client: httpx.AsyncClient) -> None:
    for chat_id in ("a", "b"):
        r = await client.post(
            "/api/chat", json={"chatId": chat_id, "userId": "u1", "input": f"question {chat_id}"}
        )
        assert r.status_code == 200

    r = await client.get("/api/chats", params={"user_id": "u1"})
    assert [c["id"] for c in r.json()] == ["b", "a"]
    assert (await client.get("/api/chats", params={"user_id": "nobody"})).json() == []

    assert (await client.get("/api/share/a")).status_code == 404
    r = await client.post("/api/chats/a/share", json={"userId": "someone-else"})
    assert r.status_code == 404
    r = await client.post("/api/chats/a/share", json={"userId": "u1"})
    assert r.status_code == 200
    assert r.json()["sharePath"] == "/share/a"
    r = await client.get("/api/share/a")
    assert r.status_code == 200
    assert r.json()["id"] == "a"

    r = await client.delete("/api/chats", params={"user_id": "u1"})
    assert r.json() == {}
    assert (await client.get("/api/chats/a")).status_code == 404
    r = await client.delete("/api/chats", params={"user_id": "u1"})
    assert r.json() == {"error": "No chats to clear"}


@pytest.mark.asyncio
async def test_advanced_search_serves_cache_or_unavailable(
    client: httpx.AsyncClient, store: MemoryStore
) -> None:
    r = await client.post("/api/advanced-search", json={"query": "moonwatch", "maxResults": 5})
    assert r.status_code == 200
    assert r.json() == {
        "message": "Search functionality is currently unavailable.",
        "query": "moonwatch",
        "results": [],
        "images": [],
        "number_of_results": 0,
    }

    cached = {"query": "moonwatch", "results": [{"url": "https://example.com"}], "images": []}
    key = search_cache_key(
        query="moonwatch", max_results=5, search_depth="advanced", include_domains=["omega.com"]
    )
    await SearchCacheRepo(store).set(key, cached)

    r = await client.post(
        "/api/advanced-search",
        json={
            "query": "moonwatch",
            "maxResults": 5,
            "searchDepth": "advanced",
            "includeDomains": ["omega.com"],
        },
    )
    assert r.json() == cached


@pytest.mark.asyncio
async def test_models_lists_enabled_models(client: httpx.AsyncClient, settings: Settings) -> None:
    r = await client.get("/api/models")
    assert r.status_code == 200
    body = r.json()
    assert body["default"] == settings.default_model
    assert body["models"] == [
        {
            "id": "claude-3-5-haiku-20241022",
            "name": "DreamerAI 3.5 Speedy",
            "provider": "DreamerAI",
            "providerId": "anthropic",
        }
    ]
