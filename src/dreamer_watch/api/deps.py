"""
dreamer_watch.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings, the store, the shared HTTP client
  and the model registry.
- Encapsulate app.state access patterns (everything is created in the lifespan).
"""

from __future__ import annotations

import httpx
from fastapi import Depends, Request

from dreamer_watch.llm.registry import ModelProvider
from dreamer_watch.settings import Settings
from dreamer_watch.store.base import KeyValueStore
from dreamer_watch.store.repositories.chats import ChatRepo
from dreamer_watch.store.repositories.search_cache import SearchCacheRepo


def settings_dep(request: Request) -> Settings:
    return request.app.state.settings  # type: ignore[no-any-return]


def store_dep(request: Request) -> KeyValueStore:
    # Opened in `dreamer_watch.api.app` lifespan; closed on shutdown.
    return request.app.state.store  # type: ignore[no-any-return]


def http_dep(request: Request) -> httpx.AsyncClient:
    return request.app.state.http  # type: ignore[no-any-return]


def models_dep(request: Request) -> ModelProvider:
    return request.app.state.models  # type: ignore[no-any-return]


def chat_repo(store: KeyValueStore = Depends(store_dep)) -> ChatRepo:
    return ChatRepo(store)


def search_cache_repo(
    store: KeyValueStore = Depends(store_dep),
    settings: Settings = Depends(settings_dep),
) -> SearchCacheRepo:
    return SearchCacheRepo(store, ttl_seconds=settings.search_cache_ttl_seconds)
