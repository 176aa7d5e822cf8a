"""
dreamer_watch.store.factory

Backend selection for the key-value store.

Responsibilities:
- Map `Settings.store_backend` to exactly one concrete `KeyValueStore`.
- Fail fast on missing configuration (before the app serves requests).
"""

from __future__ import annotations

from dreamer_watch.settings import Settings
from dreamer_watch.store.base import KeyValueStore
from dreamer_watch.store.errors import StoreConfigError
from dreamer_watch.store.memory import MemoryStore
from dreamer_watch.store.redis_store import RedisStore
from dreamer_watch.store.rest import RestStore


def create_store(settings: Settings) -> KeyValueStore:
    # The returned store is not opened yet; the app lifespan owns open/close.
    if settings.store_backend == "memory":
        return MemoryStore()
    if settings.store_backend == "redis":
        return RedisStore(url=settings.redis_url)
    if settings.store_backend == "rest":
        return RestStore(url=settings.rest_store_url, token=settings.rest_store_token)
    raise StoreConfigError(f"Unknown store backend: {settings.store_backend}")
