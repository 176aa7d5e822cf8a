"""
dreamer_watch.store.repositories.search_cache

Cache for advanced-search responses (`search:*` keys).

Responsibilities:
- Build deterministic cache keys from search parameters.
- Read/write JSON payloads with a fixed TTL; cache failures are misses, never errors.
- Sweep `search:*` keys that carry no live TTL.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from dreamer_watch.observability.logging import get_logger
from dreamer_watch.store.base import KeyValueStore
from dreamer_watch.store.errors import StoreError

log = get_logger(__name__)

DEFAULT_TTL_SECONDS = 3600


def search_cache_key(
    *,
    query: str,
    max_results: int | None,
    search_depth: str | None,
    include_domains: Sequence[str] | None = None,
    exclude_domains: Sequence[str] | None = None,
) -> str:
    include = ",".join(include_domains or [])
    exclude = ",".join(exclude_domains or [])
    return f"search:{query}:{max_results}:{search_depth}:{include}:{exclude}"


class SearchCacheRepo:
    def __init__(self, store: KeyValueStore, *, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        self._store = store
        self._ttl = ttl_seconds

    async def get(self, key: str) -> Any | None:
        try:
            raw = await self._store.get(key)
        except StoreError:
            log.exception("search_cache_get_failed", key=key)
            return None
        if raw is None:
            log.debug("search_cache_miss", key=key)
            return None
        try:
            value = json.loads(raw)
        except ValueError:
            log.warning("search_cache_corrupt", key=key)
            return None
        log.debug("search_cache_hit", key=key)
        return value

    async def set(self, key: str, value: Any) -> bool:
        try:
            await self._store.set(key, json.dumps(value), ex=self._ttl)
        except StoreError:
            log.exception("search_cache_set_failed", key=key)
            return False
        return True

    async def sweep(self) -> int:
        """
        Delete `search:*` entries whose TTL is not positive.

        Keys written by `set` expire on their own; this catches entries written
        without an expiry. Best-effort: failures are logged and counted as zero.
        """

        removed = 0
        try:
            for key in await self._store.keys("search:*"):
                if await self._store.ttl(key) <= 0:
                    removed += await self._store.delete(key)
        except StoreError:
            log.exception("search_cache_sweep_failed")
            return removed
        if removed:
            log.info("search_cache_swept", removed=removed)
        return removed
