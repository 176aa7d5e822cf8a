"""
dreamer_watch.store.memory

In-process key-value backend.

Responsibilities:
- Mirror the Redis semantics used by the service (lazy expiry, TTL codes,
  ordered sorted-set ranges) for local development and tests.
- Accept an injectable clock so expiry can be exercised deterministically.
"""

from __future__ import annotations

import fnmatch
import math
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from dreamer_watch.store.base import KeyValueStore, Pipeline


class MemoryPipeline(Pipeline):
    def __init__(self, store: MemoryStore) -> None:
        self._store = store
        self._queued: list[Callable[[], Awaitable[Any]]] = []

    def hgetall(self, key: str) -> MemoryPipeline:
        self._queued.append(lambda: self._store.hgetall(key))
        return self

    def hset(self, key: str, mapping: Mapping[str, str]) -> MemoryPipeline:
        snapshot = dict(mapping)
        self._queued.append(lambda: self._store.hset(key, snapshot))
        return self

    def zadd(self, key: str, score: float, member: str) -> MemoryPipeline:
        self._queued.append(lambda: self._store.zadd(key, score, member))
        return self

    def delete(self, key: str) -> MemoryPipeline:
        self._queued.append(lambda: self._store.delete(key))
        return self

    def zrem(self, key: str, member: str) -> MemoryPipeline:
        self._queued.append(lambda: self._store.zrem(key, member))
        return self

    async def execute(self) -> list[Any]:
        queued, self._queued = self._queued, []
        return [await command() for command in queued]


class MemoryStore(KeyValueStore):
    backend_name = "memory"

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._strings: dict[str, str] = {}
        self._hashes: dict[str, dict[str, str]] = {}
        self._zsets: dict[str, dict[str, float]] = {}
        self._expires_at: dict[str, float] = {}

    def _expire_if_due(self, key: str) -> None:
        deadline = self._expires_at.get(key)
        if deadline is not None and self._clock() >= deadline:
            self._drop(key)

    def _drop(self, key: str) -> bool:
        existed = False
        for space in (self._strings, self._hashes, self._zsets):
            if space.pop(key, None) is not None:
                existed = True
        self._expires_at.pop(key, None)
        return existed

    def _all_keys(self) -> list[str]:
        for key in list(self._expires_at):
            self._expire_if_due(key)
        return [*self._strings, *self._hashes, *self._zsets]

    async def ping(self) -> bool:
        return True

    async def get(self, key: str) -> str | None:
        self._expire_if_due(key)
        return self._strings.get(key)

    async def set(self, key: str, value: str, *, ex: int | None = None) -> None:
        self._drop(key)
        self._strings[key] = value
        if ex is not None:
            self._expires_at[key] = self._clock() + ex

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            self._expire_if_due(key)
            if self._drop(key):
                removed += 1
        return removed

    async def keys(self, pattern: str) -> list[str]:
        return sorted(k for k in self._all_keys() if fnmatch.fnmatchcase(k, pattern))

    async def ttl(self, key: str) -> int:
        self._expire_if_due(key)
        if key not in self._strings and key not in self._hashes and key not in self._zsets:
            return -2
        deadline = self._expires_at.get(key)
        if deadline is None:
            return -1
        return max(0, math.ceil(deadline - self._clock()))

    async def hgetall(self, key: str) -> dict[str, str]:
        self._expire_if_due(key)
        return dict(self._hashes.get(key, {}))

    async def hset(self, key: str, mapping: Mapping[str, str]) -> int:
        self._expire_if_due(key)
        current = self._hashes.setdefault(key, {})
        added = sum(1 for field in mapping if field not in current)
        current.update({k: str(v) for k, v in mapping.items()})
        return added

    async def zadd(self, key: str, score: float, member: str) -> int:
        self._expire_if_due(key)
        zset = self._zsets.setdefault(key, {})
        is_new = member not in zset
        zset[member] = float(score)
        return 1 if is_new else 0

    async def zrange(self, key: str, start: int, stop: int, *, rev: bool = False) -> list[str]:
        self._expire_if_due(key)
        zset = self._zsets.get(key, {})
        ordered = [m for m, _ in sorted(zset.items(), key=lambda kv: (kv[1], kv[0]), reverse=rev)]
        return _inclusive_slice(ordered, start, stop)

    async def zrem(self, key: str, member: str) -> int:
        self._expire_if_due(key)
        zset = self._zsets.get(key)
        if not zset or member not in zset:
            return 0
        del zset[member]
        if not zset:
            del self._zsets[key]
        return 1

    def pipeline(self) -> MemoryPipeline:
        return MemoryPipeline(self)


def _inclusive_slice(items: list[str], start: int, stop: int) -> list[str]:
    # Redis range semantics: inclusive stop, negative indices count from the end.
    n = len(items)
    if start < 0:
        start += n
    if stop < 0:
        stop += n
    start = max(start, 0)
    if start >= n or start > stop:
        return []
    return items[start : stop + 1]
