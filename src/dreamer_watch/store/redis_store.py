"""
dreamer_watch.store.redis_store

Self-hosted Redis backend (socket client via `redis.asyncio`).

Responsibilities:
- Own the client lifecycle (connect + ping on open, close on shutdown).
- Translate redis-py failures into store-layer exceptions with actionable hints.
"""

from __future__ import annotations

from collections.abc import Awaitable, Mapping
from typing import Any, TypeVar

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from dreamer_watch.observability.logging import get_logger
from dreamer_watch.store.base import KeyValueStore, Pipeline
from dreamer_watch.store.errors import StoreCommandError, StoreConnectionError

log = get_logger(__name__)

T = TypeVar("T")


def _connection_hint(exc: Exception) -> str:
    message = str(exc).lower()
    if "refused" in message:
        return "Connection refused. Is Redis running?"
    if isinstance(exc, RedisTimeoutError) or "timed out" in message:
        return "Connection timed out. Check your network or Redis server."
    if "name or service not known" in message or "nodename nor servname" in message:
        return "Host not found. Check your Redis URL."
    return str(exc)


class RedisPipeline(Pipeline):
    def __init__(self, pipe: Any) -> None:
        self._pipe = pipe

    def hgetall(self, key: str) -> RedisPipeline:
        self._pipe.hgetall(key)
        return self

    def hset(self, key: str, mapping: Mapping[str, str]) -> RedisPipeline:
        self._pipe.hset(key, mapping=dict(mapping))
        return self

    def zadd(self, key: str, score: float, member: str) -> RedisPipeline:
        self._pipe.zadd(key, {member: score})
        return self

    def delete(self, key: str) -> RedisPipeline:
        self._pipe.delete(key)
        return self

    def zrem(self, key: str, member: str) -> RedisPipeline:
        self._pipe.zrem(key, member)
        return self

    async def execute(self) -> list[Any]:
        try:
            return list(await self._pipe.execute())
        except (RedisConnectionError, RedisTimeoutError) as e:
            raise StoreConnectionError(_connection_hint(e)) from e
        except RedisError as e:
            raise StoreCommandError(str(e)) from e


class RedisStore(KeyValueStore):
    backend_name = "redis"

    def __init__(self, *, url: str, client: redis.Redis | None = None) -> None:
        self._url = url
        self._client = client

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            raise StoreConnectionError("Redis store is not open")
        return self._client

    async def open(self) -> None:
        if self._client is None:
            self._client = redis.from_url(self._url, decode_responses=True)
        try:
            await self._client.ping()
        except (RedisConnectionError, RedisTimeoutError, OSError) as e:
            log.error("redis_connect_failed", url=self._url, hint=_connection_hint(e))
            await self._client.aclose()
            self._client = None
            raise StoreConnectionError(
                "Failed to connect to local Redis. "
                "Check your configuration and ensure Redis is running."
            ) from e
        log.info("redis_connected", url=self._url)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _run(self, awaitable: Awaitable[T]) -> T:
        try:
            return await awaitable
        except (RedisConnectionError, RedisTimeoutError) as e:
            raise StoreConnectionError(_connection_hint(e)) from e
        except RedisError as e:
            raise StoreCommandError(str(e)) from e

    async def ping(self) -> bool:
        return bool(await self._run(self.client.ping()))

    async def get(self, key: str) -> str | None:
        return await self._run(self.client.get(key))

    async def set(self, key: str, value: str, *, ex: int | None = None) -> None:
        await self._run(self.client.set(key, value, ex=ex))

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(await self._run(self.client.delete(*keys)))

    async def keys(self, pattern: str) -> list[str]:
        # SCAN instead of KEYS so a sweep never blocks the server.
        async def _collect() -> list[str]:
            return [k async for k in self.client.scan_iter(match=pattern)]

        return sorted(await self._run(_collect()))

    async def ttl(self, key: str) -> int:
        return int(await self._run(self.client.ttl(key)))

    async def hgetall(self, key: str) -> dict[str, str]:
        return dict(await self._run(self.client.hgetall(key)))

    async def hset(self, key: str, mapping: Mapping[str, str]) -> int:
        return int(await self._run(self.client.hset(key, mapping=dict(mapping))))

    async def zadd(self, key: str, score: float, member: str) -> int:
        return int(await self._run(self.client.zadd(key, {member: score})))

    async def zrange(self, key: str, start: int, stop: int, *, rev: bool = False) -> list[str]:
        return list(await self._run(self.client.zrange(key, start, stop, desc=rev)))

    async def zrem(self, key: str, member: str) -> int:
        return int(await self._run(self.client.zrem(key, member)))

    def pipeline(self) -> RedisPipeline:
        # MULTI/EXEC keeps chat hash + user index writes atomic.
        return RedisPipeline(self.client.pipeline(transaction=True))
