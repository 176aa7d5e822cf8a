"""
dreamer_watch.store.rest

Hosted REST key-value backend (Upstash, via `upstash_redis.asyncio`).

Responsibilities:
- Adapt the Upstash client (and its pipelines) to `KeyValueStore`.
- Translate Upstash and transport failures into store-layer exceptions.
"""

from __future__ import annotations

from collections.abc import Awaitable, Mapping
from typing import Any, TypeVar

import httpx
from upstash_redis.asyncio import Redis
from upstash_redis.errors import UpstashError

from dreamer_watch.observability.logging import get_logger
from dreamer_watch.store.base import KeyValueStore, Pipeline
from dreamer_watch.store.errors import (
    StoreCommandError,
    StoreConfigError,
    StoreConnectionError,
)

log = get_logger(__name__)

T = TypeVar("T")

SCAN_COUNT = 100


def _pairs_to_dict(raw: Any) -> dict[str, str]:
    # HGETALL replies are dicts from the client, flat field/value lists from some pipelines.
    if not raw:
        return {}
    if isinstance(raw, dict):
        return {str(k): str(v) for k, v in raw.items()}
    it = iter(raw)
    return {str(k): str(v) for k, v in zip(it, it)}


def _translate(exc: Exception) -> Exception:
    if isinstance(exc, UpstashError):
        message = str(exc)
        if "unauthorized" in message.lower():
            log.error("rest_store_unauthorized")
            return StoreConnectionError("Unauthorized. Check your REST store token.")
        return StoreCommandError(message)
    if isinstance(exc, httpx.HTTPError | OSError):
        log.error("rest_store_unreachable", error=str(exc))
        return StoreConnectionError(f"Failed to reach hosted store: {exc}")
    return StoreCommandError(f"Malformed store reply: {exc}")


async def _run(awaitable: Awaitable[T]) -> T:
    try:
        return await awaitable
    except (UpstashError, httpx.HTTPError, OSError, ValueError) as e:
        raise _translate(e) from e


class RestPipeline(Pipeline):
    def __init__(self, pipe: Any) -> None:
        self._pipe = pipe
        self._names: list[str] = []

    def _queued(self, name: str) -> RestPipeline:
        self._names.append(name)
        return self

    def hgetall(self, key: str) -> RestPipeline:
        self._pipe.hgetall(key)
        return self._queued("hgetall")

    def hset(self, key: str, mapping: Mapping[str, str]) -> RestPipeline:
        self._pipe.hset(key, values=dict(mapping))
        return self._queued("hset")

    def zadd(self, key: str, score: float, member: str) -> RestPipeline:
        self._pipe.zadd(key, {member: score})
        return self._queued("zadd")

    def delete(self, key: str) -> RestPipeline:
        self._pipe.delete(key)
        return self._queued("delete")

    def zrem(self, key: str, member: str) -> RestPipeline:
        self._pipe.zrem(key, member)
        return self._queued("zrem")

    async def execute(self) -> list[Any]:
        names, self._names = self._names, []
        if not names:
            return []
        replies = list(await _run(self._pipe.exec()))
        if len(replies) != len(names):
            raise StoreCommandError("Malformed pipeline reply")
        return [
            _pairs_to_dict(reply) if name == "hgetall" else reply
            for name, reply in zip(names, replies)
        ]


class RestStore(KeyValueStore):
    backend_name = "rest"

    def __init__(
        self,
        *,
        url: str | None,
        token: str | None,
        client: Redis | None = None,
    ) -> None:
        if client is None and (not url or not token):
            raise StoreConfigError(
                "Hosted REST store configuration is missing. "
                "Set DREAMER_REST_STORE_URL and DREAMER_REST_STORE_TOKEN."
            )
        self._url = url
        self._token = token
        self._client = client
        self._owns_client = client is None

    def _redis(self) -> Redis:
        # No connection handshake: the client is created on first use.
        if self._client is None:
            self._client = Redis(url=self._url or "", token=self._token or "")
            self._owns_client = True
        return self._client

    async def open(self) -> None:
        self._redis()

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.close()
            self._client = None

    async def ping(self) -> bool:
        return (await _run(self._redis().ping())) == "PONG"

    async def get(self, key: str) -> str | None:
        return await _run(self._redis().get(key))

    async def set(self, key: str, value: str, *, ex: int | None = None) -> None:
        await _run(self._redis().set(key, value, ex=ex))

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(await _run(self._redis().delete(*keys)) or 0)

    async def keys(self, pattern: str) -> list[str]:
        found: set[str] = set()
        cursor = 0
        while True:
            cursor, batch = await _run(
                self._redis().scan(cursor, match=pattern, count=SCAN_COUNT)
            )
            found.update(str(k) for k in batch)
            if int(cursor) == 0:
                return sorted(found)

    async def ttl(self, key: str) -> int:
        return int(await _run(self._redis().ttl(key)))

    async def hgetall(self, key: str) -> dict[str, str]:
        return _pairs_to_dict(await _run(self._redis().hgetall(key)))

    async def hset(self, key: str, mapping: Mapping[str, str]) -> int:
        return int(await _run(self._redis().hset(key, values=dict(mapping))) or 0)

    async def zadd(self, key: str, score: float, member: str) -> int:
        return int(await _run(self._redis().zadd(key, {member: score})) or 0)

    async def zrange(self, key: str, start: int, stop: int, *, rev: bool = False) -> list[str]:
        members = await _run(self._redis().zrange(key, start, stop, rev=rev))
        return [str(m) for m in members or []]

    async def zrem(self, key: str, member: str) -> int:
        return int(await _run(self._redis().zrem(key, member)) or 0)

    def pipeline(self) -> RestPipeline:
        return RestPipeline(self._redis().pipeline())


# --- Module Notes -----------------------------------------------------------
# Credentials are only checked by the first command; `/readyz` pings the store
# so a bad token shows up there.
