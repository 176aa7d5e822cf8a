"""
dreamer_watch.store.base

Abstract key-value store interface.

Responsibilities:
- Define the subset of Redis semantics the service relies on (strings with
  expiry, hashes, sorted sets, key scans, pipelines).
- Give every backend an explicit open/close lifecycle and async context
  manager support.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any


class Pipeline(ABC):
    """
    Queues commands and sends them to the backend in one round trip.
    Methods return the pipeline so calls can be chained.
    """

    @abstractmethod
    def hgetall(self, key: str) -> Pipeline: ...

    @abstractmethod
    def hset(self, key: str, mapping: Mapping[str, str]) -> Pipeline: ...

    @abstractmethod
    def zadd(self, key: str, score: float, member: str) -> Pipeline: ...

    @abstractmethod
    def delete(self, key: str) -> Pipeline: ...

    @abstractmethod
    def zrem(self, key: str, member: str) -> Pipeline: ...

    @abstractmethod
    async def execute(self) -> list[Any]:
        """Run queued commands in order and return one result per command."""


class KeyValueStore(ABC):
    backend_name: str = "abstract"

    async def open(self) -> None:
        return None

    async def close(self) -> None:
        return None

    async def __aenter__(self) -> KeyValueStore:
        await self.open()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    @abstractmethod
    async def ping(self) -> bool: ...

    @abstractmethod
    async def get(self, key: str) -> str | None: ...

    @abstractmethod
    async def set(self, key: str, value: str, *, ex: int | None = None) -> None: ...

    @abstractmethod
    async def delete(self, *keys: str) -> int: ...

    @abstractmethod
    async def keys(self, pattern: str) -> list[str]: ...

    @abstractmethod
    async def ttl(self, key: str) -> int:
        """Seconds to live; -1 when the key has no expiry, -2 when it is missing."""

    @abstractmethod
    async def hgetall(self, key: str) -> dict[str, str]:
        """All hash fields; an empty dict when the key does not exist."""

    @abstractmethod
    async def hset(self, key: str, mapping: Mapping[str, str]) -> int: ...

    @abstractmethod
    async def zadd(self, key: str, score: float, member: str) -> int: ...

    @abstractmethod
    async def zrange(self, key: str, start: int, stop: int, *, rev: bool = False) -> list[str]: ...

    @abstractmethod
    async def zrem(self, key: str, member: str) -> int: ...

    @abstractmethod
    def pipeline(self) -> Pipeline: ...


# --- Module Notes -----------------------------------------------------------
# Hash values are always strings on the wire; repositories own (de)serialization.
