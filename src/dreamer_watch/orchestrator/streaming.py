"""
dreamer_watch.orchestrator.streaming

Single-consumer channel between the workflow task and the HTTP response.

Responsibilities:
- Let the producer push partial results without awaiting the consumer.
- End iteration once the producer closes the channel.
- Propagate a dropped subscription back to the producer (`cancel`).
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from typing import Generic, TypeVar

from dreamer_watch.observability.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")

_CLOSED = object()


class Channel(Generic[T]):
    def __init__(self) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False
        self._cancelled = False
        self._on_cancel: list[Callable[[], object]] = []

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def push(self, item: T) -> bool:
        """Queue `item`; returns False when nobody will read it."""

        if self._closed:
            return False
        self._queue.put_nowait(item)
        return True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    def on_cancel(self, callback: Callable[[], object]) -> None:
        self._on_cancel.append(callback)

    def cancel(self) -> None:
        """Drop the subscription and notify the producer."""

        if self._cancelled:
            return
        self._cancelled = True
        self.close()
        for callback in self._on_cancel:
            callback()
        log.info("channel_cancelled")

    async def __aiter__(self) -> AsyncIterator[T]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item  # type: ignore[misc]
