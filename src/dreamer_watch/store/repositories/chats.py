"""
dreamer_watch.store.repositories.chats

Repository for `Chat` records.

Responsibilities:
- Persist chats as hashes under `chat:<id>` and index them per user in the
  time-ordered sorted set `user:chat:<userId>`.
- Decode stored hashes back into typed chats (messages JSON, `createdAt` datetime).
- Degrade read failures to "not found" so the UI never sees a store exception.
"""

from __future__ import annotations

import json
import time
from typing import Any

from pydantic import ValidationError

from dreamer_watch.observability.logging import get_logger
from dreamer_watch.store.base import KeyValueStore
from dreamer_watch.store.errors import StoreError
from dreamer_watch.store.models import Chat

log = get_logger(__name__)


class ChatPersistenceError(Exception):
    pass


def chat_key(chat_id: str) -> str:
    return f"chat:{chat_id}"


def user_index_key(user_id: str) -> str:
    return f"user:chat:{user_id}"


def _to_hash(chat: Chat) -> dict[str, str]:
    fields = {
        "id": chat.id,
        "title": chat.title,
        "createdAt": chat.created_at.isoformat(),
        "userId": chat.user_id,
        "path": chat.path,
        "messages": json.dumps(
            [m.model_dump(mode="json", exclude_none=True) for m in chat.messages]
        ),
    }
    if chat.share_path:
        fields["sharePath"] = chat.share_path
    return fields


def _parse_chat(raw: dict[str, Any]) -> Chat:
    data = dict(raw)
    messages: Any = data.get("messages") or "[]"
    if isinstance(messages, str):
        try:
            messages = json.loads(messages)
        except ValueError:
            messages = []
    data["messages"] = messages if isinstance(messages, list) else []
    return Chat.model_validate(data)


class ChatRepo:
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def save_chat(self, chat: Chat, *, user_id: str = "anonymous") -> list[Any]:
        pipe = self._store.pipeline()
        pipe.hset(chat_key(chat.id), _to_hash(chat))
        pipe.zadd(user_index_key(user_id), int(time.time() * 1000), chat_key(chat.id))
        try:
            return await pipe.execute()
        except StoreError as e:
            log.exception("chat_save_failed", chat_id=chat.id)
            raise ChatPersistenceError("Failed to save chat") from e

    async def get_chat(self, chat_id: str) -> Chat | None:
        try:
            raw = await self._store.hgetall(chat_key(chat_id))
            if not raw:
                return None
            return _parse_chat(raw)
        except (StoreError, ValidationError):
            log.exception("chat_fetch_failed", chat_id=chat_id)
            return None

    async def get_chats(self, user_id: str | None) -> list[Chat]:
        # Newest first (scores are creation timestamps in ms).
        if not user_id:
            return []
        try:
            keys = await self._store.zrange(user_index_key(user_id), 0, -1, rev=True)
            if not keys:
                return []
            pipe = self._store.pipeline()
            for key in keys:
                pipe.hgetall(key)
            rows = await pipe.execute()
            return [_parse_chat(row) for row in rows if row]
        except (StoreError, ValidationError):
            log.exception("chat_list_failed", user_id=user_id)
            return []

    async def clear_chats(self, *, user_id: str = "anonymous") -> str | None:
        """
        Delete every chat of `user_id`.

        Returns an error message for the UI, or None on success.
        """

        try:
            keys = await self._store.zrange(user_index_key(user_id), 0, -1)
            if not keys:
                return "No chats to clear"
            pipe = self._store.pipeline()
            for key in keys:
                pipe.delete(key)
                pipe.zrem(user_index_key(user_id), key)
            await pipe.execute()
        except StoreError:
            log.exception("chat_clear_failed", user_id=user_id)
            return "Failed to clear chats"
        log.info("chats_cleared", user_id=user_id, count=len(keys))
        return None

    async def get_shared_chat(self, chat_id: str) -> Chat | None:
        chat = await self.get_chat(chat_id)
        if chat is None or not chat.share_path:
            return None
        return chat

    async def share_chat(self, chat_id: str, *, user_id: str = "anonymous") -> Chat | None:
        chat = await self.get_chat(chat_id)
        if chat is None or chat.user_id != user_id:
            return None
        share_path = f"/share/{chat_id}"
        try:
            await self._store.hset(chat_key(chat_id), {"sharePath": share_path})
        except StoreError:
            log.exception("chat_share_failed", chat_id=chat_id)
            return None
        return chat.model_copy(update={"share_path": share_path})


# --- Module Notes -----------------------------------------------------------
# The sorted-set member is the full chat key, so listing needs no key rebuilding.
