"""
dreamer_watch.store.models

Chat persistence schema.

Responsibilities:
- Define the message and chat records stored under `chat:<id>`.
- Keep the camelCase wire names the UI client reads (`createdAt`, `userId`,
  `sharePath`) while exposing snake_case attributes in Python.
"""

from __future__ import annotations

import enum
import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class MessageRole(enum.StrEnum):
    user = "user"
    assistant = "assistant"
    system = "system"
    tool = "tool"


class MessageType(enum.StrEnum):
    # Stored values are read back by the UI; treat as a stable contract.
    answer = "answer"
    related = "related"
    skip = "skip"
    inquiry = "inquiry"
    input = "input"
    input_related = "input_related"
    tool = "tool"
    followup = "followup"
    end = "end"


class ChatMessage(BaseModel):
    id: str = Field(default_factory=new_id)
    role: MessageRole
    content: str
    name: str | None = None
    type: MessageType | None = None


class Chat(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str = "Untitled"
    created_at: datetime = Field(default_factory=_utcnow)
    user_id: str = "anonymous"
    path: str = ""
    messages: list[ChatMessage] = Field(default_factory=list)
    share_path: str | None = None


# --- Module Notes -----------------------------------------------------------
# Chats are linked to users only by key naming (`user:chat:<userId>`); there is
# no referential integrity beyond what `ChatRepo` maintains.
