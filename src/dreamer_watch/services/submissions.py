"""
dreamer_watch.services.submissions

Chat submission payloads and their transcript encoding.

A submission is exactly one of: free-text `input`, a clicked `related_query`,
an `inquiry_response` (answers to an inquiry form), or `skip` (the user
dismissed the inquiry form).
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from dreamer_watch.store.models import ChatMessage, MessageRole, MessageType


class ChatSubmission(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    chat_id: str | None = None
    user_id: str = "anonymous"
    model: str | None = Field(default=None, description="`<provider>:<model>` id")

    input: str | None = None
    related_query: str | None = None
    inquiry_response: dict[str, Any] | None = None
    skip: bool = False

    @model_validator(mode="after")
    def _exactly_one_kind(self) -> ChatSubmission:
        kinds = [
            self.input is not None,
            self.related_query is not None,
            self.inquiry_response is not None,
            self.skip,
        ]
        if sum(kinds) != 1:
            raise ValueError(
                "Provide exactly one of input, relatedQuery, inquiryResponse or skip"
            )
        if self.input is not None and not self.input.strip():
            raise ValueError("input must not be empty")
        return self

    def to_message(self) -> ChatMessage:
        if self.input is not None:
            return ChatMessage(
                role=MessageRole.user,
                content=json.dumps({"input": self.input}),
                type=MessageType.input,
            )
        if self.related_query is not None:
            return ChatMessage(
                role=MessageRole.user,
                content=json.dumps({"related_query": self.related_query}),
                type=MessageType.input_related,
            )
        if self.inquiry_response is not None:
            return ChatMessage(
                role=MessageRole.user,
                content=json.dumps(self.inquiry_response),
                type=MessageType.inquiry,
            )
        return ChatMessage(role=MessageRole.user, content=json.dumps({"action": "skip"}))


def chat_title(messages: list[ChatMessage], *, limit: int = 100) -> str:
    if not messages:
        return "Untitled"
    try:
        first = json.loads(messages[0].content)
    except ValueError:
        return "Untitled"
    if isinstance(first, dict) and isinstance(first.get("input"), str) and first["input"]:
        return first["input"][:limit]
    return "Untitled"
