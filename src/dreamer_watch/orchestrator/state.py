"""
dreamer_watch.orchestrator.state

Typed state schema used by the LangGraph workflow.

Responsibilities:
- Define the contract between nodes (inputs/outputs).
- Keep the transcript (`messages`) separate from the model-facing window (`history`).
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, TypedDict

from dreamer_watch.orchestrator.reducers import append_messages
from dreamer_watch.store.models import ChatMessage


class ChatState(TypedDict, total=False):
    chat_id: str

    # Full transcript; nodes append, never rewrite.
    messages: Annotated[list[ChatMessage], append_messages]

    # `{role, content}` window sent to the model (see `orchestrator.history`).
    history: list[dict[str, Any]]

    # Submission controls
    skip: bool

    # Outputs
    next_action: Literal["inquire", "proceed"]
    inquiry: dict[str, Any]
    answer: str
    related: dict[str, Any]
    error: str | None
