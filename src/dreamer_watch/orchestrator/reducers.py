"""
dreamer_watch.orchestrator.reducers

Reducers define how LangGraph merges partial state updates.

Nodes return only the messages they add; the transcript itself is append-only.
"""

from __future__ import annotations

from dreamer_watch.store.models import ChatMessage


def append_messages(
    left: list[ChatMessage] | None, right: list[ChatMessage] | None
) -> list[ChatMessage]:
    """
    Append-only reducer for transcript messages.

    Nodes should return `{"messages": [message, ...]}` and this reducer will concatenate.
    """

    if not left:
        return list(right or [])
    if not right:
        return list(left)
    return [*left, *right]
