"""
dreamer_watch.orchestrator.history

Derives the model-facing conversation window from a chat transcript.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from dreamer_watch.store.models import ChatMessage, MessageRole, MessageType

DEFAULT_HISTORY_LIMIT = 10

# UI bookkeeping messages carry nothing the model should read.
EXCLUDED_TYPES = frozenset({MessageType.followup, MessageType.related, MessageType.end})


def model_history(
    messages: Sequence[ChatMessage], *, limit: int = DEFAULT_HISTORY_LIMIT
) -> list[dict[str, Any]]:
    window = [
        {"role": m.role.value, "content": m.content}
        for m in messages
        if m.role != MessageRole.tool and m.type not in EXCLUDED_TYPES
    ]
    return window[-limit:] if limit > 0 else []
