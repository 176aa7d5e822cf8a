from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Literal

EventName = Literal["status", "inquiry", "tool", "answer", "related", "followup", "error", "done"]


@dataclass(frozen=True, slots=True)
class WorkflowEvent:
    """A partial workflow result relayed to the client as one SSE frame."""

    event: EventName
    data: dict[str, Any] = field(default_factory=dict)

    def to_sse(self) -> str:
        return f"event: {self.event}\ndata: {json.dumps(self.data, default=str)}\n\n"
