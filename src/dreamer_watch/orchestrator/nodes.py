from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ValidationError

from dreamer_watch.llm.base import ChatModel, ModelOutputError, TextDelta, ToolSpec
from dreamer_watch.observability.logging import get_logger
from dreamer_watch.orchestrator.events import WorkflowEvent
from dreamer_watch.orchestrator.prompts import (
    INQUIRE_SYSTEM_PROMPT,
    QUERY_SUGGESTOR_SYSTEM_PROMPT,
    TASK_MANAGER_SYSTEM_PROMPT,
    researcher_system_prompt,
)
from dreamer_watch.orchestrator.schemas import Inquiry, NextAction, Related
from dreamer_watch.orchestrator.state import ChatState
from dreamer_watch.orchestrator.streaming import Channel
from dreamer_watch.store.models import ChatMessage, MessageRole, MessageType

log = get_logger(__name__)

RESEARCH_ERROR_TEXT = "An error has occurred. Please try again."

RELATED_COUNT = 3


@dataclass(frozen=True, slots=True)
class NodeDeps:
    model: ChatModel
    tools: Sequence[ToolSpec]
    channel: Channel[WorkflowEvent]
    max_steps: int = 5


def _emit(deps: NodeDeps, event: str, **data: Any) -> None:
    deps.channel.push(WorkflowEvent(event=event, data=data))  # type: ignore[arg-type]


def _finalize(schema: type[BaseModel], snapshot: dict[str, Any], *, step: str) -> dict[str, Any]:
    # The last streamed snapshot is what the client saw; keep it even if incomplete.
    try:
        return schema.model_validate(snapshot).model_dump(exclude_none=True)
    except ValidationError as e:
        log.warning("structured_output_incomplete", step=step, errors=e.error_count())
        return snapshot


async def entry_node(state: ChatState) -> ChatState:
    """
    - Validate input
    - Initialize state defaults
    """

    if not str(state.get("chat_id", "")).strip():
        raise ValueError("Missing chat_id")
    if not state.get("history"):
        raise ValueError("Empty conversation history")

    return {"skip": bool(state.get("skip", False)), "error": None}


async def classify_node(state: ChatState, *, deps: NodeDeps) -> ChatState:
    if state.get("skip"):
        log.info("classify_skipped")
        return {"next_action": "proceed"}

    _emit(deps, "status", step="classify")
    try:
        action = await deps.model.generate_object(
            system=TASK_MANAGER_SYSTEM_PROMPT,
            messages=state["history"],
            schema=NextAction,
        )
    except Exception:
        # Classification is advisory; research can always run.
        log.exception("classify_failed")
        return {"next_action": "proceed"}

    log.info("classified", next_action=action.next)
    return {"next_action": action.next}


def route_after_classify(state: ChatState) -> Literal["inquire", "research"]:
    if state.get("next_action") == "inquire":
        return "inquire"
    return "research"


async def inquire_node(state: ChatState, *, deps: NodeDeps) -> ChatState:
    snapshot: dict[str, Any] = {}
    async for partial in deps.model.stream_object(
        system=INQUIRE_SYSTEM_PROMPT,
        messages=state["history"],
        schema=Inquiry,
    ):
        snapshot = partial
        _emit(deps, "inquiry", **partial)

    inquiry = _finalize(Inquiry, snapshot, step="inquire")
    message = ChatMessage(
        role=MessageRole.assistant,
        content=json.dumps(inquiry),
        type=MessageType.inquiry,
    )
    return {"messages": [message], "inquiry": inquiry}


async def research_node(state: ChatState, *, deps: NodeDeps) -> ChatState:
    _emit(deps, "status", step="research")

    text = ""
    tool_messages: list[ChatMessage] = []
    try:
        async for item in deps.model.stream_text(
            system=researcher_system_prompt(),
            messages=state["history"],
            tools=deps.tools,
            max_steps=deps.max_steps,
        ):
            if isinstance(item, TextDelta):
                text += item.text
                _emit(deps, "answer", text=text)
                continue

            _emit(deps, "tool", name=item.tool_name, args=item.args, result=item.result)
            tool_messages.append(
                ChatMessage(
                    role=MessageRole.tool,
                    name=item.tool_name,
                    content=json.dumps(item.result),
                    type=MessageType.tool,
                )
            )
    except Exception:
        log.exception("research_failed")
        text = RESEARCH_ERROR_TEXT
        tool_messages = []
        _emit(deps, "answer", text=text)

    log.info("research_completed", tool_calls=len(tool_messages), answer_chars=len(text))
    answer = ChatMessage(role=MessageRole.assistant, content=text, type=MessageType.answer)
    return {"messages": [*tool_messages, answer], "answer": text}


async def suggest_node(state: ChatState, *, deps: NodeDeps) -> ChatState:
    # Only the answer is shown to the suggester, presented as if the user wrote it.
    last = [{"role": MessageRole.user.value, "content": state.get("answer", "")}]

    items: list[Any] = []
    async for partial in deps.model.stream_object(
        system=QUERY_SUGGESTOR_SYSTEM_PROMPT,
        messages=last,
        schema=Related,
    ):
        # Surplus suggestions are dropped, also from what the client sees.
        capped = (partial.get("items") or [])[:RELATED_COUNT]
        if capped and capped != items:
            items = capped
            _emit(deps, "related", items=items)

    try:
        related = Related.model_validate({"items": items}).model_dump()
    except ValidationError as e:
        log.warning("related_invalid", items=len(items), errors=e.error_count())
        raise ModelOutputError(
            f"Expected {RELATED_COUNT} related queries, got {len(items)} usable"
        ) from e
    _emit(deps, "followup")
    return {
        "messages": [
            ChatMessage(
                role=MessageRole.assistant,
                content=json.dumps(related),
                type=MessageType.related,
            ),
            ChatMessage(role=MessageRole.assistant, content="followup", type=MessageType.followup),
        ],
        "related": related,
    }
