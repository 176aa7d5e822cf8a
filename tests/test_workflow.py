"""
tests.test_workflow

End-to-end workflow runs against a scripted model and the in-memory store.

Responsibilities:
- Verify both terminal paths (inquire / research + suggest) and their transcripts.
- Verify failure containment per step and at the workflow level.
- Verify that cancelling the subscription cancels the workflow task.
"""

from __future__ import annotations

import asyncio
import json
from datetime import UTC, datetime
from typing import Any

import pytest
from pydantic import BaseModel

from dreamer_watch.llm.base import ToolCall, ToolSpec
from dreamer_watch.orchestrator.events import WorkflowEvent
from dreamer_watch.orchestrator.nodes import RESEARCH_ERROR_TEXT
from dreamer_watch.orchestrator.streaming import Channel
from dreamer_watch.services.submissions import ChatSubmission
from dreamer_watch.services.workflow_service import WORKFLOW_ERROR_TEXT, ChatWorkflowService
from dreamer_watch.settings import Settings
from dreamer_watch.store.memory import MemoryStore
from dreamer_watch.store.models import Chat, ChatMessage, MessageRole, MessageType
from dreamer_watch.store.repositories.chats import ChatRepo
from tests.fakes import INQUIRY, RELATED, ScriptedModel


class LookupParams(BaseModel):
    query: str


def _search_tool() -> ToolSpec:
    async def handler(params: LookupParams) -> dict[str, Any]:
        return {"query": params.query, "results": [], "images": [], "number_of_results": 0}

    return ToolSpec(name="search", description="search", params_model=LookupParams, handler=handler)


async def _run(
    *,
    store: MemoryStore,
    settings: Settings,
    model: ScriptedModel,
    submission: ChatSubmission,
    chat_id: str = "chat1",
) -> tuple[dict[str, Any], list[WorkflowEvent]]:
    channel: Channel[WorkflowEvent] = Channel()
    svc = ChatWorkflowService(
        store=store, settings=settings, model=model, tools=[_search_tool()], channel=channel
    )
    final = await svc.run(submission, chat_id=chat_id)
    # The channel is closed by now; drain what was buffered.
    events = [e async for e in channel]
    return dict(final), events


def _types(chat: Chat) -> list[MessageType | None]:
    return [m.type for m in chat.messages]


@pytest.mark.asyncio
async def test_inquire_path_halts_after_one_inquiry(store: MemoryStore, settings: Settings) -> None:
    model = ScriptedModel(objects={"nextaction": {"next": "inquire"}, "inquiry": INQUIRY})

    final, events = await _run(
        store=store, settings=settings, model=model, submission=ChatSubmission(input="Best watch?")
    )

    assert final["next_action"] == "inquire"
    assert not model.called("step")
    assert not model.called("related")

    names = [e.event for e in events]
    assert "inquiry" in names
    assert "answer" not in names and "tool" not in names
    assert names[-1] == "done"
    assert events[-1].data["nextAction"] == "inquire"

    chat = await ChatRepo(store).get_chat("chat1")
    assert chat is not None
    assert _types(chat) == [MessageType.input, MessageType.inquiry, MessageType.end]
    inquiry_message = chat.messages[1]
    assert inquiry_message.role == MessageRole.assistant
    assert json.loads(inquiry_message.content)["question"] == INQUIRY["question"]


@pytest.mark.asyncio
async def test_proceed_path_orders_tools_answer_related_followup(
    store: MemoryStore, settings: Settings
) -> None:
    model = ScriptedModel(
        objects={"nextaction": {"next": "proceed"}, "related": RELATED},
        steps=[
            ([], [ToolCall(id="t1", name="search", args={"query": "submariner"})]),
            (["The Submariner ", "launched in 1953."], []),
        ],
    )

    final, events = await _run(
        store=store,
        settings=settings,
        model=model,
        submission=ChatSubmission(input="Tell me about the Submariner"),
    )

    assert final["answer"] == "The Submariner launched in 1953."
    assert final.get("error") is None

    answers = [e.data["text"] for e in events if e.event == "answer"]
    assert answers == ["The Submariner ", "The Submariner launched in 1953."]
    tool_events = [e for e in events if e.event == "tool"]
    assert tool_events[0].data["name"] == "search"

    names = [e.event for e in events]
    assert names.index("tool") < names.index("answer") < names.index("related")
    assert names.index("related") < names.index("followup") < names.index("done")

    chat = await ChatRepo(store).get_chat("chat1")
    assert chat is not None
    assert _types(chat) == [
        MessageType.input,
        MessageType.tool,
        MessageType.answer,
        MessageType.related,
        MessageType.followup,
        MessageType.end,
    ]
    tool_message = chat.messages[1]
    assert (tool_message.role, tool_message.name) == (MessageRole.tool, "search")
    assert len(json.loads(chat.messages[3].content)["items"]) == 3
    assert chat.title == "Tell me about the Submariner"
    assert chat.path == "/search/chat1"

    # The suggester only sees the answer, re-roled as a user message.
    _, suggest_messages = next(c for c in model.calls if c[0] == "related")
    assert suggest_messages == [{"role": "user", "content": "The Submariner launched in 1953."}]


@pytest.mark.asyncio
async def test_skip_bypasses_classification(store: MemoryStore, settings: Settings) -> None:
    model = ScriptedModel(objects={"related": RELATED}, steps=[(["ok"], [])])

    final, _ = await _run(
        store=store, settings=settings, model=model, submission=ChatSubmission(skip=True)
    )

    assert not model.called("nextaction")
    assert final["answer"] == "ok"


@pytest.mark.asyncio
async def test_classification_failure_proceeds(store: MemoryStore, settings: Settings) -> None:
    model = ScriptedModel(
        objects={"nextaction": RuntimeError("provider down"), "related": RELATED},
        steps=[(["answer"], [])],
    )

    final, _ = await _run(
        store=store, settings=settings, model=model, submission=ChatSubmission(input="q")
    )

    assert final["next_action"] == "proceed"
    assert final["answer"] == "answer"


@pytest.mark.asyncio
async def test_research_failure_becomes_error_answer(store: MemoryStore, settings: Settings) -> None:
    model = ScriptedModel(
        objects={"nextaction": {"next": "proceed"}, "related": RELATED},
        steps=[RuntimeError("stream broke")],
    )

    final, events = await _run(
        store=store, settings=settings, model=model, submission=ChatSubmission(input="q")
    )

    assert final["answer"] == RESEARCH_ERROR_TEXT
    assert [e.data["text"] for e in events if e.event == "answer"] == [RESEARCH_ERROR_TEXT]
    chat = await ChatRepo(store).get_chat("chat1")
    assert chat is not None
    assert MessageType.tool not in _types(chat)


@pytest.mark.asyncio
async def test_workflow_failure_emits_error_and_still_saves(
    store: MemoryStore, settings: Settings
) -> None:
    model = ScriptedModel(
        objects={"nextaction": {"next": "proceed"}, "related": RuntimeError("suggest broke")},
        steps=[(["partial answer"], [])],
    )

    final, events = await _run(
        store=store, settings=settings, model=model, submission=ChatSubmission(input="q")
    )

    assert final["error"] == WORKFLOW_ERROR_TEXT
    errors = [e for e in events if e.event == "error"]
    assert errors[0].data == {"message": WORKFLOW_ERROR_TEXT}
    assert events[-1].event == "done"

    chat = await ChatRepo(store).get_chat("chat1")
    assert chat is not None
    assert _types(chat) == [MessageType.input, MessageType.answer, MessageType.end]


@pytest.mark.asyncio
async def test_existing_chat_keeps_created_at_and_history(
    store: MemoryStore, settings: Settings
) -> None:
    created = datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)
    await ChatRepo(store).save_chat(
        Chat(
            id="chat1",
            title="First question",
            created_at=created,
            path="/search/chat1",
            messages=[
                ChatMessage(
                    role=MessageRole.user,
                    content=json.dumps({"input": "First question"}),
                    type=MessageType.input,
                ),
                ChatMessage(role=MessageRole.assistant, content="end", type=MessageType.end),
            ],
        )
    )
    model = ScriptedModel(objects={"nextaction": {"next": "inquire"}, "inquiry": INQUIRY})

    await _run(
        store=store,
        settings=settings,
        model=model,
        submission=ChatSubmission.model_validate({"relatedQuery": "Follow on"}),
    )

    chat = await ChatRepo(store).get_chat("chat1")
    assert chat is not None
    assert chat.created_at == created
    assert chat.title == "First question"
    assert _types(chat) == [
        MessageType.input,
        MessageType.input_related,
        MessageType.inquiry,
        MessageType.end,
    ]
    _, classify_messages = model.calls[0]
    assert [m["role"] for m in classify_messages] == ["user", "user"]


@pytest.mark.asyncio
async def test_cancelled_subscription_cancels_workflow(
    store: MemoryStore, settings: Settings
) -> None:
    gate = asyncio.Event()

    class StallingModel(ScriptedModel):
        async def _stream_step(self, *, system, messages, tools):
            gate.set()
            await asyncio.sleep(3600)
            yield "never"

    model = StallingModel(objects={"nextaction": {"next": "proceed"}})
    channel: Channel[WorkflowEvent] = Channel()
    svc = ChatWorkflowService(
        store=store, settings=settings, model=model, tools=[], channel=channel
    )
    task = asyncio.create_task(svc.run(ChatSubmission(input="q"), chat_id="chat1"))
    channel.on_cancel(task.cancel)

    await gate.wait()
    channel.cancel()
    await asyncio.gather(task, return_exceptions=True)

    assert task.cancelled()
    assert channel.closed
    assert await ChatRepo(store).get_chat("chat1") is None


@pytest.mark.asyncio
async def test_surplus_related_queries_are_trimmed_to_three(
    store: MemoryStore, settings: Settings
) -> None:
    four = {"items": [*RELATED["items"], {"query": "Submariner bracelet options"}]}
    model = ScriptedModel(
        objects={"nextaction": {"next": "proceed"}, "related": four},
        steps=[(["answer"], [])],
    )

    final, events = await _run(
        store=store, settings=settings, model=model, submission=ChatSubmission(input="q")
    )

    assert final.get("error") is None
    assert final["related"] == RELATED
    assert all(len(e.data["items"]) <= 3 for e in events if e.event == "related")
    chat = await ChatRepo(store).get_chat("chat1")
    assert chat is not None
    related = next(m for m in chat.messages if m.type == MessageType.related)
    assert json.loads(related.content) == RELATED


@pytest.mark.asyncio
async def test_too_few_related_queries_fail_the_turn(
    store: MemoryStore, settings: Settings
) -> None:
    two = {"items": RELATED["items"][:2]}
    model = ScriptedModel(
        objects={"nextaction": {"next": "proceed"}, "related": two},
        steps=[(["answer"], [])],
    )

    final, events = await _run(
        store=store, settings=settings, model=model, submission=ChatSubmission(input="q")
    )

    assert final["error"] == WORKFLOW_ERROR_TEXT
    assert "followup" not in [e.event for e in events]
    chat = await ChatRepo(store).get_chat("chat1")
    assert chat is not None
    assert _types(chat) == [MessageType.input, MessageType.answer, MessageType.end]
