"""
dreamer_watch.services.workflow_service

Chat turn lifecycle service (persistence owner).

Responsibilities:
- Load the chat, append the submitted user message and derive the model window.
- Run the workflow graph, relaying partial results through the event channel.
- Contain workflow failures: log, emit an `error` event, never crash the task.
- Save the chat record (title, path, trailing `end` marker) and close the channel.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

import structlog

from dreamer_watch.llm.base import ChatModel, ToolSpec
from dreamer_watch.observability.logging import get_logger
from dreamer_watch.orchestrator.events import WorkflowEvent
from dreamer_watch.orchestrator.graph import build_graph
from dreamer_watch.orchestrator.history import model_history
from dreamer_watch.orchestrator.state import ChatState
from dreamer_watch.orchestrator.streaming import Channel
from dreamer_watch.services.submissions import ChatSubmission, chat_title
from dreamer_watch.settings import Settings
from dreamer_watch.store.base import KeyValueStore
from dreamer_watch.store.models import Chat, ChatMessage, MessageRole, MessageType
from dreamer_watch.store.repositories.chats import ChatPersistenceError, ChatRepo

log = get_logger(__name__)

WORKFLOW_ERROR_TEXT = "An error occurred during the workflow. Please try again."


def chat_path(chat_id: str) -> str:
    return f"/search/{chat_id}"


class ChatWorkflowService:
    def __init__(
        self,
        *,
        store: KeyValueStore,
        settings: Settings,
        model: ChatModel,
        tools: Sequence[ToolSpec],
        channel: Channel[WorkflowEvent],
    ) -> None:
        self._settings = settings
        self._model = model
        self._tools = tools
        self._channel = channel
        self._chats = ChatRepo(store)

    async def run(self, submission: ChatSubmission, *, chat_id: str) -> ChatState:
        structlog.contextvars.bind_contextvars(chat_id=chat_id, model=self._model.model_id)
        try:
            return await self._run(submission, chat_id=chat_id)
        finally:
            self._channel.close()

    async def _run(self, submission: ChatSubmission, *, chat_id: str) -> ChatState:
        existing = await self._chats.get_chat(chat_id)
        # Each save appends a fresh end marker; older ones are dropped on resume.
        transcript = [
            m for m in (existing.messages if existing else []) if m.type != MessageType.end
        ]
        transcript.append(submission.to_message())

        state: ChatState = {
            "chat_id": chat_id,
            "messages": transcript,
            "history": model_history(transcript, limit=self._settings.max_history_messages),
            "skip": submission.skip,
        }
        log.info("workflow_started", messages=len(transcript), skip=submission.skip)

        graph = build_graph(
            model=self._model,
            tools=self._tools,
            channel=self._channel,
            max_steps=self._settings.max_research_steps,
        )

        final: ChatState = dict(state)  # type: ignore[assignment]
        try:
            # "values" mode yields the full state after every node, so the last
            # snapshot survives a failure in a later node.
            async for values in graph.astream(state, stream_mode="values"):
                final = values
        except Exception:
            log.exception("workflow_failed")
            final = {**final, "error": WORKFLOW_ERROR_TEXT}
            self._channel.push(WorkflowEvent(event="error", data={"message": WORKFLOW_ERROR_TEXT}))

        user_id = existing.user_id if existing else submission.user_id
        try:
            await self._save(chat_id, list(final.get("messages", transcript)), existing, user_id)
        except ChatPersistenceError as e:
            final = {**final, "error": str(e)}
            self._channel.push(WorkflowEvent(event="error", data={"message": str(e)}))

        self._channel.push(
            WorkflowEvent(
                event="done",
                data={
                    "chatId": chat_id,
                    "path": chat_path(chat_id),
                    "nextAction": final.get("next_action"),
                    "error": final.get("error"),
                },
            )
        )
        log.info("workflow_finished", next_action=final.get("next_action"), error=final.get("error"))
        return final

    async def _save(
        self,
        chat_id: str,
        messages: list[ChatMessage],
        existing: Chat | None,
        user_id: str,
    ) -> None:
        chat = Chat(
            id=chat_id,
            title=chat_title(messages),
            created_at=existing.created_at if existing else datetime.now(tz=UTC),
            user_id=user_id,
            path=chat_path(chat_id),
            messages=[
                *messages,
                ChatMessage(role=MessageRole.assistant, content="end", type=MessageType.end),
            ],
            share_path=existing.share_path if existing else None,
        )
        await self._chats.save_chat(chat, user_id=user_id)
