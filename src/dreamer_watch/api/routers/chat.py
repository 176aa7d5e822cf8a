"""
dreamer_watch.api.routers.chat

Chat submission endpoint (Server-Sent Events).

Responsibilities:
- Resolve the requested model (configuration errors are HTTP 400).
- Start one workflow task per submission and relay its events as SSE frames.
- Cancel the workflow task when the client goes away.
"""

from __future__ import annotations

import asyncio

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse
from starlette.status import HTTP_400_BAD_REQUEST

from dreamer_watch.api.deps import http_dep, models_dep, settings_dep, store_dep
from dreamer_watch.llm.base import ModelConfigError
from dreamer_watch.llm.registry import ModelProvider
from dreamer_watch.observability.logging import get_logger
from dreamer_watch.orchestrator.events import WorkflowEvent
from dreamer_watch.orchestrator.streaming import Channel
from dreamer_watch.services.submissions import ChatSubmission
from dreamer_watch.services.workflow_service import ChatWorkflowService
from dreamer_watch.settings import Settings
from dreamer_watch.store.base import KeyValueStore
from dreamer_watch.store.models import new_id
from dreamer_watch.tools.registry import get_tools

router = APIRouter(prefix="/api", tags=["chat"])
log = get_logger(__name__)


def _log_task_result(task: asyncio.Task) -> None:
    if task.cancelled():
        log.info("workflow_task_cancelled")
    elif task.exception() is not None:
        log.error("workflow_task_crashed", error=repr(task.exception()))


@router.post("/chat")
async def submit_chat(
    request: Request,
    body: ChatSubmission,
    settings: Settings = Depends(settings_dep),
    store: KeyValueStore = Depends(store_dep),
    http: httpx.AsyncClient = Depends(http_dep),
    models: ModelProvider = Depends(models_dep),
) -> StreamingResponse:
    try:
        model = models.get_model(body.model)
    except ModelConfigError as e:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail=str(e)) from e

    chat_id = body.chat_id or new_id()
    channel: Channel[WorkflowEvent] = Channel()
    svc = ChatWorkflowService(
        store=store,
        settings=settings,
        model=model,
        tools=get_tools(settings=settings, http=http),
        channel=channel,
    )

    task = asyncio.create_task(svc.run(body, chat_id=chat_id))
    # Keep a strong reference until the task finishes; the lifespan cancels leftovers.
    tasks: set[asyncio.Task] = request.app.state.tasks
    tasks.add(task)
    task.add_done_callback(tasks.discard)
    task.add_done_callback(_log_task_result)
    channel.on_cancel(task.cancel)

    async def stream_events():
        finished = False
        try:
            yield WorkflowEvent(event="status", data={"step": "start", "chatId": chat_id}).to_sse()
            async for event in channel:
                yield event.to_sse()
            finished = True
        finally:
            if not finished:
                # Client disconnected mid-stream.
                channel.cancel()

    return StreamingResponse(
        stream_events(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
            "X-Chat-Id": chat_id,
        },
    )
