"""
dreamer_watch.api.routers.chats

Chat history and sharing endpoints.

Responsibilities:
- List, fetch and clear a user's chats.
- Share a chat (owner only) and serve shared chats.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from starlette.status import HTTP_404_NOT_FOUND, HTTP_500_INTERNAL_SERVER_ERROR

from dreamer_watch.api.deps import chat_repo
from dreamer_watch.store.models import Chat
from dreamer_watch.store.repositories.chats import ChatRepo

router = APIRouter(prefix="/api", tags=["chats"])


class ShareRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str = "anonymous"


def _public(chat: Chat) -> dict[str, Any]:
    return chat.model_dump(mode="json", by_alias=True, exclude_none=True)


@router.get("/chats")
async def list_chats(
    user_id: str = Query(default="anonymous"),
    repo: ChatRepo = Depends(chat_repo),
) -> list[dict[str, Any]]:
    return [_public(c) for c in await repo.get_chats(user_id)]


@router.get("/chats/{chat_id}")
async def get_chat(chat_id: str, repo: ChatRepo = Depends(chat_repo)) -> dict[str, Any]:
    chat = await repo.get_chat(chat_id)
    if chat is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Chat not found")
    return _public(chat)


@router.delete("/chats")
async def clear_chats(
    user_id: str = Query(default="anonymous"),
    repo: ChatRepo = Depends(chat_repo),
) -> dict[str, Any]:
    error = await repo.clear_chats(user_id=user_id)
    if error == "Failed to clear chats":
        raise HTTPException(status_code=HTTP_500_INTERNAL_SERVER_ERROR, detail=error)
    if error is not None:
        return {"error": error}
    return {}


@router.post("/chats/{chat_id}/share")
async def share_chat(
    chat_id: str,
    body: ShareRequest,
    repo: ChatRepo = Depends(chat_repo),
) -> dict[str, Any]:
    chat = await repo.share_chat(chat_id, user_id=body.user_id)
    if chat is None:
        # Unknown chat and foreign chat look the same to the caller.
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Chat not found")
    return _public(chat)


@router.get("/share/{chat_id}")
async def get_shared_chat(chat_id: str, repo: ChatRepo = Depends(chat_repo)) -> dict[str, Any]:
    chat = await repo.get_shared_chat(chat_id)
    if chat is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Shared chat not found")
    return _public(chat)
