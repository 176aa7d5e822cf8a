"""Video search tool backed by the Serper videos API."""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel, Field

from dreamer_watch.llm.base import ToolSpec
from dreamer_watch.observability.logging import get_logger
from dreamer_watch.search_clients.errors import SearchClientError
from dreamer_watch.search_clients.models import VideoSearchResults
from dreamer_watch.search_clients.serper import SerperClient

log = get_logger(__name__)

DESCRIPTION = "Search for videos on YouTube related to watches using Serper"


class VideoSearchParams(BaseModel):
    query: str = Field(description="The query to search for")


async def run_video_search(params: VideoSearchParams, *, client: SerperClient) -> dict[str, Any]:
    try:
        results = await client.videos(query=params.query)
    except (SearchClientError, httpx.HTTPError) as e:
        log.error("video_search_failed", query=params.query, error=str(e))
        results = VideoSearchResults.empty(params.query)
    return results.model_dump(by_alias=True)


def video_search_tool(*, client: SerperClient) -> ToolSpec:
    async def _handler(params: VideoSearchParams) -> dict[str, Any]:
        return await run_video_search(params, client=client)

    return ToolSpec(
        name="video_search",
        description=DESCRIPTION,
        params_model=VideoSearchParams,
        handler=_handler,
    )
