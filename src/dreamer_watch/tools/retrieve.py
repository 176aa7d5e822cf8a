"""Page retrieval tool backed by the Tavily extract API."""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel, Field

from dreamer_watch.llm.base import ToolSpec
from dreamer_watch.observability.logging import get_logger
from dreamer_watch.search_clients.errors import SearchClientError
from dreamer_watch.search_clients.models import SearchResults
from dreamer_watch.search_clients.tavily import TavilyClient

log = get_logger(__name__)

DESCRIPTION = "Retrieve content from the web"


class RetrieveParams(BaseModel):
    url: str = Field(description="The url to retrieve")


async def run_retrieve(params: RetrieveParams, *, client: TavilyClient) -> dict[str, Any]:
    try:
        results = await client.extract(url=params.url)
    except (SearchClientError, httpx.HTTPError) as e:
        log.error("retrieve_failed", url=params.url, error=str(e))
        return SearchResults.empty().model_dump()

    if results is None:
        log.info("retrieve_empty", url=params.url)
        return SearchResults.empty().model_dump()
    return results.model_dump()


def retrieve_tool(*, client: TavilyClient) -> ToolSpec:
    async def _handler(params: RetrieveParams) -> dict[str, Any]:
        return await run_retrieve(params, client=client)

    return ToolSpec(
        name="retrieve", description=DESCRIPTION, params_model=RetrieveParams, handler=_handler
    )
