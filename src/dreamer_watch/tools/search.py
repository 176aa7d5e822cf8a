"""
dreamer_watch.tools.search

Web search tool backed by the Tavily search API.
"""

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

MIN_QUERY_LENGTH = 5

DESCRIPTION = "Search the web for information related to watches using Tavily"


class SearchParams(BaseModel):
    query: str = Field(description="The query to search for")
    max_results: int = Field(description="The maximum number of results to return")
    search_depth: str = Field(
        description='The depth of the search. Allowed values are "basic" or "advanced"'
    )
    include_domains: list[str] | None = Field(
        default=None,
        description=(
            "A list of domains to specifically include in the search results. "
            "Default is None, which includes all domains."
        ),
    )
    exclude_domains: list[str] | None = Field(
        default=None,
        description=(
            "A list of domains to specifically exclude from the search results. "
            "Default is None, which doesn't exclude any domains."
        ),
    )


def pad_query(query: str) -> str:
    # The search API rejects very short queries.
    return query.ljust(MIN_QUERY_LENGTH)


async def run_search(params: SearchParams, *, client: TavilyClient) -> dict[str, Any]:
    query = pad_query(params.query)

    if params.max_results <= 0:
        log.warning("search_invalid_max_results", max_results=params.max_results)
        return SearchResults.empty(query).model_dump()

    try:
        results = await client.search(
            query=query,
            max_results=params.max_results,
            search_depth="advanced" if params.search_depth == "advanced" else "basic",
            include_domains=params.include_domains,
            exclude_domains=params.exclude_domains,
        )
    except (SearchClientError, httpx.HTTPError) as e:
        log.error("search_failed", query=query, error=str(e))
        return SearchResults.empty(query).model_dump()

    log.info("search_completed", query=query, number_of_results=results.number_of_results)
    return results.model_dump()


def search_tool(*, client: TavilyClient) -> ToolSpec:
    async def _handler(params: SearchParams) -> dict[str, Any]:
        return await run_search(params, client=client)

    return ToolSpec(
        name="search", description=DESCRIPTION, params_model=SearchParams, handler=_handler
    )
