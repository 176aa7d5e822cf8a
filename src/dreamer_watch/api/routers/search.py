"""
dreamer_watch.api.routers.search

Cache-fronted advanced search endpoint.

No search engine sits behind this endpoint: cached payloads are served when
present, otherwise a well-formed "unavailable" envelope is returned.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from dreamer_watch.api.deps import search_cache_repo
from dreamer_watch.observability.logging import get_logger
from dreamer_watch.store.repositories.search_cache import SearchCacheRepo, search_cache_key

router = APIRouter(prefix="/api", tags=["search"])
log = get_logger(__name__)

UNAVAILABLE_MESSAGE = "Search functionality is currently unavailable."


class AdvancedSearchRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    query: str = ""
    max_results: int | None = None
    search_depth: str | None = None
    include_domains: list[str] | None = None
    exclude_domains: list[str] | None = None


def _empty_envelope(query: str, **extra: Any) -> dict[str, Any]:
    return {**extra, "query": query, "results": [], "images": [], "number_of_results": 0}


@router.post("/advanced-search")
async def advanced_search(
    body: AdvancedSearchRequest,
    cache: SearchCacheRepo = Depends(search_cache_repo),
) -> Any:
    try:
        key = search_cache_key(
            query=body.query,
            max_results=body.max_results,
            search_depth=body.search_depth,
            include_domains=body.include_domains,
            exclude_domains=body.exclude_domains,
        )
        cached = await cache.get(key)
        if cached:
            return cached
        return _empty_envelope(body.query, message=UNAVAILABLE_MESSAGE)
    except Exception as e:
        log.exception("advanced_search_failed", query=body.query)
        return JSONResponse(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            content=_empty_envelope(body.query, message="Internal Server Error", error=str(e)),
        )
