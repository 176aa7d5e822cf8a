"""
dreamer_watch.search_clients.tavily

HTTP client for the Tavily search and extract APIs.

Responsibilities:
- Build the provider request bodies (credentials travel in the JSON body).
- Normalize responses into `SearchResults`.
- Raise typed errors; degrading to empty results is the tool layer's job.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any, Literal

import httpx

from dreamer_watch.search_clients.errors import SearchConfigError, SearchUpstreamError
from dreamer_watch.search_clients.models import (
    SearchResultImage,
    SearchResultItem,
    SearchResults,
)
from dreamer_watch.settings import Settings

CONTENT_CHARACTER_LIMIT = 10_000
MIN_UPSTREAM_RESULTS = 5

_WHITESPACE = re.compile(r"\s+")


def sanitize_url(url: str) -> str:
    return _WHITESPACE.sub("%20", url)


def _normalize_images(raw: Any) -> list[SearchResultImage | str]:
    images: list[SearchResultImage | str] = []
    for img in raw or []:
        # Only described images are useful to the answer; bare URLs are dropped.
        if isinstance(img, dict) and img.get("url") and img.get("description") is not None:
            images.append(
                SearchResultImage(url=sanitize_url(str(img["url"])), description=str(img["description"]))
            )
    return images


class TavilyClient:
    def __init__(self, *, settings: Settings, http: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http
        self._base_url = settings.tavily_base_url.rstrip("/")

    def _api_key(self) -> str:
        if not self._settings.tavily_api_key:
            raise SearchConfigError("TAVILY_API_KEY is not set in the environment variables")
        return self._settings.tavily_api_key

    async def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        r = await self._http.post(
            f"{self._base_url}{path}",
            json=body,
            timeout=self._settings.http_timeout_seconds,
        )
        if r.is_error:
            raise SearchUpstreamError(f"Tavily API error: {r.status_code} {r.reason_phrase}")
        try:
            data = r.json()
        except ValueError as e:
            raise SearchUpstreamError("Tavily API returned malformed JSON") from e
        if not isinstance(data, dict):
            raise SearchUpstreamError("Tavily API returned an unexpected payload")
        return data

    async def search(
        self,
        *,
        query: str,
        max_results: int = 10,
        search_depth: Literal["basic", "advanced"] = "basic",
        include_domains: Sequence[str] | None = None,
        exclude_domains: Sequence[str] | None = None,
    ) -> SearchResults:
        data = await self._post(
            "/search",
            {
                "api_key": self._api_key(),
                "query": query,
                "max_results": max(max_results, MIN_UPSTREAM_RESULTS),
                "search_depth": search_depth,
                "include_images": True,
                "include_image_descriptions": True,
                "include_answers": True,
                "include_domains": list(include_domains or []),
                "exclude_domains": list(exclude_domains or []),
            },
        )
        results = [
            SearchResultItem(
                title=str(item.get("title", "")),
                url=str(item.get("url", "")),
                content=str(item.get("content", "")),
            )
            for item in data.get("results") or []
            if isinstance(item, dict)
        ]
        return SearchResults(
            query=str(data.get("query") or query),
            results=results,
            images=_normalize_images(data.get("images")),
            number_of_results=len(results),
        )

    async def extract(self, *, url: str) -> SearchResults | None:
        data = await self._post("/extract", {"api_key": self._api_key(), "urls": [url]})
        results = data.get("results") or []
        if not results:
            return None

        first = results[0] if isinstance(results, list) else None
        if not isinstance(first, dict):
            raise SearchUpstreamError("Tavily API returned an unexpected payload")
        content = str(first.get("raw_content") or "")[:CONTENT_CHARACTER_LIMIT]
        return SearchResults(
            query="",
            results=[
                SearchResultItem(title=content[:100], content=content, url=str(first.get("url", url)))
            ],
            images=[],
            number_of_results=1,
        )


# --- Module Notes -----------------------------------------------------------
# Upstream is asked for at least five results even when fewer are requested.
