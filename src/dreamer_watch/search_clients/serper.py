"""
dreamer_watch.search_clients.serper

HTTP client for the Serper video search API.
"""

from __future__ import annotations

import httpx

from dreamer_watch.search_clients.errors import SearchConfigError, SearchUpstreamError
from dreamer_watch.search_clients.models import VideoSearchResults
from dreamer_watch.settings import Settings


class SerperClient:
    def __init__(self, *, settings: Settings, http: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http
        self._base_url = settings.serper_base_url.rstrip("/")

    async def videos(self, *, query: str) -> VideoSearchResults:
        api_key = self._settings.serper_api_key
        if not api_key:
            raise SearchConfigError("SERPER_API_KEY is not set in the environment variables")

        r = await self._http.post(
            f"{self._base_url}/videos",
            headers={"X-API-KEY": api_key},
            json={"q": query},
            timeout=self._settings.http_timeout_seconds,
        )
        if r.is_error:
            raise SearchUpstreamError(f"Serper API error: {r.status_code} {r.reason_phrase}")
        try:
            return VideoSearchResults.model_validate(r.json())
        except ValueError as e:
            raise SearchUpstreamError("Serper API returned malformed JSON") from e
