from __future__ import annotations

import httpx

from dreamer_watch.llm.base import ToolSpec
from dreamer_watch.search_clients.serper import SerperClient
from dreamer_watch.search_clients.tavily import TavilyClient
from dreamer_watch.settings import Settings
from dreamer_watch.tools.retrieve import retrieve_tool
from dreamer_watch.tools.search import search_tool
from dreamer_watch.tools.video_search import video_search_tool


def get_tools(*, settings: Settings, http: httpx.AsyncClient) -> list[ToolSpec]:
    """
    Tools offered to the model during research.

    `search` and `retrieve` are always offered (a missing key degrades to empty
    results); `video_search` only when a Serper key is configured.
    """

    tavily = TavilyClient(settings=settings, http=http)
    tools = [search_tool(client=tavily), retrieve_tool(client=tavily)]
    if settings.serper_api_key:
        tools.append(video_search_tool(client=SerperClient(settings=settings, http=http)))
    return tools
