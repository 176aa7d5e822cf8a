"""
dreamer_watch.search_clients.models

Result shapes returned to the model by the research tools.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SearchResultItem(BaseModel):
    title: str = ""
    url: str = ""
    content: str = ""


class SearchResultImage(BaseModel):
    url: str
    description: str


class SearchResults(BaseModel):
    query: str = ""
    results: list[SearchResultItem] = Field(default_factory=list)
    # Providers return either bare URLs or described images.
    images: list[SearchResultImage | str] = Field(default_factory=list)
    number_of_results: int = 0

    @classmethod
    def empty(cls, query: str = "") -> SearchResults:
        return cls(query=query)


class VideoSearchResults(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    search_parameters: dict[str, Any] = Field(default_factory=dict)
    videos: list[dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def empty(cls, query: str) -> VideoSearchResults:
        return cls(search_parameters={"q": query, "type": "video", "engine": "google"})
