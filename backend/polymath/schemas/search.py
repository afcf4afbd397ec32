"""Pydantic schemas for web search results."""

from typing import Literal

from pydantic import BaseModel


class SearchResult(BaseModel):
    """One hit from a search provider, tagged with where it came from."""

    title: str
    snippet: str
    url: str
    source: Literal["duckduckgo", "wikipedia"]
