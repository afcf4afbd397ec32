"""Free web search: DuckDuckGo Instant Answers plus Wikipedia full-text search."""

import asyncio
import html
import logging
import re
from urllib.parse import quote

import httpx

from polymath.config import Settings
from polymath.schemas.search import SearchResult

logger = logging.getLogger(__name__)

DUCKDUCKGO_URL = "https://api.duckduckgo.com/"
WIKIPEDIA_API_URL = "https://en.wikipedia.org/w/api.php"
WIKIPEDIA_ARTICLE_URL = "https://en.wikipedia.org/wiki/"

_HTML_TAG = re.compile(r"<[^>]*>")


def strip_html(text: str) -> str:
    """Remove markup from a search snippet."""
    return html.unescape(_HTML_TAG.sub("", text))


class WebSearchService:
    """
    Queries two independent providers and concatenates their results.

    A provider that errors or overruns its time budget (the whole request,
    not each connect/read phase) contributes zero results; search() itself
    never raises.
    """

    def __init__(self, client: httpx.AsyncClient, settings: Settings):
        self.client = client
        self.timeout = settings.search_timeout_seconds
        self.general_max_results = settings.search_general_max_results
        self.encyclopedia_max_results = settings.search_encyclopedia_max_results

    async def search_duckduckgo(self, query: str, max_results: int = 5) -> list[SearchResult]:
        """Instant-answer abstract first, then related topics."""
        try:
            response = await asyncio.wait_for(
                self.client.get(
                    DUCKDUCKGO_URL,
                    params={"q": query, "format": "json", "no_html": 1, "skip_disambig": 1},
                ),
                self.timeout,
            )
            response.raise_for_status()
            data = response.json()

            results: list[SearchResult] = []
            if data.get("Abstract") and data.get("AbstractText"):
                results.append(
                    SearchResult(
                        title=data.get("Heading") or query,
                        snippet=data["AbstractText"],
                        url=data.get("AbstractURL") or "",
                        source="duckduckgo",
                    )
                )

            related = data.get("RelatedTopics")
            if isinstance(related, list):
                for topic in related[: max(max_results - len(results), 0)]:
                    text = topic.get("Text") if isinstance(topic, dict) else None
                    url = topic.get("FirstURL") if isinstance(topic, dict) else None
                    if text and url:
                        results.append(
                            SearchResult(
                                title=text.split(" - ")[0] or text,
                                snippet=text,
                                url=url,
                                source="duckduckgo",
                            )
                        )

            return results[:max_results]
        except Exception:
            logger.exception("DuckDuckGo search failed for query=%r", query)
            return []

    async def search_wikipedia(self, query: str, max_results: int = 3) -> list[SearchResult]:
        """Full-text article search; snippets come back with highlight markup."""
        try:
            response = await asyncio.wait_for(
                self.client.get(
                    WIKIPEDIA_API_URL,
                    params={
                        "action": "query",
                        "list": "search",
                        "srsearch": query,
                        "format": "json",
                        "srlimit": max_results,
                        "srprop": "snippet",
                    },
                ),
                self.timeout,
            )
            response.raise_for_status()
            data = response.json()

            results: list[SearchResult] = []
            for item in (data.get("query") or {}).get("search") or []:
                title = item["title"]
                results.append(
                    SearchResult(
                        title=title,
                        snippet=strip_html(item.get("snippet", "")),
                        url=WIKIPEDIA_ARTICLE_URL + quote(title.replace(" ", "_"), safe=""),
                        source="wikipedia",
                    )
                )
            return results[:max_results]
        except Exception:
            logger.exception("Wikipedia search failed for query=%r", query)
            return []

    async def search(self, query: str) -> list[SearchResult]:
        """DuckDuckGo results (capped) followed by Wikipedia results (capped)."""
        duck_results, wiki_results = await asyncio.gather(
            self.search_duckduckgo(query, self.general_max_results),
            self.search_wikipedia(query, self.encyclopedia_max_results),
        )
        return [*duck_results, *wiki_results]
