"""Web search tool - Google Custom Search with a labeled synthetic fallback."""

import asyncio

import aiohttp
from agent.logs import get_file_logger
from agent.messages import ToolResult
from tools.base_tool import Tool


MOCK_NOTE = "Mock implementation - configure Google API for real results"
NO_RESULTS_NOTE = "No results found for this query"


def mock_search_results(query: str) -> dict:
    """Placeholder results returned when the provider is unavailable."""
    return {
        "query": query,
        "results": [
            {
                "title": f'Latest information about "{query}"',
                "link": "https://example.com/result1",
                "snippet": (
                    f'This is a mock search result for "{query}". '
                    "Configure Google API credentials for real search results."
                ),
            },
            {
                "title": f"{query} - Complete Guide",
                "link": "https://example.com/result2",
                "snippet": (
                    f"Mock result showing comprehensive information about {query}. "
                    "Real Google Search API integration available."
                ),
            },
        ],
        "note": MOCK_NOTE,
        "synthetic": True,
    }


class GoogleSearchTool(Tool):
    name = "google_search"
    description = (
        "Search Google for current information. "
        "Returns search results with titles, links, and snippets."
    )
    parameters = {
        "query": {"type": "string", "description": "The search query"},
    }
    required_args = ["query"]

    async def execute(self, **kwargs) -> ToolResult:
        query = str(kwargs.get("query", "")).strip()
        if not query:
            return ToolResult.failure("No search query provided")

        search = self.config.search
        self.emit("status", f'Searching Google for: "{query}"')

        if not search.has_credentials:
            self.emit("alert", "Google Search API not configured. Using mock results.")
            return self._fallback(query)

        try:
            data = await self._fetch(query)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            get_file_logger("web_search", self.config.log_dir).warning(
                "Search for %r failed, using mock results: %s", query, e
            )
            self.emit("alert", f"Google Search failed: {e}")
            return self._fallback(query)

        items = data.get("items") or []
        if not items:
            self.emit("status", "No search results found.")
            return ToolResult.ok({"query": query, "results": [], "note": NO_RESULTS_NOTE})

        results = [
            {
                "title": item.get("title", ""),
                "link": item.get("link", ""),
                "snippet": item.get("snippet") or "No description available",
            }
            for item in items
        ]
        self.emit("search_results", f"{len(results)} search results", results=results, synthetic=False)

        info = data.get("searchInformation") or {}
        return ToolResult.ok({
            "query": query,
            "results": results,
            "total_results": info.get("totalResults", 0),
            "search_time": info.get("searchTime", 0),
        })

    async def _fetch(self, query: str) -> dict:
        """GET the Custom Search endpoint. Raises ValueError on a non-2xx reply."""
        search = self.config.search
        params = {
            "key": search.api_key,
            "cx": search.cx,
            "q": query,
            "num": str(search.num_results),
        }
        timeout = aiohttp.ClientTimeout(total=search.timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(search.endpoint, params=params) as resp:
                if resp.status < 200 or resp.status >= 300:
                    raise ValueError(f"Google API Error: {resp.status} - {resp.reason}")
                data = await resp.json(content_type=None)
        if not isinstance(data, dict):
            raise ValueError(f"Google API returned {type(data).__name__}, expected an object")
        return data

    def _fallback(self, query: str) -> ToolResult:
        payload = mock_search_results(query)
        self.emit(
            "search_results",
            f"{len(payload['results'])} mock search results",
            results=payload["results"],
            synthetic=True,
        )
        return ToolResult.ok(payload)
