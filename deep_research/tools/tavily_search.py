from __future__ import annotations

from tavily import AsyncTavilyClient

from deep_research.config import settings
from deep_research.exceptions import SearchProviderError
from deep_research.models.research import SearchHit


async def search(query: str, *, max_results: int = 5) -> list[SearchHit]:
    """Execute a Tavily web search."""
    if not settings.tavily_api_key:
        raise SearchProviderError("TAVILY_API_KEY is not configured")

    client = AsyncTavilyClient(api_key=settings.tavily_api_key)
    response = await client.search(
        query=query,
        search_depth="basic",
        max_results=max_results,
    )
    return [
        SearchHit(
            url=r.get("url", "") or "",
            title=r.get("title", "") or "",
            snippet=r.get("content", "") or "",
        )
        for r in response.get("results", [])
    ]
