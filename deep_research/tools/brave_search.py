from __future__ import annotations

from typing import Any

import httpx

from deep_research.config import settings
from deep_research.exceptions import SearchProviderError
from deep_research.models.research import SearchHit

BRAVE_SEARCH_URL = "https://api.search.brave.com/res/v1/web/search"


def map_results(payload: dict[str, Any]) -> list[SearchHit]:
    raw_results = (payload.get("web") or {}).get("results") or []
    mapped: list[SearchHit] = []
    for item in raw_results:
        snippets = item.get("extra_snippets", []) or []
        description = item.get("description", "") or ""
        mapped.append(
            SearchHit(
                url=item.get("url", "") or "",
                title=item.get("title", "") or "",
                snippet=description.strip() or " ".join(snippets).strip(),
            )
        )
    return mapped


async def search(query: str, *, max_results: int = 5) -> list[SearchHit]:
    """Execute a Brave web search and normalize results."""
    if not settings.brave_api_key:
        raise SearchProviderError("BRAVE_API_KEY is not configured")

    async with httpx.AsyncClient(timeout=settings.search_timeout_seconds) as client:
        response = await client.get(
            BRAVE_SEARCH_URL,
            params={"q": query, "count": max_results},
            headers={
                "Accept": "application/json",
                "X-Subscription-Token": settings.brave_api_key,
            },
        )
        response.raise_for_status()
        payload = response.json()

    if not isinstance(payload, dict):
        raise SearchProviderError("Brave API returned a non-object payload")
    return map_results(payload)
