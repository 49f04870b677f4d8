from __future__ import annotations

from typing import Any

import httpx

from deep_research.config import settings
from deep_research.exceptions import SearchProviderError
from deep_research.models.research import SearchHit


def map_results(payload: dict[str, Any]) -> list[SearchHit]:
    pages = (payload.get("webPages") or {}).get("value") or []
    return [
        SearchHit(
            url=page.get("url", "") or "",
            title=page.get("name", "") or "",
            snippet=page.get("snippet", "") or "",
        )
        for page in pages
        if isinstance(page, dict)
    ]


async def search(query: str, *, max_results: int = 5) -> list[SearchHit]:
    """Execute a Bing Web Search v7 query."""
    if not settings.bing_api_key:
        raise SearchProviderError("BING_API_KEY is not configured")

    params = {
        "q": query,
        "count": str(max_results),
        "responseFilter": "Webpages",
        "textFormat": "HTML",
    }
    async with httpx.AsyncClient(timeout=settings.search_timeout_seconds) as client:
        response = await client.get(
            settings.bing_endpoint,
            params=params,
            headers={"Ocp-Apim-Subscription-Key": settings.bing_api_key},
        )
        if response.status_code != 200:
            raise SearchProviderError(f"Bing API request failed: {response.status_code}")
        payload = response.json()

    if not isinstance(payload, dict):
        raise SearchProviderError("Bing API returned a non-object payload")
    return map_results(payload)
