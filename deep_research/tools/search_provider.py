"""Search adapter: one query in, normalized hits out, never raises."""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from deep_research.config import settings
from deep_research.models.research import SearchHit
from deep_research.services import logger as log_service
from deep_research.tools import bing_search, brave_search, tavily_search, web_utils

ProviderFn = Callable[..., Awaitable[list[SearchHit]]]

PROVIDERS: dict[str, ProviderFn] = {
    "bing": bing_search.search,
    "brave": brave_search.search,
    "tavily": tavily_search.search,
}


@dataclass
class SearchResponse:
    hits: list[SearchHit] = field(default_factory=list)
    provider: str | None = None
    fallback_from: str | None = None
    fallback_reason: str | None = None
    error: str | None = None


def prepare_query(query: str) -> str:
    """Collapse whitespace and cut the query to a length providers accept."""
    cleaned = web_utils.collapse_whitespace(query or "")
    limit = max(settings.search_max_query_chars, 1)
    if len(cleaned) > limit:
        cleaned = cleaned[:limit].rsplit(" ", 1)[0] or cleaned[:limit]
    return cleaned


def normalize_hits(hits: list[SearchHit], limit: int) -> list[SearchHit]:
    normalized: list[SearchHit] = []
    seen: set[str] = set()
    for hit in hits:
        if not web_utils.is_valid_url(hit.url):
            continue
        key = web_utils.normalize_url(hit.url)
        if key in seen:
            continue
        seen.add(key)
        normalized.append(
            SearchHit(
                url=hit.url.strip(),
                title=web_utils.clean_snippet(hit.title, max_length=300),
                snippet=web_utils.clean_snippet(hit.snippet),
            )
        )
        if len(normalized) >= limit:
            break
    return normalized


async def _run_provider(name: str, query: str, limit: int) -> list[SearchHit]:
    provider = PROVIDERS.get(name)
    if provider is None:
        raise ValueError(f"Unsupported SEARCH_PROVIDER: {name}")
    t0 = time.monotonic()
    try:
        hits = await provider(query, max_results=limit)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        log_service.log_search_call(
            provider=name,
            query=query,
            results_count=0,
            duration_ms=int((time.monotonic() - t0) * 1000),
            error=str(e) or type(e).__name__,
        )
        raise
    log_service.log_search_call(
        provider=name,
        query=query,
        results_count=len(hits),
        duration_ms=int((time.monotonic() - t0) * 1000),
    )
    return hits


async def search(query: str, limit: int | None = None) -> SearchResponse:
    """Search the configured provider, falling back to a second one if set.

    Provider failures (HTTP errors, malformed payloads, missing keys) come
    back as an empty hit list with `error` set; nothing propagates.
    """
    limit = max(limit or settings.search_results_per_query, 1)
    prepared = prepare_query(query)
    if not prepared:
        return SearchResponse(error="empty search query")

    primary = settings.search_provider.lower().strip()
    fallback = settings.search_fallback_provider.lower().strip()
    if fallback == primary:
        fallback = ""

    failure: str | None = None
    try:
        hits = normalize_hits(await _run_provider(primary, prepared, limit), limit)
        if hits or not fallback:
            return SearchResponse(hits=hits, provider=primary)
        failure = f"{primary} returned zero results"
    except asyncio.CancelledError:
        raise
    except Exception as e:
        failure = str(e) or type(e).__name__
        if not fallback:
            return SearchResponse(provider=primary, error=failure)

    try:
        hits = normalize_hits(await _run_provider(fallback, prepared, limit), limit)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        return SearchResponse(
            provider=fallback,
            fallback_from=primary,
            fallback_reason=failure,
            error=str(e) or type(e).__name__,
        )
    return SearchResponse(
        hits=hits,
        provider=fallback,
        fallback_from=primary,
        fallback_reason=failure,
    )
