from __future__ import annotations

import re
from urllib.parse import urlparse, urlunparse


def is_valid_url(url: str) -> bool:
    """Basic URL validation."""
    try:
        result = urlparse(url)
        return all([result.scheme in ("http", "https"), result.netloc])
    except ValueError:
        return False


def normalize_url(url: str) -> str:
    """Dedup key for a URL: trimmed, scheme/host lowercased, fragment dropped."""
    cleaned = url.strip()
    try:
        parsed = urlparse(cleaned)
    except ValueError:
        return cleaned
    if not parsed.scheme or not parsed.netloc:
        return cleaned
    return urlunparse(
        (
            parsed.scheme.lower(),
            parsed.netloc.lower(),
            parsed.path or "/",
            parsed.params,
            parsed.query,
            "",
        )
    )


def collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def clean_snippet(text: str, max_length: int = 2000) -> str:
    """Strip the highlight tags some providers leave in snippets, collapse whitespace."""
    text = re.sub(r"</?(b|strong|em)>", "", text or "")
    text = collapse_whitespace(text)
    if len(text) > max_length:
        text = text[:max_length] + "..."
    return text
