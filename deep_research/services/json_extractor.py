"""Best-effort structured parsing of a model's streamed answer.

The accumulated text is re-parsed after every delta. Payloads are small, and
there is no explicit end-of-block signal to wait for, so repeated attempts are
the simplest way to always hold the latest complete value.
"""
from __future__ import annotations

import json
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)


def strip_json_fence(text: str) -> str:
    """Remove a markdown code-fence wrapper around a JSON payload."""
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("json"):
        text = text[4:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


class IncrementalJsonExtractor(Generic[T]):
    """Keeps the most recent successful parse of the accumulating text.

    With a `shape` the parsed JSON must also validate against that pydantic
    model; without one any JSON value is accepted.
    """

    def __init__(self, shape: type[T] | None = None):
        self.shape = shape
        self.raw_text = ""
        self.value: T | Any | None = None
        self.attempts = 0

    def _parse(self, text: str) -> Any:
        parsed = json.loads(strip_json_fence(text))
        if self.shape is not None:
            return self.shape.model_validate(parsed)
        return parsed

    def feed(self, delta: str) -> None:
        if not delta:
            return
        self.raw_text += delta
        self.attempts += 1
        try:
            parsed = self._parse(self.raw_text)
        except (ValueError, RecursionError):
            # Incomplete payloads, schema mismatches (ValidationError is a
            # ValueError) and inputs json refuses to decode outright.
            return
        if parsed is not None:
            self.value = parsed

    def result(self, default: Any = None) -> T | Any:
        if self.value is None:
            return default
        return self.value
