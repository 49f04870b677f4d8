"""Test doubles for the model backend and event sink."""
from __future__ import annotations

from typing import Any

from deep_research.llm_client import CONTENT, REASONING, ModelDelta, Usage
from deep_research.models.events import StreamEvent, StreamEventType
from deep_research.services.multiplexer import EventSink


def content(*chunks: str) -> list[ModelDelta]:
    return [ModelDelta(CONTENT, chunk) for chunk in chunks]


def reasoning(*chunks: str) -> list[ModelDelta]:
    return [ModelDelta(REASONING, chunk) for chunk in chunks]


class FakeStream:
    def __init__(self, deltas: list[ModelDelta], error: Exception | None = None):
        self._deltas = deltas
        self._error = error
        self.usage = Usage(input_tokens=10, output_tokens=len(deltas))

    async def __aenter__(self) -> "FakeStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    async def _iter(self):
        for delta in self._deltas:
            yield delta
        if self._error is not None:
            raise self._error

    @property
    def deltas(self):
        return self._iter()


class FakeLLM:
    """Replays one scripted delta list per `stream` call."""

    def __init__(self, *responses: list[ModelDelta] | Exception):
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    def stream(self, **kwargs: Any) -> FakeStream:
        self.calls.append(kwargs)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            return FakeStream([], error=response)
        return FakeStream(response)


async def collect(sink: EventSink) -> list[StreamEvent]:
    await sink.close()
    return [event async for event in sink.drain()]


def coalesce(events: list[StreamEvent]) -> list[tuple[StreamEventType, str]]:
    """Merge adjacent events of the same channel."""
    merged: list[tuple[StreamEventType, str]] = []
    for event in events:
        if merged and merged[-1][0] is event.kind:
            merged[-1] = (event.kind, merged[-1][1] + event.text)
        else:
            merged.append((event.kind, event.text))
    return merged
