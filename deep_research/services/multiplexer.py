"""Merge model events and status notes into one outbound stream.

Producers write `StreamEvent`s into an `EventSink`; `multiplex` drains the
sink and encodes each event into the wire format chosen for the response:
plain text with reasoning wrapped in think markers, or an SSE envelope with
one event type per channel.
"""
from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager, suppress
from typing import Any, AsyncIterator, Awaitable, Callable

from loguru import logger

from deep_research.config import settings
from deep_research.models.events import StreamEvent, StreamEventType
from deep_research.services import streaming

TEXT_FORMAT = "text"
SSE_FORMAT = "sse"

_CLOSED = object()


class EventSink:
    """Single-consumer queue of outbound events.

    `call_scope` serializes model calls that run concurrently, so one call's
    deltas are never interleaved with another's. Status notes wait for the
    running call to finish and therefore land right before the next call.
    """

    def __init__(
        self,
        *,
        relabel_content_as_reasoning: bool = False,
        _queue: asyncio.Queue | None = None,
        _lock: asyncio.Lock | None = None,
    ):
        self.relabel_content_as_reasoning = relabel_content_as_reasoning
        self._queue: asyncio.Queue = _queue or asyncio.Queue()
        self._lock = _lock or asyncio.Lock()

    def research_phase(self) -> "EventSink":
        """Sink sharing this queue whose answer text is shown as reasoning."""
        return EventSink(
            relabel_content_as_reasoning=True,
            _queue=self._queue,
            _lock=self._lock,
        )

    async def emit(self, event: StreamEvent) -> None:
        if self.relabel_content_as_reasoning and event.kind is StreamEventType.CONTENT:
            event = streaming.reasoning(event.text)
        await self._queue.put(event)

    async def note(self, text: str) -> None:
        async with self._lock:
            await self.emit(streaming.status(text))

    @asynccontextmanager
    async def call_scope(self) -> AsyncIterator["EventSink"]:
        async with self._lock:
            yield self

    async def close(self) -> None:
        await self._queue.put(_CLOSED)

    async def drain(self) -> AsyncIterator[StreamEvent]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item


class TextMarkerEncoder:
    """Plain-text wire format: reasoning spans wrapped in think markers."""

    def __init__(self, open_marker: str | None = None, close_marker: str | None = None):
        self.open_marker = open_marker or settings.think_open_marker
        self.close_marker = close_marker or settings.think_close_marker
        self.in_reasoning = False

    def _open(self) -> str:
        if self.in_reasoning:
            return ""
        self.in_reasoning = True
        return f"{self.open_marker}\n"

    def _close(self) -> str:
        if not self.in_reasoning:
            return ""
        self.in_reasoning = False
        return f"{self.close_marker}\n\n"

    def encode(self, event: StreamEvent) -> str:
        if event.kind is StreamEventType.REASONING:
            return self._open() + event.text
        if event.kind is StreamEventType.STATUS:
            return self._open() + f"\n> {event.text}\n\n"
        if event.kind is StreamEventType.CONTENT:
            return self._close() + event.text
        return self._close() + f"\n\n**Error:** {event.text}\n"

    def finish(self) -> str:
        return self._close()


class SseEncoder:
    """Structured envelope: one SSE event type per channel plus `done`."""

    def encode(self, event: StreamEvent) -> dict[str, str]:
        return event.to_sse()

    def finish(self) -> dict[str, str]:
        return {"event": "done", "data": json.dumps({})}


def get_encoder(stream_format: str | None = None) -> TextMarkerEncoder | SseEncoder:
    fmt = (stream_format or settings.stream_format).lower().strip()
    if fmt == TEXT_FORMAT:
        return TextMarkerEncoder()
    if fmt == SSE_FORMAT:
        return SseEncoder()
    raise ValueError(f"Unsupported stream format: {stream_format}")


async def multiplex(
    producer: Callable[[EventSink], Awaitable[None]],
    encoder: TextMarkerEncoder | SseEncoder,
) -> AsyncIterator[Any]:
    """Run `producer` in a task and yield its events encoded for the wire.

    Closing the generator (client disconnect) cancels the producer task, which
    propagates into whatever model or search call is in flight.
    """
    sink = EventSink()

    async def run() -> None:
        try:
            await producer(sink)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"Research stream failed: {e}")
            await sink.emit(streaming.error("Research run failed unexpectedly."))
        finally:
            await sink.close()

    task = asyncio.create_task(run())
    try:
        async for event in sink.drain():
            chunk = encoder.encode(event)
            if chunk:
                yield chunk
        tail = encoder.finish()
        if tail:
            yield tail
    finally:
        if not task.done():
            logger.info("Outbound stream closed early, cancelling research run")
            task.cancel()
        with suppress(asyncio.CancelledError):
            await task
