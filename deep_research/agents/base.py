from __future__ import annotations

import asyncio
import time
from typing import Any, AsyncIterator

from deep_research.config import settings
from deep_research.exceptions import ModelCallError
from deep_research.llm_client import REASONING, ModelDelta, OpenRouterClient, client as llm_client, get_model
from deep_research.models.events import StreamEvent, StreamEventType
from deep_research.services import logger as log_service
from deep_research.services.demux import ThinkTagDemultiplexer
from deep_research.services.json_extractor import IncrementalJsonExtractor
from deep_research.services.multiplexer import EventSink


class BaseAgent:
    """Runs single streamed model calls and turns them into channel events.

    Every call goes through a fresh `ThinkTagDemultiplexer`. Reasoning the
    provider reports out of band is wrapped in the same markers first, so
    inline and out-of-band reasoning come out of one splitter.
    """

    name: str = "base"

    def __init__(self, model: str | None = None, llm: OpenRouterClient | None = None):
        self.model = model or get_model()
        self.client = llm

    def system_prompt(self) -> str:
        return ""

    def _marked_text(self, delta: ModelDelta, in_provider_reasoning: bool) -> tuple[str, bool]:
        if delta.kind == REASONING:
            if in_provider_reasoning:
                return delta.text, True
            return settings.think_open_marker + delta.text, True
        if in_provider_reasoning:
            return settings.think_close_marker + delta.text, False
        return delta.text, False

    async def stream_events(
        self,
        prompt: str | None = None,
        *,
        system: str | None = None,
        messages: list[dict[str, str]] | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Issue one model call and yield its reasoning/content events in order."""
        demux = ThinkTagDemultiplexer(settings.think_open_marker, settings.think_close_marker)
        active_client = self.client or llm_client()
        in_provider_reasoning = False
        t0 = time.monotonic()
        try:
            async with active_client.stream(
                model=self.model,
                system=system if system is not None else self.system_prompt(),
                prompt=prompt,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
            ) as stream:
                async for delta in stream.deltas:
                    text, in_provider_reasoning = self._marked_text(delta, in_provider_reasoning)
                    for event in demux.feed(text):
                        yield event
                for event in demux.finish():
                    yield event
                usage = stream.usage
                unterminated = demux.closed_unterminated
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log_service.log_llm_call(
                model=self.model,
                caller=self.name,
                duration_ms=int((time.monotonic() - t0) * 1000),
                error=str(e) or type(e).__name__,
            )
            raise ModelCallError(f"{self.name} model call failed: {e}") from e

        log_service.log_llm_call(
            model=self.model,
            caller=self.name,
            duration_ms=int((time.monotonic() - t0) * 1000),
            usage=usage,
            unterminated_reasoning=unterminated,
        )

    async def stream_to(self, sink: EventSink, prompt: str, **kwargs: Any) -> int:
        """Forward one call's events to `sink`; returns the number of events sent."""
        sent = 0
        async with sink.call_scope():
            async for event in self.stream_events(prompt, **kwargs):
                await sink.emit(event)
                sent += 1
        return sent

    async def extract(
        self,
        prompt: str,
        sink: EventSink,
        *,
        shape: type | None = None,
        default: Any = None,
    ) -> Any:
        """Stream one call to `sink` while parsing its content channel as JSON."""
        extractor = IncrementalJsonExtractor(shape)
        async with sink.call_scope():
            async for event in self.stream_events(prompt):
                if event.kind is StreamEventType.CONTENT:
                    extractor.feed(event.text)
                await sink.emit(event)
        return extractor.result(default)
