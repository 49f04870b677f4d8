from __future__ import annotations

import asyncio
import json

import pytest

from deep_research.services import streaming
from deep_research.services.multiplexer import (
    EventSink,
    SseEncoder,
    TextMarkerEncoder,
    get_encoder,
    multiplex,
)
from tests.fakes import collect


class TestTextMarkerEncoder:
    def test_reasoning_then_content(self):
        encoder = TextMarkerEncoder("<think>", "</think>")
        chunks = [
            encoder.encode(streaming.status("Planning")),
            encoder.encode(streaming.reasoning("r")),
            encoder.encode(streaming.content("c")),
        ]

        assert "".join(chunks) + encoder.finish() == "<think>\n\n> Planning\n\nr</think>\n\nc"

    def test_finish_closes_open_span(self):
        encoder = TextMarkerEncoder("<think>", "</think>")
        encoder.encode(streaming.reasoning("still thinking"))

        assert encoder.finish() == "</think>\n\n"
        assert encoder.finish() == ""

    def test_content_only_has_no_markers(self):
        encoder = TextMarkerEncoder("<think>", "</think>")

        assert encoder.encode(streaming.content("plain")) == "plain"
        assert encoder.finish() == ""

    def test_error_closes_reasoning(self):
        encoder = TextMarkerEncoder("<think>", "</think>")
        encoder.encode(streaming.reasoning("r"))

        assert encoder.encode(streaming.error("boom")) == "</think>\n\n\n\n**Error:** boom\n"


class TestSseEncoder:
    def test_events_carry_channel_name(self):
        encoder = SseEncoder()

        assert encoder.encode(streaming.reasoning("r")) == {
            "event": "reasoning",
            "data": json.dumps({"text": "r"}),
        }
        assert encoder.encode(streaming.status("s"))["event"] == "status"
        assert encoder.finish() == {"event": "done", "data": "{}"}


def test_get_encoder_by_name():
    assert isinstance(get_encoder("text"), TextMarkerEncoder)
    assert isinstance(get_encoder(" SSE "), SseEncoder)
    with pytest.raises(ValueError):
        get_encoder("xml")


@pytest.mark.asyncio
async def test_research_phase_sink_relabels_content():
    sink = EventSink()
    research = sink.research_phase()

    await research.emit(streaming.content("json"))
    await research.note("note")
    await sink.emit(streaming.content("report"))
    events = await collect(sink)

    assert [(e.kind.value, e.text) for e in events] == [
        ("reasoning", "json"),
        ("status", "note"),
        ("content", "report"),
    ]


@pytest.mark.asyncio
async def test_call_scope_keeps_calls_contiguous():
    sink = EventSink()

    async def call(label: str):
        async with sink.call_scope():
            for i in range(3):
                await sink.emit(streaming.content(f"{label}{i}"))
                await asyncio.sleep(0)

    await asyncio.gather(call("a"), call("b"))
    events = await collect(sink)

    assert [e.text for e in events] == ["a0", "a1", "a2", "b0", "b1", "b2"]


@pytest.mark.asyncio
async def test_multiplex_yields_encoded_events_in_order():
    async def producer(sink):
        await sink.note("step")
        await sink.emit(streaming.content("answer"))

    chunks = [chunk async for chunk in multiplex(producer, TextMarkerEncoder("<think>", "</think>"))]

    assert "".join(chunks) == "<think>\n\n> step\n\n</think>\n\nanswer"


@pytest.mark.asyncio
async def test_multiplex_reports_producer_failure():
    async def producer(sink):
        await sink.emit(streaming.content("partial"))
        raise RuntimeError("secret internals")

    chunks = [chunk async for chunk in multiplex(producer, SseEncoder())]

    assert chunks[0]["event"] == "content"
    assert chunks[1] == {
        "event": "error",
        "data": json.dumps({"text": "Research run failed unexpectedly."}),
    }
    assert chunks[-1]["event"] == "done"
    assert "secret internals" not in json.dumps(chunks)


@pytest.mark.asyncio
async def test_closing_stream_cancels_producer():
    started = asyncio.Event()
    cancelled = asyncio.Event()

    async def producer(sink):
        await sink.emit(streaming.content("first"))
        started.set()
        try:
            await asyncio.sleep(60)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    stream = multiplex(producer, TextMarkerEncoder("<think>", "</think>"))
    assert await stream.__anext__() == "first"
    await started.wait()
    await stream.aclose()

    assert cancelled.is_set()
