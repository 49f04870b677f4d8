from __future__ import annotations

import pytest

from deep_research.models.events import StreamEventType
from deep_research.services.demux import ThinkTagDemultiplexer
from tests.fakes import coalesce

R = StreamEventType.REASONING
C = StreamEventType.CONTENT

SAMPLE = "Hello <think>plan a</think>answer <think>more</think> end"
EXPECTED = [(C, "Hello "), (R, "plan a"), (C, "answer "), (R, "more"), (C, " end")]


def run(chunks, demux=None):
    demux = demux or ThinkTagDemultiplexer()
    events = []
    for chunk in chunks:
        events.extend(demux.feed(chunk))
    events.extend(demux.finish())
    return events


def test_single_delta_routes_each_span():
    assert coalesce(run([SAMPLE])) == EXPECTED


def test_every_two_way_split_gives_same_channels():
    for i in range(len(SAMPLE) + 1):
        for j in range(i, len(SAMPLE) + 1):
            chunks = [SAMPLE[:i], SAMPLE[i:j], SAMPLE[j:]]
            assert coalesce(run(chunks)) == EXPECTED, chunks


def test_character_by_character_feed():
    assert coalesce(run(list(SAMPLE))) == EXPECTED


def test_concatenation_is_input_without_markers():
    events = run(["a<thi", "nk>b</", "think>c"])
    assert "".join(e.text for e in events) == "abc"


def test_multiple_markers_in_one_delta_are_emitted_in_order():
    demux = ThinkTagDemultiplexer()
    events = demux.feed("x<think>y</think>z")

    assert [(e.kind, e.text) for e in events] == [(C, "x"), (R, "y"), (C, "z")]


def test_partial_marker_is_held_until_resolved():
    demux = ThinkTagDemultiplexer()

    assert demux.feed("abc<") == [demux._event("abc")]
    assert demux.feed("b") == [demux._event("<b")]


def test_unterminated_reasoning_is_closed_on_finish():
    demux = ThinkTagDemultiplexer()
    events = run(["<think>still thinking"], demux)

    assert coalesce(events) == [(R, "still thinking")]
    assert demux.closed_unterminated is True
    assert demux.in_reasoning is False


def test_truncated_marker_prefix_is_flushed_as_text():
    demux = ThinkTagDemultiplexer()
    events = run(["<think>abc</thi"], demux)

    assert coalesce(events) == [(R, "abc</thi")]
    assert demux.in_reasoning is False


def test_close_marker_without_open_is_a_no_op():
    events = run(["a</think>b"])
    assert coalesce(events) == [(C, "ab")]


def test_open_marker_inside_reasoning_is_a_no_op():
    events = run(["<think>a<think>b</think>c"])
    assert coalesce(events) == [(R, "ab"), (C, "c")]


def test_split_multibyte_sequence_is_not_corrupted():
    encoded = "café <think>思考</think>答案".encode("utf-8")
    chunks = [encoded[i : i + 1] for i in range(len(encoded))]

    assert coalesce(run(chunks)) == [(C, "café "), (R, "思考"), (C, "答案")]


def test_custom_markers():
    demux = ThinkTagDemultiplexer("[[r]]", "[[/r]]")
    assert coalesce(run(["a[[r]]b[[/", "r]]c"], demux)) == [(C, "a"), (R, "b"), (C, "c")]


def test_empty_deltas_emit_nothing():
    demux = ThinkTagDemultiplexer()
    assert demux.feed("") == []
    assert demux.finish() == []


def test_feed_after_finish_raises():
    demux = ThinkTagDemultiplexer()
    demux.finish()
    with pytest.raises(RuntimeError):
        demux.feed("late")


def test_identical_markers_rejected():
    with pytest.raises(ValueError):
        ThinkTagDemultiplexer("|", "|")
