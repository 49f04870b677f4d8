"""Split one incremental text stream into reasoning and content channels.

Models that reason inline wrap their thinking in an open/close marker pair
(``<think>`` ... ``</think>`` by default). The demultiplexer is fed one delta
at a time and routes text to whichever channel is active, holding back any
suffix that could still turn into a marker once the next delta arrives.
"""
from __future__ import annotations

import codecs
from enum import Enum

from deep_research.models.events import StreamEvent
from deep_research.services import streaming


class Channel(str, Enum):
    CONTENT = "content"
    REASONING = "reasoning"


class ThinkTagDemultiplexer:
    """Two-state machine (content / reasoning) with buffered marker lookahead."""

    def __init__(self, open_marker: str = "<think>", close_marker: str = "</think>"):
        if not open_marker or not close_marker:
            raise ValueError("markers must be non-empty")
        if open_marker == close_marker:
            raise ValueError("open and close markers must differ")
        self.open_marker = open_marker
        self.close_marker = close_marker
        self.state = Channel.CONTENT
        self.closed_unterminated = False
        self._pending = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._finished = False

    @property
    def in_reasoning(self) -> bool:
        return self.state is Channel.REASONING

    def _event(self, text: str) -> StreamEvent:
        if self.state is Channel.REASONING:
            return streaming.reasoning(text)
        return streaming.content(text)

    def _held_suffix_length(self, text: str) -> int:
        """Length of the longest suffix of `text` that is a proper prefix of a marker."""
        longest = 0
        for marker in (self.open_marker, self.close_marker):
            upper = min(len(marker) - 1, len(text))
            for size in range(upper, longest, -1):
                if text.endswith(marker[:size]):
                    longest = size
                    break
        return longest

    def _next_marker(self, text: str) -> tuple[int, str] | None:
        hits = [
            (index, marker)
            for marker in (self.open_marker, self.close_marker)
            if (index := text.find(marker)) >= 0
        ]
        if not hits:
            return None
        # Earliest wins; on a tie the longer marker is the more specific match.
        return min(hits, key=lambda hit: (hit[0], -len(hit[1])))

    def feed(self, delta: str | bytes) -> list[StreamEvent]:
        if self._finished:
            raise RuntimeError("demultiplexer already finished")
        if isinstance(delta, bytes):
            delta = self._decoder.decode(delta)
        if not delta:
            return []

        buffer = self._pending + delta
        self._pending = ""
        events: list[StreamEvent] = []

        while buffer:
            found = self._next_marker(buffer)
            if found is None:
                held = self._held_suffix_length(buffer)
                emit_upto = len(buffer) - held
                if emit_upto:
                    events.append(self._event(buffer[:emit_upto]))
                self._pending = buffer[emit_upto:]
                break

            index, marker = found
            if index:
                events.append(self._event(buffer[:index]))
            if marker == self.open_marker:
                self.state = Channel.REASONING
            else:
                self.state = Channel.CONTENT
            buffer = buffer[index + len(marker):]

        return events

    def finish(self) -> list[StreamEvent]:
        """Flush held text and close an unterminated reasoning span."""
        if self._finished:
            return []
        self._finished = True
        events: list[StreamEvent] = []
        tail = self._pending + self._decoder.decode(b"", final=True)
        self._pending = ""
        if tail:
            events.append(self._event(tail))
        if self.state is Channel.REASONING:
            self.closed_unterminated = True
            self.state = Channel.CONTENT
        return events
