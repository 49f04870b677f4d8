from __future__ import annotations

from deep_research.models.events import StreamEvent, StreamEventType


def reasoning(text: str) -> StreamEvent:
    return StreamEvent(kind=StreamEventType.REASONING, text=text)


def content(text: str) -> StreamEvent:
    return StreamEvent(kind=StreamEventType.CONTENT, text=text)


def status(text: str) -> StreamEvent:
    """Out-of-band progress note from the orchestrator."""
    return StreamEvent(kind=StreamEventType.STATUS, text=text)


def error(message: str) -> StreamEvent:
    return StreamEvent(kind=StreamEventType.ERROR, text=message)
