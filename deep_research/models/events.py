from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum


class StreamEventType(str, Enum):
    REASONING = "reasoning"
    CONTENT = "content"
    STATUS = "status"
    ERROR = "error"


@dataclass(frozen=True)
class StreamEvent:
    """One externally observable unit of the outbound stream."""

    kind: StreamEventType
    text: str

    def to_sse(self) -> dict[str, str]:
        """Envelope understood by sse_starlette.EventSourceResponse."""
        return {"event": self.kind.value, "data": json.dumps({"text": self.text})}
