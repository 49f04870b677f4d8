from __future__ import annotations

from deep_research import prompts
from deep_research.agents.base import BaseAgent
from deep_research.config import settings
from deep_research.services import streaming
from deep_research.services.multiplexer import EventSink


class ChatAgent(BaseAgent):
    """Plain streamed chat over the caller's message history."""

    name = "chat"

    async def reply(self, messages: list[dict[str, str]], sink: EventSink) -> None:
        sent = await self.stream_to(
            sink,
            None,
            messages=messages,
            temperature=settings.chat_temperature,
            max_tokens=settings.chat_max_tokens,
        )
        if not sent:
            await sink.emit(streaming.content(prompts.CHAT_EMPTY_REPLY))
