from __future__ import annotations

from fastapi import APIRouter

from deep_research.agents.chat_agent import ChatAgent
from deep_research.api.deps import error_response, stream_response
from deep_research.models.schemas import ChatRequest, ErrorResponse
from deep_research.services.multiplexer import EventSink, get_encoder, multiplex

router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.post("", responses={400: {"model": ErrorResponse}})
async def chat(request: ChatRequest, format: str | None = None):
    """Stream a single chat completion with its reasoning channel."""
    if not request.messages:
        return error_response("A non-empty messages array is required")

    try:
        encoder = get_encoder(format)
    except ValueError as e:
        return error_response(str(e))

    messages = [{"role": m.role, "content": m.content} for m in request.messages]
    agent = ChatAgent()

    async def producer(sink: EventSink) -> None:
        await agent.reply(messages, sink)

    return stream_response(multiplex(producer, encoder), encoder)
