from __future__ import annotations

from typing import Any, AsyncIterator

from fastapi.responses import JSONResponse, StreamingResponse
from sse_starlette.sse import EventSourceResponse

from deep_research.services.multiplexer import SseEncoder, TextMarkerEncoder

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


def error_response(message: str, status_code: int = 400) -> JSONResponse:
    """Synchronous failure body, returned before any streaming starts."""
    return JSONResponse(status_code=status_code, content={"error": message})


def stream_response(
    stream: AsyncIterator[Any], encoder: TextMarkerEncoder | SseEncoder
) -> StreamingResponse | EventSourceResponse:
    if isinstance(encoder, SseEncoder):
        return EventSourceResponse(stream, headers={"Cache-Control": "no-cache"})
    return StreamingResponse(
        _encode_utf8(stream),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
    )


async def _encode_utf8(stream: AsyncIterator[str]) -> AsyncIterator[bytes]:
    async for chunk in stream:
        yield chunk.encode("utf-8")
