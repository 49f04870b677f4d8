from __future__ import annotations

from fastapi import APIRouter

from deep_research.agents.orchestrator import ResearchOrchestrator
from deep_research.api.deps import error_response, stream_response
from deep_research.config import settings
from deep_research.models.research import ResearchParams
from deep_research.models.schemas import ResearchRequest, ErrorResponse
from deep_research.services import logger as log_service
from deep_research.services.multiplexer import EventSink, get_encoder, multiplex

router = APIRouter(prefix="/api/research", tags=["research"])


@router.post("", responses={400: {"model": ErrorResponse}})
async def start_research(request: ResearchRequest, format: str | None = None):
    """Validate the request, then stream research progress and the final report."""
    if request.topic is None and not request.messages:
        return error_response("Chat messages are required")

    topic = request.resolve_topic()
    if not topic:
        return error_response("No valid user query found")

    try:
        encoder = get_encoder(format)
    except ValueError as e:
        return error_response(str(e))

    params = ResearchParams(
        topic=topic,
        breadth=settings.clamp_breadth(request.breadth),
        depth=settings.clamp_depth(request.depth),
    )
    orchestrator = ResearchOrchestrator()
    log_service.log_event(
        event_type="research_requested",
        message="Research request accepted",
        run_id=orchestrator.run_id,
        topic=topic[:100],
        breadth=params.breadth,
        depth=params.depth,
    )

    async def producer(sink: EventSink) -> None:
        await orchestrator.run(params, sink)

    return stream_response(multiplex(producer, encoder), encoder)
