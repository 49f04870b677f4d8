"""Loguru sinks and structured log lines for research runs."""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from deep_research.config import settings
from deep_research.llm_client import Usage

_LINE = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

logger.remove()
logger.add(sys.stderr, format="<level>" + _LINE + "</level>", level=settings.app_log_level.upper(), colorize=True)

if settings.log_to_file:
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    # Daily files, a week kept.
    logger.add(
        log_dir / "deep_research_{time:YYYY-MM-DD}.log",
        format=_LINE,
        level="DEBUG",
        rotation="00:00",
        retention="7 days",
        compression="zip",
    )

for noisy in (
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "fastapi",
    "sse_starlette.sse",
    "httpx",
    "httpcore",
    "openai._base_client",
    "asyncio",
):
    logging.getLogger(noisy).setLevel(settings.noisy_log_level.upper())


def _record(tag: str, level: str = "INFO", **fields: Any) -> None:
    payload = {"timestamp": datetime.now(timezone.utc).isoformat(), **fields}
    logger.log(level, f"{tag}: {payload}")


def log_llm_call(
    model: str,
    caller: str,
    duration_ms: int,
    usage: Optional[Usage] = None,
    unterminated_reasoning: bool = False,
    error: Optional[str] = None,
) -> None:
    """Log one streamed model call, successful or not."""
    if error:
        _record("LLM_CALL_FAILED", "ERROR", model=model, caller=caller, duration_ms=duration_ms, error=error)
        return
    usage = usage or Usage()
    _record(
        "LLM_CALL",
        "WARNING" if unterminated_reasoning else "INFO",
        model=model,
        caller=caller,
        input_tokens=usage.input_tokens,
        output_tokens=usage.output_tokens,
        duration_ms=duration_ms,
        unterminated_reasoning=unterminated_reasoning,
    )


def log_search_call(
    provider: str,
    query: str,
    results_count: int,
    duration_ms: int = 0,
    error: Optional[str] = None,
) -> None:
    fields = {
        "provider": provider,
        "query": query[:200],
        "results_count": results_count,
        "duration_ms": duration_ms,
    }
    if error:
        _record("SEARCH_CALL_FAILED", "WARNING", error=error, **fields)
    else:
        _record("SEARCH_CALL", **fields)


def log_research_step(
    run_id: str,
    step_type: str,
    status: str,
    data: Optional[dict[str, Any]] = None,
) -> None:
    """One orchestration step (plan, branch) of a research run."""
    _record("RESEARCH_STEP", run_id=run_id, step_type=step_type, status=status, data=data)


def log_event(event_type: str, message: str, **kwargs: Any) -> None:
    _record("EVENT", event_type=event_type, message=message, **kwargs)
