from __future__ import annotations

from deep_research import prompts
from deep_research.agents.base import BaseAgent
from deep_research.services import streaming
from deep_research.services.multiplexer import EventSink
from deep_research.tools.web_utils import normalize_url


def build_sources_section(urls: list[str] | tuple[str, ...]) -> str:
    """Deterministic sources list in accumulation order, deduplicated."""
    ordered: list[str] = []
    seen: set[str] = set()
    for url in urls:
        key = normalize_url(url)
        if not key or key in seen:
            continue
        seen.add(key)
        ordered.append(url.strip())
    if not ordered:
        return ""
    return f"\n\n{prompts.SOURCES_HEADING}\n" + "\n".join(f"- {url}" for url in ordered)


class ReportWriter(BaseAgent):
    """Streams the final long-form report.

    Nothing is buffered: reasoning and report text go to the sink as they
    arrive, since this call dominates end-to-end latency.
    """

    name = "report"

    def system_prompt(self) -> str:
        return prompts.report_system_prompt()

    async def write_report(
        self,
        topic: str,
        learnings: list[str] | tuple[str, ...],
        urls: list[str] | tuple[str, ...],
        sink: EventSink,
    ) -> None:
        await self.stream_to(sink, prompts.report_prompt(topic, list(learnings)))
        sources = build_sources_section(urls)
        if sources:
            await sink.emit(streaming.content(sources))
