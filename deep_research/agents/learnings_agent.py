from __future__ import annotations

from deep_research import prompts
from deep_research.agents.base import BaseAgent
from deep_research.models.research import SearchHit, SynthesisPayload, SynthesisResult
from deep_research.services.multiplexer import EventSink


def _strings(values: list) -> list[str]:
    return [value for value in values if isinstance(value, str) and value.strip()]


class LearningsAgent(BaseAgent):
    """Extracts learnings and follow-up questions from one query's search hits."""

    name = "learnings"

    def system_prompt(self) -> str:
        return prompts.learnings_system_prompt()

    async def synthesize(
        self,
        query: str,
        hits: list[SearchHit],
        max_learnings: int,
        sink: EventSink,
    ) -> SynthesisResult:
        if not hits:
            return SynthesisResult()

        contents = [hit.snippet for hit in hits if hit.snippet]
        prompt = prompts.learnings_prompt(query, contents, max_learnings)
        payload = await self.extract(prompt, sink, shape=SynthesisPayload, default=None)
        if payload is None:
            return SynthesisResult()

        return SynthesisResult(
            learnings=_strings(payload.learnings)[: max(max_learnings, 1)],
            follow_up_questions=_strings(payload.follow_up_questions),
        )
