from __future__ import annotations

from deep_research import prompts
from deep_research.agents.base import BaseAgent
from deep_research.models.research import PlannedQuery, QueryPlan
from deep_research.services.multiplexer import EventSink
from deep_research.tools.web_utils import collapse_whitespace

FALLBACK_RESEARCH_GOAL = "research the original query"


class QueryPlanner(BaseAgent):
    """Turns a topic plus prior learnings into a bounded list of search queries."""

    name = "planner"

    def system_prompt(self) -> str:
        return prompts.planner_system_prompt()

    @staticmethod
    def normalize_plan(plan: QueryPlan | None, max_queries: int) -> list[PlannedQuery]:
        """Drop malformed and duplicate entries, cap at `max_queries`."""
        if plan is None:
            return []
        planned: list[PlannedQuery] = []
        seen: set[str] = set()
        for item in plan.queries:
            if not isinstance(item, dict):
                continue
            query = item.get("query")
            if not isinstance(query, str):
                continue
            query = collapse_whitespace(query)
            key = query.lower()
            if not query or key in seen:
                continue
            goal = item.get("researchGoal", item.get("research_goal", ""))
            seen.add(key)
            planned.append(
                PlannedQuery(query=query, research_goal=goal if isinstance(goal, str) else "")
            )
            if len(planned) >= max(max_queries, 1):
                break
        return planned

    async def plan(
        self,
        topic: str,
        prior_learnings: list[str] | tuple[str, ...],
        max_queries: int,
        sink: EventSink,
    ) -> list[PlannedQuery]:
        prompt = prompts.planner_prompt(topic, list(prior_learnings), max_queries)
        plan = await self.extract(prompt, sink, shape=QueryPlan, default=None)
        queries = self.normalize_plan(plan, max_queries)
        if not queries:
            # An empty plan would end this branch without doing any work.
            return [PlannedQuery(query=topic, research_goal=FALLBACK_RESEARCH_GOAL)]
        return queries
