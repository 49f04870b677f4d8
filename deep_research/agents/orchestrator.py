from __future__ import annotations

import asyncio
import math
import time
from typing import Awaitable, Callable
from uuid import uuid4

from loguru import logger

from deep_research import prompts
from deep_research.agents.learnings_agent import LearningsAgent
from deep_research.agents.query_planner import FALLBACK_RESEARCH_GOAL, QueryPlanner
from deep_research.agents.report_writer import ReportWriter
from deep_research.config import settings
from deep_research.llm_client import OpenRouterClient, get_model
from deep_research.models.research import (
    PlannedQuery,
    ResearchParams,
    ResearchState,
    SearchHit,
    merge_states,
)
from deep_research.services import logger as log_service
from deep_research.services.multiplexer import EventSink
from deep_research.tools import search_provider
from deep_research.tools.search_provider import SearchResponse

SearchFn = Callable[[str, int], Awaitable[SearchResponse]]


def next_breadth(breadth: int) -> int:
    """Frontier for the next level: half the breadth, rounded up, never 0."""
    return max(math.ceil(breadth / 2), 1)


class ResearchOrchestrator:
    """Recursive research loop: plan, search, extract learnings, drill down.

    Flow per level:
      1. Stop when the depth budget is spent
      2. Plan at most `breadth` queries, biased by what is already known
      3. For each query: search, then extract learnings and follow-ups
      4. Recurse on follow-ups with half the breadth while depth allows
      5. Join every branch, then merge their states into one

    Branches never share a mutable state. Each starts from the level's
    snapshot and returns its own; only the level merge writes the result.
    """

    def __init__(
        self,
        model: str | None = None,
        llm: OpenRouterClient | None = None,
        *,
        planner: QueryPlanner | None = None,
        learnings_agent: LearningsAgent | None = None,
        report_writer: ReportWriter | None = None,
        search: SearchFn | None = None,
        max_parallel_queries: int | None = None,
        learnings_per_query: int | None = None,
        results_per_query: int | None = None,
    ):
        self.model = model or get_model()
        self.planner = planner or QueryPlanner(self.model, llm)
        self.learnings_agent = learnings_agent or LearningsAgent(self.model, llm)
        self.report_writer = report_writer or ReportWriter(self.model, llm)
        self.search = search or search_provider.search
        self.max_parallel_queries = max(
            int(max_parallel_queries or settings.research_max_parallel_queries), 1
        )
        self.learnings_per_query = max(
            int(learnings_per_query or settings.research_learnings_per_query), 1
        )
        self.results_per_query = max(
            int(results_per_query or settings.search_results_per_query), 1
        )
        self.run_id = uuid4().hex[:12]

    async def _plan(
        self, topic: str, state: ResearchState, breadth: int, level: int, sink: EventSink
    ) -> list[PlannedQuery]:
        try:
            return await self.planner.plan(topic, state.learnings, breadth, sink)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Planner failed at level {level}, researching the topic directly: {e}")
            await sink.note("Query planning failed, searching the topic directly.")
            return [PlannedQuery(query=topic, research_goal=FALLBACK_RESEARCH_GOAL)]

    async def _search_and_learn(
        self,
        planned: PlannedQuery,
        index: int,
        total: int,
        state: ResearchState,
        sink: EventSink,
    ):
        await sink.note(f"Searching ({index + 1}/{total}): {planned.query}")
        response = await self.search(planned.query, self.results_per_query)
        if response.error:
            await sink.note(f'Search failed for "{planned.query}": {response.error}')
        hits: list[SearchHit] = response.hits
        if not hits:
            await sink.note(f'No results for "{planned.query}".')
            return state, []

        await sink.note(f"Found {len(hits)} results, extracting learnings.")
        result = await self.learnings_agent.synthesize(
            planned.query, hits, self.learnings_per_query, sink
        )
        branch_state = state.with_findings(result.learnings, [hit.url for hit in hits])
        return branch_state, result.follow_up_questions

    async def _run_branch(
        self,
        planned: PlannedQuery,
        index: int,
        total: int,
        breadth: int,
        depth: int,
        level: int,
        state: ResearchState,
        sink: EventSink,
        slots: asyncio.Semaphore,
    ) -> ResearchState:
        try:
            async with slots:
                branch_state, follow_ups = await self._search_and_learn(
                    planned, index, total, state, sink
                )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Dropping query '{planned.query}' after failure: {e}")
            log_service.log_research_step(
                self.run_id, "branch", "failed", {"query": planned.query, "level": level, "error": str(e)}
            )
            await sink.note(f'Skipping "{planned.query}" after an error.')
            return state

        log_service.log_research_step(
            self.run_id,
            "branch",
            "completed",
            {
                "query": planned.query,
                "level": level,
                "learnings": len(branch_state.learnings) - len(state.learnings),
                "follow_ups": len(follow_ups),
            },
        )

        if not follow_ups or level >= depth - 1:
            return branch_state

        child_breadth = next_breadth(breadth)
        await sink.note(
            f"Going deeper (level {level + 2}/{depth}, breadth {child_breadth}) "
            f"on {len(follow_ups)} follow-up questions."
        )
        try:
            return await self.research(
                prompts.follow_up_topic(planned.research_goal, follow_ups),
                child_breadth,
                depth,
                branch_state,
                level + 1,
                sink=sink,
                slots=slots,
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Follow-up research for '{planned.query}' failed: {e}")
            await sink.note("Follow-up research failed, keeping what was found so far.")
            return branch_state

    async def research(
        self,
        topic: str,
        breadth: int,
        depth: int,
        state: ResearchState | None = None,
        level: int = 0,
        *,
        sink: EventSink | None = None,
        slots: asyncio.Semaphore | None = None,
    ) -> ResearchState:
        """Research `topic` down to `depth` levels; returns the merged state.

        `slots` bounds how many searches and syntheses run at once across the
        whole tree. Planning and recursion happen outside a slot, so a parent
        branch never holds one while its children wait.
        """
        state = state or ResearchState()
        sink = sink or EventSink()
        if slots is None:
            slots = asyncio.Semaphore(self.max_parallel_queries)
        if level >= depth:
            return state

        await sink.note(f"Planning queries (level {level + 1}/{depth}, breadth {breadth}).")
        queries = await self._plan(topic, state, breadth, level, sink)
        await sink.note(
            f"Planned {len(queries)} queries:\n" + "\n".join(f"- {q.query}" for q in queries)
        )
        log_service.log_research_step(
            self.run_id, "plan", "completed", {"level": level, "queries": [q.query for q in queries]}
        )

        def branch(index: int, planned: PlannedQuery):
            return self._run_branch(
                planned, index, len(queries), breadth, depth, level, state, sink, slots
            )

        if self.max_parallel_queries == 1:
            # Depth-first, one query at a time.
            branch_states = [await branch(index, planned) for index, planned in enumerate(queries)]
        else:
            branch_states = await asyncio.gather(
                *(branch(index, planned) for index, planned in enumerate(queries))
            )
        return merge_states(state, *branch_states)

    async def run(self, params: ResearchParams, sink: EventSink) -> ResearchState:
        """Full pipeline: recursive research, then the streamed report."""
        started_at = time.monotonic()
        log_service.log_event(
            event_type="research_started",
            message="Research started",
            run_id=self.run_id,
            model=self.model,
            topic=params.topic[:100],
            breadth=params.breadth,
            depth=params.depth,
        )
        research_sink = sink.research_phase()
        await research_sink.note(
            f"Researching with breadth {params.breadth} and depth {params.depth}."
        )
        state = await self.research(
            params.topic, params.breadth, params.depth, sink=research_sink
        )
        await research_sink.note(
            f"Research finished: {len(state.learnings)} learnings from "
            f"{len(state.visited_urls)} sources. Writing the report."
        )
        logger.info(
            f"Research complete: {len(state.learnings)} learnings, {len(state.visited_urls)} URLs"
        )
        logger.debug(f"Final research state: {state.to_dict()}")

        await self.report_writer.write_report(
            params.topic, state.learnings, state.visited_urls, sink
        )
        log_service.log_event(
            event_type="research_complete",
            message="Report streamed",
            run_id=self.run_id,
            runtime_ms=int((time.monotonic() - started_at) * 1000),
        )
        return state
