from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field

from deep_research.tools.web_utils import collapse_whitespace, normalize_url


@dataclass(frozen=True)
class ResearchParams:
    """Immutable inputs of one orchestration run."""

    topic: str
    breadth: int
    depth: int


@dataclass(frozen=True)
class SearchHit:
    url: str
    title: str
    snippet: str


class PlannedQuery(BaseModel):
    """A single search query produced by the planner."""

    model_config = ConfigDict(populate_by_name=True)

    query: str
    research_goal: str = Field(default="", alias="researchGoal")


class QueryPlan(BaseModel):
    """Expected planner output: {"queries": [{"query", "researchGoal"}]}."""

    queries: list[dict] = []


class SynthesisPayload(BaseModel):
    """Expected synthesizer output: {"learnings": [...], "followUpQuestions": [...]}."""

    model_config = ConfigDict(populate_by_name=True)

    learnings: list = []
    follow_up_questions: list = Field(default_factory=list, alias="followUpQuestions")


@dataclass(frozen=True)
class SynthesisResult:
    learnings: list[str] = field(default_factory=list)
    follow_up_questions: list[str] = field(default_factory=list)


def normalize_learning(text: str) -> str:
    return collapse_whitespace(text)


def _ordered_union(
    existing: Iterable[str], additions: Iterable[str], normalize
) -> tuple[str, ...]:
    merged: list[str] = []
    seen: set[str] = set()
    for value in (*existing, *additions):
        if not isinstance(value, str):
            continue
        key = normalize(value)
        if not key or key in seen:
            continue
        seen.add(key)
        merged.append(value.strip())
    return tuple(merged)


@dataclass(frozen=True)
class ResearchState:
    """Accumulated learnings and visited URLs.

    Both collections behave as insertion-ordered sets keyed by their
    normalized value. Instances are never mutated: branches derive new states
    and the parent merges them.
    """

    learnings: tuple[str, ...] = ()
    visited_urls: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "learnings", _ordered_union((), self.learnings, normalize_learning)
        )
        object.__setattr__(
            self, "visited_urls", _ordered_union((), self.visited_urls, normalize_url)
        )

    def with_findings(
        self, learnings: Iterable[str] = (), urls: Iterable[str] = ()
    ) -> "ResearchState":
        return ResearchState(
            learnings=_ordered_union(self.learnings, learnings, normalize_learning),
            visited_urls=_ordered_union(self.visited_urls, urls, normalize_url),
        )

    def merge(self, other: "ResearchState") -> "ResearchState":
        return self.with_findings(other.learnings, other.visited_urls)

    def to_dict(self) -> dict[str, list[str]]:
        return {"learnings": list(self.learnings), "visitedUrls": list(self.visited_urls)}


def merge_states(*states: ResearchState) -> ResearchState:
    """Set-union of any number of states, first occurrence wins the order."""
    merged = ResearchState()
    for state in states:
        merged = merged.merge(state)
    return merged
