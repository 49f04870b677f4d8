from __future__ import annotations

from deep_research.config import Settings


def test_defaults():
    s = Settings(_env_file=None)

    assert s.research_default_breadth == 3
    assert s.research_default_depth == 2
    assert s.search_results_per_query == 5
    assert s.research_learnings_per_query == 3
    assert s.think_open_marker == "<think>"


def test_clamp_uses_defaults_and_bounds():
    s = Settings(_env_file=None, research_max_breadth=6, research_max_depth=4)

    assert s.clamp_breadth(None) == 3
    assert s.clamp_breadth(0) == 1
    assert s.clamp_breadth(50) == 6
    assert s.clamp_depth(None) == 2
    assert s.clamp_depth(-2) == 1
    assert s.clamp_depth(9) == 4


def test_cors_origin_list_splits():
    s = Settings(_env_file=None, cors_origins="http://a.test, http://b.test")

    assert s.cors_origin_list == ["http://a.test", "http://b.test"]
