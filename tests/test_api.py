from __future__ import annotations

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sse_starlette.sse import EventSourceResponse

from deep_research.api.routes.research import start_research
from deep_research.main import app
from deep_research.models.schemas import ResearchRequest
from deep_research.services import streaming

client = TestClient(app)


class FakeOrchestrator:
    """Replaces the real pipeline: one status note and a one-line report."""

    seen_params = []

    def __init__(self, *args, **kwargs):
        self.run_id = "test-run"

    async def run(self, params, sink):
        FakeOrchestrator.seen_params.append(params)
        await sink.research_phase().note("planning")
        await sink.emit(streaming.content("# Report"))


class FakeChatAgent:
    def __init__(self, *args, **kwargs):
        pass

    async def reply(self, messages, sink):
        await sink.emit(streaming.reasoning("hmm"))
        await sink.emit(streaming.content(f"echo: {messages[-1]['content']}"))


def test_health():
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "deep-research"}


def test_research_requires_messages():
    response = client.post("/api/research", json={})

    assert response.status_code == 400
    assert response.json() == {"error": "Chat messages are required"}


def test_research_requires_a_user_message():
    response = client.post(
        "/api/research", json={"messages": [{"role": "assistant", "content": "hello"}]}
    )

    assert response.status_code == 400
    assert response.json() == {"error": "No valid user query found"}


def test_research_rejects_blank_last_user_message():
    response = client.post("/api/research", json={"messages": [{"role": "user", "content": "  "}]})

    assert response.status_code == 400
    assert response.json() == {"error": "No valid user query found"}


def test_malformed_body_is_a_400_with_error_field():
    response = client.post("/api/research", json={"messages": "not a list"})

    assert response.status_code == 400
    assert "messages" in response.json()["error"]


def test_unknown_format_is_rejected():
    response = client.post(
        "/api/research?format=xml", json={"messages": [{"role": "user", "content": "q"}]}
    )

    assert response.status_code == 400
    assert "Unsupported stream format" in response.json()["error"]


def test_research_streams_reasoning_then_report():
    FakeOrchestrator.seen_params.clear()
    with patch("deep_research.api.routes.research.ResearchOrchestrator", FakeOrchestrator):
        response = client.post(
            "/api/research",
            json={
                "messages": [
                    {"role": "user", "content": "first question"},
                    {"role": "assistant", "content": "answer"},
                    {"role": "user", "content": "  battery recycling  "},
                ],
                "breadth": 99,
                "depth": 0,
            },
        )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.text == "<think>\n\n> planning\n\n</think>\n\n# Report"
    params = FakeOrchestrator.seen_params[0]
    assert params.topic == "battery recycling"
    assert params.breadth == 10
    assert params.depth == 1


@pytest.mark.asyncio
async def test_sse_format_uses_event_source_response():
    with patch("deep_research.api.routes.research.ResearchOrchestrator", FakeOrchestrator):
        response = await start_research(ResearchRequest(topic="solar"), format="sse")

    assert isinstance(response, EventSourceResponse)


def test_chat_requires_messages():
    response = client.post("/api/chat", json={"messages": []})

    assert response.status_code == 400
    assert response.json() == {"error": "A non-empty messages array is required"}


def test_chat_streams_reasoning_and_answer():
    with patch("deep_research.api.routes.chat.ChatAgent", FakeChatAgent):
        response = client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})

    assert response.status_code == 200
    assert response.text == "<think>\nhmm</think>\n\necho: hi"
