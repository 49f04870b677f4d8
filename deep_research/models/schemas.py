from __future__ import annotations

from pydantic import BaseModel


# --- Requests ---


class ChatMessage(BaseModel):
    role: str
    content: str = ""


class ResearchRequest(BaseModel):
    messages: list[ChatMessage] | None = None
    topic: str | None = None
    breadth: int | None = None
    depth: int | None = None

    def resolve_topic(self) -> str | None:
        """Explicit topic, else the content of the last user-authored message."""
        if self.topic and self.topic.strip():
            return self.topic.strip()
        user_messages = [m for m in self.messages or [] if m.role == "user"]
        if not user_messages:
            return None
        content = user_messages[-1].content.strip()
        return content or None


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = []


# --- Responses ---


class ErrorResponse(BaseModel):
    error: str
