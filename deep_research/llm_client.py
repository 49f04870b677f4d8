"""OpenRouter streaming client over the OpenAI-compatible SDK."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, AsyncIterator

from deep_research.config import settings

REASONING = "reasoning"
CONTENT = "content"


@dataclass(frozen=True)
class ModelDelta:
    """One increment of a model response: reasoning or answer text."""

    kind: str
    text: str


@dataclass
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0


def _reasoning_text(delta: Any) -> str | None:
    # OpenRouter exposes `reasoning`; DeepSeek-compatible gateways use `reasoning_content`.
    for attr in ("reasoning", "reasoning_content"):
        value = getattr(delta, attr, None)
        if isinstance(value, str) and value:
            return value
    return None


class OpenRouterStream:
    def __init__(self, stream_coro: Any):
        self._stream_coro = stream_coro
        self._stream: Any | None = None
        self.usage = Usage()

    async def __aenter__(self) -> "OpenRouterStream":
        self._stream = await self._stream_coro
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._stream is not None:
            await self._stream.close()

    async def _iter_deltas(self) -> AsyncIterator[ModelDelta]:
        if self._stream is None:
            return
        async for chunk in self._stream:
            usage = getattr(chunk, "usage", None)
            if usage:
                self.usage = Usage(
                    input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                    output_tokens=getattr(usage, "completion_tokens", 0) or 0,
                )

            choices = getattr(chunk, "choices", None) or []
            if not choices:
                continue
            delta = getattr(choices[0], "delta", None)
            if not delta:
                continue
            reasoning = _reasoning_text(delta)
            if reasoning:
                yield ModelDelta(REASONING, reasoning)
            text = getattr(delta, "content", None)
            if text:
                yield ModelDelta(CONTENT, text)

    @property
    def deltas(self) -> AsyncIterator[ModelDelta]:
        return self._iter_deltas()


class OpenRouterClient:
    def __init__(self, openai_client: Any):
        self._client = openai_client

    @staticmethod
    def _temperature_for_model(model: str, requested: float) -> float:
        # Some OpenAI GPT-5-compatible gateways reject temperature=0.
        lowered = (model or "").lower()
        if "gpt-5" in lowered and requested == 0:
            return 1
        return requested

    @staticmethod
    def to_openai_messages(
        system: str | None,
        prompt: str | None = None,
        messages: list[dict[str, str]] | None = None,
    ) -> list[dict[str, str]]:
        openai_messages: list[dict[str, str]] = []
        if system:
            openai_messages.append({"role": "system", "content": system})
        for message in messages or []:
            openai_messages.append(
                {"role": message["role"], "content": str(message.get("content", ""))}
            )
        if prompt is not None:
            openai_messages.append({"role": "user", "content": prompt})
        return openai_messages

    def stream(
        self,
        *,
        model: str,
        system: str | None = None,
        prompt: str | None = None,
        messages: list[dict[str, str]] | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> OpenRouterStream:
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": self.to_openai_messages(system, prompt, messages),
            "max_tokens": max_tokens or settings.llm_max_tokens,
            "temperature": self._temperature_for_model(
                model,
                settings.llm_temperature if temperature is None else temperature,
            ),
            "stream": True,
            "stream_options": {"include_usage": True},
        }
        if settings.include_reasoning:
            kwargs["extra_body"] = {"include_reasoning": True}
        return OpenRouterStream(self._client.chat.completions.create(**kwargs))


def get_client() -> OpenRouterClient:
    """Get OpenRouter client via OpenAI-compatible SDK."""
    from openai import AsyncOpenAI

    base_url = settings.openrouter_base_url.strip() or "https://openrouter.ai/api/v1"
    openai_client = AsyncOpenAI(
        api_key=settings.openrouter_api_key,
        base_url=base_url,
    )
    return OpenRouterClient(openai_client)


def get_model() -> str:
    """Get the active OpenRouter model id."""
    if settings.openrouter_model:
        return settings.openrouter_model
    return settings.default_model


_client: OpenRouterClient | None = None


def client() -> OpenRouterClient:
    """Get or create the LLM client."""
    global _client
    if _client is None:
        _client = get_client()
    return _client
