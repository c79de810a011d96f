"""In-memory provider for tests and offline demos."""

from __future__ import annotations

import json
from typing import Any

from streamwise.messages import build_request, prepare_messages
from streamwise.models import ChatMessage, GenerateResult, StreamOptions, Usage
from streamwise.streaming import EventStream, StreamingClient
from streamwise.transport import MemoryTransport


def sse_chunks(text: str, model: str = "mock-model", finish_reason: str = "stop") -> list[str]:
    """Render *text* as OpenAI-style SSE frames, one per character."""

    def _frame(delta: dict[str, Any], reason: str | None = None) -> str:
        chunk = {
            "id": "mock",
            "object": "chat.completion.chunk",
            "model": model,
            "choices": [{"index": 0, "delta": delta, "finish_reason": reason}],
        }
        return f"data: {json.dumps(chunk)}\n\n"

    frames = [_frame({"content": char}) for char in text]
    frames.append(_frame({}, finish_reason))
    frames.append("data: [DONE]\n\n")
    return frames


class MockProvider:
    """Answers every request with a fixed text.

    Streams go through the real decoding pipeline, fed from a
    :class:`MemoryTransport` instead of the network.
    """

    name = "mock"

    def __init__(self, text: str = "Hello, world!", stream_options: StreamOptions | None = None):
        self.text = text
        self.stream_options = stream_options or StreamOptions()
        self.transport = MemoryTransport()

    def chat_completion(
        self,
        model: str,
        messages: list[ChatMessage | dict[str, Any]],
        *,
        timeout: float = 120.0,
        **params: Any,
    ) -> GenerateResult:
        return GenerateResult(
            text=self.text,
            finish_reason="stop",
            usage=Usage(prompt_tokens=10, completion_tokens=20, total_tokens=30),
        )

    async def achat_completion(
        self,
        model: str,
        messages: list[ChatMessage | dict[str, Any]],
        *,
        timeout: float = 120.0,
        **params: Any,
    ) -> GenerateResult:
        return self.chat_completion(model, messages, timeout=timeout, **params)

    async def astream_completion(
        self,
        model: str,
        messages: list[ChatMessage | dict[str, Any]],
        *,
        options: StreamOptions | None = None,
        **params: Any,
    ) -> EventStream:
        self.transport.chunks = [c.encode() for c in sse_chunks(self.text, model)]
        payload = build_request(model, prepare_messages(messages=messages), stream=True, **params)
        client = StreamingClient(self.transport, options or self.stream_options)
        return await client.stream("memory://mock/chat/completions", payload, {})
