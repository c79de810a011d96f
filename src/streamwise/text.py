"""High-level helpers for one-shot text generation and streaming."""

from __future__ import annotations

from typing import Any

from streamwise.messages import prepare_messages
from streamwise.models import ChatMessage, GenerateResult, StreamOptions
from streamwise.providers.base import LLMProvider
from streamwise.streaming import EventStream


def generate_text(
    provider: LLMProvider,
    model: str,
    *,
    prompt: str | None = None,
    system: str | None = None,
    messages: list[ChatMessage | dict[str, Any]] | None = None,
    **params: Any,
) -> GenerateResult:
    """Run a buffered completion and return the full result."""
    chat = prepare_messages(prompt=prompt, system=system, messages=messages)
    return provider.chat_completion(model, chat, **params)


async def agenerate_text(
    provider: LLMProvider,
    model: str,
    *,
    prompt: str | None = None,
    system: str | None = None,
    messages: list[ChatMessage | dict[str, Any]] | None = None,
    **params: Any,
) -> GenerateResult:
    """Async variant of :func:`generate_text`."""
    chat = prepare_messages(prompt=prompt, system=system, messages=messages)
    return await provider.achat_completion(model, chat, **params)


async def stream_text(
    provider: LLMProvider,
    model: str,
    *,
    prompt: str | None = None,
    system: str | None = None,
    messages: list[ChatMessage | dict[str, Any]] | None = None,
    options: StreamOptions | None = None,
    **params: Any,
) -> EventStream:
    """Open a streamed completion.

    Raises :class:`~streamwise.errors.ConnectionFailedError` when the stream
    cannot be established. Usage::

        async with await stream_text(provider, "gpt-4.1-mini", prompt="Hi") as stream:
            async for event in stream:
                ...
    """
    chat = prepare_messages(prompt=prompt, system=system, messages=messages)
    return await provider.astream_completion(model, chat, options=options, **params)
