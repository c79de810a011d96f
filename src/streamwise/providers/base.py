"""Base protocol for LLM provider adapters."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from streamwise.models import ChatMessage, GenerateResult, StreamOptions
    from streamwise.streaming import EventStream


@runtime_checkable
class LLMProvider(Protocol):
    """Interface for provider adapters speaking the OpenAI chat wire format."""

    @property
    def name(self) -> str:
        """Provider name, e.g. 'openai', 'lmstudio'."""
        ...

    def chat_completion(
        self,
        model: str,
        messages: list[ChatMessage | dict[str, Any]],
        *,
        timeout: float = 120.0,
        **params: Any,
    ) -> GenerateResult:
        """Synchronous buffered completion."""
        ...

    async def achat_completion(
        self,
        model: str,
        messages: list[ChatMessage | dict[str, Any]],
        *,
        timeout: float = 120.0,
        **params: Any,
    ) -> GenerateResult:
        """Async buffered completion."""
        ...

    async def astream_completion(
        self,
        model: str,
        messages: list[ChatMessage | dict[str, Any]],
        *,
        options: StreamOptions | None = None,
        **params: Any,
    ) -> EventStream:
        """Open a stream. Raises ConnectionFailedError if it cannot start."""
        ...
