"""Pydantic data models for streamwise."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class StreamState(str, Enum):
    """Lifecycle of a single event stream."""

    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DRAINING = "draining"
    FINISHED = "finished"
    ERRORED = "errored"
    CANCELLED = "cancelled"


class StreamOptions(BaseModel):
    """Per-stream timeouts and normalization policy."""

    timeout: float = Field(
        default=30.0, gt=0, description="Bound on connecting and receiving the status (seconds)"
    )
    idle_timeout: float = Field(
        default=5.0, gt=0, description="Wait for the next chunk before assuming the stream ended"
    )
    detect_end_of_stream: bool = Field(
        default=False,
        description="Synthesize a Finish when the transport closes without one",
    )
    filter_metadata: bool = Field(
        default=False, description="Drop Metadata events that carry no usable signal"
    )
    emit_raw_metadata: bool = Field(
        default=False,
        description="Also emit the raw chunk as Metadata when it yielded text",
    )
    end_of_stream_reason: str = Field(default="complete", min_length=1)
    done_reason: str = Field(
        default="stop", min_length=1, description="Finish reason implied by a bare [DONE]"
    )
    queue_size: int = Field(default=64, ge=1, description="Chunks buffered ahead of the consumer")


class CallWarning(BaseModel):
    """Non-fatal notice about a request, e.g. a setting the model ignores."""

    type: str = Field(default="unsupported_setting")
    setting: str | None = None
    message: str = ""


class RequestEcho(BaseModel):
    """The outgoing request as sent, for diagnostics."""

    url: str
    body: dict[str, Any] = Field(default_factory=dict)
    headers: dict[str, str] = Field(default_factory=dict)


class ChatMessage(BaseModel):
    """A single chat message in OpenAI format."""

    role: str
    content: str | None = None
    name: str | None = None
    tool_call_id: str | None = None
    tool_calls: list[dict[str, Any]] | None = None


class Usage(BaseModel):
    """Token usage as reported by the provider."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class FunctionCall(BaseModel):
    name: str = ""
    arguments: dict[str, Any] = Field(default_factory=dict)


class ToolCallResult(BaseModel):
    """A tool call from a buffered completion, with arguments decoded."""

    id: str = ""
    type: str = "function"
    function: FunctionCall = Field(default_factory=FunctionCall)


class GenerateResult(BaseModel):
    """Result of a buffered (non-streaming) completion."""

    text: str = ""
    reasoning: str | None = None
    finish_reason: str = "unknown"
    usage: Usage = Field(default_factory=Usage)
    tool_calls: list[ToolCallResult] = Field(default_factory=list)
    warnings: list[CallWarning] = Field(default_factory=list)
    raw_response: dict[str, Any] = Field(default_factory=dict)
