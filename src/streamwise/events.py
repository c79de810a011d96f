"""Standardized stream events.

Every provider stream is normalized into this closed set of event types.
Callers can rely on the following ordering contract for one stream: zero or
more :class:`TextDelta`, :class:`ToolCall` and :class:`Metadata` events, then
at most one terminal event, either :class:`Finish` or :class:`Error`.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class TextDelta(BaseModel):
    """A fragment of generated text, concatenated in arrival order."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text_delta"] = "text_delta"
    content: str


class ToolCall(BaseModel):
    """A complete tool invocation request."""

    model_config = ConfigDict(frozen=True)

    type: Literal["tool_call"] = "tool_call"
    id: str
    name: str
    arguments: str = Field(description="JSON-encoded arguments, as sent on the wire")


class Finish(BaseModel):
    """Terminal marker, e.g. ``stop``, ``length``, ``tool_calls`` or ``complete``."""

    model_config = ConfigDict(frozen=True)

    type: Literal["finish"] = "finish"
    reason: str = Field(min_length=1)


class Metadata(BaseModel):
    """Opaque payload that did not classify as text, tool call or finish."""

    model_config = ConfigDict(frozen=True)

    type: Literal["metadata"] = "metadata"
    data: dict[str, Any] = Field(default_factory=dict)


class Error(BaseModel):
    """Terminal failure signal; always the last event of a stream."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type: Literal["error"] = "error"
    error: Any


StreamEvent = Annotated[
    Union[TextDelta, ToolCall, Finish, Metadata, Error],
    Field(discriminator="type"),
]


def is_terminal(event: BaseModel) -> bool:
    """Return True for events that end a stream."""
    return isinstance(event, (Finish, Error))
