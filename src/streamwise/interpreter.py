"""Classify SSE ``data`` payloads from OpenAI-compatible providers."""

from __future__ import annotations

import json
import logging
from typing import Any

from streamwise.events import Finish, Metadata, StreamEvent, TextDelta
from streamwise.sse import DONE_SENTINEL

logger = logging.getLogger(__name__)


def _first_choice(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        return {}
    choices = payload.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        return choices[0]
    return {}


def _non_empty_str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


class PayloadInterpreter:
    """Turns one frame's ``data`` string into provisional events.

    Providers place content in different spots, so a decoded chunk is checked
    in a fixed priority order and the first match wins:

      1. ``choices[0].delta.content`` (OpenAI streaming chunk)
      2. ``choices[0].delta.tool_calls`` with at least one fragment (passed on
         as fragments)
      3. ``choices[0].finish_reason``
      4. top-level ``content`` / ``text`` or ``message.content`` (local servers)
      5. anything else becomes opaque :class:`Metadata`

    Nothing here raises: payloads that are not JSON are delivered as text.
    """

    def __init__(self, done_reason: str = "stop", emit_raw_metadata: bool = False) -> None:
        self.done_reason = done_reason
        self.emit_raw_metadata = emit_raw_metadata
        self.finished = False

    def interpret(self, data: str) -> list[StreamEvent]:
        if data == DONE_SENTINEL:
            if self.finished:
                logger.debug("Ignoring repeated [DONE]")
                return []
            self.finished = True
            return [Finish(reason=self.done_reason)]
        if not data.strip():
            return []

        try:
            payload = json.loads(data)
        except (ValueError, RecursionError):
            return [TextDelta(content=data)]
        return self.classify(payload)

    def classify(self, payload: Any) -> list[StreamEvent]:
        """Classify an already decoded chunk."""
        choice = _first_choice(payload)
        delta = choice.get("delta")
        if not isinstance(delta, dict):
            delta = {}

        content = _non_empty_str(delta.get("content"))
        if content is not None:
            events: list[StreamEvent] = [TextDelta(content=content)]
            if self.emit_raw_metadata:
                events.append(Metadata(data=payload))
            return events

        # Present means at least one fragment; an empty list falls through like
        # empty content, so a finish_reason beside it still ends the turn.
        tool_calls = delta.get("tool_calls")
        if isinstance(tool_calls, dict):
            tool_calls = [tool_calls]
        if isinstance(tool_calls, list) and tool_calls:
            return [_tool_call_fragment(fragment) for fragment in tool_calls]

        reason = _non_empty_str(choice.get("finish_reason"))
        if reason is not None:
            return [Finish(reason=reason)]

        if isinstance(payload, dict):
            text = _non_empty_str(payload.get("content")) or _non_empty_str(payload.get("text"))
            if text is None and isinstance(payload.get("message"), dict):
                text = _non_empty_str(payload["message"].get("content"))
            if text is not None:
                return [TextDelta(content=text)]
            return [Metadata(data=payload)]

        return [Metadata(data={"value": payload})]


def _tool_call_fragment(fragment: Any) -> Metadata:
    """Wrap a partial tool call; reassembly across frames is left to callers."""
    if not isinstance(fragment, dict):
        return Metadata(data={"type": "tool_call_delta", "index": None, "id": None, "delta": fragment})
    return Metadata(
        data={
            "type": "tool_call_delta",
            "index": fragment.get("index"),
            "id": fragment.get("id"),
            "delta": fragment,
        }
    )
