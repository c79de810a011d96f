"""Request building: caller messages to an OpenAI chat-completions body."""

from __future__ import annotations

import json
from typing import Any

from streamwise.models import ChatMessage

# Optional sampling/tooling parameters forwarded verbatim when set
_OPTIONAL_PARAMS = (
    "temperature",
    "max_tokens",
    "top_p",
    "frequency_penalty",
    "presence_penalty",
    "stop",
    "seed",
    "tools",
    "tool_choice",
    "response_format",
)


def prepare_messages(
    prompt: str | None = None,
    system: str | None = None,
    messages: list[ChatMessage | dict[str, Any]] | None = None,
) -> list[ChatMessage]:
    """Merge *system*, *messages* and *prompt* into one message list.

    The system message comes first; a prompt is appended as a final user
    message, also when explicit messages are given.
    """
    result: list[ChatMessage] = []
    if system is not None:
        result.append(ChatMessage(role="system", content=system))
    for msg in messages or []:
        result.append(msg if isinstance(msg, ChatMessage) else ChatMessage.model_validate(msg))
    if prompt is not None:
        result.append(ChatMessage(role="user", content=prompt))
    return result


def _convert_tool_call(tool_call: dict[str, Any]) -> dict[str, Any]:
    function = tool_call.get("function") or {}
    args = function.get("arguments")
    if isinstance(args, dict):
        arguments = json.dumps(args)
    elif isinstance(args, str):
        arguments = args
    else:
        arguments = "{}"
    return {
        "id": tool_call.get("id"),
        "type": tool_call.get("type", "function"),
        "function": {"name": function.get("name", ""), "arguments": arguments},
    }


def convert_messages(messages: list[ChatMessage]) -> list[dict[str, Any]]:
    """Convert messages to the OpenAI wire format."""
    converted: list[dict[str, Any]] = []
    for msg in messages:
        if msg.role == "tool":
            converted.append(
                {"role": "tool", "content": msg.content or "", "tool_call_id": msg.tool_call_id}
            )
            continue
        out: dict[str, Any] = {"role": msg.role, "content": msg.content}
        if msg.name:
            out["name"] = msg.name
        if msg.tool_calls:
            out["tool_calls"] = [_convert_tool_call(tc) for tc in msg.tool_calls]
        converted.append(out)
    return converted


def build_request(
    model: str,
    messages: list[ChatMessage],
    *,
    stream: bool = False,
    **params: Any,
) -> dict[str, Any]:
    """Build a chat-completions request body."""
    payload: dict[str, Any] = {"model": model, "messages": convert_messages(messages)}
    for key in _OPTIONAL_PARAMS:
        value = params.get(key)
        if value is not None:
            payload[key] = value
    if stream:
        payload["stream"] = True
    return payload
