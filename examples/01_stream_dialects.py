#!/usr/bin/env python3
"""Example 1: One event model for many stream dialects.

Replays captured streams in the shapes different servers send (official
OpenAI, a local server that never sends [DONE], Ollama-style ``message``
chunks, a garbled chunk) through the same pipeline and prints the events.
No network access is needed, so this is free to run.

Usage:
    uv run python examples/01_stream_dialects.py
"""

from __future__ import annotations

import asyncio
import json

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from streamwise.models import StreamOptions
from streamwise.streaming import StreamingClient
from streamwise.transport import MemoryTransport

console = Console()


def _frame(payload: dict | str) -> str:
    data = payload if isinstance(payload, str) else json.dumps(payload)
    return f"data: {data}\n\n"


def _delta(content: str | None = None, finish_reason: str | None = None) -> dict:
    delta = {"content": content} if content else {}
    return {"choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}]}


DIALECTS = {
    "OpenAI": [
        _frame({"choices": [{"index": 0, "delta": {"role": "assistant"}}]}),
        _frame(_delta("Hel")),
        _frame(_delta("lo")),
        _frame(_delta(finish_reason="stop")),
        _frame({"choices": [], "usage": {"prompt_tokens": 9, "completion_tokens": 2}}),
        _frame("[DONE]"),
    ],
    "Local, no [DONE]": [_frame(_delta("Hel")), _frame(_delta("lo"))],
    "Ollama-style": [_frame({"message": {"role": "assistant", "content": "Hello"}})],
    "Garbled chunk": [_frame(_delta("Hel")), "data: lo (not json)\n\n", _frame("[DONE]")],
}


async def replay(name: str, chunks: list[str]) -> None:
    # Split every chunk in two to show that chunk boundaries do not matter
    split = [part for c in chunks for part in (c[: len(c) // 2], c[len(c) // 2 :])]
    transport = MemoryTransport(split)
    options = StreamOptions(detect_end_of_stream=True, filter_metadata=True)
    stream = await StreamingClient(transport, options).stream("memory://demo", {})

    table = Table(title=name)
    table.add_column("Event", style="magenta")
    table.add_column("Value")
    async for event in stream:
        value = event.model_dump(exclude={"type"})
        table.add_row(event.type, escape(str(value)))
    console.print(table)
    console.print(f"[dim]final state: {stream.state.value}[/dim]\n")


async def main() -> None:
    for name, chunks in DIALECTS.items():
        await replay(name, chunks)


if __name__ == "__main__":
    asyncio.run(main())
