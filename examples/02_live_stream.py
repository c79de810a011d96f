#!/usr/bin/env python3
"""Example 2: Streaming from a live server.

Streams a completion from the configured default model, printing text as it
arrives and stopping early once enough characters were received to show that
cancellation releases the connection.

Works with the official API (OPENAI_API_KEY) or any OpenAI-compatible server
(STREAMWISE_COMPATIBLE_BASE_URL, e.g. LM Studio at http://localhost:1234/v1).
Set STREAMWISE_DEFAULT_MODEL=mock:demo to run it offline.

Usage:
    uv run python examples/02_live_stream.py
"""

from __future__ import annotations

import asyncio

from rich.console import Console

from streamwise.config import get_settings
from streamwise.errors import ConnectionFailedError
from streamwise.events import Error, Finish, TextDelta
from streamwise.providers import ProviderResolver
from streamwise.text import stream_text

console = Console()

MAX_CHARS = 400


async def main() -> None:
    settings = get_settings()
    provider, model = ProviderResolver(settings).resolve(settings.default_model)
    console.print(f"[bold]Provider:[/bold] {provider.name}  [bold]Model:[/bold] {model}\n")

    try:
        stream = await stream_text(
            provider,
            model,
            system="You are a concise assistant.",
            prompt="Explain server-sent events in three sentences.",
            max_tokens=300,
        )
    except ConnectionFailedError as e:
        console.print(f"[red]Could not start the stream: {e}[/red]")
        return

    received = 0
    async with stream:
        async for event in stream:
            if isinstance(event, TextDelta):
                console.print(event.content, end="", markup=False, highlight=False)
                received += len(event.content)
                if received >= MAX_CHARS:
                    console.print("\n[yellow]Stopping early[/yellow]")
                    break
            elif isinstance(event, Finish):
                console.print(f"\n[dim]finish: {event.reason}[/dim]")
            elif isinstance(event, Error):
                console.print(f"\n[red]Stream failed: {event.error}[/red]")

    console.print(f"[dim]final state: {stream.state.value}[/dim]")


if __name__ == "__main__":
    asyncio.run(main())
