"""Typer CLI for streamwise."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import httpx
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from streamwise.config import MissingAPIKeyError, get_settings
from streamwise.errors import ConnectionFailedError, StreamwiseError
from streamwise.events import Error, Finish, Metadata, TextDelta, ToolCall
from streamwise.pipeline import iter_events
from streamwise.providers.base import LLMProvider
from streamwise.providers.resolver import ProviderResolver
from streamwise.text import generate_text, stream_text

app = typer.Typer(
    name="streamwise",
    help="streamwise: streaming client for OpenAI-compatible chat APIs",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
console = Console()


def _resolve(model: str | None) -> tuple[LLMProvider, str]:
    settings = get_settings()
    resolver = ProviderResolver(settings)
    try:
        return resolver.resolve(model or settings.default_model)
    except (StreamwiseError, MissingAPIKeyError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


@app.command()
def stream(
    prompt: str = typer.Argument(help="The prompt to send"),
    model: str | None = typer.Option(
        None, "--model", "-m", help="Model ID, e.g. openai:gpt-4.1-mini or mock:demo"
    ),
    system: str | None = typer.Option(None, "--system", "-s", help="System message"),
    show_metadata: bool = typer.Option(
        False, "--metadata", help="Print metadata events as they arrive"
    ),
) -> None:
    """Stream a completion to the terminal as it is generated."""
    provider, model_name = _resolve(model)

    async def _run() -> Finish | Error | None:
        terminal: Finish | Error | None = None
        async with await stream_text(
            provider, model_name, prompt=prompt, system=system
        ) as events:
            for warning in events.warnings:
                console.print(f"[yellow]Warning: {warning.message}[/yellow]")
            async for event in events:
                if isinstance(event, TextDelta):
                    console.print(event.content, end="", markup=False, highlight=False)
                elif isinstance(event, Metadata) and show_metadata:
                    console.print(f"\n[dim]{escape(str(event.data))}[/dim]")
                elif isinstance(event, (Finish, Error)):
                    terminal = event
        return terminal

    try:
        terminal = asyncio.run(_run())
    except ConnectionFailedError as e:
        console.print(f"[red]Connection failed: {e}[/red]")
        if e.body:
            console.print(f"[dim]{e.body[:500]}[/dim]")
        raise typer.Exit(1)

    console.print()
    if isinstance(terminal, Error):
        console.print(f"[red]Stream failed: {terminal.error}[/red]")
        raise typer.Exit(1)
    if terminal is not None:
        console.print(f"[dim]finish: {terminal.reason}[/dim]")


@app.command()
def generate(
    prompt: str = typer.Argument(help="The prompt to send"),
    model: str | None = typer.Option(None, "--model", "-m", help="Model ID"),
    system: str | None = typer.Option(None, "--system", "-s", help="System message"),
    max_tokens: int | None = typer.Option(None, "--max-tokens", help="Completion token limit"),
) -> None:
    """Run a buffered completion and print the result."""
    provider, model_name = _resolve(model)
    try:
        result = generate_text(
            provider, model_name, prompt=prompt, system=system, max_tokens=max_tokens
        )
    except httpx.HTTPError as e:
        console.print(f"[red]Request failed: {e}[/red]")
        raise typer.Exit(1)

    for warning in result.warnings:
        console.print(f"[yellow]Warning: {warning.message}[/yellow]")
    console.print(result.text, markup=False)
    console.print(
        f"\n[dim]finish: {result.finish_reason}  "
        f"tokens: {result.usage.prompt_tokens} in / {result.usage.completion_tokens} out[/dim]"
    )


@app.command()
def decode(
    path: Path = typer.Argument(help="Captured text/event-stream body", exists=True),
    chunk_size: int = typer.Option(
        0, "--chunk-size", "-c", help="Replay in chunks of this many bytes (0 = whole file)"
    ),
    detect_end: bool = typer.Option(
        False, "--detect-end", help="Synthesize a finish if the capture has none"
    ),
    filter_metadata: bool = typer.Option(
        False, "--filter-metadata", help="Drop metadata without content"
    ),
) -> None:
    """Decode a captured SSE stream into standardized events."""
    raw = path.read_bytes()
    if chunk_size > 0:
        chunks = [raw[i : i + chunk_size] for i in range(0, len(raw), chunk_size)]
    else:
        chunks = [raw]

    options = get_settings().stream_options().model_copy(
        update={"detect_end_of_stream": detect_end, "filter_metadata": filter_metadata}
    )

    table = Table(title=f"Events in {path.name}")
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Value", max_width=80)

    text_parts: list[str] = []
    for i, event in enumerate(iter_events(chunks, options), 1):
        if isinstance(event, TextDelta):
            text_parts.append(event.content)
            value = escape(repr(event.content))
        elif isinstance(event, ToolCall):
            value = escape(f"{event.name}({event.arguments})")
        elif isinstance(event, Finish):
            value = f"[green]{event.reason}[/green]"
        elif isinstance(event, Error):
            value = f"[red]{escape(str(event.error))}[/red]"
        else:
            value = f"[dim]{escape(str(event.data))}[/dim]"
        table.add_row(str(i), event.type, value)

    console.print(table)
    if text_parts:
        console.print(f"\n[bold]Text:[/bold] {escape(''.join(text_parts))}")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """streamwise: streaming client for OpenAI-compatible chat APIs."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


if __name__ == "__main__":
    app()
