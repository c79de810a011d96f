"""Streaming façade: connection lifecycle around the event pipeline."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import weakref
from collections.abc import AsyncIterator, Mapping
from typing import Any

from streamwise.errors import ConnectionFailedError, TransportError
from streamwise.events import Error, StreamEvent, TextDelta
from streamwise.models import CallWarning, RequestEcho, StreamOptions, StreamState
from streamwise.pipeline import EventPipeline
from streamwise.transport import HttpxTransport, StreamHandle, Transport

logger = logging.getLogger(__name__)

_CHUNK = "chunk"
_EOF = "eof"
_FAILED = "failed"

_REDACTED_HEADERS = {"authorization", "api-key", "x-api-key"}


def _redact(headers: Mapping[str, str]) -> dict[str, str]:
    return {k: ("***" if k.lower() in _REDACTED_HEADERS else v) for k, v in headers.items()}


class EventStream:
    """A live, single-pass stream of standardized events.

    Iterate with ``async for``. Leaving an ``async with`` block or calling
    :meth:`aclose` before the end releases the connection right away. The
    stream cannot be restarted; re-issue the request instead.
    """

    def __init__(
        self,
        transport: Transport,
        request: RequestEcho,
        headers: Mapping[str, str],
        options: StreamOptions,
        warnings: list[CallWarning] | None = None,
    ) -> None:
        self.request = request
        self.options = options
        self.warnings: list[CallWarning] = list(warnings or [])
        self.state = StreamState.IDLE
        self.status_code: int | None = None
        self.headers: Mapping[str, str] = {}
        self._transport = transport
        self._send_headers = dict(headers)
        self._pipeline = EventPipeline(options)
        self._handle: StreamHandle | None = None
        # Held weakly: an abandoned iterator is finalized by the event loop,
        # which releases the connection.
        self._iterator_ref: weakref.ref[AsyncIterator[StreamEvent]] | None = None
        self._consumed = False
        self._reader: asyncio.Task[None] | None = None
        self._released = False

    # -- Connection ----------------------------------------------------------

    async def connect(self) -> EventStream:
        """Issue the request and wait for a 2xx status."""
        if self.state is not StreamState.IDLE:
            raise RuntimeError(f"Stream already started (state: {self.state.value})")
        self.state = StreamState.CONNECTING
        url = self.request.url
        try:
            handle = await asyncio.wait_for(
                self._transport.open_stream(
                    url,
                    self.request.body,
                    self._send_headers,
                    timeout=self.options.timeout,
                ),
                self.options.timeout,
            )
        except asyncio.TimeoutError as e:
            self.state = StreamState.ERRORED
            raise ConnectionFailedError(
                f"No response from {url} within {self.options.timeout}s", reason=e
            ) from e
        except TransportError as e:
            self.state = StreamState.ERRORED
            raise ConnectionFailedError(e.message, reason=e.reason or e, source=e.source) from e

        self.status_code = handle.status_code
        self.headers = handle.headers
        if not 200 <= handle.status_code < 300:
            self.state = StreamState.ERRORED
            try:
                body = (await handle.aread()).decode("utf-8", errors="replace")
            except TransportError:
                body = ""
            finally:
                await handle.aclose()
            self._released = True
            logger.warning("Stream request to %s returned HTTP %d", url, handle.status_code)
            raise ConnectionFailedError(
                f"HTTP {handle.status_code} from {url}",
                status_code=handle.status_code,
                body=body,
            )

        self._handle = handle
        self.state = StreamState.CONNECTED
        return self

    # -- Consumption ---------------------------------------------------------

    def __aiter__(self) -> AsyncIterator[StreamEvent]:
        iterator = self._live_iterator()
        if iterator is None:
            iterator = self._iterate()
            self._iterator_ref = weakref.ref(iterator)
        return iterator

    def _live_iterator(self) -> AsyncIterator[StreamEvent] | None:
        if self._iterator_ref is None:
            return None
        return self._iterator_ref()

    async def __aenter__(self) -> EventStream:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def collect(self) -> list[StreamEvent]:
        """Drain the stream into a list."""
        return [event async for event in self]

    async def text(self) -> str:
        """Drain the stream and join its text fragments."""
        parts: list[str] = []
        async for event in self:
            if isinstance(event, TextDelta):
                parts.append(event.content)
            elif isinstance(event, Error):
                await self.aclose()
                err = event.error
                if isinstance(err, BaseException):
                    raise err
                raise TransportError("Stream failed", reason=err)
        return "".join(parts)

    async def aclose(self) -> None:
        """Stop the stream and release the connection. Safe in any state."""
        iterator = self._live_iterator()
        if iterator is not None:
            await iterator.aclose()  # type: ignore[attr-defined]
        if not self._released:
            if self.state in (StreamState.IDLE, StreamState.CONNECTING, StreamState.CONNECTED):
                self.state = StreamState.CANCELLED
            await self._release()

    async def _iterate(self) -> AsyncIterator[StreamEvent]:
        if self._handle is None:
            raise RuntimeError("Stream is not connected; await connect() first")
        if self._consumed or self._released:
            return
        self._consumed = True

        queue: asyncio.Queue[tuple[str, Any]] = asyncio.Queue(maxsize=self.options.queue_size)
        self._reader = asyncio.create_task(self._pump(self._handle, queue))
        pipeline = self._pipeline
        try:
            while True:
                try:
                    kind, payload = await asyncio.wait_for(queue.get(), self.options.idle_timeout)
                except asyncio.TimeoutError:
                    if not pipeline.should_end_on_idle:
                        continue
                    logger.info(
                        "No data for %.1fs after output started, treating stream as complete",
                        self.options.idle_timeout,
                    )
                    self.state = StreamState.DRAINING
                    for event in pipeline.idle():
                        yield event
                    break

                if kind == _CHUNK:
                    for event in pipeline.feed(payload):
                        yield event
                    if pipeline.done:
                        self.state = StreamState.DRAINING
                        break
                elif kind == _EOF:
                    self.state = StreamState.DRAINING
                    for event in pipeline.end_of_input():
                        yield event
                    break
                else:
                    if not isinstance(payload, TransportError):
                        self.state = StreamState.ERRORED
                        raise payload
                    logger.warning("Stream from %s interrupted: %s", self.request.url, payload)
                    self.state = StreamState.ERRORED
                    for event in pipeline.fail(payload):
                        yield event
                    break
        finally:
            if self.state is StreamState.CONNECTED:
                self.state = StreamState.CANCELLED
            await self._release()
            if self.state is StreamState.DRAINING:
                self.state = StreamState.FINISHED

    async def _pump(self, handle: StreamHandle, queue: asyncio.Queue[tuple[str, Any]]) -> None:
        try:
            async for chunk in handle.aiter_bytes():
                if chunk:
                    await queue.put((_CHUNK, chunk))
        except Exception as e:  # handed to the consumer, which decides
            await queue.put((_FAILED, e))
        else:
            await queue.put((_EOF, None))

    async def _release(self) -> None:
        reader = self._reader
        if reader is not None and not reader.done():
            reader.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reader
        if self._released:
            return
        self._released = True
        if self._handle is not None:
            await self._handle.aclose()


class StreamingClient:
    """Opens event streams through an injected :class:`Transport`."""

    def __init__(
        self,
        transport: Transport | None = None,
        options: StreamOptions | None = None,
    ) -> None:
        self.transport: Transport = transport or HttpxTransport()
        self.options = options or StreamOptions()

    async def stream(
        self,
        url: str,
        body: dict[str, Any],
        headers: Mapping[str, str] | None = None,
        *,
        options: StreamOptions | None = None,
        warnings: list[CallWarning] | None = None,
    ) -> EventStream:
        """Connect and return the event stream.

        Raises :class:`ConnectionFailedError` when the request fails or the
        server answers with a non-2xx status; no stream exists in that case.
        """
        headers = dict(headers or {})
        echo = RequestEcho(url=url, body=body, headers=_redact(headers))
        stream = EventStream(
            self.transport,
            echo,
            headers,
            options or self.options,
            warnings=warnings,
        )
        return await stream.connect()
