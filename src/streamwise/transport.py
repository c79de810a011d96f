"""Byte sources for streamed HTTP responses."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable, Mapping
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, Protocol, runtime_checkable

import httpx

from streamwise.errors import TransportError

logger = logging.getLogger(__name__)


@runtime_checkable
class StreamHandle(Protocol):
    """An open response whose body arrives as ordered byte chunks."""

    status_code: int
    headers: Mapping[str, str]

    def aiter_bytes(self) -> AsyncIterator[bytes]:
        """Yield body chunks; raises :class:`TransportError` if the connection drops."""
        ...

    async def aread(self) -> bytes:
        """Read the remaining body (used for non-2xx error bodies)."""
        ...

    async def aclose(self) -> None:
        """Release the connection. Must be safe to call more than once."""
        ...


@runtime_checkable
class Transport(Protocol):
    """Issues a streaming POST and hands back the open response."""

    async def open_stream(
        self,
        url: str,
        body: dict[str, Any],
        headers: Mapping[str, str],
        *,
        timeout: float,
    ) -> StreamHandle: ...


@asynccontextmanager
async def _shared_or_ephemeral(
    client: httpx.AsyncClient | None,
    timeout: float,
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield a shared client if available, otherwise create a short-lived one."""
    if client is not None:
        yield client
    else:
        async with httpx.AsyncClient(timeout=timeout) as ephemeral:
            yield ephemeral


# -- httpx -------------------------------------------------------------------


class HttpxStreamHandle:
    """Wraps a streamed ``httpx.Response`` and the client scope it lives in."""

    def __init__(self, response: httpx.Response, scope: AsyncExitStack) -> None:
        self._response = response
        self._scope = scope
        self._closed = False
        self.status_code = response.status_code
        self.headers: Mapping[str, str] = response.headers

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.aiter_bytes():
                yield chunk
        except httpx.HTTPError as e:
            raise TransportError.wrap(e, f"Stream interrupted: {e}", source="httpx") from e

    async def aread(self) -> bytes:
        try:
            return await self._response.aread()
        except httpx.HTTPError as e:
            raise TransportError.wrap(e, f"Failed to read body: {e}", source="httpx") from e

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._response.aclose()
        finally:
            await self._scope.aclose()


class HttpxTransport:
    """Streams responses with httpx, reusing *http_client* when given."""

    def __init__(self, http_client: httpx.AsyncClient | None = None) -> None:
        self._http_client = http_client

    async def open_stream(
        self,
        url: str,
        body: dict[str, Any],
        headers: Mapping[str, str],
        *,
        timeout: float,
    ) -> HttpxStreamHandle:
        scope = AsyncExitStack()
        try:
            client = await scope.enter_async_context(
                _shared_or_ephemeral(self._http_client, timeout)
            )
            request = client.build_request(
                "POST",
                url,
                json=body,
                headers=dict(headers),
                timeout=timeout,
            )
            response = await client.send(request, stream=True)
        except httpx.HTTPError as e:
            await scope.aclose()
            raise TransportError.wrap(e, f"Request to {url} failed: {e}", source="httpx") from e
        except BaseException:
            await scope.aclose()
            raise
        return HttpxStreamHandle(response, scope)


# -- In-memory ---------------------------------------------------------------


class MemoryStreamHandle:
    """Replays canned chunks; records how often it was closed."""

    def __init__(
        self,
        chunks: list[bytes],
        *,
        status_code: int,
        headers: Mapping[str, str],
        body: bytes,
        error: Exception | None,
        chunk_delay: float,
        hold_open: bool,
    ) -> None:
        self.status_code = status_code
        self.headers = dict(headers)
        self._chunks = chunks
        self._body = body
        self._error = error
        self._chunk_delay = chunk_delay
        self._hold_open = hold_open
        self._closed = asyncio.Event()
        self.close_count = 0
        self.chunks_sent = 0

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            if self._chunk_delay:
                await asyncio.sleep(self._chunk_delay)
            if self.closed:
                return
            self.chunks_sent += 1
            yield chunk
        if self._error is not None:
            raise self._error
        if self._hold_open:
            await self._closed.wait()

    async def aread(self) -> bytes:
        return self._body

    async def aclose(self) -> None:
        self.close_count += 1
        self._closed.set()


class MemoryTransport:
    """Transport that serves pre-recorded chunks without any network I/O.

    Set *hold_open* to keep the connection silent after the last chunk instead
    of closing it, and *error* to fail after the chunks were delivered.
    """

    def __init__(
        self,
        chunks: Iterable[bytes | str] = (),
        *,
        status_code: int = 200,
        headers: Mapping[str, str] | None = None,
        body: bytes | str = b"",
        error: Exception | None = None,
        chunk_delay: float = 0.0,
        hold_open: bool = False,
    ) -> None:
        self.chunks = [c.encode() if isinstance(c, str) else c for c in chunks]
        self.status_code = status_code
        self.headers = dict(headers or {"content-type": "text/event-stream"})
        self.body = body.encode() if isinstance(body, str) else body
        self.error = error
        self.chunk_delay = chunk_delay
        self.hold_open = hold_open
        self.requests: list[dict[str, Any]] = []
        self.handles: list[MemoryStreamHandle] = []

    async def open_stream(
        self,
        url: str,
        body: dict[str, Any],
        headers: Mapping[str, str],
        *,
        timeout: float,
    ) -> MemoryStreamHandle:
        self.requests.append({"url": url, "body": body, "headers": dict(headers)})
        handle = MemoryStreamHandle(
            list(self.chunks),
            status_code=self.status_code,
            headers=self.headers,
            body=self.body,
            error=self.error,
            chunk_delay=self.chunk_delay,
            hold_open=self.hold_open,
        )
        self.handles.append(handle)
        return handle
