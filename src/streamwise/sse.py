"""Incremental Server-Sent Events decoder."""

from __future__ import annotations

import codecs
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"


@dataclass(frozen=True)
class SSEFrame:
    """One complete SSE event: the fields seen before a blank line."""

    data: str
    event: str | None = None
    id: str | None = None
    retry: int | None = None

    @property
    def is_done(self) -> bool:
        return self.data == DONE_SENTINEL


class SSEDecoder:
    """Turns arbitrarily chunked ``text/event-stream`` input into frames.

    Chunks may split a line, a frame or a multi-byte character anywhere. Bytes
    go through an incremental UTF-8 decoder and the unterminated tail of the
    last line stays buffered until the next :meth:`feed`. Malformed lines are
    ignored, never raised.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""
        self._event: str | None = None
        self._data_lines: list[str] = []
        self._id: str | None = None
        self._retry: int | None = None
        self.done = False

    def feed(self, chunk: bytes | str) -> list[SSEFrame]:
        """Consume one chunk and return the frames it completed."""
        text = self._decoder.decode(chunk) if isinstance(chunk, bytes) else chunk
        if not text:
            return []
        self._buffer += text
        *lines, self._buffer = self._buffer.split("\n")
        frames: list[SSEFrame] = []
        for line in lines:
            self._process_line(line.rstrip("\r"), frames)
        return frames

    def flush(self) -> list[SSEFrame]:
        """Finish decoding at end of input, emitting any partial frame."""
        frames: list[SSEFrame] = []
        tail = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        if tail:
            self._process_line(tail.rstrip("\r"), frames)
        self._emit_pending(frames)
        return frames

    def _process_line(self, line: str, frames: list[SSEFrame]) -> None:
        if not line:
            self._emit_pending(frames)
            return
        if line.startswith(":"):
            return

        name, _, value = line.partition(":")
        value = value.strip()
        if name == "data":
            if value == DONE_SENTINEL:
                # Terminates the stream without waiting for the blank line.
                self._emit_pending(frames)
                frames.append(SSEFrame(data=DONE_SENTINEL))
                self.done = True
            else:
                self._data_lines.append(value)
        elif name == "event":
            self._event = value
        elif name == "id":
            self._id = value
        elif name == "retry":
            try:
                self._retry = int(value)
            except ValueError:
                logger.debug("Ignoring unparsable retry field %r", value)

    def _emit_pending(self, frames: list[SSEFrame]) -> None:
        if self._data_lines:
            frames.append(
                SSEFrame(
                    data="\n".join(self._data_lines),
                    event=self._event,
                    id=self._id,
                    retry=self._retry,
                )
            )
        self._event = None
        self._data_lines = []
        self._id = None
        self._retry = None
