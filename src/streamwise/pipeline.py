"""Decoder, interpreter and normalizer wired together for one stream."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Any

from streamwise.events import StreamEvent
from streamwise.interpreter import PayloadInterpreter
from streamwise.models import StreamOptions
from streamwise.normalizer import EventNormalizer
from streamwise.sse import SSEDecoder, SSEFrame

logger = logging.getLogger(__name__)


class EventPipeline:
    """Owns the decoder state of a single stream. Not shared, not reusable."""

    def __init__(self, options: StreamOptions | None = None) -> None:
        options = options or StreamOptions()
        self.decoder = SSEDecoder()
        self.interpreter = PayloadInterpreter(
            done_reason=options.done_reason,
            emit_raw_metadata=options.emit_raw_metadata,
        )
        self.normalizer = EventNormalizer(
            detect_end_of_stream=options.detect_end_of_stream,
            filter_metadata=options.filter_metadata,
            end_of_stream_reason=options.end_of_stream_reason,
        )

    @property
    def done(self) -> bool:
        """True once a terminal event has been produced."""
        return self.normalizer.terminated

    @property
    def should_end_on_idle(self) -> bool:
        return self.normalizer.should_end_on_idle

    def feed(self, chunk: bytes | str) -> list[StreamEvent]:
        return self._process(self.decoder.feed(chunk))

    def end_of_input(self) -> list[StreamEvent]:
        events = self._process(self.decoder.flush())
        return events + self.normalizer.end_of_input()

    def idle(self) -> list[StreamEvent]:
        events = self._process(self.decoder.flush())
        return events + self.normalizer.idle()

    def fail(self, error: Any) -> list[StreamEvent]:
        return self.normalizer.fail(error)

    def _process(self, frames: list[SSEFrame]) -> list[StreamEvent]:
        out: list[StreamEvent] = []
        for frame in frames:
            out.extend(self.normalizer.push(self.interpreter.interpret(frame.data)))
            if frame.is_done:
                out.extend(self.normalizer.close(synthesize=False))
            if self.normalizer.terminated:
                break
        return out


def iter_events(
    chunks: Iterable[bytes | str],
    options: StreamOptions | None = None,
) -> Iterator[StreamEvent]:
    """Replay already captured chunks through a fresh pipeline."""
    pipeline = EventPipeline(options)
    for chunk in chunks:
        yield from pipeline.feed(chunk)
        if pipeline.done:
            return
    yield from pipeline.end_of_input()
