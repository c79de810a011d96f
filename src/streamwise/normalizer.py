"""Stream-wide invariants and post-processing policy."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from streamwise.events import Error, Finish, Metadata, StreamEvent, TextDelta, ToolCall

logger = logging.getLogger(__name__)


def has_signal(data: dict[str, Any]) -> bool:
    """Return False for chunks that carry nothing a caller could use.

    Empty ``choices`` arrays and choices whose deltas hold no content are
    noise. Tool-call fragments, usage reports and payloads that are not
    choice-shaped at all are kept.
    """
    if data.get("type") == "tool_call_delta" or data.get("usage"):
        return True
    if "choices" not in data:
        return bool(data)
    choices = data["choices"]
    if not isinstance(choices, list):
        return False
    for choice in choices:
        if not isinstance(choice, dict):
            continue
        delta = choice.get("delta")
        if isinstance(delta, dict) and (delta.get("content") or delta.get("tool_calls")):
            return True
    return False


class EventNormalizer:
    """Applies per-stream policy on top of the interpreter's events.

    The first provisional :class:`Finish` is held back until the turn ends
    (``[DONE]``, transport close or idle timeout) so that trailing chunks such
    as usage reports still come before it; any later Finish is a duplicate and
    is dropped. Once a terminal event went out, everything else is dropped.
    """

    def __init__(
        self,
        *,
        detect_end_of_stream: bool = False,
        filter_metadata: bool = False,
        end_of_stream_reason: str = "complete",
    ) -> None:
        self.detect_end_of_stream = detect_end_of_stream
        self.filter_metadata = filter_metadata
        self.end_of_stream_reason = end_of_stream_reason
        self.finish_emitted = False
        self.terminated = False
        self.produced_output = False
        self._pending_finish: Finish | None = None

    @property
    def should_end_on_idle(self) -> bool:
        """Whether an idle timeout should be read as the end of the stream."""
        return not self.terminated and (self.produced_output or self._pending_finish is not None)

    def push(self, events: Iterable[StreamEvent]) -> list[StreamEvent]:
        out: list[StreamEvent] = []
        for event in events:
            if self.terminated:
                logger.debug("Dropping %s received after the terminal event", event.type)
                continue
            if isinstance(event, Finish):
                if self._pending_finish is not None:
                    logger.debug("Dropping duplicate finish (%s)", event.reason)
                else:
                    self._pending_finish = event
                continue
            if isinstance(event, Error):
                out.extend(self.fail(event.error))
                continue
            if (
                isinstance(event, Metadata)
                and self.filter_metadata
                and not has_signal(event.data)
            ):
                continue
            if isinstance(event, (TextDelta, ToolCall)):
                self.produced_output = True
            out.append(event)
        return out

    def close(self, synthesize: bool) -> list[StreamEvent]:
        """End the turn, releasing the held Finish or synthesizing one."""
        if self.terminated:
            return []
        self.terminated = True
        finish = self._pending_finish
        self._pending_finish = None
        if finish is None and synthesize:
            finish = Finish(reason=self.end_of_stream_reason)
        if finish is None:
            return []
        self.finish_emitted = True
        return [finish]

    def end_of_input(self) -> list[StreamEvent]:
        """The transport closed normally."""
        return self.close(synthesize=self.detect_end_of_stream)

    def idle(self) -> list[StreamEvent]:
        """No data arrived within the idle window after output started."""
        return self.close(synthesize=True)

    def fail(self, error: Any) -> list[StreamEvent]:
        if self.terminated:
            return []
        self.terminated = True
        if self._pending_finish is not None:
            logger.debug("Discarding held finish (%s) after failure", self._pending_finish.reason)
            self._pending_finish = None
        return [Error(error=error)]
