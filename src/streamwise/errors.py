"""Exception types raised by streamwise."""

from __future__ import annotations

from typing import Any


class StreamwiseError(Exception):
    """Base error carrying an optional underlying *reason* and *source*."""

    def __init__(self, message: str, reason: Any = None, source: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.reason = reason
        self.source = source

    @classmethod
    def wrap(cls, error: BaseException, message: str, source: str | None = None) -> StreamwiseError:
        """Wrap a lower-level exception, keeping it as ``reason``."""
        return cls(message, reason=error, source=source)


class TransportError(StreamwiseError):
    """Network-level failure reported by a transport (reset, DNS, timeout)."""


class ConnectionFailedError(StreamwiseError):
    """The stream could not be established.

    Raised before any event is produced: either the request never reached the
    server, or the server answered with a non-2xx status.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
        reason: Any = None,
        source: str | None = None,
    ) -> None:
        super().__init__(message, reason=reason, source=source)
        self.status_code = status_code
        self.body = body


class UnsupportedModelError(StreamwiseError):
    """No provider is registered for the requested model ID."""
