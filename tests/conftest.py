"""Shared test fixtures and canned stream data."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from streamwise import config
from streamwise.config import reset_settings
from streamwise.models import StreamOptions

_ENV_VARS = (
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "STREAMWISE_COMPATIBLE_NAME",
    "STREAMWISE_COMPATIBLE_BASE_URL",
    "STREAMWISE_COMPATIBLE_API_KEY",
    "STREAMWISE_DEFAULT_MODEL",
    "STREAMWISE_TIMEOUT",
    "STREAMWISE_IDLE_TIMEOUT",
    "STREAMWISE_DETECT_END_OF_STREAM",
    "STREAMWISE_FILTER_METADATA",
)


def chunk(content: str | None = None, finish_reason: str | None = None, **extra) -> dict:
    """An OpenAI ``chat.completion.chunk`` payload."""
    delta = {} if content is None else {"content": content}
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion.chunk",
        "choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}],
        **extra,
    }


def frame(payload: dict | str) -> str:
    data = payload if isinstance(payload, str) else json.dumps(payload)
    return f"data: {data}\n\n"


# "Hi" then stop, as the official API sends it
HELLO_STREAM = "".join(
    [
        frame(chunk("H")),
        frame(chunk("i")),
        frame(chunk(finish_reason="stop")),
        frame("[DONE]"),
    ]
)


@pytest.fixture(autouse=True)
def _reset_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Isolate settings from the developer's environment and config file."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "_DEFAULT_CONFIG_PATH", tmp_path / "missing.yaml")
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def fast_options() -> StreamOptions:
    """Options with short timeouts so idle-path tests finish quickly."""
    return StreamOptions(timeout=1.0, idle_timeout=0.05)
