"""Tests for the high-level generate/stream helpers."""

from __future__ import annotations

import json

import pytest
import respx
from httpx import Response

from streamwise.errors import ConnectionFailedError
from streamwise.events import Finish
from streamwise.providers import MockProvider, OpenAICompatibleProvider
from streamwise.text import agenerate_text, generate_text, stream_text
from streamwise.transport import MemoryTransport


class TestGenerateText:
    def test_with_mock_provider(self):
        result = generate_text(MockProvider(), "demo", prompt="Hi")
        assert result.text == "Hello, world!"

    @respx.mock
    def test_messages_sent_in_order(self):
        route = respx.post("http://local.test/v1/chat/completions").mock(
            return_value=Response(200, json={"choices": [{"message": {"content": "ok"}}]}),
        )
        provider = OpenAICompatibleProvider("http://local.test/v1")
        generate_text(
            provider,
            "m",
            system="sys",
            messages=[{"role": "user", "content": "earlier"}],
            prompt="now",
        )
        sent = json.loads(route.calls.last.request.content)
        assert [m["content"] for m in sent["messages"]] == ["sys", "earlier", "now"]

    async def test_async(self):
        result = await agenerate_text(MockProvider(text="async"), "demo", prompt="Hi")
        assert result.text == "async"


class TestStreamText:
    async def test_stream(self):
        provider = MockProvider(text="yo")
        async with await stream_text(provider, "demo", prompt="Hi", system="s") as stream:
            events = await stream.collect()
        assert events[-1] == Finish(reason="stop")
        body = provider.transport.requests[0]["body"]
        assert body["stream"] is True
        assert [m["role"] for m in body["messages"]] == ["system", "user"]

    async def test_connection_failure_raises(self):
        provider = OpenAICompatibleProvider(
            "http://local.test/v1",
            transport=MemoryTransport(status_code=401, body="bad key"),
        )
        with pytest.raises(ConnectionFailedError) as exc_info:
            await stream_text(provider, "m", prompt="Hi")
        assert exc_info.value.status_code == 401
