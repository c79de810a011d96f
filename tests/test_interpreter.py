"""Tests for payload classification."""

from __future__ import annotations

import json

from conftest import chunk

from streamwise.events import Finish, Metadata, TextDelta
from streamwise.interpreter import PayloadInterpreter


def _interpret(payload, **kwargs):
    data = payload if isinstance(payload, str) else json.dumps(payload)
    return PayloadInterpreter(**kwargs).interpret(data)


class TestPriority:
    def test_delta_content(self):
        assert _interpret(chunk("Hello")) == [TextDelta(content="Hello")]

    def test_content_wins_over_finish_reason(self):
        assert _interpret(chunk("bye", finish_reason="stop")) == [TextDelta(content="bye")]

    def test_finish_reason(self):
        assert _interpret(chunk(finish_reason="length")) == [Finish(reason="length")]

    def test_empty_content_falls_through_to_finish(self):
        payload = {"choices": [{"delta": {"content": ""}, "finish_reason": "stop"}]}
        assert _interpret(payload) == [Finish(reason="stop")]

    def test_top_level_content(self):
        assert _interpret({"content": "local"}) == [TextDelta(content="local")]

    def test_top_level_text(self):
        assert _interpret({"text": "legacy"}) == [TextDelta(content="legacy")]

    def test_message_content(self):
        assert _interpret({"message": {"role": "assistant", "content": "ollama"}}) == [
            TextDelta(content="ollama")
        ]

    def test_role_only_delta_is_metadata(self):
        payload = {"choices": [{"index": 0, "delta": {"role": "assistant"}}]}
        assert _interpret(payload) == [Metadata(data=payload)]

    def test_usage_chunk_is_metadata(self):
        payload = {"choices": [], "usage": {"prompt_tokens": 3, "completion_tokens": 2}}
        assert _interpret(payload) == [Metadata(data=payload)]


class TestToolCallFragments:
    def test_fragments_become_metadata(self):
        payload = {
            "choices": [
                {
                    "delta": {
                        "tool_calls": [
                            {
                                "index": 0,
                                "id": "call_1",
                                "function": {"name": "lookup", "arguments": '{"q":'},
                            }
                        ]
                    }
                }
            ]
        }
        (event,) = _interpret(payload)
        assert isinstance(event, Metadata)
        assert event.data["type"] == "tool_call_delta"
        assert event.data["index"] == 0
        assert event.data["id"] == "call_1"
        assert event.data["delta"]["function"]["arguments"] == '{"q":'

    def test_one_event_per_fragment(self):
        payload = {"choices": [{"delta": {"tool_calls": [{"index": 0}, {"index": 1}]}}]}
        events = _interpret(payload)
        assert [e.data["index"] for e in events] == [0, 1]

    def test_single_fragment_object(self):
        payload = {"choices": [{"delta": {"tool_calls": {"index": 2, "id": "call_9"}}}]}
        (event,) = _interpret(payload)
        assert event.data["index"] == 2
        assert event.data["id"] == "call_9"

    def test_empty_list_falls_through_to_finish(self):
        payload = {"choices": [{"delta": {"tool_calls": []}, "finish_reason": "tool_calls"}]}
        assert _interpret(payload) == [Finish(reason="tool_calls")]

    def test_empty_list_alone_is_metadata(self):
        payload = {"choices": [{"delta": {"tool_calls": []}}]}
        assert _interpret(payload) == [Metadata(data=payload)]


class TestMalformed:
    def test_invalid_json_is_text(self):
        assert _interpret("not json {") == [TextDelta(content="not json {")]

    def test_truncated_json_is_text(self):
        assert _interpret('{"choices": [') == [TextDelta(content='{"choices": [')]

    def test_deeply_nested_json_is_text(self):
        data = "[" * 100_000 + "]" * 100_000
        assert _interpret(data) == [TextDelta(content=data)]

    def test_non_object_json_is_metadata(self):
        assert _interpret("42") == [Metadata(data={"value": 42})]
        assert _interpret("[1, 2]") == [Metadata(data={"value": [1, 2]})]

    def test_blank_data_ignored(self):
        assert _interpret("   ") == []

    def test_choices_not_a_list(self):
        payload = {"choices": "oops"}
        assert _interpret(payload) == [Metadata(data=payload)]


class TestDone:
    def test_done_maps_to_configured_reason(self):
        assert _interpret("[DONE]") == [Finish(reason="stop")]
        assert _interpret("[DONE]", done_reason="end") == [Finish(reason="end")]

    def test_repeated_done_ignored(self):
        interpreter = PayloadInterpreter()
        assert interpreter.interpret("[DONE]") == [Finish(reason="stop")]
        assert interpreter.interpret("[DONE]") == []
        assert interpreter.finished


class TestRawMetadata:
    def test_raw_chunk_follows_text(self):
        payload = chunk("x")
        events = _interpret(payload, emit_raw_metadata=True)
        assert events == [TextDelta(content="x"), Metadata(data=payload)]

    def test_off_by_default(self):
        assert len(_interpret(chunk("x"))) == 1
