"""Shared base for providers using the OpenAI chat completions format."""

from __future__ import annotations

import json
import logging
from typing import Any, ClassVar

import httpx

from streamwise.messages import build_request, prepare_messages
from streamwise.models import (
    CallWarning,
    ChatMessage,
    FunctionCall,
    GenerateResult,
    StreamOptions,
    ToolCallResult,
    Usage,
)
from streamwise.streaming import EventStream, StreamingClient
from streamwise.transport import HttpxTransport, Transport, _shared_or_ephemeral

logger = logging.getLogger(__name__)


def _split_base_url(raw_url: str) -> tuple[str, dict[str, str]]:
    """Separate query parameters from a base URL; they go on every request."""
    url = httpx.URL(raw_url)
    params = dict(url.params.multi_items())
    base = str(url.copy_with(query=None)).rstrip("/")
    return base, params


def _parse_arguments(raw: Any) -> dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, str):
        try:
            decoded = json.loads(raw)
        except ValueError:
            return {}
        return decoded if isinstance(decoded, dict) else {}
    return {}


def _extract_reasoning(message: dict[str, Any]) -> str | None:
    reasoning = message.get("reasoning")
    if isinstance(reasoning, list) and reasoning:
        first = reasoning[0]
        if isinstance(first, dict) and first.get("type") == "text":
            return first.get("text")
    if isinstance(reasoning, str) and reasoning:
        return reasoning
    content = message.get("reasoning_content")
    return content if isinstance(content, str) and content else None


def _to_result(data: dict[str, Any], warnings: list[CallWarning]) -> GenerateResult:
    """Convert a chat.completion response to a GenerateResult."""
    choices = data.get("choices") or [{}]
    first = choices[0] if isinstance(choices[0], dict) else {}
    message = first.get("message") or {}
    usage = data.get("usage") or {}

    tool_calls = [
        ToolCallResult(
            id=tc.get("id") or "",
            type=tc.get("type") or "function",
            function=FunctionCall(
                name=(tc.get("function") or {}).get("name") or "",
                arguments=_parse_arguments((tc.get("function") or {}).get("arguments")),
            ),
        )
        for tc in message.get("tool_calls") or []
        if isinstance(tc, dict)
    ]

    return GenerateResult(
        text=message.get("content") or "",
        reasoning=_extract_reasoning(message),
        finish_reason=first.get("finish_reason") or "unknown",
        usage=Usage(
            prompt_tokens=usage.get("prompt_tokens") or 0,
            completion_tokens=usage.get("completion_tokens") or 0,
            total_tokens=usage.get("total_tokens") or 0,
        ),
        tool_calls=tool_calls,
        warnings=warnings,
        raw_response=data,
    )


class OpenAICompatibleProvider:
    """Base for providers that use the OpenAI /chat/completions format.

    Works as-is for any compatible server (LM Studio, Ollama, vLLM, ...).
    Subclass and set ``name``, the default ``base_url`` and
    ``default_stream_options`` to create a concrete provider.

    Generic compatible servers default to ``detect_end_of_stream`` because
    some local inference servers close the response without ``[DONE]``.
    """

    name: str = "openai-compatible"
    endpoint: ClassVar[str] = "/chat/completions"
    default_stream_options: ClassVar[dict[str, Any]] = {"detect_end_of_stream": True}

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        *,
        name: str | None = None,
        headers: dict[str, str] | None = None,
        http_client: httpx.AsyncClient | None = None,
        transport: Transport | None = None,
        stream_options: StreamOptions | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("base_url is required")
        if name:
            self.name = name
        self.base_url, self.query_params = _split_base_url(base_url)
        self.api_key = api_key
        self.extra_headers = dict(headers or {})
        self.stream_options = stream_options or StreamOptions(**self.default_stream_options)
        self._http_client = http_client
        self._streaming = StreamingClient(transport or HttpxTransport(http_client))

    def _auth_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", **self.extra_headers}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _url(self, path: str | None = None) -> str:
        url = httpx.URL(f"{self.base_url}{path or self.endpoint}")
        if self.query_params:
            url = url.copy_merge_params(self.query_params)
        return str(url)

    def _build_payload(
        self,
        model: str,
        messages: list[ChatMessage | dict[str, Any]],
        stream: bool,
        params: dict[str, Any],
    ) -> tuple[dict[str, Any], list[CallWarning]]:
        payload = build_request(model, prepare_messages(messages=messages), stream=stream, **params)
        return self._adjust_payload(model, payload)

    def _adjust_payload(
        self, model: str, payload: dict[str, Any]
    ) -> tuple[dict[str, Any], list[CallWarning]]:
        """Hook for model-specific request rules. Returns (payload, warnings)."""
        return payload, []

    def _parse_result(self, data: dict[str, Any], warnings: list[CallWarning]) -> GenerateResult:
        return _to_result(data, warnings)

    # -- Synchronous ---------------------------------------------------------

    def chat_completion(
        self,
        model: str,
        messages: list[ChatMessage | dict[str, Any]],
        *,
        timeout: float = 120.0,
        **params: Any,
    ) -> GenerateResult:
        payload, warnings = self._build_payload(model, messages, False, params)
        resp = httpx.post(
            self._url(),
            headers=self._auth_headers(),
            json=payload,
            timeout=timeout,
        )
        resp.raise_for_status()
        return self._parse_result(resp.json(), warnings)

    # -- Async ---------------------------------------------------------------

    async def achat_completion(
        self,
        model: str,
        messages: list[ChatMessage | dict[str, Any]],
        *,
        timeout: float = 120.0,
        **params: Any,
    ) -> GenerateResult:
        payload, warnings = self._build_payload(model, messages, False, params)
        async with _shared_or_ephemeral(self._http_client, timeout) as client:
            resp = await client.post(
                self._url(),
                headers=self._auth_headers(),
                json=payload,
                timeout=timeout,
            )
            resp.raise_for_status()
            return self._parse_result(resp.json(), warnings)

    async def astream_completion(
        self,
        model: str,
        messages: list[ChatMessage | dict[str, Any]],
        *,
        options: StreamOptions | None = None,
        **params: Any,
    ) -> EventStream:
        payload, warnings = self._build_payload(model, messages, True, params)
        for warning in warnings:
            logger.info("%s: %s", self.name, warning.message)
        return await self._streaming.stream(
            self._url(),
            payload,
            self._auth_headers(),
            options=options or self.stream_options,
            warnings=warnings,
        )
