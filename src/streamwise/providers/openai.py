"""Direct OpenAI provider."""

from __future__ import annotations

from typing import Any, ClassVar

import httpx

from streamwise.messages import prepare_messages
from streamwise.models import CallWarning, ChatMessage, GenerateResult, StreamOptions, Usage
from streamwise.providers._openai_compat import OpenAICompatibleProvider
from streamwise.streaming import EventStream
from streamwise.transport import Transport

_DEFAULT_BASE_URL = "https://api.openai.com/v1"

# Sampling settings reasoning models reject
_REASONING_UNSUPPORTED = {
    "temperature": "temperature is not supported for reasoning models",
    "top_p": "topP is not supported for reasoning models",
    "frequency_penalty": "frequencyPenalty is not supported for reasoning models",
    "presence_penalty": "presencePenalty is not supported for reasoning models",
}

_SEARCH_PREVIEW_PREFIXES = ("gpt-4o-search-preview", "gpt-4o-mini-search-preview")


def is_reasoning_model(model: str) -> bool:
    return model.startswith("o")


class OpenAIProvider(OpenAICompatibleProvider):
    """Direct OpenAI API.

    The official API always terminates streams with ``[DONE]``, so no
    end-of-stream synthesis is needed.
    """

    name = "openai"
    default_stream_options: ClassVar[dict[str, Any]] = {}

    def __init__(
        self,
        api_key: str,
        base_url: str = _DEFAULT_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
        transport: Transport | None = None,
        stream_options: StreamOptions | None = None,
    ) -> None:
        super().__init__(
            base_url,
            api_key,
            http_client=http_client,
            transport=transport,
            stream_options=stream_options,
        )

    def _adjust_payload(
        self, model: str, payload: dict[str, Any]
    ) -> tuple[dict[str, Any], list[CallWarning]]:
        warnings: list[CallWarning] = []

        if is_reasoning_model(model):
            for setting, message in _REASONING_UNSUPPORTED.items():
                if payload.pop(setting, None) is not None:
                    warnings.append(CallWarning(setting=setting, message=message))
            if "max_tokens" in payload:
                payload["max_completion_tokens"] = payload.pop("max_tokens")
        elif model.startswith(_SEARCH_PREVIEW_PREFIXES) and payload.pop("temperature", None) is not None:
            warnings.append(
                CallWarning(
                    setting="temperature",
                    message="temperature is not supported for the search preview models "
                    "and has been removed.",
                )
            )

        return payload, warnings


# Request fields the legacy /completions endpoint accepts besides model/prompt
_COMPLETION_PARAMS = (
    "max_tokens",
    "temperature",
    "top_p",
    "frequency_penalty",
    "presence_penalty",
    "stop",
    "seed",
    "logit_bias",
    "user",
)


def completion_prompt(messages: list[ChatMessage | dict[str, Any]]) -> str:
    """Return the prompt text of a single user message."""
    prepared = prepare_messages(messages=messages)
    if len(prepared) != 1 or prepared[0].role != "user" or prepared[0].content is None:
        raise ValueError("Completion models only support a single user message")
    return prepared[0].content


class OpenAICompletionProvider(OpenAIProvider):
    """Legacy text completions (``/completions``), e.g. ``gpt-3.5-turbo-instruct``.

    Buffered calls only. The request carries a plain ``prompt`` built from a
    single user message, and the answer is read from ``choices[0].text``.
    """

    name = "openai-completion"
    endpoint = "/completions"

    def _build_payload(
        self,
        model: str,
        messages: list[ChatMessage | dict[str, Any]],
        stream: bool,
        params: dict[str, Any],
    ) -> tuple[dict[str, Any], list[CallWarning]]:
        warnings: list[CallWarning] = []
        if params.get("top_k") is not None:
            warnings.append(CallWarning(setting="top_k", message="topK is not supported"))
        for setting in ("tools", "tool_choice", "response_format"):
            if params.get(setting) is not None:
                warnings.append(
                    CallWarning(
                        setting=setting,
                        message=f"{setting} is not supported for completion models",
                    )
                )

        payload: dict[str, Any] = {"model": model, "prompt": completion_prompt(messages)}
        for key in _COMPLETION_PARAMS:
            if params.get(key) is not None:
                payload[key] = params[key]
        logprobs = params.get("logprobs")
        if logprobs is True:
            payload["logprobs"] = 0
        elif isinstance(logprobs, int) and not isinstance(logprobs, bool):
            payload["logprobs"] = logprobs
        return payload, warnings

    def _parse_result(self, data: dict[str, Any], warnings: list[CallWarning]) -> GenerateResult:
        choices = data.get("choices") or [{}]
        first = choices[0] if isinstance(choices[0], dict) else {}
        usage = data.get("usage") or {}
        return GenerateResult(
            text=first.get("text") or "",
            finish_reason=first.get("finish_reason") or "stop",
            usage=Usage(
                prompt_tokens=usage.get("prompt_tokens") or 0,
                completion_tokens=usage.get("completion_tokens") or 0,
                total_tokens=usage.get("total_tokens") or 0,
            ),
            warnings=warnings,
            raw_response=data,
        )

    async def astream_completion(
        self,
        model: str,
        messages: list[ChatMessage | dict[str, Any]],
        *,
        options: StreamOptions | None = None,
        **params: Any,
    ) -> EventStream:
        raise NotImplementedError(f"{self.name} does not support streaming; use achat_completion")
