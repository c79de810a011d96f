"""Provider resolver: maps model IDs to the right LLM provider."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

import httpx

from streamwise.config import Settings, get_settings
from streamwise.errors import UnsupportedModelError
from streamwise.transport import Transport

if TYPE_CHECKING:
    from streamwise.providers.base import LLMProvider


class ProviderResolver:
    """Resolves a model ID to ``(provider_instance, model_name_for_provider)``.

    Model IDs take the form ``provider:model`` or ``provider/model``. A bare
    model name resolves against the provider of ``settings.default_model``.
    Providers are created lazily from settings on first use and cached;
    :meth:`register` adds or replaces one explicitly.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        transport: Transport | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._http_client = http_client
        self._transport = transport
        self._cache: dict[str, LLMProvider] = {}
        self._factories: dict[str, Callable[[], LLMProvider]] = {
            "openai": self._build_openai,
            "openai-completion": self._build_openai_completion,
            "mock": self._build_mock,
        }
        if self.settings.compatible_base_url:
            self._factories[self.settings.compatible_name] = self._build_compatible

    def register(self, name: str, provider: LLMProvider) -> None:
        self._cache[name] = provider

    @property
    def names(self) -> list[str]:
        return sorted(set(self._cache) | set(self._factories))

    def split(self, model_id: str) -> tuple[str, str]:
        """Split *model_id* into ``(provider_name, model)``."""
        if ":" in model_id:
            prefix, model = model_id.split(":", 1)
            return prefix, model
        if "/" in model_id:
            prefix, model = model_id.split("/", 1)
            # Model names like "meta-llama/Llama-3" keep their slash
            if prefix in self._cache or prefix in self._factories:
                return prefix, model
        default_prefix = self.settings.default_model.split(":", 1)[0]
        return default_prefix, model_id

    def resolve(self, model_id: str) -> tuple[LLMProvider, str]:
        """Return ``(provider, model_name)`` for *model_id*."""
        prefix, model = self.split(model_id)
        if not model:
            raise UnsupportedModelError(f"No model name in {model_id!r}")
        return self._get_or_create(prefix), model

    def _get_or_create(self, name: str) -> LLMProvider:
        if name not in self._cache:
            factory = self._factories.get(name)
            if factory is None:
                raise UnsupportedModelError(
                    f"Unknown provider {name!r}; available: {', '.join(self.names)}"
                )
            self._cache[name] = factory()
        return self._cache[name]

    def _build_openai(self) -> LLMProvider:
        from streamwise.providers.openai import OpenAIProvider

        return OpenAIProvider(
            self.settings.require_openai_key(),
            self.settings.openai_base_url,
            http_client=self._http_client,
            transport=self._transport,
            stream_options=self.settings.stream_options(**OpenAIProvider.default_stream_options),
        )

    def _build_openai_completion(self) -> LLMProvider:
        from streamwise.providers.openai import OpenAICompletionProvider

        return OpenAICompletionProvider(
            self.settings.require_openai_key(),
            self.settings.openai_base_url,
            http_client=self._http_client,
        )

    def _build_compatible(self) -> LLMProvider:
        from streamwise.providers._openai_compat import OpenAICompatibleProvider

        return OpenAICompatibleProvider(
            self.settings.compatible_base_url,
            self.settings.compatible_api_key or None,
            name=self.settings.compatible_name,
            http_client=self._http_client,
            transport=self._transport,
            stream_options=self.settings.stream_options(
                **OpenAICompatibleProvider.default_stream_options
            ),
        )

    def _build_mock(self) -> LLMProvider:
        from streamwise.providers.mock import MockProvider

        return MockProvider(stream_options=self.settings.stream_options())
