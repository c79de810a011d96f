"""LLM provider adapters for streamwise."""

from streamwise.providers._openai_compat import OpenAICompatibleProvider
from streamwise.providers.base import LLMProvider
from streamwise.providers.mock import MockProvider
from streamwise.providers.openai import OpenAICompletionProvider, OpenAIProvider
from streamwise.providers.resolver import ProviderResolver

__all__ = [
    "LLMProvider",
    "MockProvider",
    "OpenAICompatibleProvider",
    "OpenAICompletionProvider",
    "OpenAIProvider",
    "ProviderResolver",
]
