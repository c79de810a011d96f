"""streamwise: streaming client for OpenAI-compatible chat APIs."""

from importlib.metadata import version

from streamwise.errors import (
    ConnectionFailedError,
    StreamwiseError,
    TransportError,
    UnsupportedModelError,
)
from streamwise.events import Error, Finish, Metadata, StreamEvent, TextDelta, ToolCall
from streamwise.models import GenerateResult, StreamOptions, StreamState
from streamwise.pipeline import EventPipeline, iter_events
from streamwise.providers import (
    MockProvider,
    OpenAICompatibleProvider,
    OpenAICompletionProvider,
    OpenAIProvider,
    ProviderResolver,
)
from streamwise.streaming import EventStream, StreamingClient
from streamwise.text import agenerate_text, generate_text, stream_text

__version__ = version("streamwise-llm")
__all__ = [
    "ConnectionFailedError",
    "Error",
    "EventPipeline",
    "EventStream",
    "Finish",
    "GenerateResult",
    "Metadata",
    "MockProvider",
    "OpenAICompatibleProvider",
    "OpenAICompletionProvider",
    "OpenAIProvider",
    "ProviderResolver",
    "StreamEvent",
    "StreamOptions",
    "StreamState",
    "StreamingClient",
    "StreamwiseError",
    "TextDelta",
    "ToolCall",
    "TransportError",
    "UnsupportedModelError",
    "__version__",
    "agenerate_text",
    "generate_text",
    "iter_events",
    "stream_text",
]
