"""Settings loading from environment variables and config files."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from streamwise.models import StreamOptions


class MissingAPIKeyError(Exception):
    """Raised when a provider needs an API key that is not configured."""

    def __init__(self, provider: str = "openai") -> None:
        super().__init__(
            f"No API key configured for {provider}. Set one of:\n"
            "  export OPENAI_API_KEY='sk-...'                 "
            "(official OpenAI API)\n"
            "  export STREAMWISE_COMPATIBLE_API_KEY='...'     "
            "(OpenAI-compatible server, if it needs one)"
        )


_DEFAULT_CONFIG_PATH = Path.home() / ".config" / "streamwise" / "config.yaml"


class Settings(BaseModel):
    """Application settings."""

    openai_api_key: str = Field(default="", description="OpenAI API key")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="OpenAI API base URL",
    )
    compatible_name: str = Field(
        default="compatible", description="Provider name for the OpenAI-compatible server"
    )
    compatible_base_url: str = Field(
        default="",
        description="Base URL of an OpenAI-compatible server, e.g. http://localhost:1234/v1",
    )
    compatible_api_key: str = Field(default="", description="API key for the compatible server")
    default_model: str = Field(default="openai:gpt-4.1-mini")
    timeout: float = Field(default=30.0, description="Initial connection timeout in seconds")
    idle_timeout: float = Field(
        default=5.0, description="Seconds without a chunk before a stream counts as ended"
    )
    detect_end_of_stream: bool | None = Field(
        default=None, description="Override the provider default for end-of-stream detection"
    )
    filter_metadata: bool | None = Field(default=None)

    def require_openai_key(self) -> str:
        """Return the OpenAI API key or raise MissingAPIKeyError."""
        if not self.openai_api_key:
            raise MissingAPIKeyError("openai")
        return self.openai_api_key

    def stream_options(self, **defaults: Any) -> StreamOptions:
        """Build stream options on top of a provider's *defaults*.

        Policies set explicitly in the settings win over the defaults.
        """
        values: dict[str, Any] = {"timeout": self.timeout, "idle_timeout": self.idle_timeout}
        values.update(defaults)
        if self.detect_end_of_stream is not None:
            values["detect_end_of_stream"] = self.detect_end_of_stream
        if self.filter_metadata is not None:
            values["filter_metadata"] = self.filter_metadata
        return StreamOptions(**values)


def load_settings(config_path: Path | None = None) -> Settings:
    """Load settings from environment variables, then overlay config file values."""
    env_values: dict[str, Any] = {}

    env_map = {
        "OPENAI_API_KEY": "openai_api_key",
        "OPENAI_BASE_URL": "openai_base_url",
        "STREAMWISE_COMPATIBLE_NAME": "compatible_name",
        "STREAMWISE_COMPATIBLE_BASE_URL": "compatible_base_url",
        "STREAMWISE_COMPATIBLE_API_KEY": "compatible_api_key",
        "STREAMWISE_DEFAULT_MODEL": "default_model",
        "STREAMWISE_TIMEOUT": "timeout",
        "STREAMWISE_IDLE_TIMEOUT": "idle_timeout",
        "STREAMWISE_DETECT_END_OF_STREAM": "detect_end_of_stream",
        "STREAMWISE_FILTER_METADATA": "filter_metadata",
    }

    for env_var, field_name in env_map.items():
        val = os.environ.get(env_var)
        if val is not None:
            env_values[field_name] = val

    # Load config file (lower priority than env vars)
    path = config_path or _DEFAULT_CONFIG_PATH
    file_values: dict[str, Any] = {}
    if path.exists():
        with open(path) as f:
            data = yaml.safe_load(f)
            if isinstance(data, dict):
                file_values = data

    # Env vars override config file
    merged = {**file_values, **env_values}
    return Settings(**merged)


# Singleton for convenience
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Reset cached settings (useful for testing)."""
    global _settings
    _settings = None
