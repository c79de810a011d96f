"""Tests for settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from streamwise.config import MissingAPIKeyError, Settings, get_settings, load_settings


class TestLoadSettings:
    def test_defaults(self, tmp_path: Path):
        settings = load_settings(tmp_path / "absent.yaml")
        assert settings.openai_base_url == "https://api.openai.com/v1"
        assert settings.timeout == 30.0
        assert settings.idle_timeout == 5.0
        assert settings.detect_end_of_stream is None

    def test_env_vars(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("STREAMWISE_IDLE_TIMEOUT", "1.5")
        monkeypatch.setenv("STREAMWISE_FILTER_METADATA", "true")
        settings = load_settings(tmp_path / "absent.yaml")
        assert settings.openai_api_key == "sk-env"
        assert settings.idle_timeout == 1.5
        assert settings.filter_metadata is True

    def test_config_file(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "compatible_base_url: http://localhost:1234/v1\n"
            "compatible_name: lmstudio\n"
            "timeout: 10\n"
        )
        settings = load_settings(path)
        assert settings.compatible_base_url == "http://localhost:1234/v1"
        assert settings.compatible_name == "lmstudio"
        assert settings.timeout == 10.0

    def test_env_overrides_file(self, monkeypatch, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("default_model: openai:gpt-4.1\n")
        monkeypatch.setenv("STREAMWISE_DEFAULT_MODEL", "mock:demo")
        assert load_settings(path).default_model == "mock:demo"

    def test_non_mapping_file_ignored(self, tmp_path: Path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        assert load_settings(path).default_model == "openai:gpt-4.1-mini"

    def test_get_settings_cached(self):
        assert get_settings() is get_settings()


class TestSettings:
    def test_require_openai_key(self):
        assert Settings(openai_api_key="sk-1").require_openai_key() == "sk-1"
        with pytest.raises(MissingAPIKeyError, match="OPENAI_API_KEY"):
            Settings().require_openai_key()

    def test_stream_options_layering(self):
        settings = Settings(timeout=3.0, filter_metadata=True)
        options = settings.stream_options(detect_end_of_stream=True, filter_metadata=False)
        assert options.timeout == 3.0
        assert options.detect_end_of_stream is True
        assert options.filter_metadata is True

    def test_stream_options_without_defaults(self):
        options = Settings().stream_options()
        assert options.detect_end_of_stream is False
        assert options.idle_timeout == 5.0
