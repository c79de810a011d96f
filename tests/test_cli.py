"""Tests for CLI commands."""

from __future__ import annotations

from pathlib import Path

import respx
from conftest import HELLO_STREAM, chunk, frame
from httpx import Response
from typer.testing import CliRunner

from streamwise.cli import app

runner = CliRunner()


class TestCLI:
    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "streamwise" in result.output

    def test_stream_command_help(self):
        result = runner.invoke(app, ["stream", "--help"])
        assert result.exit_code == 0

    def test_generate_command_help(self):
        result = runner.invoke(app, ["generate", "--help"])
        assert result.exit_code == 0

    def test_decode_command_help(self):
        result = runner.invoke(app, ["decode", "--help"])
        assert result.exit_code == 0


class TestStreamCommand:
    def test_stream_with_mock_provider(self):
        result = runner.invoke(app, ["stream", "Hi", "--model", "mock:demo"])
        assert result.exit_code == 0
        assert "Hello, world!" in result.output
        assert "finish: stop" in result.output

    def test_unknown_provider(self):
        result = runner.invoke(app, ["stream", "Hi", "--model", "nope:demo"])
        assert result.exit_code == 1
        assert "Unknown provider" in result.output

    def test_missing_api_key(self):
        result = runner.invoke(app, ["stream", "Hi", "--model", "openai:gpt-4.1"])
        assert result.exit_code == 1
        assert "OPENAI_API_KEY" in result.output

    @respx.mock
    def test_connection_failure(self, monkeypatch):
        monkeypatch.setenv("STREAMWISE_COMPATIBLE_BASE_URL", "http://local.test/v1")
        respx.post("http://local.test/v1/chat/completions").mock(
            return_value=Response(404, text="model not loaded"),
        )
        result = runner.invoke(app, ["stream", "Hi", "--model", "compatible:m"])
        assert result.exit_code == 1
        assert "HTTP 404" in result.output
        assert "model not loaded" in result.output


class TestGenerateCommand:
    def test_generate_with_mock_provider(self):
        result = runner.invoke(app, ["generate", "Hi", "-m", "mock:demo"])
        assert result.exit_code == 0
        assert "Hello, world!" in result.output
        assert "10 in / 20 out" in result.output

    def test_default_model_from_env(self, monkeypatch):
        monkeypatch.setenv("STREAMWISE_DEFAULT_MODEL", "mock:demo")
        result = runner.invoke(app, ["generate", "Hi"])
        assert result.exit_code == 0
        assert "Hello, world!" in result.output


class TestDecodeCommand:
    def _capture(self, tmp_path: Path, body: str) -> Path:
        path = tmp_path / "capture.sse"
        path.write_text(body)
        return path

    def test_decode(self, tmp_path: Path):
        path = self._capture(tmp_path, HELLO_STREAM)
        result = runner.invoke(app, ["decode", str(path)])
        assert result.exit_code == 0
        assert "text_delta" in result.output
        assert "finish" in result.output
        assert "Text: Hi" in result.output

    def test_decode_in_small_chunks(self, tmp_path: Path):
        path = self._capture(tmp_path, HELLO_STREAM)
        result = runner.invoke(app, ["decode", str(path), "--chunk-size", "3"])
        assert result.exit_code == 0
        assert "Text: Hi" in result.output

    def test_detect_end(self, tmp_path: Path):
        path = self._capture(tmp_path, frame(chunk("a")))
        result = runner.invoke(app, ["decode", str(path), "--detect-end"])
        assert result.exit_code == 0
        assert "complete" in result.output

    def test_missing_file(self, tmp_path: Path):
        result = runner.invoke(app, ["decode", str(tmp_path / "nope.sse")])
        assert result.exit_code != 0

    def test_verbose(self, tmp_path: Path):
        path = self._capture(tmp_path, HELLO_STREAM)
        result = runner.invoke(app, ["--verbose", "decode", str(path)])
        assert result.exit_code == 0
