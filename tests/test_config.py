"""Tests for Settings, pipeline enums and PipelineConfig wiring."""

from __future__ import annotations

from pathlib import Path

import pytest

from wikiscribe.config import Settings
from wikiscribe.pipeline_config import (
    MAX_CHUNK_BYTES,
    MAX_CHUNK_SECONDS,
    ConsolidationStrategy,
    GenerationProvider,
    PipelineConfig,
    TranscriptionProvider,
    WorkingPaths,
)

# ---------------------------------------------------------------------------
# Enum tests
# ---------------------------------------------------------------------------


class TestProviders:
    def test_transcription_values(self) -> None:
        assert TranscriptionProvider("openai") is TranscriptionProvider.OPENAI
        assert TranscriptionProvider("assemblyai") is TranscriptionProvider.ASSEMBLYAI

    def test_generation_values(self) -> None:
        assert GenerationProvider("openai") is GenerationProvider.OPENAI
        assert GenerationProvider("anthropic") is GenerationProvider.ANTHROPIC

    def test_invalid_raises(self) -> None:
        with pytest.raises(ValueError):
            TranscriptionProvider("whisper-local")

    def test_is_str_subclass(self) -> None:
        assert isinstance(ConsolidationStrategy.LLM, str)


# ---------------------------------------------------------------------------
# Settings / PipelineConfig
# ---------------------------------------------------------------------------


class TestSettings:
    def test_defaults(self) -> None:
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.api_port == 3030
        assert s.working_dir == "working-paths"
        assert s.transcription_language == "it"

    def test_legacy_api_key_alias(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.setenv("API_KEY", "sk-legacy")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.openai_api_key == "sk-legacy"

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WIKIJS_DEFAULT_PATH", "meetings")
        monkeypatch.setenv("MAX_CONCURRENCY", "2")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.wikijs_default_path == "meetings"
        assert s.max_concurrency == 2


class TestPipelineConfig:
    def test_service_limits(self) -> None:
        config = PipelineConfig()
        assert config.max_chunk_bytes == MAX_CHUNK_BYTES == 26214400
        assert config.max_chunk_seconds == MAX_CHUNK_SECONDS == 1400
        assert config.tolerate_segment_failures is True

    def test_frozen(self) -> None:
        config = PipelineConfig()
        with pytest.raises(AttributeError):
            config.language = "en"  # type: ignore[misc]

    def test_working_paths_layout(self) -> None:
        paths = WorkingPaths(Path("/data"))
        assert paths.videos == Path("/data/videos")
        assert paths.audios == Path("/data/audios")
        assert paths.transcription == Path("/data/transcription")
        assert paths.transcripted == Path("/data/transcripted")
        assert paths.error == Path("/data/error")
        assert paths.markdown == Path("/data/markdown")
        assert paths.temp == Path("/data/temp_chunks")

    def test_from_settings(self) -> None:
        s = Settings(  # type: ignore[call-arg]
            _env_file=None,
            working_dir="/srv/wp",
            transcription_language="en",
            consolidation_strategy="concatenate",
            wikijs_default_path="/docs/",
            max_concurrency=0,
        )
        config = PipelineConfig.from_settings(s)
        assert config.paths.root == Path("/srv/wp")
        assert config.language == "en"
        assert config.consolidation_strategy is ConsolidationStrategy.CONCATENATE
        assert config.wiki_base_path == "/docs/"
        assert config.max_concurrency == 1

    def test_zero_timeout_means_unbounded(self) -> None:
        s = Settings(_env_file=None, call_timeout_seconds=0)  # type: ignore[call-arg]
        assert PipelineConfig.from_settings(s).call_timeout_seconds is None
