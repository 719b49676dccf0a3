"""Pipeline configuration: provider enums, working paths and PipelineConfig."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wikiscribe.config import Settings

# Upload limit of the speech-to-text service
MAX_CHUNK_BYTES = 25 * 1024 * 1024
MAX_CHUNK_SECONDS = 1400


class TranscriptionProvider(str, Enum):
    """Available speech-to-text backends."""

    OPENAI = "openai"
    ASSEMBLYAI = "assemblyai"


class GenerationProvider(str, Enum):
    """Available text-generation backends."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class ConsolidationStrategy(str, Enum):
    """How multi-chunk generation output is merged into one document."""

    LLM = "llm"
    CONCATENATE = "concatenate"


@dataclass(frozen=True)
class WorkingPaths:
    """Directory layout under a single working root."""

    root: Path = Path("working-paths")

    @property
    def videos(self) -> Path:
        return self.root / "videos"

    @property
    def audios(self) -> Path:
        return self.root / "audios"

    @property
    def transcription(self) -> Path:
        return self.root / "transcription"

    @property
    def transcripted(self) -> Path:
        return self.root / "transcripted"

    @property
    def error(self) -> Path:
        return self.root / "error"

    @property
    def markdown(self) -> Path:
        return self.root / "markdown"

    @property
    def temp(self) -> Path:
        return self.root / "temp_chunks"


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable configuration shared by every pipeline stage.

    Defaults mirror the limits of the hosted speech and generation services.
    Build one from the environment with :meth:`from_settings`.
    """

    paths: WorkingPaths = field(default_factory=WorkingPaths)

    # Audio segmentation / transcription
    max_chunk_bytes: int = MAX_CHUNK_BYTES
    max_chunk_seconds: float = MAX_CHUNK_SECONDS
    language: str = "it"
    max_concurrency: int = 4
    call_timeout_seconds: float | None = 600.0
    tolerate_segment_failures: bool = True
    sentence_paragraphs: bool = True

    # Markdown generation
    chunk_token_budget: int = 12000
    single_call_token_threshold: int = 15000
    chunk_delay_seconds: float = 0.5
    generation_retries: int = 1
    temperature: float = 0.2
    consolidation_temperature: float = 0.1
    max_output_tokens: int = 10000
    consolidation_strategy: ConsolidationStrategy = ConsolidationStrategy.LLM

    # Wiki publishing
    wiki_base_path: str = ""
    wiki_locale: str = "en"
    wiki_request_delay_seconds: float = 1.0

    @classmethod
    def from_settings(cls, settings: Settings) -> PipelineConfig:
        return cls(
            paths=WorkingPaths(Path(settings.working_dir)),
            language=settings.transcription_language,
            max_concurrency=max(1, settings.max_concurrency),
            call_timeout_seconds=settings.call_timeout_seconds or None,
            consolidation_strategy=ConsolidationStrategy(settings.consolidation_strategy),
            wiki_base_path=settings.wikijs_default_path,
            wiki_locale=settings.wikijs_locale,
        )
