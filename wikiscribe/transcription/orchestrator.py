"""Transcription stage: audio folder -> transcript Markdown files.

Per file the orchestrator validates, measures, segments when the file is over
the size or duration limit, transcribes every chunk with bounded
concurrency, joins the results in chunk order and persists them. The source
file ends up in the ``transcripted`` folder or, for unusable input, in the
``error`` folder next to a diagnostic log.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from wikiscribe.concurrency import gather_bounded
from wikiscribe.media.cleanup import cleanup_temp_files
from wikiscribe.media.models import AudioChunk
from wikiscribe.media.probe import MediaTool
from wikiscribe.media.segmenter import AudioSegmenter, SegmentationError
from wikiscribe.media.validation import is_valid_audio
from wikiscribe.pipeline_config import PipelineConfig
from wikiscribe.transcription.backends import Transcriber
from wikiscribe.transcription.errors import (
    EmptyTranscriptError,
    ErrorKind,
    InvalidAudioError,
    NoValidChunksError,
    TranscriptionError,
    UnprocessableAudioError,
)
from wikiscribe.transcription.quarantine import move_to_error_folder, move_to_transcripted_folder

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = {".mp3", ".wav", ".m4a", ".ogg", ".flac"}


class FileStatus(str, Enum):
    DONE = "done"
    ERROR = "error"  # quarantined
    FAILED = "failed"  # left in place for manual review


@dataclass
class FileOutcome:
    file: str
    status: FileStatus
    transcript_path: Path | None = None
    destination: Path | None = None
    error: str | None = None


@dataclass
class TranscriptionReport:
    outcomes: list[FileOutcome] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return sum(1 for o in self.outcomes if o.status is FileStatus.DONE)

    @property
    def failed(self) -> int:
        return len(self.outcomes) - self.processed

    @property
    def quarantined(self) -> int:
        return sum(1 for o in self.outcomes if o.status is FileStatus.ERROR)


def needs_segmentation(size: int, duration: float, config: PipelineConfig) -> bool:
    return size > config.max_chunk_bytes or duration > config.max_chunk_seconds


def chunks_needed(size: int, duration: float, config: PipelineConfig) -> int:
    """Chunk count satisfying both the size and the duration limit."""
    if not needs_segmentation(size, duration, config):
        return 1
    by_duration = math.ceil(duration / config.max_chunk_seconds)
    by_size = math.ceil(size / config.max_chunk_bytes)
    return max(by_duration, by_size)


def combine_transcripts(parts: list[str]) -> str:
    """Join non-blank chunk transcripts with a blank line, keeping their order."""
    return "\n\n".join(p for p in parts if p and p.strip())


def format_transcript_body(text: str, sentence_paragraphs: bool = True) -> str:
    if not sentence_paragraphs:
        return text
    return re.sub(r"([.?!])\s+", r"\1\n\n", text)


def render_transcript(
    audio_name: str,
    text: str,
    when: datetime | None = None,
    sentence_paragraphs: bool = True,
) -> str:
    when = when or datetime.now(timezone.utc)
    stem = Path(audio_name).stem
    return (
        f"# Transcription: {stem}\n"
        "\n"
        f"**Original File:** {audio_name}  \n"
        f"**Transcribed:** {when.isoformat()}  \n"
        f"**Characters:** {len(text)}\n"
        "\n"
        "---\n"
        "\n"
        f"{format_transcript_body(text, sentence_paragraphs)}\n"
    )


class TranscriptionOrchestrator:
    """Runs the transcription stage over a directory of audio files."""

    def __init__(
        self,
        config: PipelineConfig,
        tool: MediaTool,
        transcriber: Transcriber,
        segmenter: AudioSegmenter | None = None,
    ) -> None:
        self._config = config
        self._tool = tool
        self._transcriber = transcriber
        self._segmenter = segmenter or AudioSegmenter(tool, config)

    async def run(self, audio_dir: Path | None = None) -> TranscriptionReport:
        """Process every audio file in *audio_dir*, one file at a time.

        Raises:
            FileNotFoundError: The audio directory does not exist.
        """
        audio_dir = audio_dir or self._config.paths.audios
        if not audio_dir.is_dir():
            raise FileNotFoundError(f"Audio directory not found: {audio_dir}")

        paths = self._config.paths
        for directory in (paths.transcription, paths.transcripted, paths.error):
            directory.mkdir(parents=True, exist_ok=True)

        audio_files = sorted(
            p for p in audio_dir.iterdir() if p.is_file() and p.suffix.lower() in AUDIO_EXTENSIONS
        )
        report = TranscriptionReport()
        if not audio_files:
            logger.info("No audio files found in %s", audio_dir)
            return report

        logger.info("Found %d audio files to process in %s", len(audio_files), audio_dir)
        for audio_path in audio_files:
            report.outcomes.append(await self.process_file(audio_path))

        logger.info(
            "Transcription finished: %d transcribed, %d failed (%d quarantined in %s)",
            report.processed,
            report.failed,
            report.quarantined,
            paths.error,
        )
        return report

    async def process_file(self, audio_path: Path) -> FileOutcome:
        logger.info("Processing %s", audio_path.name)
        temp_files: list[Path] = []

        try:
            if not await is_valid_audio(audio_path, self._tool):
                raise InvalidAudioError("File validation failed - corrupted or invalid audio file")

            info = await self._tool.probe(audio_path)
            logger.info(
                "%s: %.2fMB, %ds", audio_path.name, info.size / 1024 / 1024, round(info.duration)
            )

            if needs_segmentation(info.size, info.duration, self._config):
                count = chunks_needed(info.size, info.duration, self._config)
                chunks = await self._segmenter.split(audio_path, count)
                temp_files = [c.path for c in chunks]

                chunks = await self._within_duration_limit(chunks)
                if not chunks:
                    raise NoValidChunksError(
                        "No valid chunks could be created within duration limits"
                    )
                targets = [c.path for c in chunks]
            else:
                targets = [audio_path]

            combined = combine_transcripts(await self._transcribe_all(audio_path.name, targets))
            if not combined.strip():
                raise EmptyTranscriptError(
                    "No valid transcription generated - all chunks failed or were empty"
                )

            transcript_path = self.save_transcription(audio_path.name, combined)
            destination = move_to_transcripted_folder(
                audio_path, transcript_path, self._config.paths.transcripted
            )
            return FileOutcome(
                file=audio_path.name,
                status=FileStatus.DONE,
                transcript_path=transcript_path,
                destination=destination,
            )

        except (UnprocessableAudioError, SegmentationError, TranscriptionError) as exc:
            logger.error("Quarantining %s: %s", audio_path.name, exc)
            destination = move_to_error_folder(audio_path, exc, self._config.paths.error)
            return FileOutcome(
                file=audio_path.name,
                status=FileStatus.ERROR,
                destination=destination,
                error=str(exc),
            )
        except Exception as exc:
            logger.exception(
                "Unexpected error processing %s, keeping file in place for manual review",
                audio_path.name,
            )
            return FileOutcome(file=audio_path.name, status=FileStatus.FAILED, error=str(exc))
        finally:
            cleanup_temp_files(temp_files)

    async def _within_duration_limit(self, chunks: list[AudioChunk]) -> list[AudioChunk]:
        """Drop chunks that are still over the duration cap or cannot be probed."""
        kept: list[AudioChunk] = []
        for chunk in chunks:
            try:
                info = await self._tool.probe(chunk.path)
            except Exception as exc:
                logger.warning("Discarding chunk %s: %s", chunk.path.name, exc)
                continue
            if info.duration > self._config.max_chunk_seconds:
                logger.warning(
                    "Discarding chunk %s: %.0fs exceeds the %.0fs limit",
                    chunk.path.name,
                    info.duration,
                    self._config.max_chunk_seconds,
                )
                continue
            kept.append(chunk)
        return kept

    async def _transcribe_all(self, name: str, targets: list[Path]) -> list[str]:
        """Transcribe *targets* concurrently; results keep the input order.

        Transient failures contribute an empty string. A corrupt-input failure
        on any chunk is raised once every call has settled.
        """
        results = await gather_bounded(
            [lambda p=p: self._transcriber.transcribe(p) for p in targets],
            limit=self._config.max_concurrency,
            timeout=self._config.call_timeout_seconds,
        )

        parts: list[str] = []
        total = len(targets)
        for index, result in enumerate(results, start=1):
            if isinstance(result, TranscriptionError) and result.kind is ErrorKind.CORRUPT_INPUT:
                raise TranscriptionError(
                    f"Corrupted audio chunk detected: {result}",
                    result.kind,
                    status_code=result.status_code,
                    response_payload=result.response_payload,
                ) from result
            if isinstance(result, BaseException):
                logger.warning(
                    "Chunk %d/%d of %s failed, continuing without it: %r", index, total, name, result
                )
                parts.append("")
                continue
            if not result.strip():
                logger.warning("Empty transcription for chunk %d/%d of %s", index, total, name)
            parts.append(result)
        return parts

    def save_transcription(self, audio_name: str, text: str) -> Path:
        output_dir = self._config.paths.transcription
        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / f"{Path(audio_name).stem}.md"
        output_path.write_text(
            render_transcript(audio_name, text, sentence_paragraphs=self._config.sentence_paragraphs),
            encoding="utf-8",
        )
        logger.info("Saved transcription %s", output_path.name)
        return output_path
