"""Data models for audio probing and segmentation."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class MediaInfo:
    """Byte size and playback duration of a media file."""

    path: Path
    size: int
    duration: float


@dataclass(frozen=True)
class SegmentRange:
    """A time slice of a source file.

    ``duration`` is ``None`` for the final slice, which runs to the end of the
    stream and absorbs any rounding remainder.
    """

    index: int
    start: float
    duration: float | None = None


@dataclass
class AudioChunk:
    """A chunk file produced by segmentation."""

    path: Path
    index: int
    start: float
    duration: float | None = None
    parent: str = field(default="")


@dataclass
class ExtractionReport:
    """Outcome of a video-to-audio extraction batch."""

    extracted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
