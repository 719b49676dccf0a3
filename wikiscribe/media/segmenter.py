"""Split an oversized or overlong audio file into evenly timed chunks."""

from __future__ import annotations

import logging
import math
import uuid
from pathlib import Path

from wikiscribe.concurrency import gather_bounded
from wikiscribe.media.cleanup import cleanup_temp_files
from wikiscribe.media.models import AudioChunk, SegmentRange
from wikiscribe.media.probe import MediaTool, file_size
from wikiscribe.pipeline_config import PipelineConfig

logger = logging.getLogger(__name__)


class SegmentationError(RuntimeError):
    """Raised when segmentation yields no usable chunk."""


def chunk_count_for_size(size: int, max_bytes: int) -> int:
    """Number of chunks needed so each stays under *max_bytes* (at least 1)."""
    return max(1, math.ceil(size / max_bytes))


def plan_segments(total_duration: float, count: int) -> list[SegmentRange]:
    """Divide *total_duration* into *count* equal time slices.

    Slice ``i`` starts at ``i * total_duration / count``. Every slice but the
    last is bounded to that length; the last one is open-ended so the
    rounding remainder is never lost.
    """
    if count < 1:
        raise ValueError(f"chunk count must be positive, got {count}")

    chunk_duration = total_duration / count
    ranges: list[SegmentRange] = []
    for i in range(count):
        is_last = i == count - 1
        ranges.append(
            SegmentRange(
                index=i,
                start=i * chunk_duration,
                duration=None if is_last else chunk_duration,
            )
        )
    return ranges


class AudioSegmenter:
    """Cuts a source file into sibling chunk files under a per-source temp dir.

    The caller owns the returned files and must delete them (see
    :func:`wikiscribe.media.cleanup.cleanup_temp_files`).
    """

    def __init__(self, tool: MediaTool, config: PipelineConfig) -> None:
        self._tool = tool
        self._config = config

    async def segment(self, path: Path, desired_count: int | None = None) -> list[Path]:
        """Segment *path* and return the chunk paths in index order."""
        return [chunk.path for chunk in await self.split(path, desired_count)]

    async def split(self, path: Path, desired_count: int | None = None) -> list[AudioChunk]:
        info = await self._tool.probe(path)
        count = desired_count or chunk_count_for_size(info.size, self._config.max_chunk_bytes)
        ranges = plan_segments(info.duration, count)

        temp_dir = self._config.paths.temp / f"{path.stem}_{uuid.uuid4().hex[:8]}"
        temp_dir.mkdir(parents=True, exist_ok=True)

        chunks = [
            AudioChunk(
                path=temp_dir / f"{path.stem}_chunk_{r.index + 1}{path.suffix}",
                index=r.index,
                start=r.start,
                duration=r.duration,
                parent=path.name,
            )
            for r in ranges
        ]
        logger.info(
            "Splitting %s (%.0fs) into %d chunks of ~%.0fs",
            path.name,
            info.duration,
            count,
            info.duration / count,
        )

        results = await gather_bounded(
            [
                lambda r=r, c=c: self._tool.cut(path, r, c.path)
                for r, c in zip(ranges, chunks, strict=True)
            ],
            limit=self._config.max_concurrency,
            timeout=self._config.call_timeout_seconds,
        )

        failed: list[AudioChunk] = []
        for chunk, result in zip(chunks, results, strict=True):
            if isinstance(result, BaseException):
                if not self._config.tolerate_segment_failures:
                    cleanup_temp_files(c.path for c in chunks)
                    raise SegmentationError(
                        f"Error creating chunk {chunk.index + 1}: {result}"
                    ) from result
                logger.warning("Skipping chunk %d of %s: %s", chunk.index + 1, path.name, result)
                failed.append(chunk)
        # A failed cut may still leave a partial file behind
        cleanup_temp_files(c.path for c in failed)

        valid: list[AudioChunk] = []
        for chunk in chunks:
            if chunk in failed:
                continue
            if not chunk.path.exists():
                logger.warning("Chunk not found: %s", chunk.path.name)
                continue
            if file_size(chunk.path) == 0:
                logger.warning("Empty chunk: %s", chunk.path.name)
                continue
            valid.append(chunk)

        if not valid:
            cleanup_temp_files(c.path for c in chunks)
            raise SegmentationError("No valid chunks were created")
        return valid
