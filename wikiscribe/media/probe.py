"""ffmpeg-backed media adapter: probing, cutting and audio extraction.

The ``ffmpeg-python`` calls are blocking subprocess invocations, so every
public method runs them in a worker thread and exposes an awaitable API.
"""

from __future__ import annotations

import asyncio
import logging
import math
from pathlib import Path
from typing import Protocol

import ffmpeg

from wikiscribe.media.models import MediaInfo, SegmentRange

logger = logging.getLogger(__name__)


class ProbeError(RuntimeError):
    """Raised when a file's duration cannot be determined."""


class MediaTool(Protocol):
    """Interface the pipeline needs from a media engine."""

    async def probe(self, path: Path) -> MediaInfo: ...

    async def cut(self, source: Path, segment: SegmentRange, destination: Path) -> Path: ...

    async def extract_audio(self, video: Path, output: Path) -> Path: ...


def file_size(path: Path) -> int:
    """Return the byte size of *path*, or 0 if it cannot be stat'ed."""
    try:
        return path.stat().st_size
    except OSError as exc:
        logger.error("Error getting file size for %s: %s", path, exc)
        return 0


def _stderr_text(exc: ffmpeg.Error) -> str:
    stderr = exc.stderr or b""
    return stderr.decode("utf-8", errors="replace").strip()


class FfmpegMediaTool:
    """High-level facade over the ffmpeg / ffprobe binaries."""

    def __init__(self, ffmpeg_cmd: str = "ffmpeg", ffprobe_cmd: str = "ffprobe") -> None:
        self._ffmpeg_cmd = ffmpeg_cmd
        self._ffprobe_cmd = ffprobe_cmd

    async def probe(self, path: Path) -> MediaInfo:
        """Return size and duration of *path*.

        Raises:
            ProbeError: ffprobe failed or reported no usable duration.
        """
        try:
            metadata = await asyncio.to_thread(ffmpeg.probe, str(path), cmd=self._ffprobe_cmd)
        except ffmpeg.Error as exc:
            raise ProbeError(f"ffprobe failed for {path.name}: {_stderr_text(exc)}") from exc

        raw_duration = metadata.get("format", {}).get("duration")
        try:
            duration = float(raw_duration)
        except (TypeError, ValueError):
            raise ProbeError("Could not determine audio duration") from None
        if math.isnan(duration):
            raise ProbeError("Could not determine audio duration")

        return MediaInfo(path=path, size=file_size(path), duration=duration)

    async def _run(self, stream: ffmpeg.nodes.OutputStream, destination: Path) -> None:
        """Run *stream* to completion, killing ffmpeg if the caller stops waiting.

        A timed-out or cancelled run removes whatever it wrote to *destination*.
        """
        process = stream.run_async(cmd=self._ffmpeg_cmd, pipe_stdout=True, pipe_stderr=True)
        try:
            stdout, stderr = await asyncio.to_thread(process.communicate)
        except asyncio.CancelledError:
            process.kill()
            destination.unlink(missing_ok=True)
            raise
        if process.returncode != 0:
            raise ffmpeg.Error(self._ffmpeg_cmd, stdout, stderr)

    async def cut(self, source: Path, segment: SegmentRange, destination: Path) -> Path:
        """Write one time slice of *source* to *destination* (codec copy)."""
        output_kwargs: dict[str, object] = {"acodec": "copy"}
        if segment.duration is not None:
            output_kwargs["t"] = segment.duration

        stream = (
            ffmpeg.input(str(source), ss=segment.start)
            .output(str(destination), **output_kwargs)
            .overwrite_output()
        )
        try:
            await self._run(stream, destination)
        except ffmpeg.Error as exc:
            raise RuntimeError(
                f"ffmpeg failed creating chunk {segment.index + 1}: {_stderr_text(exc)}"
            ) from exc
        return destination

    async def extract_audio(self, video: Path, output: Path) -> Path:
        """Transcode the audio track of *video* to an mp3 file at *output*."""
        info = await self.probe(video)
        size_mb = info.size / (1024 * 1024)
        comment = f"comment=Duration: {info.duration:.2f}s, Size: {size_mb:.2f}MB"

        stream = (
            ffmpeg.input(str(video))
            .output(str(output), format="mp3", vn=None, metadata=comment)
            .overwrite_output()
        )
        try:
            await self._run(stream, output)
        except ffmpeg.Error as exc:
            raise RuntimeError(f"ffmpeg failed extracting {video.name}: {_stderr_text(exc)}") from exc

        logger.info(
            "Extracted audio from %s (duration %.2fs, size %.2fMB)", video.name, info.duration, size_mb
        )
        return output
