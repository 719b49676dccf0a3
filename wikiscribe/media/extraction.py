"""Extract the audio track of every video in the videos folder."""

from __future__ import annotations

import logging

from wikiscribe.concurrency import call_with_timeout
from wikiscribe.media.models import ExtractionReport
from wikiscribe.media.probe import MediaTool
from wikiscribe.pipeline_config import PipelineConfig

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = {".mp4", ".mov", ".mkv", ".avi"}


async def extract_all_videos(config: PipelineConfig, tool: MediaTool) -> ExtractionReport:
    """Convert each video under ``videos/`` to ``audios/<stem>.mp3``.

    Raises:
        FileNotFoundError: The videos directory does not exist.
    """
    videos_dir = config.paths.videos
    if not videos_dir.is_dir():
        raise FileNotFoundError(f"Video directory not found: {videos_dir}")

    config.paths.audios.mkdir(parents=True, exist_ok=True)
    report = ExtractionReport()

    for video in sorted(videos_dir.iterdir()):
        if video.suffix.lower() not in VIDEO_EXTENSIONS:
            continue

        output = config.paths.audios / f"{video.stem}.mp3"
        try:
            await call_with_timeout(tool.extract_audio(video, output), config.call_timeout_seconds)
            report.extracted.append(video.name)
        except Exception:
            logger.exception("Error extracting audio from %s", video.name)
            report.failed.append(video.name)

    logger.info(
        "Extraction finished: %d extracted, %d failed", len(report.extracted), len(report.failed)
    )
    return report
