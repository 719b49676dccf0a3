"""Pre-flight check run before any audio is sent to a paid service."""

from __future__ import annotations

import logging
import math
from pathlib import Path

from wikiscribe.media.probe import MediaTool

logger = logging.getLogger(__name__)


async def is_valid_audio(path: Path, tool: MediaTool) -> bool:
    """Return True if *path* exists, is non-empty and has a usable duration.

    Never raises: every failure is logged and reported as ``False``.
    """
    try:
        if not path.is_file():
            raise ValueError("File does not exist")

        size = path.stat().st_size
        if size == 0:
            raise ValueError("File is empty (0 bytes)")

        info = await tool.probe(path)
        if not info.duration or math.isnan(info.duration):
            raise ValueError("Invalid audio duration or corrupted file structure")
    except Exception as exc:
        logger.warning("Validation failed for %s: %s", path.name, exc)
        return False

    logger.info(
        "Validation passed for %s: %.2fMB, %ds", path.name, size / 1024 / 1024, round(info.duration)
    )
    return True
