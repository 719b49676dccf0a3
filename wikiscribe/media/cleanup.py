"""Best-effort removal of temporary chunk files."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)


def cleanup_temp_files(paths: Iterable[Path]) -> None:
    """Delete *paths*, then any parent directory left empty.

    Never raises; failures are logged as warnings.
    """
    paths = list(paths)
    for path in paths:
        try:
            if path.exists():
                path.unlink()
                logger.debug("Cleaned up %s", path.name)
        except OSError as exc:
            logger.warning("Could not delete temp file %s: %s", path.name, exc)

    for directory in {p.parent for p in paths}:
        try:
            if directory.is_dir() and not any(directory.iterdir()):
                directory.rmdir()
                logger.debug("Removed temp directory %s", directory.name)
        except OSError as exc:
            logger.warning("Could not remove temp directory %s: %s", directory, exc)
