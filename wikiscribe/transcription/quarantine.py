"""Relocate processed audio into the done / error folders with a sidecar file."""

from __future__ import annotations

import json
import logging
import shutil
import time
import traceback
from datetime import datetime, timezone
from pathlib import Path

from wikiscribe.media.probe import file_size

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def unique_destination(directory: Path, name: str) -> Path:
    """Return ``directory / name``, suffixed with an epoch-ms stamp if taken."""
    candidate = directory / name
    if candidate.exists():
        stem, suffix = Path(name).stem, Path(name).suffix
        candidate = directory / f"{stem}_{int(time.time() * 1000)}{suffix}"
    return candidate


def _format_payload(payload: object) -> str:
    if payload is None:
        return "No API response"
    try:
        return json.dumps(payload, indent=2, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(payload)


def render_error_log(original: Path, destination: Path, error: BaseException) -> str:
    stack = "".join(traceback.format_exception(type(error), error, error.__traceback__)).strip()
    size = file_size(destination) if destination.exists() else "Unknown"
    return (
        f"File: {original.name}\n"
        f"Original Path: {original}\n"
        f"Error Time: {_now()}\n"
        f"Error Type: {type(error).__name__}\n"
        f"Error Message: {str(error) or 'No message available'}\n"
        f"Stack Trace: {stack or 'No stack trace available'}\n"
        "\n"
        "Additional Info:\n"
        f"- File Size: {size} bytes\n"
        f"- API Response: {_format_payload(getattr(error, 'response_payload', None))}\n"
    )


def move_to_error_folder(audio_path: Path, error: BaseException, error_dir: Path) -> Path | None:
    """Quarantine *audio_path* and write ``<stem>_error.log`` next to it.

    Returns the new location, or None if the move itself failed (logged).
    """
    try:
        error_dir.mkdir(parents=True, exist_ok=True)
        destination = unique_destination(error_dir, audio_path.name)
        shutil.move(str(audio_path), destination)

        log_path = error_dir / f"{destination.stem}_error.log"
        log_path.write_text(render_error_log(audio_path, destination, error), encoding="utf-8")
    except OSError as exc:
        logger.error("Error moving %s to error folder: %s", audio_path, exc)
        return None

    logger.info("Moved %s to error folder (log: %s)", destination.name, log_path.name)
    return destination


def move_to_transcripted_folder(
    audio_path: Path, transcript_path: Path, transcripted_dir: Path
) -> Path | None:
    """Move a successfully transcribed file and write ``<stem>_info.txt``.

    A failure here never undoes the transcription: it is logged as a warning
    and None is returned.
    """
    try:
        transcripted_dir.mkdir(parents=True, exist_ok=True)
        destination = unique_destination(transcripted_dir, audio_path.name)
        shutil.move(str(audio_path), destination)

        info_path = transcripted_dir / f"{destination.stem}_info.txt"
        moved_at = _now()
        info_path.write_text(
            f"Original File: {audio_path.name}\n"
            f"Original Path: {audio_path}\n"
            f"Transcription File: {transcript_path.name}\n"
            f"Transcribed: {moved_at}\n"
            f"Moved to transcripted folder: {moved_at}\n"
            f"File Size: {file_size(destination)} bytes\n",
            encoding="utf-8",
        )
    except OSError as exc:
        logger.warning(
            "Could not move %s to transcripted folder, keeping it in place "
            "(transcription was saved): %s",
            audio_path,
            exc,
        )
        return None

    logger.info("Moved transcribed file to %s", destination)
    return destination
