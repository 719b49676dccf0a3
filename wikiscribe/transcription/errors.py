"""Failure taxonomy for the transcription stage."""

from __future__ import annotations

from enum import Enum
from typing import Any

# Substrings that mark a service rejection as bad input rather than a hiccup
CORRUPTION_INDICATORS = (
    "invalid",
    "corrupt",
    "malformed",
    "unsupported",
    "decode",
    "bad request",
    "invalid_request_error",
)


class ErrorKind(str, Enum):
    """How a speech-service failure should be handled by the orchestrator."""

    CORRUPT_INPUT = "corrupt_input"
    TRANSIENT = "transient"


def classify_failure(message: str, status_code: int | None = None) -> ErrorKind:
    """Classify a speech-service failure from its message and HTTP status."""
    if status_code == 400:
        return ErrorKind.CORRUPT_INPUT
    lowered = (message or "").lower()
    if any(indicator in lowered for indicator in CORRUPTION_INDICATORS):
        return ErrorKind.CORRUPT_INPUT
    return ErrorKind.TRANSIENT


class TranscriptionError(RuntimeError):
    """Raised by a speech backend; ``kind`` is decided once, at the adapter."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        status_code: int | None = None,
        response_payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code
        self.response_payload = response_payload


class UnprocessableAudioError(RuntimeError):
    """Base class for failures that send the source file to quarantine."""


class InvalidAudioError(UnprocessableAudioError):
    """The file failed pre-flight validation."""


class NoValidChunksError(UnprocessableAudioError):
    """Segmentation left no chunk within the duration limit."""


class EmptyTranscriptError(UnprocessableAudioError):
    """Every chunk came back empty."""
