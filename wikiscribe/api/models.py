"""Pydantic response schemas for the pipeline API."""

from __future__ import annotations

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Body returned with HTTP 500 when a stage cannot run."""

    error: str
    stack: str | None = None


class VideoExtractionResponse(BaseModel):
    """Response body for POST /process-videos."""

    message: str
    extracted: list[str] = []
    failed: list[str] = []


class TranscribedFile(BaseModel):
    """Outcome for a single audio file."""

    file: str
    status: str
    transcript: str | None = None
    moved_to: str | None = None
    error: str | None = None


class TranscriptionResponse(BaseModel):
    """Response body for POST /transcript-audio."""

    message: str
    processed: int = 0
    failed: int = 0
    quarantined: int = 0
    files: list[TranscribedFile] = []


class GenerationResponse(BaseModel):
    """Response body for POST /generate-md."""

    message: str
    successful: list[str] = []
    failed: list[str] = []
    requests: int = 0


class PublishErrorEntry(BaseModel):
    file: str
    error: str


class PublishResponse(BaseModel):
    """Response body for POST /insert-wikijs."""

    message: str
    successful: int = 0
    failed: int = 0
    created: list[str] = []
    updated: list[str] = []
    skipped: list[str] = []
    errors: list[PublishErrorEntry] = []
