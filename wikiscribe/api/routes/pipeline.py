"""Stage endpoints: each POST runs one pipeline stage to completion."""

from __future__ import annotations

import logging
import traceback

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from wikiscribe.api.models import (
    ErrorResponse,
    GenerationResponse,
    PublishErrorEntry,
    PublishResponse,
    TranscribedFile,
    TranscriptionResponse,
    VideoExtractionResponse,
)
from wikiscribe.config import settings
from wikiscribe.generation.llm import build_generator
from wikiscribe.generation.orchestrator import GenerationReport, MarkdownOrchestrator
from wikiscribe.generation.prompts import load_prompt
from wikiscribe.media.extraction import extract_all_videos
from wikiscribe.media.models import ExtractionReport
from wikiscribe.media.probe import FfmpegMediaTool
from wikiscribe.pipeline_config import PipelineConfig
from wikiscribe.transcription.backends import build_transcriber
from wikiscribe.transcription.orchestrator import TranscriptionOrchestrator, TranscriptionReport
from wikiscribe.wiki.publisher import PublishReport, WikiPublisher, build_wiki_client

logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_RESPONSES = {500: {"model": ErrorResponse}}


def _media_tool() -> FfmpegMediaTool:
    return FfmpegMediaTool(settings.ffmpeg_binary, settings.ffprobe_binary)


async def run_video_extraction() -> ExtractionReport:
    config = PipelineConfig.from_settings(settings)
    return await extract_all_videos(config, _media_tool())


async def run_transcription() -> TranscriptionReport:
    config = PipelineConfig.from_settings(settings)
    orchestrator = TranscriptionOrchestrator(config, _media_tool(), build_transcriber(settings))
    return await orchestrator.run()


async def run_markdown_generation() -> GenerationReport:
    config = PipelineConfig.from_settings(settings)
    orchestrator = MarkdownOrchestrator(
        config, build_generator(settings), load_prompt(settings.prompt_file)
    )
    return await orchestrator.run()


async def run_wiki_publish() -> PublishReport:
    client = build_wiki_client(settings)
    config = PipelineConfig.from_settings(settings)
    async with client:
        return await WikiPublisher(config, client).insert_all()


def _error_response(stage: str, exc: Exception) -> JSONResponse:
    logger.exception("%s failed", stage)
    stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=500, content={"error": str(exc), "stack": stack})


@router.post("/process-videos", response_model=VideoExtractionResponse, responses=_ERROR_RESPONSES)
async def process_videos() -> VideoExtractionResponse | JSONResponse:
    """Extract an mp3 audio track from every video in ``videos/``."""
    try:
        report = await run_video_extraction()
    except Exception as exc:
        return _error_response("Video extraction", exc)
    return VideoExtractionResponse(
        message="Audio extraction completed for all videos.",
        extracted=report.extracted,
        failed=report.failed,
    )


@router.post("/transcript-audio", response_model=TranscriptionResponse, responses=_ERROR_RESPONSES)
async def transcript_audio() -> TranscriptionResponse | JSONResponse:
    """Transcribe every audio file in ``audios/``.

    Unusable files are moved to ``error/``; they do not fail the request.
    """
    try:
        report = await run_transcription()
    except Exception as exc:
        return _error_response("Transcription", exc)
    return TranscriptionResponse(
        message="Transcription completed.",
        processed=report.processed,
        failed=report.failed,
        quarantined=report.quarantined,
        files=[
            TranscribedFile(
                file=o.file,
                status=o.status.value,
                transcript=str(o.transcript_path) if o.transcript_path else None,
                moved_to=str(o.destination) if o.destination else None,
                error=o.error,
            )
            for o in report.outcomes
        ],
    )


@router.post("/generate-md", response_model=GenerationResponse, responses=_ERROR_RESPONSES)
async def generate_md() -> GenerationResponse | JSONResponse:
    """Turn every transcript in ``transcription/`` into a structured Markdown document."""
    try:
        report = await run_markdown_generation()
    except Exception as exc:
        return _error_response("Markdown generation", exc)
    return GenerationResponse(
        message="Markdown generation completed.",
        successful=report.successful,
        failed=report.failed,
        requests=report.requests,
    )


@router.post("/insert-wikijs", response_model=PublishResponse, responses=_ERROR_RESPONSES)
async def insert_wikijs() -> PublishResponse | JSONResponse:
    """Create or update a wiki page for every document in ``markdown/``.

    Returns 500 only if every attempted file failed.
    """
    try:
        report = await run_wiki_publish()
    except Exception as exc:
        return _error_response("Wiki publishing", exc)
    return PublishResponse(
        message="All Markdown documents were published to Wiki.js.",
        successful=report.successful,
        failed=report.failed,
        created=report.created,
        updated=report.updated,
        skipped=report.skipped,
        errors=[PublishErrorEntry(file=e.file, error=e.error) for e in report.errors],
    )
