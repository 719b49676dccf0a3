"""Speech-to-text adapters.

Each backend turns an audio file into plain text and converts every
provider-specific failure into a :class:`TranscriptionError` whose
:class:`ErrorKind` tells the orchestrator whether the input is bad or the
service merely hiccupped.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import openai
from openai import AsyncOpenAI

from wikiscribe.config import ConfigurationError
from wikiscribe.pipeline_config import TranscriptionProvider
from wikiscribe.transcription.errors import ErrorKind, TranscriptionError, classify_failure

if TYPE_CHECKING:
    from wikiscribe.config import Settings


class Transcriber(Protocol):
    async def transcribe(self, path: Path) -> str: ...


class OpenAITranscriber:
    """Multipart upload to the OpenAI audio transcription endpoint."""

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = "gpt-4o-transcribe",
        language: str = "it",
    ) -> None:
        self._client = client
        self._model = model
        self._language = language

    async def transcribe(self, path: Path) -> str:
        if not path.exists():
            raise TranscriptionError(f"Chunk file not found: {path}", ErrorKind.TRANSIENT)

        try:
            with path.open("rb") as audio:
                result = await self._client.audio.transcriptions.create(
                    file=audio,
                    model=self._model,
                    language=self._language,
                    response_format="text",
                )
        except openai.APIStatusError as exc:
            raise TranscriptionError(
                str(exc),
                classify_failure(str(exc), exc.status_code),
                status_code=exc.status_code,
                response_payload=exc.body,
            ) from exc
        except openai.APIError as exc:
            raise TranscriptionError(
                str(exc),
                classify_failure(str(exc)),
                response_payload=exc.body,
            ) from exc

        # response_format="text" returns a bare string
        return result if isinstance(result, str) else getattr(result, "text", "") or ""


class AssemblyAITranscriber:
    """Transcription via the AssemblyAI SDK (synchronous, run in a thread)."""

    def __init__(self, api_key: str, language: str = "it") -> None:
        self._api_key = api_key
        self._language = language

    async def transcribe(self, path: Path) -> str:
        return await asyncio.to_thread(self._transcribe_sync, path)

    def _transcribe_sync(self, path: Path) -> str:
        import assemblyai as aai  # type: ignore[import-untyped]  # no stubs; import inside function

        aai.settings.api_key = self._api_key
        transcriber = aai.Transcriber(config=aai.TranscriptionConfig(language_code=self._language))

        try:
            transcript = transcriber.transcribe(str(path))
        except Exception as exc:
            # Network failure, bad key, provider outage
            raise TranscriptionError(str(exc), classify_failure(str(exc))) from exc

        if transcript.status == aai.TranscriptStatus.error:
            # AssemblyAI rejected the audio content itself
            raise TranscriptionError(
                f"Transcription failed: {transcript.error}",
                ErrorKind.CORRUPT_INPUT,
                response_payload=transcript.error,
            )
        return transcript.text or ""


def build_transcriber(settings: Settings) -> Transcriber:
    """Create the configured speech backend.

    Raises:
        ConfigurationError: The selected provider has no API key.
    """
    provider = TranscriptionProvider(settings.transcription_provider)

    if provider is TranscriptionProvider.ASSEMBLYAI:
        if not settings.assemblyai_api_key:
            raise ConfigurationError("ASSEMBLYAI_API_KEY is not configured")
        return AssemblyAITranscriber(settings.assemblyai_api_key, settings.transcription_language)

    if not settings.openai_api_key:
        raise ConfigurationError("OPENAI_API_KEY (or API_KEY) is not configured")
    return OpenAITranscriber(
        AsyncOpenAI(api_key=settings.openai_api_key),
        model=settings.transcription_model,
        language=settings.transcription_language,
    )
