"""Markdown generation stage: transcripts/documents -> structured Markdown."""

from __future__ import annotations

import asyncio
import logging
import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from wikiscribe.concurrency import call_with_timeout
from wikiscribe.generation.chunking import estimate_tokens, split_text
from wikiscribe.generation.documents import SUPPORTED_EXTENSIONS, read_document, render_front_matter
from wikiscribe.generation.llm import TextGenerator
from wikiscribe.generation.prompts import build_chunk_prompt, build_consolidation_prompt
from wikiscribe.pipeline_config import ConsolidationStrategy, PipelineConfig

logger = logging.getLogger(__name__)

SECTION_BREAK = "\n\n--- SECTION BREAK ---\n\n"


@dataclass
class GenerationReport:
    successful: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    requests: int = 0


class MarkdownOrchestrator:
    """Sends each document to the LLM, chunking large ones, and writes Markdown."""

    def __init__(self, config: PipelineConfig, generator: TextGenerator, prompt: str) -> None:
        self._config = config
        self._generator = generator
        self._prompt = prompt
        self._requests = 0

    async def run(self, source_dir: Path | None = None) -> GenerationReport:
        """Process every supported document in *source_dir*, one at a time.

        Raises:
            FileNotFoundError: The source directory does not exist.
        """
        source_dir = source_dir or self._config.paths.transcription
        if not source_dir.is_dir():
            raise FileNotFoundError(f"Source directory not found: {source_dir}")
        self._config.paths.markdown.mkdir(parents=True, exist_ok=True)

        files = sorted(
            p for p in source_dir.iterdir() if p.is_file() and p.suffix.lower() in SUPPORTED_EXTENSIONS
        )
        logger.info("Found %d documents to process in %s", len(files), source_dir)

        report = GenerationReport()
        self._requests = 0
        for number, path in enumerate(files, start=1):
            logger.info("Processing %d/%d: %s", number, len(files), path.name)
            try:
                body = await self.generate_for(path)
                if not body.strip():
                    raise ValueError("No content generated")
                self._write_success(path, body)
                report.successful.append(path.name)
            except Exception as exc:
                logger.exception("Error processing %s", path.name)
                self._write_failure(path, exc)
                report.failed.append(path.name)

        report.requests = self._requests
        logger.info(
            "Generation finished: %d successful, %d failed, %d API requests",
            len(report.successful),
            len(report.failed),
            report.requests,
        )
        return report

    async def generate_for(self, path: Path) -> str:
        """Return the generated Markdown body for the document at *path*."""
        content = read_document(path)
        estimated = estimate_tokens(content + self._prompt)
        logger.info("%s: ~%d estimated tokens", path.name, estimated)

        if estimated <= self._config.single_call_token_threshold:
            prompt = build_chunk_prompt(self._prompt, content, 0, 1, path.name)
            return await self._generate(prompt, self._config.temperature)

        chunks = split_text(content, self._config.chunk_token_budget)
        logger.info("%s: large document, split into %d chunks", path.name, len(chunks))

        processed: list[str] = []
        for index, chunk in enumerate(chunks):
            prompt = build_chunk_prompt(self._prompt, chunk, index, len(chunks), path.name)
            try:
                processed.append(await self._generate(prompt, self._config.temperature))
            except Exception:
                logger.exception("Giving up on part %d of %s", index + 1, path.name)
                processed.append(f"[Error processing part {index + 1} of document]")

            if index < len(chunks) - 1:
                await asyncio.sleep(self._config.chunk_delay_seconds)

        return await self.consolidate(processed, path.name)

    async def consolidate(self, parts: list[str], name: str) -> str:
        if len(parts) == 1:
            return parts[0]
        if self._config.consolidation_strategy is ConsolidationStrategy.CONCATENATE:
            return SECTION_BREAK.join(parts)

        logger.info("Consolidating %d parts of %s", len(parts), name)
        prompt = build_consolidation_prompt(parts, name, self._prompt)
        try:
            merged = await self._call(prompt, self._config.consolidation_temperature)
        except Exception:
            logger.exception("Consolidation failed for %s, concatenating parts", name)
            return SECTION_BREAK.join(parts)
        return merged or SECTION_BREAK.join(parts)

    async def _generate(self, prompt: str, temperature: float) -> str:
        """Call the generator, retrying immediately with the same input on failure."""
        for attempt in range(1, max(0, self._config.generation_retries) + 1):
            try:
                return await self._call(prompt, temperature)
            except Exception as exc:
                logger.warning("Generation attempt %d failed, retrying: %s", attempt, exc)
        return await self._call(prompt, temperature)

    async def _call(self, prompt: str, temperature: float) -> str:
        self._requests += 1
        return await call_with_timeout(
            self._generator.generate(prompt, temperature, self._config.max_output_tokens),
            self._config.call_timeout_seconds,
        )

    def _write_success(self, source: Path, body: str) -> Path:
        output = self._config.paths.markdown / f"{source.stem}.md"
        front = render_front_matter(
            {
                "source_file": source.name,
                "processed_at": datetime.now(timezone.utc).isoformat(),
                "status": "success",
            }
        )
        output.write_text(f"{front}\n{body.strip()}\n", encoding="utf-8")
        logger.info("Saved %s", output.name)
        return output

    def _write_failure(self, source: Path, error: BaseException) -> Path | None:
        output = self._config.paths.markdown / f"{source.stem}_error.md"
        front = render_front_matter(
            {
                "source_file": source.name,
                "processed_at": datetime.now(timezone.utc).isoformat(),
                "status": "error",
            }
        )
        stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        try:
            output.write_text(
                f"{front}\n# Error processing {source.name}\n\n"
                f"**Error:** {error}\n\n"
                f"```\n{stack.strip()}\n```\n",
                encoding="utf-8",
            )
        except OSError:
            logger.exception("Could not write error document for %s", source.name)
            return None
        return output
