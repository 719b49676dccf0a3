"""Publish generated Markdown files to Wiki.js with create-or-update semantics."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from wikiscribe.config import ConfigurationError
from wikiscribe.pipeline_config import PipelineConfig
from wikiscribe.wiki.client import WikiClient, WikiError, WikiPage, WikiPageConflictError
from wikiscribe.wiki.metadata import extract_metadata, wiki_path

if TYPE_CHECKING:
    from wikiscribe.config import Settings

logger = logging.getLogger(__name__)


class PublishError(RuntimeError):
    """Raised when a batch had failures and not a single success."""


@dataclass
class PublishFailure:
    file: str
    error: str


@dataclass
class PublishReport:
    successful: int = 0
    failed: int = 0
    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    errors: list[PublishFailure] = field(default_factory=list)


def is_publishable(path: Path) -> bool:
    return path.suffix.lower() == ".md" and not path.name.endswith("_error.md")


class WikiPublisher:
    def __init__(self, config: PipelineConfig, client: WikiClient) -> None:
        self._config = config
        self._client = client

    async def publish_all(self, source_dir: Path | None = None) -> PublishReport:
        """Publish every Markdown file in *source_dir*; per-file failures are tallied.

        Raises:
            FileNotFoundError: The source directory does not exist.
        """
        source_dir = source_dir or self._config.paths.markdown
        if not source_dir.is_dir():
            raise FileNotFoundError(f"Markdown directory not found: {source_dir}")

        files = sorted(p for p in source_dir.iterdir() if p.is_file() and is_publishable(p))
        report = PublishReport()
        if not files:
            logger.info("No Markdown files found in %s", source_dir)
            return report

        logger.info("Publishing %d Markdown files from %s", len(files), source_dir)
        for number, path in enumerate(files, start=1):
            logger.info("Publishing %d/%d: %s", number, len(files), path.name)
            try:
                action = await self.publish_file(path)
            except Exception as exc:
                logger.error("Error publishing %s: %s", path.name, exc)
                report.failed += 1
                report.errors.append(PublishFailure(file=path.name, error=str(exc) or type(exc).__name__))
            else:
                if action == "skipped":
                    report.skipped.append(path.name)
                else:
                    report.successful += 1
                    (report.created if action == "created" else report.updated).append(path.name)

            if number < len(files):
                await asyncio.sleep(self._config.wiki_request_delay_seconds)

        logger.info(
            "Wiki publishing finished: %d/%d published, %d failed",
            report.successful,
            len(files),
            report.failed,
        )
        for failure in report.errors:
            logger.info("  - %s: %s", failure.file, failure.error)
        return report

    async def publish_file(self, path: Path) -> str:
        """Create the page for *path*, or update it if its path is taken.

        Returns ``"created"``, ``"updated"`` or ``"skipped"`` (error-status documents).
        """
        raw = path.read_text(encoding="utf-8")
        if not raw.strip():
            raise ValueError("Empty file")

        meta = extract_metadata(raw, path.name)
        if meta.status == "error":
            logger.info("Skipping %s: generated with status 'error'", path.name)
            return "skipped"

        page = WikiPage(
            title=meta.title,
            path=wiki_path(meta.title, self._config.wiki_base_path),
            content=meta.body,
            description=meta.description,
            tags=meta.tags,
            locale=self._config.wiki_locale,
        )
        logger.debug("Page %r -> %s (tags: %s)", page.title, page.path, ", ".join(page.tags))

        try:
            await self._client.create_page(page)
            return "created"
        except WikiPageConflictError:
            logger.info("Page %s already exists, updating it", page.path)

        page_id = await self._client.find_page_id(page.path, page.locale)
        if page_id is None:
            raise WikiError(f"Page {page.path} reported as existing but could not be found")
        await self._client.update_page(page_id, page)
        return "updated"

    async def insert_all(self, source_dir: Path | None = None) -> PublishReport:
        """Publish a batch; fail only when every attempted file failed."""
        report = await self.publish_all(source_dir)
        if report.successful == 0 and report.failed > 0:
            raise PublishError(
                f"Failed to publish all {report.failed} files: "
                + "; ".join(f"{e.file}: {e.error}" for e in report.errors)
            )
        return report


def build_wiki_client(settings: Settings, timeout: float = 30.0) -> WikiClient:
    """Create a client from the WIKIJS_* settings.

    Raises:
        ConfigurationError: URL or API token is missing.
    """
    if not settings.wikijs_url or not settings.wikijs_api_key:
        raise ConfigurationError("WIKIJS_URL and WIKIJS_API_KEY must both be configured")
    return WikiClient(
        settings.wikijs_url,
        settings.wikijs_api_key,
        verify=settings.wikijs_verify_tls,
        timeout=timeout,
    )
