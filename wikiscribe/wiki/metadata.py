"""Derive page title, description, tags and path from a Markdown file."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from wikiscribe.generation.documents import split_front_matter

DEFAULT_DESCRIPTION = "Automatically generated document"
DESCRIPTION_LENGTH = 150

_H1 = re.compile(r"^#\s+(.+)$", re.MULTILINE)
_HEADING_LINE = re.compile(r"^#.*$", re.MULTILINE)


@dataclass
class PageMetadata:
    title: str
    description: str
    body: str
    tags: list[str] = field(default_factory=list)
    status: str | None = None


def _clean(value: object) -> str:
    return str(value).replace('"', "").replace("'", "").strip()


def _parse_tags(raw: object) -> list[str]:
    if isinstance(raw, str):
        raw = raw.strip("[]").split(",")
    if not isinstance(raw, list):
        return []
    return [tag for tag in (_clean(t) for t in raw) if tag]


def title_from_filename(filename: str) -> str:
    return re.sub(r"[_-]+", " ", Path(filename).stem).strip()


def extract_metadata(content: str, filename: str) -> PageMetadata:
    """Parse front matter and headings of a Markdown document.

    Title: front-matter ``title`` -> first ``# `` heading -> file name with
    separators replaced by spaces. Description: front-matter ``description``
    -> first non-heading paragraph (truncated) -> a fixed default.
    """
    front, body = split_front_matter(content)

    title = _clean(front.get("title") or "")
    if not title:
        heading = _H1.search(body)
        if heading:
            title = heading.group(1).strip()
    if not title:
        title = title_from_filename(filename)

    description = _clean(front.get("description") or "")
    if not description:
        first_paragraph = _HEADING_LINE.sub("", body).strip().split("\n\n")[0]
        description = first_paragraph.replace("\n", " ")[:DESCRIPTION_LENGTH] or DEFAULT_DESCRIPTION

    status = front.get("status")
    return PageMetadata(
        title=title,
        description=description,
        body=body,
        tags=_parse_tags(front.get("tags")),
        status=str(status) if status is not None else None,
    )


def slugify(title: str) -> str:
    """``"Hello, World! 2024"`` -> ``"hello-world-2024"``."""
    slug = title.lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def wiki_path(title: str, base_path: str = "") -> str:
    """Page path for *title*, under *base_path* when one is configured."""
    slug = slugify(title)
    base = base_path.strip("/")
    return f"{base}/{slug}" if base else slug
