"""Document readers and YAML front-matter helpers."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

_FRONT_MATTER = re.compile(r"\A---\s*\n(.*?)\n---\s*(?:\n|\Z)(.*)\Z", re.DOTALL)


class UnsupportedDocumentError(ValueError):
    """Raised for a file extension with no text extractor."""


def read_plain_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def read_docx(path: Path) -> str:
    """Extract raw text from a Word document, one paragraph per block."""
    import docx  # python-docx; import inside function keeps startup light

    document = docx.Document(str(path))
    return "\n\n".join(p.text for p in document.paragraphs if p.text.strip())


_READERS: dict[str, Callable[[Path], str]] = {
    ".md": read_plain_text,
    ".txt": read_plain_text,
    ".docx": read_docx,
}

SUPPORTED_EXTENSIONS = frozenset(_READERS)


def read_document(path: Path) -> str:
    """Dispatch to the extractor for *path*'s extension.

    Raises:
        UnsupportedDocumentError: If the extension is not supported.
    """
    reader = _READERS.get(path.suffix.lower())
    if reader is None:
        raise UnsupportedDocumentError(f"Unsupported file type: {path.suffix.lower()}")
    return reader(path)


def render_front_matter(fields: dict[str, Any]) -> str:
    dumped = yaml.safe_dump(fields, sort_keys=False, allow_unicode=True).strip()
    return f"---\n{dumped}\n---\n"


def split_front_matter(text: str) -> tuple[dict[str, Any], str]:
    """Return ``(front_matter, body)``.

    Without a leading ``---`` block the front matter is empty and the body is
    the whole text. An unparsable block is logged and treated as empty.
    """
    match = _FRONT_MATTER.match(text)
    if not match:
        return {}, text

    raw, body = match.group(1), match.group(2)
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        logger.warning("Ignoring malformed front matter: %s", exc)
        return {}, body
    return (data if isinstance(data, dict) else {}), body
