"""Split long documents into coherent chunks before sending them to an LLM."""

from __future__ import annotations

import math
import re

# Rough ratio for English/Portuguese/Italian prose
CHARS_PER_TOKEN = 3.5

_SECTION_BREAK = re.compile(r"\n\s*\n")
_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")


def estimate_tokens(text: str) -> int:
    """Rough token estimate: one token per 3.5 characters."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def _greedy_join(pieces: list[str], separator: str, max_chars: float) -> list[str]:
    """Accumulate *pieces* until the next one would overflow *max_chars*.

    A single piece longer than the budget is kept whole; blank pieces are dropped.
    """
    chunks: list[str] = []
    current = ""
    for piece in pieces:
        if not piece.strip():
            continue
        candidate = f"{current}{separator}{piece}" if current else piece
        if len(candidate) > max_chars and current:
            chunks.append(current.strip())
            current = piece
        else:
            current = candidate
    if current.strip():
        chunks.append(current.strip())
    return chunks


def split_text(text: str, max_tokens: int = 12000) -> list[str]:
    """Split *text* into chunks of at most ~*max_tokens* estimated tokens.

    Paragraphs (blank-line separated) are packed greedily first; any chunk
    still over budget is re-split on sentence boundaries.

    Args:
        text: Document text.
        max_tokens: Token budget per chunk.

    Returns:
        Ordered list of chunks. Text under the budget comes back unchanged as
        a single chunk.
    """
    max_chars = max_tokens * CHARS_PER_TOKEN
    if len(text) <= max_chars:
        return [text]

    chunks = _greedy_join(_SECTION_BREAK.split(text), "\n\n", max_chars)

    refined: list[str] = []
    for chunk in chunks:
        if len(chunk) > max_chars:
            refined.extend(_greedy_join(_SENTENCE_BREAK.split(chunk), " ", max_chars))
        else:
            refined.append(chunk)
    return refined
