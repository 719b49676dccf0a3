"""Prompt templates for Markdown generation."""

from __future__ import annotations

from pathlib import Path

DEFAULT_PROMPT = """\
You are a technical writer. Turn the transcript below into a well-structured
Markdown document for an internal wiki.

Rules:
- Start with a single "# " heading that names the topic.
- Organise the content into sections with "## " headings.
- Keep every technical detail, decision and action item that appears in the
  source; do not invent information.
- Use bullet lists and tables where they make the content easier to scan.
- Write in the same language as the transcript.
- Return only the Markdown document."""

_FIRST_PART = """\
IMPORTANT CONTEXT: This is the BEGINNING of document "{name}" (part {part} of {total}).
Process this initial section while maintaining context for subsequent parts.
Do not provide final conclusions yet."""

_MIDDLE_PART = """\
IMPORTANT CONTEXT: This is a MIDDLE section of document "{name}" (part {part} of {total}).
Continue processing this section maintaining consistency with previous parts.
Do not provide final conclusions yet."""

_LAST_PART = """\
IMPORTANT CONTEXT: This is the FINAL part of document "{name}" (part {part} of {total}).
Complete the processing considering this is the document's conclusion.
Provide final insights and wrap up the analysis."""

_CONSOLIDATION = """\
You have received a document "{name}" that was processed in {total} separate parts due to length constraints.

Your task is to consolidate these parts into a single, coherent, and well-structured output that:
1. Eliminates any duplications or redundancies
2. Ensures smooth transitions between sections
3. Maintains consistency in tone and style
4. Provides a comprehensive and unified result
5. Follows the original processing instructions

ORIGINAL INSTRUCTIONS:
{instructions}

PROCESSED PARTS:
{parts}

Please consolidate all parts into a single, cohesive document that reads as if it was processed as one unit."""


def load_prompt(prompt_file: str = "") -> str:
    """Return the instruction prompt from *prompt_file*, or the built-in default."""
    if not prompt_file:
        return DEFAULT_PROMPT
    return Path(prompt_file).read_text(encoding="utf-8").strip()


def build_chunk_prompt(instructions: str, chunk: str, index: int, total: int, name: str) -> str:
    """Prompt for chunk *index* (0-based) of *total*, with a positional hint."""
    if total == 1:
        return f"{instructions}\n\nDocument Content:\n{chunk}"

    if index == 0:
        template = _FIRST_PART
    elif index == total - 1:
        template = _LAST_PART
    else:
        template = _MIDDLE_PART

    hint = template.format(name=name, part=index + 1, total=total)
    return (
        f"{instructions}\n\n{hint}\n\n"
        f"Document Content (Part {index + 1}/{total}):\n{chunk}"
    )


def build_consolidation_prompt(parts: list[str], name: str, instructions: str) -> str:
    joined = "\n".join(f"\n=== PART {i + 1} ===\n{part}" for i, part in enumerate(parts))
    return _CONSOLIDATION.format(
        name=name, total=len(parts), instructions=instructions, parts=joined
    )
