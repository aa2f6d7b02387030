"""Paragraph-packing chunker for scraped markdown."""

import re

DEFAULT_MAX_CHARS = 5000
DEFAULT_MIN_CHARS = 50

_PARAGRAPH_BREAK = re.compile(r"\n{2,}")


def chunk_markdown(
    text: str,
    max_chars: int = DEFAULT_MAX_CHARS,
    min_chars: int = DEFAULT_MIN_CHARS,
) -> list[str]:
    """Split *text* on blank lines and pack paragraphs into chunks.

    Paragraphs are joined with a blank line while the chunk stays within
    *max_chars*.  Chunks of *min_chars* characters or fewer are dropped as
    noise (cookie banners, stray links).  A single paragraph longer than
    *max_chars* is kept whole.
    """
    chunks: list[str] = []
    buffer = ""

    for para in _PARAGRAPH_BREAK.split(text or ""):
        trimmed = para.strip()
        if not trimmed:
            continue
        if buffer and len(buffer) + 2 + len(trimmed) > max_chars:
            if len(buffer.strip()) > min_chars:
                chunks.append(buffer.strip())
            buffer = trimmed
        else:
            buffer = f"{buffer}\n\n{trimmed}" if buffer else trimmed

    if len(buffer.strip()) > min_chars:
        chunks.append(buffer.strip())
    return chunks
