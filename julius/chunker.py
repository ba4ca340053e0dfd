"""
julius/chunker.py
-----------------
Deterministic document segmentation for retrieval-augmented prompting.

Splits extracted text into overlapping chunks whose boundaries favour
natural language breaks: paragraphs, then lines, then sentences, then
words, and finally a hard character cut. Each window takes the *last*
occurrence of the highest-priority separator it contains, keeping chunks
as close to `chunk_size` as possible without exceeding it.

The splitter is a single loop over a cursor — no recursion — so document
length never bounds stack depth. Overlap is applied in raw-text offsets,
before whitespace trimming.

No external calls — operates entirely on local text.
"""

import bisect
import uuid
from typing import List, Optional, Sequence

from julius.document      import DEFAULT_SOURCE, ChunkMetadata, TextChunk
from julius.logging_config import get_logger

log = get_logger(__name__)

# ── Constants ──────────────────────────────────────────────────────────────────
# Priority order. "" always matches at the end of the window (hard cut).
SEPARATORS = ("\n\n", "\n", ". ", " ", "")
# ──────────────────────────────────────────────────────────────────────────────


def _find_split_point(window: str) -> int:
    """Returns the offset just past the best separator in `window`."""
    for separator in SEPARATORS:
        position = window.rfind(separator)
        if position != -1:
            return position + len(separator)
    return len(window)


def _page_for(offset: int, page_starts: Sequence[int]) -> int:
    """1-based number of the page whose text contains `offset`."""
    return max(bisect.bisect_right(page_starts, offset), 1)


def recursive_character_split(
    text: str,
    chunk_size: int = 1000,
    chunk_overlap: int = 200,
    source: str = DEFAULT_SOURCE,
    page_starts: Optional[Sequence[int]] = None,
) -> List[TextChunk]:
    """
    Splits text into overlapping chunks on the best available separator.

    Args:
        text:          Raw document text.
        chunk_size:    Maximum raw characters per window.
        chunk_overlap: Raw characters the next window steps back by.
                       May exceed chunk_size; progress is then one
                       character per step.
        source:        Tag stored in every chunk's metadata.
        page_starts:   Ascending offsets where each page begins in `text`.
                       When given, chunks carry a 1-based "page" number.

    Returns:
        Chunks in scan order. Empty for empty or whitespace-only text.

    Raises:
        ValueError: If chunk_size is not positive or chunk_overlap is negative.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be a positive integer.")
    if chunk_overlap < 0:
        raise ValueError("chunk_overlap must be >= 0.")

    run_token = uuid.uuid4().hex[:8]
    chunks: List[TextChunk] = []

    def emit(content: str, start: int, end: int) -> None:
        metadata = ChunkMetadata(source=source)
        if page_starts:
            metadata["page"] = _page_for(start, page_starts)
        chunks.append(
            TextChunk(
                id          = f"chunk-{run_token}-{len(chunks)}",
                content     = content,
                start_index = start,
                end_index   = end,
                metadata    = metadata,
            )
        )

    text_length = len(text)
    start = 0

    while start < text_length:
        end = min(start + chunk_size, text_length)

        # Last window: take whatever is left.
        if end >= text_length:
            content = text[start:].strip()
            if content:
                emit(content, start, text_length)
            break

        window      = text[start:end]
        split_point = _find_split_point(window)

        content = window[:split_point].strip()
        if content:
            emit(content, start, start + split_point)

        next_start = start + split_point - chunk_overlap
        if next_start <= start:
            next_start = start + 1
        start = next_start

    log.debug(
        "Split %d chars into %d chunks (size=%d, overlap=%d)",
        text_length, len(chunks), chunk_size, chunk_overlap,
    )
    return chunks
