"""
julius/document.py
------------------
Record types shared across the pipeline.

A ProcessedDocument is created once per upload, held in memory for the
session, and replaced when the next upload arrives. Nothing is persisted.
"""

import uuid
from datetime import datetime, timezone
from typing import List

from typing_extensions import Literal, NotRequired, TypedDict


DEFAULT_SOURCE = "user-upload"

DocumentStatus = Literal["processing", "ready", "error"]


# ── Chunk records ──────────────────────────────────────────────────────────────

class ChunkMetadata(TypedDict):
    source: str              # origin tag, e.g. "user-upload" or a filename
    page:   NotRequired[int]  # 1-based page holding start_index, when known


class TextChunk(TypedDict):
    """A trimmed slice of the source text plus its raw offsets."""
    id:          str
    content:     str
    start_index: int   # where the producing window began (untrimmed)
    end_index:   int   # end of the consumed text (untrimmed, exclusive)
    metadata:    ChunkMetadata


# ── Document records ───────────────────────────────────────────────────────────

class ProcessedDocument(TypedDict):
    id:          str
    name:        str
    raw_text:    str
    chunks:      List[TextChunk]
    upload_date: datetime
    status:      DocumentStatus


class ProcessingStats(TypedDict):
    char_count:     int
    chunk_count:    int
    avg_chunk_size: int


def new_document(name: str, raw_text: str, chunks: List[TextChunk]) -> ProcessedDocument:
    """Builds a ready document record with a fresh id and UTC timestamp."""
    return ProcessedDocument(
        id          = str(uuid.uuid4()),
        name        = name,
        raw_text    = raw_text,
        chunks      = chunks,
        upload_date = datetime.now(timezone.utc),
        status      = "ready",
    )


def compute_stats(document: ProcessedDocument) -> ProcessingStats:
    """
    Summarises a processed document.

    avg_chunk_size is the raw character count divided by the number of
    chunks (so overlap pulls it below chunk_size), or 0 with no chunks.
    """
    char_count  = len(document["raw_text"])
    chunk_count = len(document["chunks"])
    return ProcessingStats(
        char_count     = char_count,
        chunk_count    = chunk_count,
        avg_chunk_size = round(char_count / chunk_count) if chunk_count else 0,
    )
