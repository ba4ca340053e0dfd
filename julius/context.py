"""
julius/context.py
-----------------
Context selection and assembly for grounded chat.

`select_context()` is a placeholder retriever: it returns the first
`limit` chunks and ignores the query. A relevance-ranking implementation
can replace it behind the same signature without touching the chunker
or the chat client.
"""

from typing import List, Sequence

from julius.document import TextChunk

# ── Constants ──────────────────────────────────────────────────────────────────
DEFAULT_CONTEXT_CHUNKS = 5
CONTEXT_DIVIDER        = "\n---\n"
# ──────────────────────────────────────────────────────────────────────────────


def select_context(
    chunks: Sequence[TextChunk],
    query: str,
    limit: int = DEFAULT_CONTEXT_CHUNKS,
) -> List[TextChunk]:
    """Returns the leading `limit` chunks; `query` is not used yet."""
    if limit < 0:
        raise ValueError("limit must be >= 0.")
    return list(chunks[:limit])


def build_context(chunks: Sequence[TextChunk]) -> str:
    """Joins chunk contents with a visible divider line."""
    return CONTEXT_DIVIDER.join(chunk["content"] for chunk in chunks)
