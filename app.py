"""
app.py
------
Orchestration layer for the Julius document pipeline.

Coordinates two strictly separated stages:

  UPLOAD  — type check, extraction, segmentation, validation (once per file)
    PDF bytes → ensure_pdf() → extract_text() → recursive_character_split()
              → validate_chunks() → ProcessedDocument

  CHAT    — context selection, grounded generation, validation (per question)
    question → select_context() → build_context() → GeminiClient.generate()
             → validate() → ChatResponse

Each stage fails with its own exception family so callers can show one
message per stage: UnsupportedDocumentError / ExtractionError for uploads,
ChatError / ConnectionError for chat. A chat failure never touches the
already processed document.

Usage:
    python app.py paper.pdf "What is the main contribution?"
"""

import json
import os
import sys
from pathlib import Path
from typing import Optional

from julius.chunker        import recursive_character_split
from julius.context        import build_context, select_context
from julius.document       import ProcessedDocument, compute_stats, new_document
from julius.extractor      import (
    ExtractionError,
    UnsupportedDocumentError,
    ensure_pdf,
    extract_text,
)
from julius.generator      import DEFAULT_GEN_MODEL, ChatError, GeminiClient
from julius.logging_config import get_logger
from validator.json_validator import ChatResponse, ValidationError, validate, validate_chunks

log = get_logger("julius.app")

# ── Configuration ───────────────────────────────────────────────────────────────

CHUNK_SIZE     = 1000
CHUNK_OVERLAP  = 200
CONTEXT_CHUNKS = 5
MAX_PDF_PAGES: Optional[int] = None   # None = all pages
GEN_MODEL      = os.getenv("GEMINI_MODEL", DEFAULT_GEN_MODEL)
CHAT_TIMEOUT   = 30


def build_client(api_key: Optional[str] = None, model: str = GEN_MODEL) -> GeminiClient:
    """
    Constructs the chat client, reading GEMINI_API_KEY when no key is given.

    Raises:
        MissingAPIKeyError: If no key is available.
    """
    key = api_key if api_key is not None else os.getenv("GEMINI_API_KEY", "")
    return GeminiClient(api_key=key, model=model, timeout=CHAT_TIMEOUT)


# ── Stage 1: Upload ─────────────────────────────────────────────────────────────

def process_upload(
    data: bytes,
    filename: str,
    content_type: Optional[str],
    chunk_size: int = CHUNK_SIZE,
    chunk_overlap: int = CHUNK_OVERLAP,
    max_pages: Optional[int] = MAX_PDF_PAGES,
) -> ProcessedDocument:
    """
    Turns an uploaded PDF into a ready, chunked document.

    Args:
        data:          Raw file bytes.
        filename:      Name shown for the document.
        content_type:  Declared MIME type of the upload.
        chunk_size:    Maximum raw characters per chunk window.
        chunk_overlap: Raw characters shared by consecutive windows.
        max_pages:     Optional cap on pages read.

    Returns:
        A ProcessedDocument with status "ready".

    Raises:
        UnsupportedDocumentError: If the upload is not declared as a PDF.
        ExtractionError:          If the PDF is unreadable or has no text.
        ValidationError:          If the chunk sequence breaks an invariant.
    """
    ensure_pdf(content_type, filename)
    log.info("Upload received — %s (%d bytes)", filename, len(data))

    extracted = extract_text(data, max_pages=max_pages)
    chunks = recursive_character_split(
        extracted.text,
        chunk_size    = chunk_size,
        chunk_overlap = chunk_overlap,
        page_starts   = extracted.page_starts,
    )
    chunks = validate_chunks(chunks, len(extracted.text))

    document = new_document(filename, extracted.text, chunks)
    stats = compute_stats(document)
    log.info(
        "Document ready — %s: %d chars, %d chunks, avg %d chars/chunk",
        filename, stats["char_count"], stats["chunk_count"], stats["avg_chunk_size"],
    )
    return document


# ── Stage 2: Chat ───────────────────────────────────────────────────────────────

def ask(
    question: str,
    document: ProcessedDocument,
    client: GeminiClient,
    limit: int = CONTEXT_CHUNKS,
) -> ChatResponse:
    """
    Answers a question from the leading chunks of a processed document.

    Args:
        question: User question.
        document: Document produced by process_upload().
        client:   Injected chat client.
        limit:    Number of chunks sent as context.

    Returns:
        A validated ChatResponse.

    Raises:
        ValueError:      If the question is blank.
        ChatError:       On credential or upstream failures.
        ConnectionError: If the chat endpoint is unreachable or times out.
    """
    if not question.strip():
        raise ValueError("question must not be empty.")

    selected = select_context(document["chunks"], question, limit=limit)
    context  = build_context(selected)
    log.info(
        "Question received for %s — %d context chunk(s)",
        document["name"], len(selected),
    )

    answer = client.generate(question, context=context or None)

    return validate({
        "question":          question,
        "answer":            answer,
        "context_chunk_ids": [chunk["id"] for chunk in selected],
        "model":             client.model,
    })


# ── Entry point ─────────────────────────────────────────────────────────────────

def main(argv: Optional[list] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print("usage: python app.py <file.pdf> [question]", file=sys.stderr)
        return 1

    path = Path(argv[0])
    question = " ".join(argv[1:])

    print("\n── UPLOAD ─────────────────────────────────")
    try:
        document = process_upload(
            data         = path.read_bytes(),
            filename     = path.name,
            content_type = "application/pdf" if path.suffix.lower() == ".pdf" else None,
        )
    except FileNotFoundError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 1
    except (UnsupportedDocumentError, ExtractionError) as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 1
    except ValidationError as exc:
        print(f"[VALIDATION ERROR] {exc}", file=sys.stderr)
        return 2

    print(json.dumps(compute_stats(document), indent=2))

    if not question:
        return 0

    print("\n── CHAT ───────────────────────────────────")
    print(f"  Question: {question}\n")
    try:
        response = ask(question, document, build_client())
    except (ChatError, ConnectionError, TimeoutError) as exc:
        print(f"[CHAT ERROR] {exc}", file=sys.stderr)
        return 3
    except ValidationError as exc:
        print(f"[VALIDATION ERROR] {exc}", file=sys.stderr)
        return 2

    print(json.dumps(response, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
