"""
validator/json_validator.py
---------------------------
Output schema enforcement for the Julius pipeline.

Two checks guard the pipeline's outputs before they reach a caller:

  * `validate_chunks()` — the chunk sequence honours its structural
    invariants (non-empty trimmed content, start < end, non-decreasing
    starts, offsets inside the source text).
  * `validate()` — a chat answer conforms to the ChatResponse contract.

Raises a typed ValidationError on any violation — no silent failures.
A chunk violation always indicates a chunker bug, never bad user input.
"""

from typing import Any, Dict, List, Sequence

from typing_extensions import TypedDict

from julius.document       import TextChunk
from julius.logging_config import get_logger

log = get_logger("julius.validator")


# ── Schema definition ──────────────────────────────────────────────────────────

class ChatResponse(TypedDict):
    """Canonical output contract for a grounded chat turn."""
    question:          str        # original user question
    answer:            str        # model-generated answer
    context_chunk_ids: List[str]  # ids of the chunks sent as context
    model:             str        # Gemini model used


# ── Custom exception ───────────────────────────────────────────────────────────

class ValidationError(ValueError):
    """Raised when pipeline output fails schema validation."""


# ── Validators ─────────────────────────────────────────────────────────────────

def validate_chunks(chunks: Sequence[TextChunk], text_length: int) -> List[TextChunk]:
    """
    Checks a chunk sequence against the chunker's invariants.

    Args:
        chunks:      Output of recursive_character_split().
        text_length: Length of the text the chunks were cut from.

    Returns:
        The chunks as a list.

    Raises:
        ValidationError: On the first chunk that breaks an invariant.
    """
    previous_start = 0
    for i, chunk in enumerate(chunks):
        content = chunk.get("content")
        if not isinstance(content, str) or not content.strip():
            log.error("Validation failed — chunks[%d] has empty content", i)
            raise ValidationError(f"chunks[{i}] must have non-empty content.")

        start, end = chunk.get("start_index"), chunk.get("end_index")
        if not isinstance(start, int) or not isinstance(end, int):
            log.error("Validation failed — chunks[%d] offsets are not integers", i)
            raise ValidationError(f"chunks[{i}] offsets must be integers.")
        if not 0 <= start < end <= text_length:
            log.error(
                "Validation failed — chunks[%d] offsets (%d, %d) outside [0, %d]",
                i, start, end, text_length,
            )
            raise ValidationError(
                f"chunks[{i}] offsets ({start}, {end}) must satisfy "
                f"0 <= start < end <= {text_length}."
            )
        if start < previous_start:
            log.error("Validation failed — chunks[%d] starts before its predecessor", i)
            raise ValidationError(f"chunks[{i}] start_index decreases.")
        previous_start = start

        metadata = chunk.get("metadata")
        if not isinstance(metadata, dict) or not isinstance(metadata.get("source"), str):
            log.error("Validation failed — chunks[%d] metadata lacks a source", i)
            raise ValidationError(f"chunks[{i}] metadata must carry a 'source' string.")

    log.debug("Validation succeeded — %d chunks", len(chunks))
    return list(chunks)


def validate(response: Dict[str, Any]) -> ChatResponse:
    """
    Validates a dict against the ChatResponse schema.

    Checks:
      - Required keys are present: question, answer, context_chunk_ids, model
      - question, answer, model are non-empty strings
      - context_chunk_ids is a list of strings

    Args:
        response: Dict to validate (typically the raw chat output).

    Returns:
        The same dict cast as a typed ChatResponse.

    Raises:
        ValidationError: If any field is missing, wrong type, or blank.
    """
    required_keys = {"question", "answer", "context_chunk_ids", "model"}
    missing = required_keys - response.keys()
    if missing:
        log.error("Validation failed — missing keys: %s", missing)
        raise ValidationError(f"ChatResponse missing required keys: {missing}")

    for key in ("question", "answer", "model"):
        if not isinstance(response[key], str) or not response[key].strip():
            log.error("Validation failed — field '%s' is empty or wrong type", key)
            raise ValidationError(
                f"ChatResponse field '{key}' must be a non-empty string."
            )

    ids = response["context_chunk_ids"]
    if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
        log.error("Validation failed — 'context_chunk_ids' is not a list of strings")
        raise ValidationError("ChatResponse 'context_chunk_ids' must be a list of strings.")

    log.info(
        "Validation succeeded — question='%.60s…' context_chunks=%d",
        response["question"], len(ids),
    )
    return ChatResponse(**response)  # type: ignore[typeddict-item]
