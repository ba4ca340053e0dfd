"""
service/api.py
--------------
FastAPI service layer for the Julius document pipeline.

Endpoints:
    GET  /health                     liveness + whether a document is loaded
    POST /documents                  multipart PDF upload → document summary
    GET  /documents/current          summary of the loaded document
    GET  /documents/current/chunks   chunk records of the loaded document
    POST /chat     { "question": str } → ChatResponse

One document is held in process memory at a time; each upload replaces
it. Every stage failure is converted to a single HTTP error with a
user-facing message — nothing is retried.

Run with:
    uvicorn service.api:app --host 0.0.0.0 --port 8000
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional

from fastapi import Depends, FastAPI, File, HTTPException, UploadFile
from pydantic import BaseModel, ConfigDict, Field

from app import CHUNK_OVERLAP, CHUNK_SIZE, GEN_MODEL, ask, build_client, process_upload
from julius.document       import ProcessedDocument, compute_stats
from julius.extractor      import ExtractionError, UnsupportedDocumentError
from julius.generator      import (
    ChatAuthorizationError,
    ChatError,
    GeminiClient,
    MissingAPIKeyError,
)
from julius.logging_config import get_logger
from validator.json_validator import ValidationError

log = get_logger("julius.service.api")


# ── Request / Response models ──────────────────────────────────────────────────

class ChatRequest(BaseModel):
    """Input schema for the /chat endpoint."""
    question: str


class ChunkMetadataOut(BaseModel):
    source: str
    page:   Optional[int] = None


class ChunkOut(BaseModel):
    """External chunk shape: {id, content, startIndex, endIndex, metadata}."""
    model_config = ConfigDict(populate_by_name=True)

    id:          str
    content:     str
    start_index: int = Field(alias="startIndex")
    end_index:   int = Field(alias="endIndex")
    metadata:    ChunkMetadataOut


class StatsOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    char_count:     int = Field(alias="charCount")
    chunk_count:    int = Field(alias="chunkCount")
    avg_chunk_size: int = Field(alias="avgChunkSize")


class DocumentOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id:          str
    name:        str
    status:      str
    upload_date: datetime = Field(alias="uploadDate")
    stats:       StatsOut


def _summarise(document: ProcessedDocument) -> DocumentOut:
    return DocumentOut(
        id          = document["id"],
        name        = document["name"],
        status      = document["status"],
        upload_date = document["upload_date"],
        stats       = StatsOut(**compute_stats(document)),
    )


# ── Session state (one document at a time) ────────────────────────────────────

class _SessionState:
    """In-process holder for the current document."""
    document: Optional[ProcessedDocument]

    def __init__(self):
        self.document = None


_session = _SessionState()


def _require_document() -> ProcessedDocument:
    if _session.document is None:
        raise HTTPException(status_code=404, detail="No document has been uploaded yet.")
    return _session.document


def get_chat_client() -> GeminiClient:
    """Dependency that builds the chat client from the environment."""
    try:
        return build_client()
    except MissingAPIKeyError as exc:
        log.error("Chat client unavailable — %s", exc)
        raise HTTPException(status_code=401, detail=str(exc)) from exc


# ── Lifespan ──────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Starts with no document; drops the session document on shutdown."""
    log.info(
        "Service startup — chunk_size=%d chunk_overlap=%d model=%s",
        CHUNK_SIZE, CHUNK_OVERLAP, GEN_MODEL,
    )
    yield
    _session.document = None
    log.info("Service shutdown — session document released")


# ── FastAPI app ────────────────────────────────────────────────────────────────

app = FastAPI(
    title       = "Julius Document Chat API",
    description = (
        "Upload a text-based PDF, inspect its overlapping chunks, and ask "
        "questions answered from the document's leading chunks."
    ),
    version  = "1.0.0",
    lifespan = lifespan,
)


# ── Endpoints ──────────────────────────────────────────────────────────────────

@app.get("/health", tags=["ops"])
def health_check():
    """Liveness probe. Does NOT call the chat service."""
    return {
        "status":          "ok",
        "model":           GEN_MODEL,
        "document_loaded": _session.document is not None,
    }


@app.post("/documents", tags=["documents"], status_code=201, response_model=DocumentOut)
def upload_document(file: UploadFile = File(...)):
    """
    Extract, chunk and hold an uploaded PDF as the current document.

    Raises:
        415 Unsupported Media Type: if the upload is not declared as a PDF
        422 Unprocessable Entity:   if no text could be extracted
        500 Internal Server Error:  if the chunk sequence fails validation
    """
    filename = file.filename or "upload.pdf"
    # A new upload discards the previous document even if this one fails.
    _session.document = None

    try:
        document = process_upload(
            data         = file.file.read(),
            filename     = filename,
            content_type = file.content_type,
        )
    except UnsupportedDocumentError as exc:
        raise HTTPException(status_code=415, detail=str(exc)) from exc
    except ExtractionError as exc:
        log.error("POST /documents failed — extraction error for %s", filename)
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except ValidationError as exc:
        log.error("POST /documents failed — validation error: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    _session.document = document
    return _summarise(document)


@app.get("/documents/current", tags=["documents"], response_model=DocumentOut)
def current_document():
    return _summarise(_require_document())


@app.get(
    "/documents/current/chunks",
    tags=["documents"],
    response_model=List[ChunkOut],
    response_model_exclude_none=True,
)
def current_chunks():
    return [ChunkOut(**chunk) for chunk in _require_document()["chunks"]]


# Dependencies resolve in declaration order: a missing document (404) is
# reported before a missing API key (401).
@app.post("/chat", tags=["chat"])
def chat(
    request: ChatRequest,
    document: ProcessedDocument = Depends(_require_document),
    client: GeminiClient = Depends(get_chat_client),
):
    """
    Answer a question from the current document's leading chunks.

    Raises:
        404 Not Found:             if no document is loaded
        422 Unprocessable Entity:  if the question is blank
        401 Unauthorized:          if the API key is missing or rejected
        502 Bad Gateway:           if the chat service returns an unusable answer
        503 Service Unavailable:   if the chat service is unreachable
    """
    if not request.question.strip():
        raise HTTPException(status_code=422, detail="question must not be empty.")

    log.info("POST /chat — received question='%.80s…'", request.question)
    try:
        response = ask(request.question, document, client)
    except ChatAuthorizationError as exc:
        log.error("POST /chat failed — credential rejected: %s", exc)
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except ChatError as exc:
        log.error("POST /chat failed — upstream error: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except (ConnectionError, TimeoutError) as exc:
        log.error("POST /chat failed — chat service unreachable: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except ValidationError as exc:
        log.error("POST /chat failed — validation error: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    log.info("POST /chat complete — answer length %d chars", len(response["answer"]))
    return response
