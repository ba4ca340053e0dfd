"""
julius/extractor.py
-------------------
PDF text-extraction adapter.

Converts an uploaded PDF into one plain-text string: page-internal text
is joined by single spaces, pages are separated by a blank line ("\\n\\n"),
and the whole result is trimmed. The start offset of every page is kept
alongside the text so chunks can be attributed to a page.

Parsing is delegated to pypdf. Every parser failure is reported as a
single user-facing ExtractionError — the chunker is never invoked on a
document that failed here.
"""

from io import BytesIO
from typing import List, NamedTuple, Optional

from pypdf import PdfReader

from julius.logging_config import get_logger

log = get_logger(__name__)

# ── Constants ──────────────────────────────────────────────────────────────────
PDF_CONTENT_TYPE = "application/pdf"
PAGE_SEPARATOR   = "\n\n"
EXTRACTION_FAILED_MESSAGE = (
    "Failed to extract text from PDF. "
    "Please ensure it is a valid text-based PDF."
)
# ──────────────────────────────────────────────────────────────────────────────


class UnsupportedDocumentError(ValueError):
    """Raised when an upload does not declare the PDF content type."""


class ExtractionError(RuntimeError):
    """Raised when a PDF cannot be read or carries no text."""


class ExtractedText(NamedTuple):
    text:        str
    page_starts: List[int]   # offset of each page within `text`


def ensure_pdf(content_type: Optional[str], filename: Optional[str] = None) -> None:
    """
    Rejects uploads whose declared content type is not application/pdf.

    Raises:
        UnsupportedDocumentError: For any other (or missing) content type.
    """
    declared = (content_type or "").split(";")[0].strip().lower()
    if declared != PDF_CONTENT_TYPE:
        log.warning("Rejected upload %r with content type %r", filename, content_type)
        raise UnsupportedDocumentError("Please upload a valid PDF file.")


def extract_pages(data: bytes, max_pages: Optional[int] = None) -> List[str]:
    """
    Reads each page's text, joining its lines with single spaces.

    Args:
        data:      Raw PDF bytes.
        max_pages: Optional cap on the number of pages read.

    Returns:
        One string per page, in page order.

    Raises:
        ExtractionError: If pypdf cannot parse the document.
    """
    try:
        reader = PdfReader(BytesIO(data))
        pages  = reader.pages
        limit  = min(max_pages, len(pages)) if max_pages else len(pages)
        if limit < len(pages):
            log.warning("Reading only the first %d of %d pages", limit, len(pages))

        page_texts = []
        for i in range(limit):
            raw = pages[i].extract_text() or ""
            page_texts.append(" ".join(raw.splitlines()))
    except Exception as exc:
        log.error("PDF parsing failed: %s", exc)
        raise ExtractionError(EXTRACTION_FAILED_MESSAGE) from exc

    log.debug("Extracted %d page(s)", len(page_texts))
    return page_texts


def join_pages(page_texts: List[str]) -> ExtractedText:
    """
    Joins page texts with a blank line and trims the result.

    Page offsets are shifted by the leading whitespace that trimming
    removes, so every entry points into the returned text.
    """
    raw = "".join(page + PAGE_SEPARATOR for page in page_texts)
    lead = len(raw) - len(raw.lstrip())
    text = raw.strip()

    page_starts: List[int] = []
    offset = 0
    for page in page_texts:
        page_starts.append(min(max(offset - lead, 0), len(text)))
        offset += len(page) + len(PAGE_SEPARATOR)

    return ExtractedText(text=text, page_starts=page_starts)


def extract_text(data: bytes, max_pages: Optional[int] = None) -> ExtractedText:
    """
    Extracts the full text of a PDF.

    Args:
        data:      Raw PDF bytes.
        max_pages: Optional cap on the number of pages read.

    Returns:
        ExtractedText(text, page_starts).

    Raises:
        ExtractionError: If the PDF is unreadable or contains no text.
    """
    extracted = join_pages(extract_pages(data, max_pages=max_pages))
    if not extracted.text:
        log.error("PDF parsed but contained no extractable text")
        raise ExtractionError(EXTRACTION_FAILED_MESSAGE)

    log.info(
        "Extraction complete — %d chars across %d page(s)",
        len(extracted.text), len(extracted.page_starts),
    )
    return extracted
