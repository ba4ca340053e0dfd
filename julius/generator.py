"""
julius/generator.py
-------------------
Context-grounded answer generation over the hosted Gemini API.

Wraps the supplied document context in an instruction that confines the
model to that context, posts it to the `generateContent` endpoint, and
returns the generated text.

The client is constructed explicitly with its API key and injected into
callers, so extraction and chunking stay testable with no network access.
Generation is the sole responsibility of this module — it does NOT select
or retrieve context.
"""

from typing import Any, Dict, Optional

from julius._http          import HTTPStatusError, post_json
from julius.logging_config import get_logger

log = get_logger(__name__)

# ── Constants ──────────────────────────────────────────────────────────────────
GEMINI_BASE_URL   = "https://generativelanguage.googleapis.com/v1beta/models"
DEFAULT_GEN_MODEL = "gemini-2.0-flash-exp"
DEFAULT_TIMEOUT   = 30
# ──────────────────────────────────────────────────────────────────────────────


class ChatError(RuntimeError):
    """Base class for failures of the hosted chat call."""


class MissingAPIKeyError(ChatError):
    """Raised when the client is built without a credential."""


class ChatAuthorizationError(ChatError):
    """Raised when the endpoint rejects the credential (401/403)."""


class ChatResponseError(ChatError):
    """Raised on an upstream error status or an unusable response body."""


def _build_prompt(question: str, context: Optional[str]) -> str:
    """
    Wraps the question in the grounding instruction when context is given.

    Without context the question is sent as-is.
    """
    if not context:
        return question

    return (
        "You are Julius, an academic research assistant. "
        "Use the following context from a research paper to answer the "
        "user's question.\n"
        "If the answer is not in the context, say you don't know based on "
        "the document.\n\n"
        f"CONTEXT:\n{context}\n\n"
        f"USER QUESTION:\n{question}"
    )


def _extract_text(response: Dict[str, Any]) -> str:
    """Concatenates the text parts of the first candidate."""
    candidates = response.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts if isinstance(part, dict))


class GeminiClient:
    """
    Minimal client for Gemini's `generateContent` REST method.

    Args:
        api_key: Gemini API key. Required.
        model:   Model identifier.
        timeout: Socket timeout in seconds for each call.

    Raises:
        MissingAPIKeyError: If api_key is empty.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_GEN_MODEL,
        timeout: int = DEFAULT_TIMEOUT,
    ):
        if not api_key or not api_key.strip():
            raise MissingAPIKeyError(
                "API Key is missing. Please check your environment variables."
            )
        self._api_key = api_key.strip()
        self.model    = model
        self.timeout  = timeout

    @property
    def endpoint(self) -> str:
        return f"{GEMINI_BASE_URL}/{self.model}:generateContent"

    def generate(self, question: str, context: Optional[str] = None) -> str:
        """
        Asks the model a question, optionally grounded in `context`.

        Args:
            question: The user's question.
            context:  Document excerpts the answer must come from.

        Returns:
            The generated answer, stripped.

        Raises:
            ValueError:             If question is blank.
            ChatAuthorizationError: If the key is rejected.
            ChatResponseError:      On other error statuses or an empty answer.
            ConnectionError:        If the endpoint is unreachable.
        """
        if not question.strip():
            raise ValueError("question must not be empty.")

        prompt  = _build_prompt(question, context)
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        log.debug("Calling %s — prompt length %d chars", self.model, len(prompt))

        try:
            response = post_json(
                self.endpoint,
                payload,
                headers={"x-goog-api-key": self._api_key},
                timeout=self.timeout,
            )
        except HTTPStatusError as exc:
            # Gemini reports a malformed key as 400 API_KEY_INVALID.
            if exc.status in (401, 403) or "API_KEY_INVALID" in exc.body:
                raise ChatAuthorizationError(
                    f"The chat service rejected the API key (HTTP {exc.status})."
                ) from exc
            raise ChatResponseError(str(exc)) from exc
        except RuntimeError as exc:
            raise ChatResponseError(str(exc)) from exc

        if not isinstance(response, dict):
            raise ChatResponseError("Chat response was not a JSON object.")

        answer = _extract_text(response).strip()
        if not answer:
            raise ChatResponseError(f"Chat response contained no text: {response}")

        log.info("Answer received from %s — %d chars", self.model, len(answer))
        return answer
