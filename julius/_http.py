"""
julius/_http.py
---------------
Centralized HTTP transport layer for the hosted chat endpoint.

Provides `post_json()` as the single point of control for timeouts,
status handling, and error translation. The chat client delegates every
outbound call here — no urllib boilerplate in business-logic modules.
"""

import json
import urllib.error
import urllib.request
from typing import Any, Dict, Optional


class HTTPStatusError(RuntimeError):
    """Raised when the endpoint answers with a non-2xx status code."""

    def __init__(self, url: str, status: int, body: str):
        preview = body if len(body) < 500 else body[:500] + "…(truncated)"
        super().__init__(f"{url} returned HTTP {status}: {preview}")
        self.url    = url
        self.status = status
        self.body   = body


def post_json(
    url: str,
    payload: Dict[str, Any],
    headers: Optional[Dict[str, str]] = None,
    timeout: int = 30,
) -> Dict[str, Any]:
    """
    Sends a JSON POST request and returns the decoded response body.

    Args:
        url:     Full endpoint URL.
        payload: Request body as a Python dict (will be JSON-encoded).
        headers: Extra request headers (credentials, etc.).
        timeout: Socket timeout in seconds.

    Returns:
        Parsed JSON response as a dict.

    Raises:
        HTTPStatusError: If the server responds with an error status.
        ConnectionError: If the endpoint is unreachable or times out.
        RuntimeError:    If the response cannot be decoded as UTF-8 JSON.
    """
    body = json.dumps(payload).encode("utf-8")

    request = urllib.request.Request(
        url,
        data=body,
        headers={"Content-Type": "application/json", **(headers or {})},
        method="POST",
    )

    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            return json.loads(response.read().decode("utf-8"))

    # HTTPError is a URLError subclass — it must be handled first.
    except urllib.error.HTTPError as exc:
        detail = exc.read().decode("utf-8", errors="replace")
        raise HTTPStatusError(url, exc.code, detail) from exc

    except urllib.error.URLError as exc:
        raise ConnectionError(
            f"Chat endpoint is not reachable at {url}.\n"
            "  → Check your network connection\n"
            f"  Original error: {exc}"
        ) from exc

    # Read timeouts surface as a bare TimeoutError, not a URLError.
    except OSError as exc:
        raise ConnectionError(
            f"Chat endpoint timed out or failed at {url}: {exc}"
        ) from exc

    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise RuntimeError(f"Could not parse chat response as JSON: {exc}") from exc
