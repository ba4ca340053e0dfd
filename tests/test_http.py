import io
import json
import urllib.error
import urllib.request

import pytest

from julius._http import HTTPStatusError, post_json


class _Response(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


def test_post_json_sends_json_and_decodes_reply(monkeypatch):
    seen = {}

    def fake_urlopen(request, timeout):
        seen["request"] = request
        seen["timeout"] = timeout
        return _Response(b'{"ok": true}')

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)

    result = post_json("https://example.test/x", {"a": 1}, headers={"X-Key": "k"}, timeout=7)

    assert result == {"ok": True}
    request = seen["request"]
    assert request.get_method() == "POST"
    assert json.loads(request.data) == {"a": 1}
    assert request.get_header("Content-type") == "application/json"
    assert request.get_header("X-key") == "k"
    assert seen["timeout"] == 7


def test_http_error_status_is_reported(monkeypatch):
    def fake_urlopen(request, timeout):
        raise urllib.error.HTTPError(
            request.full_url, 403, "Forbidden", {}, io.BytesIO(b"denied"),
        )

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)

    with pytest.raises(HTTPStatusError) as excinfo:
        post_json("https://example.test/x", {})

    assert excinfo.value.status == 403
    assert excinfo.value.body == "denied"


def test_unreachable_host_raises_connection_error(monkeypatch):
    def fake_urlopen(request, timeout):
        raise urllib.error.URLError("Name or service not known")

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)

    with pytest.raises(ConnectionError, match="not reachable"):
        post_json("https://example.test/x", {})


def test_non_json_reply_raises_runtime_error(monkeypatch):
    monkeypatch.setattr(urllib.request, "urlopen", lambda request, timeout: _Response(b"<html>"))

    with pytest.raises(RuntimeError, match="JSON"):
        post_json("https://example.test/x", {})


def test_read_timeout_raises_connection_error(monkeypatch):
    def fake_urlopen(request, timeout):
        raise TimeoutError("The read operation timed out")

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)

    with pytest.raises(ConnectionError, match="timed out"):
        post_json("https://example.test/x", {}, timeout=1)


def test_non_utf8_reply_raises_runtime_error(monkeypatch):
    monkeypatch.setattr(urllib.request, "urlopen", lambda request, timeout: _Response(b"\xff\xfe"))

    with pytest.raises(RuntimeError, match="JSON"):
        post_json("https://example.test/x", {})
