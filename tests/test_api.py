import urllib.request

import pytest
from fastapi.testclient import TestClient

import service.api as api
from julius.generator import ChatAuthorizationError, ChatResponseError, GeminiClient

from conftest import FakeClient


PAGES = [
    "First page of the paper talks about segmentation. " * 30,
    "Second page talks about grounded answers. " * 30,
]
PDF_UPLOAD = {"file": ("paper.pdf", b"%PDF-1.4 fake body", "application/pdf")}


@pytest.fixture
def client():
    api._session.document = None
    with TestClient(api.app) as test_client:
        yield test_client
    api.app.dependency_overrides.clear()
    api._session.document = None


@pytest.fixture
def uploaded(client, fake_pdf):
    fake_pdf(PAGES)
    response = client.post("/documents", files=PDF_UPLOAD)
    assert response.status_code == 201, response.text
    return response.json()


def _use_chat_client(fake):
    api.app.dependency_overrides[api.get_chat_client] = lambda: fake


def test_health_reports_no_document(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["document_loaded"] is False


def test_upload_returns_summary_and_stats(client, uploaded):
    assert uploaded["name"] == "paper.pdf"
    assert uploaded["status"] == "ready"
    assert "uploadDate" in uploaded
    stats = uploaded["stats"]
    assert stats["charCount"] > 0
    assert stats["chunkCount"] >= 2
    assert stats["avgChunkSize"] == round(stats["charCount"] / stats["chunkCount"])

    assert client.get("/health").json()["document_loaded"] is True
    assert client.get("/documents/current").json()["id"] == uploaded["id"]


def test_chunks_use_external_shape(client, uploaded):
    chunks = client.get("/documents/current/chunks").json()

    assert len(chunks) == uploaded["stats"]["chunkCount"]
    first = chunks[0]
    assert set(first) == {"id", "content", "startIndex", "endIndex", "metadata"}
    assert first["startIndex"] == 0
    assert first["metadata"] == {"source": "user-upload", "page": 1}
    assert chunks[-1]["metadata"]["page"] == 2


def test_upload_rejects_non_pdf(client, fake_pdf):
    opened = fake_pdf(PAGES)

    response = client.post("/documents", files={"file": ("notes.txt", b"hi", "text/plain")})

    assert response.status_code == 415
    assert response.json()["detail"] == "Please upload a valid PDF file."
    assert opened == []


def test_failed_extraction_clears_previous_document(client, uploaded, broken_pdf):
    response = client.post("/documents", files=PDF_UPLOAD)

    assert response.status_code == 422
    assert "text-based PDF" in response.json()["detail"]
    assert client.get("/documents/current").status_code == 404


def test_current_document_missing(client):
    assert client.get("/documents/current").status_code == 404
    assert client.get("/documents/current/chunks").status_code == 404


def test_chat_answers_from_first_chunks(client, uploaded):
    fake = FakeClient(answer="Segmentation and grounding.")
    _use_chat_client(fake)

    response = client.post("/chat", json={"question": "What is this paper about?"})

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["answer"] == "Segmentation and grounding."
    assert body["model"] == "fake-model"

    chunk_ids = [c["id"] for c in client.get("/documents/current/chunks").json()]
    assert body["context_chunk_ids"] == chunk_ids[:5]
    assert fake.calls[0][1].count("\n---\n") == len(body["context_chunk_ids"]) - 1


def test_chat_without_document(client):
    _use_chat_client(FakeClient())

    assert client.post("/chat", json={"question": "q"}).status_code == 404


def test_chat_blank_question(client, uploaded):
    _use_chat_client(FakeClient())

    assert client.post("/chat", json={"question": "   "}).status_code == 422


def test_chat_missing_api_key(client, uploaded, monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    response = client.post("/chat", json={"question": "q"})

    assert response.status_code == 401
    assert "API Key is missing" in response.json()["detail"]


@pytest.mark.parametrize("error,status", [
    (ChatAuthorizationError("rejected"), 401),
    (ChatResponseError("empty answer"), 502),
    (ConnectionError("unreachable"), 503),
    (TimeoutError("read timed out"), 503),
])
def test_chat_failures_map_to_status(client, uploaded, error, status):
    _use_chat_client(FakeClient(error=error))

    response = client.post("/chat", json={"question": "q"})

    assert response.status_code == status
    # Chat failures never affect the processed document.
    assert client.get("/documents/current").json()["id"] == uploaded["id"]


def test_chat_without_document_or_key_reports_missing_document(client, monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    response = client.post("/chat", json={"question": "q"})

    assert response.status_code == 404
    assert "No document" in response.json()["detail"]


def test_chat_read_timeout_maps_to_unavailable(client, uploaded, monkeypatch):
    def stalled_urlopen(request, timeout):
        raise TimeoutError("The read operation timed out")

    monkeypatch.setattr(urllib.request, "urlopen", stalled_urlopen)
    _use_chat_client(GeminiClient(api_key="key", timeout=1))

    response = client.post("/chat", json={"question": "q"})

    assert response.status_code == 503
    assert "timed out" in response.json()["detail"]
