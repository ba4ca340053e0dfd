from types import SimpleNamespace
from typing import List, Optional

import pytest

import julius.extractor as extractor


class _FakePage:
    def __init__(self, text: Optional[str]):
        self._text = text

    def extract_text(self):
        return self._text


@pytest.fixture
def fake_pdf(monkeypatch):
    """
    Replaces pypdf's reader with one that serves the given page texts.

    Usage: fake_pdf(["page one", "page two"]). Returns the list of byte
    payloads the reader was opened with.
    """
    opened: List[bytes] = []

    def install(pages: List[Optional[str]]):
        def reader(stream):
            opened.append(stream.read())
            return SimpleNamespace(pages=[_FakePage(p) for p in pages])

        monkeypatch.setattr(extractor, "PdfReader", reader)
        return opened

    return install


@pytest.fixture
def broken_pdf(monkeypatch):
    """Makes every PDF parse fail the way pypdf does on a corrupt file."""
    def reader(stream):
        raise ValueError("EOF marker not found")

    monkeypatch.setattr(extractor, "PdfReader", reader)


class FakeClient:
    """Stands in for GeminiClient; records calls and replays a result."""

    def __init__(self, answer: str = "It is about chunking.", error: Exception = None,
                 model: str = "fake-model"):
        self.answer = answer
        self.error  = error
        self.model  = model
        self.calls  = []

    def generate(self, question, context=None):
        self.calls.append((question, context))
        if self.error is not None:
            raise self.error
        return self.answer


@pytest.fixture
def fake_client():
    return FakeClient()
