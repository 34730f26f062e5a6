"""
Pytest configuration and shared fixtures.
"""

import hashlib
import json
import os

import pytest

from docretrieval.core.domain import Chunk
from docretrieval.core.domain.exceptions import EmbeddingAPIError
from docretrieval.core.ports import EmbeddingPort


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (require API keys)")


class FakeEmbeddingProvider(EmbeddingPort):
    """Deterministic provider that records every call.

    Texts listed in ``vectors`` get that vector; any other text gets a
    vector derived from its hash. Texts in ``fail_texts`` (or every text
    when ``fail_all`` is set) raise ``EmbeddingAPIError``.
    """

    def __init__(self, dimension: int = 4):
        self._dimension = dimension
        self.vectors: dict[str, list[float]] = {}
        self.fail_texts: set[str] = set()
        self.fail_all = False
        self.embed_calls: list[str] = []
        self.batch_calls: list[list[str]] = []

    @property
    def dimension(self) -> int:
        return self._dimension

    def _vector(self, text: str) -> list[float]:
        if self.fail_all or text in self.fail_texts:
            raise EmbeddingAPIError(f"cannot embed {text!r}")
        if text in self.vectors:
            return list(self.vectors[text])
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        return [b / 255.0 + 0.01 for b in digest[: self._dimension]]

    def embed(self, text: str) -> list[float]:
        self.embed_calls.append(text)
        return self._vector(text)

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.batch_calls.append(list(texts))
        return [self._vector(text) for text in texts]


@pytest.fixture
def fake_provider():
    """A fresh fake embedding provider (4 dimensions)."""
    return FakeEmbeddingProvider()


@pytest.fixture
def sample_chunks():
    """Chunks for two companies: acme (doc-a1, doc-a2) and globex (doc-g1)."""
    return [
        Chunk(
            "a1-1",
            "doc-a1",
            "acme",
            "Quarterly revenue grew twelve percent driven by cloud subscriptions.",
            page_number=1,
            embedding=(1.0, 0.0, 0.0, 0.0),
        ),
        Chunk(
            "a1-2",
            "doc-a1",
            "acme",
            "Operating costs rose because of new data center leases.",
            page_number=2,
            embedding=(0.0, 1.0, 0.0, 0.0),
        ),
        Chunk(
            "a1-3",
            "doc-a1",
            "acme",
            "Headcount remained flat across all regions.",
            page_number=3,
            embedding=(0.0, 0.0, 0.0, 1.0),
        ),
        Chunk(
            "a2-1",
            "doc-a2",
            "acme",
            "The board approved a share buyback program.",
            page_number=1,
            embedding=(0.0, 0.0, 1.0, 0.0),
        ),
        Chunk(
            "a2-2",
            "doc-a2",
            "acme",
            "Cloud subscriptions now account for most recurring revenue.",
            page_number=2,
            embedding=(0.9, 0.1, 0.0, 0.0),
        ),
        Chunk(
            "a2-3",
            "doc-a2",
            "acme",
            "Dividends will be paid in the second quarter.",
            page_number=3,
            embedding=(0.0, 0.5, 0.5, 0.0),
        ),
        Chunk(
            "g1-1",
            "doc-g1",
            "globex",
            "Globex revenue declined after the product recall.",
            page_number=1,
            embedding=(1.0, 0.0, 0.0, 0.0),
        ),
        Chunk(
            "g1-2",
            "doc-g1",
            "globex",
            "Revenue guidance for next year was withdrawn.",
            page_number=2,
            embedding=(0.95, 0.05, 0.0, 0.0),
        ),
    ]


@pytest.fixture
def corpus_file(tmp_path, sample_chunks):
    """The sample chunks written as JSONL, without embeddings."""
    path = tmp_path / "corpus.jsonl"
    lines = [
        json.dumps(
            {
                "chunk_id": chunk.chunk_id,
                "document_id": chunk.document_id,
                "company_id": chunk.company_id,
                "text": chunk.text,
                "page_number": chunk.page_number,
            }
        )
        for chunk in sample_chunks
    ]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture(scope="session")
def qdrant_url():
    """Get Qdrant URL from environment."""
    url = os.environ.get("QDRANT_URL")
    if not url:
        pytest.skip("QDRANT_URL not set")
    return url
