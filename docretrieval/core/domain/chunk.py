"""Chunk records held by the chunk store."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Chunk:
    """A contiguous span of text extracted from a source document.

    Chunks are immutable once created. Every chunk belongs to exactly one
    document and one company, and ``company_id`` must agree with the
    company that owns ``document_id``.

    Attributes:
        chunk_id: Unique identifier of the chunk.
        document_id: Parent document.
        company_id: Company that owns the parent document.
        text: The chunk text.
        page_number: Source page, when the extractor knows it.
        embedding: Precomputed dense vector, absent until computed.
    """

    chunk_id: str
    document_id: str
    company_id: str
    text: str
    page_number: int | None = None
    embedding: tuple[float, ...] | None = None

    @property
    def has_embedding(self) -> bool:
        return bool(self.embedding)


@dataclass(frozen=True)
class ScoredChunk:
    """A chunk returned by a store query with its raw score.

    Attributes:
        chunk: The matched chunk record.
        score: Raw retriever score (BM25 or cosine similarity).
        sequence: Insertion order of the chunk in the store, used to
            break score ties deterministically.
    """

    chunk: Chunk
    score: float
    sequence: int
