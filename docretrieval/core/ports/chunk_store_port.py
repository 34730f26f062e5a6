"""Chunk Store Port Interface."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from ..domain import Chunk, Scope, ScoredChunk


class ChunkStorePort(ABC):
    """Abstract interface for the store holding document chunks.

    Both query methods must apply ``scope`` at query level and return
    results ordered by descending score, ties broken by insertion order.
    Failures to reach the backing store raise ``StoreUnavailableError``.
    """

    @abstractmethod
    def similarity_search(
        self, vector: Sequence[float], scope: Scope, limit: int
    ) -> list[ScoredChunk]:
        """Return the chunks most similar (cosine) to ``vector``."""
        ...

    @abstractmethod
    def lexical_search(self, text: str, scope: Scope, limit: int) -> list[ScoredChunk]:
        """Return the chunks that best match the tokens of ``text``."""
        ...

    @abstractmethod
    def add_chunks(self, chunks: list[Chunk]) -> int:
        """Add chunks to the store."""
        ...

    @abstractmethod
    def delete_document(self, document_id: str) -> int:
        """Delete every chunk of a document."""
        ...

    @abstractmethod
    def count(self, scope: Scope | None = None) -> int:
        """Number of chunks, optionally within a scope."""
        ...
