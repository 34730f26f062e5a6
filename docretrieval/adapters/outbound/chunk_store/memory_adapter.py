"""In-process chunk store.

Keeps chunks in insertion order with per-document and per-company
indexes, so a scope narrows the candidate set before anything is scored.
Similarity search is cosine over numpy arrays; lexical search is BM25+
(``rank_bm25``) over the chunks of the scope. BM25+ keeps every IDF
positive, so a term found in most chunks of a document still ranks the
chunks that repeat it higher.
"""

import logging
import threading
from collections import defaultdict
from collections.abc import Sequence

import numpy as np
from rank_bm25 import BM25Plus

from ....core.domain import (
    Chunk,
    CompanyScope,
    DocumentScope,
    MultiDocumentScope,
    Scope,
    ScoredChunk,
)
from ....core.domain.exceptions import ChunkValidationError, InvalidScopeError
from ....core.domain.utils import tokenize
from ....core.ports.chunk_store_port import ChunkStorePort

logger = logging.getLogger(__name__)


class InMemoryChunkStore(ChunkStorePort):
    """Chunk store backed by Python dictionaries."""

    def __init__(self, chunks: list[Chunk] | None = None) -> None:
        """Initialize the store.

        Args:
            chunks: Optional chunks to load immediately.
        """
        self._entries: dict[str, tuple[int, Chunk]] = {}
        self._document_company: dict[str, str] = {}
        self._by_document: dict[str, list[str]] = defaultdict(list)
        self._by_company: dict[str, list[str]] = defaultdict(list)
        self._next_sequence = 0
        self._lock = threading.RLock()
        if chunks:
            self.add_chunks(chunks)

    def _chunk_ids_for(self, scope: Scope) -> list[str]:
        if isinstance(scope, DocumentScope):
            return list(self._by_document.get(scope.document_id, []))
        if isinstance(scope, CompanyScope):
            return list(self._by_company.get(scope.company_id, []))
        if isinstance(scope, MultiDocumentScope):
            ids: list[str] = []
            for document_id in scope.document_ids:
                ids.extend(self._by_document.get(document_id, []))
            return ids
        raise InvalidScopeError(f"Unsupported scope type: {type(scope).__name__}")

    def _scoped(self, scope: Scope) -> list[tuple[int, Chunk]]:
        with self._lock:
            entries = [self._entries[chunk_id] for chunk_id in self._chunk_ids_for(scope)]
        entries.sort(key=lambda entry: entry[0])
        return entries

    @staticmethod
    def _rank(hits: list[ScoredChunk], limit: int) -> list[ScoredChunk]:
        hits.sort(key=lambda hit: (-hit.score, hit.sequence))
        return hits[:limit]

    def similarity_search(
        self, vector: Sequence[float], scope: Scope, limit: int
    ) -> list[ScoredChunk]:
        """Cosine similarity between ``vector`` and the scope's embedded chunks."""
        if limit < 1 or not vector:
            return []

        query = np.asarray(vector, dtype=np.float64)
        query_norm = np.linalg.norm(query)
        if query_norm == 0:
            return []

        entries = [
            (sequence, chunk)
            for sequence, chunk in self._scoped(scope)
            if chunk.embedding and len(chunk.embedding) == len(query)
        ]
        if not entries:
            return []

        matrix = np.asarray([chunk.embedding for _, chunk in entries], dtype=np.float64)
        norms = np.linalg.norm(matrix, axis=1)
        dots = matrix @ query
        similarities = np.divide(
            dots, norms * query_norm, out=np.zeros_like(dots), where=norms > 0
        )

        hits = [
            ScoredChunk(chunk=chunk, score=float(similarity), sequence=sequence)
            for (sequence, chunk), similarity in zip(entries, similarities)
        ]
        return self._rank(hits, limit)

    def lexical_search(self, text: str, scope: Scope, limit: int) -> list[ScoredChunk]:
        """BM25 over the scope's chunks, keeping chunks that share a query token."""
        query_tokens = tokenize(text)
        if limit < 1 or not query_tokens:
            return []

        entries = self._scoped(scope)
        corpus = [tokenize(chunk.text) for _, chunk in entries]
        if not any(corpus):
            return []

        bm25 = BM25Plus(corpus)
        scores = bm25.get_scores(query_tokens)
        wanted = set(query_tokens)

        hits = [
            ScoredChunk(chunk=chunk, score=float(score), sequence=sequence)
            for (sequence, chunk), tokens, score in zip(entries, corpus, scores)
            if wanted.intersection(tokens)
        ]
        return self._rank(hits, limit)

    def add_chunks(self, chunks: list[Chunk]) -> int:
        """Add chunks, rejecting the whole batch if any chunk is inconsistent.

        Raises:
            ChunkValidationError: On a duplicate chunk id or a document
                that would belong to two companies.
        """
        if not chunks:
            return 0

        with self._lock:
            owners = dict(self._document_company)
            batch_ids: set[str] = set()
            for chunk in chunks:
                if chunk.chunk_id in self._entries or chunk.chunk_id in batch_ids:
                    raise ChunkValidationError(
                        f"Duplicate chunk id {chunk.chunk_id}",
                        context={"chunk_id": chunk.chunk_id},
                    )
                owner = owners.setdefault(chunk.document_id, chunk.company_id)
                if owner != chunk.company_id:
                    raise ChunkValidationError(
                        f"Document {chunk.document_id} already belongs to company {owner}",
                        context={
                            "chunk_id": chunk.chunk_id,
                            "document_id": chunk.document_id,
                            "company_id": chunk.company_id,
                        },
                    )
                batch_ids.add(chunk.chunk_id)

            for chunk in chunks:
                self._entries[chunk.chunk_id] = (self._next_sequence, chunk)
                self._next_sequence += 1
                self._document_company[chunk.document_id] = chunk.company_id
                self._by_document[chunk.document_id].append(chunk.chunk_id)
                self._by_company[chunk.company_id].append(chunk.chunk_id)

        logger.debug("Added %d chunk(s) to in-memory store", len(chunks))
        return len(chunks)

    def delete_document(self, document_id: str) -> int:
        """Remove a document and all of its chunks."""
        with self._lock:
            chunk_ids = self._by_document.pop(document_id, [])
            company_id = self._document_company.pop(document_id, None)
            for chunk_id in chunk_ids:
                self._entries.pop(chunk_id, None)
            if company_id is not None:
                removed = set(chunk_ids)
                self._by_company[company_id] = [
                    chunk_id for chunk_id in self._by_company[company_id] if chunk_id not in removed
                ]
        if chunk_ids:
            logger.info("Deleted %d chunk(s) of document %s", len(chunk_ids), document_id)
        return len(chunk_ids)

    def count(self, scope: Scope | None = None) -> int:
        with self._lock:
            if scope is None:
                return len(self._entries)
            return len(self._chunk_ids_for(scope))

    def get(self, chunk_id: str) -> Chunk | None:
        entry = self._entries.get(chunk_id)
        return entry[1] if entry else None
