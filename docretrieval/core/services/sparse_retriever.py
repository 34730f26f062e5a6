"""Lexical (keyword) retrieval over the chunk store."""

import logging

from ..domain import RetrievalCandidate, RetrieverSource, Scope, ScoredChunk
from ..ports.chunk_store_port import ChunkStorePort

logger = logging.getLogger(__name__)


def to_candidates(
    hits: list[ScoredChunk], source: RetrieverSource, limit: int
) -> list[RetrievalCandidate]:
    """Order store hits by score then insertion order and keep ``limit``."""
    ordered = sorted(hits, key=lambda hit: (-hit.score, hit.sequence))
    return [
        RetrievalCandidate(
            chunk_id=hit.chunk.chunk_id,
            raw_score=hit.score,
            source=source,
            chunk=hit.chunk,
            sequence=hit.sequence,
        )
        for hit in ordered[:limit]
    ]


class SparseRetriever:
    """Keyword matching restricted to a scope."""

    def __init__(self, store: ChunkStorePort) -> None:
        self.store = store

    def search(self, query: str, scope: Scope, limit: int) -> list[RetrievalCandidate]:
        """Return up to ``limit`` lexical candidates for ``query``.

        No matches is an empty list. ``StoreUnavailableError`` propagates.
        """
        hits = self.store.lexical_search(query, scope, limit)
        candidates = to_candidates(hits, RetrieverSource.SPARSE, limit)
        logger.debug("Sparse retriever returned %d candidate(s)", len(candidates))
        return candidates
