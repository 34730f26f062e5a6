"""Vector-similarity retrieval over the chunk store."""

import logging

from ..domain import RetrievalCandidate, RetrieverSource, Scope
from ..ports.chunk_store_port import ChunkStorePort
from .embedding_cache import EmbeddingCache
from .sparse_retriever import to_candidates

logger = logging.getLogger(__name__)


class DenseRetriever:
    """Cosine-similarity search using cached query embeddings."""

    def __init__(self, store: ChunkStorePort, cache: EmbeddingCache) -> None:
        """Initialize the retriever.

        Args:
            store: Chunk store answering similarity queries.
            cache: Embedding cache used to vectorize queries.
        """
        self.store = store
        self.cache = cache

    def search(self, query: str, scope: Scope, limit: int) -> list[RetrievalCandidate]:
        """Return up to ``limit`` candidates by descending similarity.

        If the query cannot be embedded the result is empty and the store
        is not queried.
        """
        vector = self.cache.get(query)
        if not vector:
            logger.warning("Query embedding unavailable, dense retrieval skipped")
            return []

        hits = self.store.similarity_search(vector, scope, limit)
        candidates = to_candidates(hits, RetrieverSource.DENSE, limit)
        logger.debug("Dense retriever returned %d candidate(s)", len(candidates))
        return candidates
