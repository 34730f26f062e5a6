"""Composition root wiring adapters to the retrieval services."""

from __future__ import annotations

import logging
from functools import lru_cache

from ..adapters.outbound.chunk_store import InMemoryChunkStore, QdrantChunkStore
from ..adapters.outbound.embedding import (
    GeminiEmbeddingProvider,
    SentenceTransformerEmbeddingProvider,
)
from ..common.rate_limiter import RateLimiter
from ..config import settings
from ..core.domain.exceptions import InvalidConfigurationError, MissingAPIKeyError
from ..core.ports import ChunkStorePort, EmbeddingPort
from ..core.services import (
    DenseRetriever,
    EmbeddingCache,
    EnsembleRetriever,
    SparseRetriever,
    eviction_policy_for,
)

logger = logging.getLogger(__name__)


@lru_cache
def get_embedding_provider() -> EmbeddingPort:
    if settings.embedding_provider == "local":
        logger.info("Initializing SentenceTransformerEmbeddingProvider...")
        return SentenceTransformerEmbeddingProvider(model_name=settings.local_embedding_model)

    if not settings.google_api_key:
        raise MissingAPIKeyError(
            "GOOGLE_API_KEY is not set",
            context={"embedding_provider": settings.embedding_provider},
        )
    logger.info("Initializing GeminiEmbeddingProvider...")
    return GeminiEmbeddingProvider(
        api_key=settings.google_api_key,
        model_name=settings.embedding_model,
        dimension=settings.embedding_dimension,
        rate_limiter=RateLimiter(settings.embedding_requests_per_minute),
    )


@lru_cache
def get_embedding_cache() -> EmbeddingCache:
    eviction = eviction_policy_for(settings.embedding_cache_max_entries)
    logger.info(f"Initializing EmbeddingCache (policy={eviction.name})...")
    return EmbeddingCache(get_embedding_provider(), eviction)


@lru_cache
def get_chunk_store() -> ChunkStorePort:
    if settings.chunk_store == "memory":
        logger.info("Initializing InMemoryChunkStore...")
        return InMemoryChunkStore()

    if not settings.qdrant_url:
        raise InvalidConfigurationError(
            "QDRANT_URL is required when CHUNK_STORE=qdrant",
            context={"chunk_store": settings.chunk_store},
        )
    logger.info("Initializing QdrantChunkStore...")
    return QdrantChunkStore(
        url=settings.qdrant_url,
        api_key=settings.qdrant_api_key,
        collection_name=settings.qdrant_collection,
        dimension=settings.embedding_dimension,
    )


def build_ensemble_retriever(store: ChunkStorePort, cache: EmbeddingCache) -> EnsembleRetriever:
    """Assemble an ensemble retriever over explicit dependencies."""
    return EnsembleRetriever(
        SparseRetriever(store),
        DenseRetriever(store, cache),
        default_options=settings.default_search_options(),
        max_query_length=settings.max_query_length,
    )


@lru_cache
def get_ensemble_retriever() -> EnsembleRetriever:
    logger.info("Initializing EnsembleRetriever...")
    return build_ensemble_retriever(get_chunk_store(), get_embedding_cache())
