"""Retrieval services: embedding cache, retrievers, fusion and scopes."""

from .dense_retriever import DenseRetriever
from .embedding_cache import (
    CacheStats,
    EmbeddingCache,
    EvictionPolicy,
    LRUPolicy,
    UnboundedPolicy,
    eviction_policy_for,
)
from .ensemble_retriever import EnsembleRetriever, ScopedRetriever
from .formatting import format_results_for_prompt
from .fusion import FusedCandidate, fuse, normalize_scores
from .scope_resolver import ScopeResolver, scope_admits
from .sparse_retriever import SparseRetriever

__all__ = [
    "CacheStats",
    "DenseRetriever",
    "EmbeddingCache",
    "EnsembleRetriever",
    "EvictionPolicy",
    "FusedCandidate",
    "LRUPolicy",
    "ScopeResolver",
    "ScopedRetriever",
    "SparseRetriever",
    "UnboundedPolicy",
    "eviction_policy_for",
    "format_results_for_prompt",
    "fuse",
    "normalize_scores",
    "scope_admits",
]
