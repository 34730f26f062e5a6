"""Embedding provider exceptions.

These are absorbed by the embedding cache: a failed embedding degrades
the dense leg of a search instead of aborting it.
"""

from .base import DocRetrievalError


class EmbeddingError(DocRetrievalError):
    """Failed to generate embeddings."""

    error_code = "DR_EMB_001"


class EmbeddingAPIError(EmbeddingError):
    """Embedding API returned an error."""

    error_code = "DR_EMB_002"


class EmbeddingRateLimitError(EmbeddingError):
    """Embedding API rate limit exceeded."""

    error_code = "DR_EMB_003"


class EmbeddingDimensionError(EmbeddingError):
    """Provider returned a vector of the wrong dimension."""

    error_code = "DR_EMB_004"
