"""Exception hierarchy for the retrieval core.

Each exception includes an error code, the location it was raised from,
optional cause chaining, and a JSON form for structured logging.

    from docretrieval.core.domain.exceptions import StoreUnavailableError
"""

# Base classes
from .base import DocRetrievalError, ExceptionContext

# Chunk store exceptions
from .chunk_store import (
    ChunkStoreError,
    ChunkValidationError,
    StoreUnavailableError,
)

# Configuration exceptions
from .configuration import (
    ConfigurationError,
    InvalidConfigurationError,
    MissingAPIKeyError,
)

# Embedding exceptions
from .embedding import (
    EmbeddingAPIError,
    EmbeddingDimensionError,
    EmbeddingError,
    EmbeddingRateLimitError,
)

# Validation exceptions
from .validation import (
    EmptyQueryError,
    InvalidScopeError,
    InvalidSearchOptionsError,
    QueryTooLongError,
    ValidationError,
)

__all__ = [
    # Base
    "ExceptionContext",
    "DocRetrievalError",
    # Configuration
    "ConfigurationError",
    "MissingAPIKeyError",
    "InvalidConfigurationError",
    # Chunk store
    "ChunkStoreError",
    "StoreUnavailableError",
    "ChunkValidationError",
    # Embedding
    "EmbeddingError",
    "EmbeddingAPIError",
    "EmbeddingRateLimitError",
    "EmbeddingDimensionError",
    # Validation
    "ValidationError",
    "EmptyQueryError",
    "QueryTooLongError",
    "InvalidScopeError",
    "InvalidSearchOptionsError",
]
