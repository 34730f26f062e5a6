"""Chunk store exceptions."""

from .base import DocRetrievalError


class ChunkStoreError(DocRetrievalError):
    """Base error for chunk store operations."""

    error_code = "DR_STO_001"


class StoreUnavailableError(ChunkStoreError):
    """Chunk store could not be reached or failed to answer a query.

    Fatal for the enclosing search: retrieval cannot proceed without
    its data source, so this is surfaced to the caller unchanged.

    Common causes:
    - Invalid URL or API key
    - Network connectivity issues
    - Collection missing or payload indexes not created
    """

    error_code = "DR_STO_002"


class ChunkValidationError(ChunkStoreError):
    """A chunk violates a store invariant (e.g. document moved companies)."""

    error_code = "DR_STO_003"
