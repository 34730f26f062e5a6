"""Domain models for the retrieval core.

- chunk: Chunk and ScoredChunk records from the chunk store
- scope: DocumentScope, CompanyScope and MultiDocumentScope
- search: SearchOptions, RetrievalCandidate and SearchResult

All models are re-exported here:

    from docretrieval.core.domain import Chunk, CompanyScope, SearchResult
"""

from .chunk import Chunk, ScoredChunk
from .scope import CompanyScope, DocumentScope, MultiDocumentScope, Scope
from .search import (
    MatchedBy,
    RetrievalCandidate,
    RetrieverSource,
    SearchOptions,
    SearchResult,
)

__all__ = [
    # Chunk models
    "Chunk",
    "ScoredChunk",
    # Scopes
    "Scope",
    "DocumentScope",
    "CompanyScope",
    "MultiDocumentScope",
    # Search models
    "MatchedBy",
    "RetrieverSource",
    "RetrievalCandidate",
    "SearchOptions",
    "SearchResult",
]
