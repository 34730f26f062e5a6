"""Search options, intermediate candidates and public search results."""

from dataclasses import dataclass
from enum import Enum

from .chunk import Chunk
from .exceptions import InvalidSearchOptionsError


class RetrieverSource(Enum):
    """Which retriever produced a candidate."""

    SPARSE = "sparse"
    DENSE = "dense"


class MatchedBy(Enum):
    """Provenance of a fused search result."""

    SPARSE = "sparse"
    DENSE = "dense"
    BOTH = "both"


@dataclass(frozen=True)
class SearchOptions:
    """Tuning knobs for one ensemble search.

    Attributes:
        limit: Maximum number of results returned.
        sparse_weight: Weight of the normalized lexical score.
        dense_weight: Weight of the normalized similarity score.
        per_retriever_limit: Candidates requested from each retriever
            before fusion.
        single_candidate_score: Normalized score given when a retriever's
            result set has no spread (one candidate, or all scores equal).

    The weights are used as given; they need not sum to 1.
    """

    limit: int = 10
    sparse_weight: float = 0.5
    dense_weight: float = 0.5
    per_retriever_limit: int = 20
    single_candidate_score: float = 1.0

    def __post_init__(self) -> None:
        if self.limit < 1:
            raise InvalidSearchOptionsError(
                "limit must be at least 1", context={"limit": self.limit}
            )
        if self.per_retriever_limit < 1:
            raise InvalidSearchOptionsError(
                "per_retriever_limit must be at least 1",
                context={"per_retriever_limit": self.per_retriever_limit},
            )
        if self.sparse_weight < 0 or self.dense_weight < 0:
            raise InvalidSearchOptionsError(
                "weights must be non-negative",
                context={"sparse_weight": self.sparse_weight, "dense_weight": self.dense_weight},
            )
        if not 0.0 <= self.single_candidate_score <= 1.0:
            raise InvalidSearchOptionsError(
                "single_candidate_score must be within [0, 1]",
                context={"single_candidate_score": self.single_candidate_score},
            )

    @classmethod
    def from_weights(
        cls, weights: tuple[float, float], limit: int = 10, **kwargs: float
    ) -> "SearchOptions":
        """Build options from a ``(sparse, dense)`` weight pair."""
        sparse_weight, dense_weight = weights
        return cls(limit=limit, sparse_weight=sparse_weight, dense_weight=dense_weight, **kwargs)


@dataclass(frozen=True)
class RetrievalCandidate:
    """A retriever-local result, alive only within one ensemble call."""

    chunk_id: str
    raw_score: float
    source: RetrieverSource
    chunk: Chunk
    sequence: int


@dataclass(frozen=True)
class SearchResult:
    """A fused, ranked passage returned to downstream consumers.

    Attributes:
        chunk_id: Chunk identifier (unique within a result list).
        document_id: Parent document of the chunk.
        text: Passage text.
        page_number: Source page, if known.
        fused_score: Weighted sum of the normalized retriever scores.
        matched_by: Which retrievers returned the chunk.
        company_id: Company owning the parent document.
        sparse_score: Normalized lexical score, None if lexical missed it.
        dense_score: Normalized similarity score, None if dense missed it.
    """

    chunk_id: str
    document_id: str
    text: str
    page_number: int | None
    fused_score: float
    matched_by: MatchedBy
    company_id: str = ""
    sparse_score: float | None = None
    dense_score: float | None = None
