"""Fusion of sparse and dense candidate lists into one ranking.

Lexical (BM25) scores and cosine similarities live on unrelated scales,
so each retriever's scores are min-max normalized to [0, 1] over its own
result set before they are combined:

    fused = sparse_weight * sparse_norm + dense_weight * dense_norm

A retriever that did not return a chunk contributes 0 for it. Ranking is
by fused score, then chunks found by both retrievers, then insertion
order.
"""

from dataclasses import dataclass

from ..domain import (
    Chunk,
    MatchedBy,
    RetrievalCandidate,
    SearchOptions,
    SearchResult,
)


@dataclass
class FusedCandidate:
    """A chunk with its per-retriever normalized scores and fused score."""

    chunk: Chunk
    sequence: int
    sparse_score: float | None = None
    dense_score: float | None = None
    fused_score: float = 0.0

    @property
    def matched_by(self) -> MatchedBy:
        if self.sparse_score is not None and self.dense_score is not None:
            return MatchedBy.BOTH
        if self.sparse_score is not None:
            return MatchedBy.SPARSE
        return MatchedBy.DENSE

    def sort_key(self) -> tuple[float, int, int]:
        return (-self.fused_score, 0 if self.matched_by is MatchedBy.BOTH else 1, self.sequence)

    def to_search_result(self) -> SearchResult:
        return SearchResult(
            chunk_id=self.chunk.chunk_id,
            document_id=self.chunk.document_id,
            text=self.chunk.text,
            page_number=self.chunk.page_number,
            fused_score=self.fused_score,
            matched_by=self.matched_by,
            company_id=self.chunk.company_id,
            sparse_score=self.sparse_score,
            dense_score=self.dense_score,
        )


def normalize_scores(
    candidates: list[RetrievalCandidate], single_candidate_score: float = 1.0
) -> dict[str, float]:
    """Min-max normalize raw scores to [0, 1], keyed by chunk id.

    With fewer than two distinct scores there is no range to scale, so
    every candidate gets ``single_candidate_score``.

    Args:
        candidates: One retriever's candidates for one query.
        single_candidate_score: Score used when the set has no spread.

    Returns:
        Mapping of chunk id to normalized score. A chunk listed twice keeps
        its best score.
    """
    if not candidates:
        return {}

    best: dict[str, float] = {}
    for candidate in candidates:
        current = best.get(candidate.chunk_id)
        if current is None or candidate.raw_score > current:
            best[candidate.chunk_id] = candidate.raw_score

    low = min(best.values())
    high = max(best.values())
    if high == low:
        return {chunk_id: single_candidate_score for chunk_id in best}

    span = high - low
    return {chunk_id: (score - low) / span for chunk_id, score in best.items()}


def fuse(
    sparse: list[RetrievalCandidate],
    dense: list[RetrievalCandidate],
    options: SearchOptions,
) -> list[FusedCandidate]:
    """Merge two candidate lists into one deduplicated, ranked list.

    Args:
        sparse: Candidates from the lexical retriever.
        dense: Candidates from the similarity retriever.
        options: Weights and the degenerate-normalization score.

    Returns:
        All distinct chunks, best first. Callers truncate to their limit.
    """
    sparse_norm = normalize_scores(sparse, options.single_candidate_score)
    dense_norm = normalize_scores(dense, options.single_candidate_score)

    merged: dict[str, FusedCandidate] = {}
    for candidate in [*sparse, *dense]:
        if candidate.chunk_id not in merged:
            merged[candidate.chunk_id] = FusedCandidate(
                chunk=candidate.chunk, sequence=candidate.sequence
            )

    for chunk_id, fused in merged.items():
        fused.sparse_score = sparse_norm.get(chunk_id)
        fused.dense_score = dense_norm.get(chunk_id)
        fused.fused_score = options.sparse_weight * (
            fused.sparse_score or 0.0
        ) + options.dense_weight * (fused.dense_score or 0.0)

    return sorted(merged.values(), key=FusedCandidate.sort_key)
