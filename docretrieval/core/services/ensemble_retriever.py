"""Ensemble retrieval: sparse + dense search fused into one ranking."""

import logging
import time
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from ..domain import (
    CompanyScope,
    DocumentScope,
    MultiDocumentScope,
    Scope,
    SearchOptions,
    SearchResult,
)
from ..domain.exceptions import EmptyQueryError, QueryTooLongError
from ..domain.utils import normalize_text
from .dense_retriever import DenseRetriever
from .embedding_cache import CacheStats
from .fusion import fuse
from .scope_resolver import ScopeResolver
from .sparse_retriever import SparseRetriever

logger = logging.getLogger(__name__)

DEFAULT_MAX_QUERY_LENGTH = 2000


class EnsembleRetriever:
    """Runs lexical and vector retrieval for a scope and fuses the results.

    The two retrievers only read the chunk store and the embedding cache,
    so they run concurrently on a small thread pool. A failure to embed
    the query empties the dense leg; a chunk store failure aborts the
    search with ``StoreUnavailableError``.
    """

    def __init__(
        self,
        sparse: SparseRetriever,
        dense: DenseRetriever,
        resolver: ScopeResolver | None = None,
        default_options: SearchOptions | None = None,
        max_query_length: int = DEFAULT_MAX_QUERY_LENGTH,
        max_workers: int = 2,
    ) -> None:
        """Initialize the ensemble.

        Args:
            sparse: Lexical retriever.
            dense: Vector-similarity retriever.
            resolver: Scope resolver; a fresh one is created if omitted.
            default_options: Options used when a call passes none.
            max_query_length: Longest accepted query, in characters.
            max_workers: Threads used to run the two retrievers.
        """
        self.sparse = sparse
        self.dense = dense
        self.resolver = resolver or ScopeResolver()
        self.default_options = default_options or SearchOptions()
        self.max_query_length = max_query_length
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="ensemble-retriever"
        )

    def _validate_query(self, query: str) -> str:
        cleaned = normalize_text(query or "")
        if not cleaned:
            raise EmptyQueryError("Query must not be empty")
        if len(cleaned) > self.max_query_length:
            raise QueryTooLongError(
                f"Query exceeds {self.max_query_length} characters",
                context={"length": len(cleaned), "max_length": self.max_query_length},
            )
        return cleaned

    def search(
        self,
        query: str,
        scope: Scope,
        options: SearchOptions | None = None,
    ) -> list[SearchResult]:
        """Search ``scope`` for passages relevant to ``query``.

        Args:
            query: Natural-language question.
            scope: Document, company or multi-document boundary.
            options: Limits and weights; defaults apply when omitted.

        Returns:
            At most ``options.limit`` results ordered by fused score,
            one per chunk. An empty scope yields an empty list.

        Raises:
            ValidationError: If the query or scope is invalid.
            StoreUnavailableError: If the chunk store cannot be queried.
        """
        options = options or self.default_options
        cleaned = self._validate_query(query)
        self.resolver.validate(scope)

        if isinstance(scope, MultiDocumentScope) and not scope.document_ids:
            logger.debug("Empty document set, skipping retrieval")
            return []

        started = time.perf_counter()
        sparse_future = self._executor.submit(
            self.sparse.search, cleaned, scope, options.per_retriever_limit
        )
        dense_future = self._executor.submit(
            self.dense.search, cleaned, scope, options.per_retriever_limit
        )
        sparse_candidates = self.resolver.post_filter(scope, sparse_future.result())
        dense_candidates = self.resolver.post_filter(scope, dense_future.result())

        fused = fuse(sparse_candidates, dense_candidates, options)
        results = [candidate.to_search_result() for candidate in fused[: options.limit]]

        logger.info(
            "Ensemble search %s: sparse=%d dense=%d fused=%d returned=%d in %.1fms",
            self.resolver.describe(scope),
            len(sparse_candidates),
            len(dense_candidates),
            len(fused),
            len(results),
            (time.perf_counter() - started) * 1000,
        )
        return results

    def document_search(
        self, query: str, document_id: str, options: SearchOptions | None = None
    ) -> list[SearchResult]:
        """Search a single document."""
        return self.search(query, DocumentScope(document_id), options)

    def company_search(
        self, query: str, company_id: str, options: SearchOptions | None = None
    ) -> list[SearchResult]:
        """Search every document of a company."""
        return self.search(query, CompanyScope(company_id), options)

    def multi_search(
        self,
        query: str,
        document_ids: Iterable[str],
        options: SearchOptions | None = None,
    ) -> list[SearchResult]:
        """Search an explicit set of documents already verified to share a company."""
        return self.search(query, MultiDocumentScope.of(document_ids), options)

    def for_scope(self, scope: Scope, options: SearchOptions | None = None) -> "ScopedRetriever":
        """Bind this retriever to one scope."""
        return ScopedRetriever(self, self.resolver.validate(scope), options)

    def clear_embedding_cache(self) -> None:
        """Drop every cached embedding. Operational and test use only."""
        self.dense.cache.clear()

    def embedding_cache_stats(self) -> CacheStats:
        """Snapshot of the embedding cache. Operational and test use only."""
        return self.dense.cache.stats()

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "EnsembleRetriever":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


@dataclass(frozen=True)
class ScopedRetriever:
    """An ensemble retriever pre-configured for one scope."""

    retriever: EnsembleRetriever
    scope: Scope
    options: SearchOptions | None = None

    def invoke(self, query: str) -> list[SearchResult]:
        return self.retriever.search(query, self.scope, self.options)
