"""Scope validation, membership and post-filtering."""

import logging
from typing import Any

from ..domain import (
    Chunk,
    CompanyScope,
    DocumentScope,
    MultiDocumentScope,
    RetrievalCandidate,
    Scope,
)
from ..domain.exceptions import InvalidScopeError

logger = logging.getLogger(__name__)


class ScopeResolver:
    """Turns a scope value into query boundaries and enforces them.

    Stores apply the scope when they build their query. The resolver
    validates scopes before any query is issued and re-checks fused
    candidates so that nothing outside the scope reaches the caller, even
    if a store returns more than it was asked for.
    """

    def validate(self, scope: Scope) -> Scope:
        """Check a scope is well formed.

        An empty ``MultiDocumentScope`` is valid and matches nothing.

        Raises:
            InvalidScopeError: On a blank id or an unknown scope kind.
        """
        if isinstance(scope, DocumentScope):
            if not scope.document_id or not scope.document_id.strip():
                raise InvalidScopeError("DocumentScope requires a document id")
        elif isinstance(scope, CompanyScope):
            if not scope.company_id or not scope.company_id.strip():
                raise InvalidScopeError("CompanyScope requires a company id")
        elif isinstance(scope, MultiDocumentScope):
            if any(not doc_id or not doc_id.strip() for doc_id in scope.document_ids):
                raise InvalidScopeError(
                    "MultiDocumentScope contains a blank document id",
                    context={"document_ids": sorted(scope.document_ids)},
                )
        else:
            raise InvalidScopeError(
                f"Unsupported scope type: {type(scope).__name__}",
                context={"scope": repr(scope)},
            )
        return scope

    def admits(self, scope: Scope, chunk: Chunk) -> bool:
        """Return True if ``chunk`` lies inside ``scope``."""
        return scope_admits(scope, chunk)

    def post_filter(
        self, scope: Scope, candidates: list[RetrievalCandidate]
    ) -> list[RetrievalCandidate]:
        """Drop candidates whose chunk lies outside ``scope``."""
        kept = [c for c in candidates if scope_admits(scope, c.chunk)]
        dropped = len(candidates) - len(kept)
        if dropped:
            logger.warning(
                "Dropped %d out-of-scope chunk(s) returned by the store for %s",
                dropped,
                self.describe(scope),
            )
        return kept

    def describe(self, scope: Scope) -> dict[str, Any]:
        """Log-friendly summary of a scope."""
        if isinstance(scope, DocumentScope):
            return {"kind": "document", "document_id": scope.document_id}
        if isinstance(scope, CompanyScope):
            return {"kind": "company", "company_id": scope.company_id}
        if isinstance(scope, MultiDocumentScope):
            return {"kind": "multi_document", "document_count": len(scope.document_ids)}
        raise InvalidScopeError(f"Unsupported scope type: {type(scope).__name__}")


def scope_admits(scope: Scope, chunk: Chunk) -> bool:
    """Membership predicate shared by the resolver and in-process stores."""
    if isinstance(scope, DocumentScope):
        return chunk.document_id == scope.document_id
    if isinstance(scope, CompanyScope):
        return chunk.company_id == scope.company_id
    if isinstance(scope, MultiDocumentScope):
        return chunk.document_id in scope.document_ids
    raise InvalidScopeError(f"Unsupported scope type: {type(scope).__name__}")
