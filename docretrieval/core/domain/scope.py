"""Search scopes.

A scope is the authorization boundary a search is restricted to. It is
one of exactly three cases; code that turns a scope into a store query
must handle all three and reject anything else.
"""

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class DocumentScope:
    """Restrict a search to the chunks of one document."""

    document_id: str


@dataclass(frozen=True)
class CompanyScope:
    """Restrict a search to every chunk owned by one company."""

    company_id: str


@dataclass(frozen=True)
class MultiDocumentScope:
    """Restrict a search to an explicit set of documents.

    The caller must have verified that all documents belong to the same
    company; the retrieval core does not re-check this.
    """

    document_ids: frozenset[str]

    @classmethod
    def of(cls, document_ids: Iterable[str]) -> "MultiDocumentScope":
        return cls(frozenset(document_ids))


Scope = DocumentScope | CompanyScope | MultiDocumentScope
