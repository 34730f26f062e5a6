"""Unit tests for scope validation and post-filtering."""

import logging

import pytest

from docretrieval.core.domain import (
    CompanyScope,
    DocumentScope,
    MultiDocumentScope,
    RetrievalCandidate,
    RetrieverSource,
)
from docretrieval.core.domain.exceptions import InvalidScopeError
from docretrieval.core.services import ScopeResolver

pytestmark = pytest.mark.unit


@pytest.fixture
def resolver():
    return ScopeResolver()


class TestValidate:
    @pytest.mark.parametrize(
        "scope",
        [DocumentScope("doc-a1"), CompanyScope("acme"), MultiDocumentScope.of([])],
    )
    def test_valid_scopes(self, resolver, scope):
        assert resolver.validate(scope) is scope

    @pytest.mark.parametrize(
        "scope",
        [DocumentScope(""), CompanyScope("   "), MultiDocumentScope.of(["doc-a1", ""])],
    )
    def test_blank_ids_rejected(self, resolver, scope):
        with pytest.raises(InvalidScopeError):
            resolver.validate(scope)

    def test_unknown_scope_type_rejected(self, resolver):
        with pytest.raises(InvalidScopeError):
            resolver.validate("acme")


class TestAdmits:
    def test_membership(self, resolver, sample_chunks):
        a1, g1 = sample_chunks[0], sample_chunks[6]

        assert resolver.admits(CompanyScope("acme"), a1)
        assert not resolver.admits(CompanyScope("acme"), g1)
        assert resolver.admits(DocumentScope("doc-g1"), g1)
        assert resolver.admits(MultiDocumentScope.of(["doc-a1", "doc-g1"]), g1)
        assert not resolver.admits(MultiDocumentScope.of([]), a1)


class TestPostFilter:
    def test_drops_and_warns(self, resolver, sample_chunks, caplog):
        candidates = [
            RetrievalCandidate(c.chunk_id, 1.0, RetrieverSource.DENSE, c, i)
            for i, c in enumerate(sample_chunks)
        ]

        with caplog.at_level(logging.WARNING):
            kept = resolver.post_filter(DocumentScope("doc-g1"), candidates)

        assert [c.chunk_id for c in kept] == ["g1-1", "g1-2"]
        assert "Dropped 6 out-of-scope" in caplog.text

    def test_no_warning_when_clean(self, resolver, sample_chunks, caplog):
        candidates = [RetrievalCandidate("a1-1", 1.0, RetrieverSource.SPARSE, sample_chunks[0], 0)]

        with caplog.at_level(logging.WARNING):
            kept = resolver.post_filter(CompanyScope("acme"), candidates)

        assert kept == candidates
        assert caplog.text == ""


class TestDescribe:
    def test_describe(self, resolver):
        assert resolver.describe(CompanyScope("acme")) == {"kind": "company", "company_id": "acme"}
        assert resolver.describe(MultiDocumentScope.of(["a", "b"])) == {
            "kind": "multi_document",
            "document_count": 2,
        }
