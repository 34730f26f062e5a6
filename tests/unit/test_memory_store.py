"""Unit tests for the in-memory chunk store."""

import pytest

from docretrieval.adapters.outbound.chunk_store import InMemoryChunkStore
from docretrieval.core.domain import Chunk, CompanyScope, DocumentScope, MultiDocumentScope
from docretrieval.core.domain.exceptions import ChunkValidationError

pytestmark = pytest.mark.unit


@pytest.fixture
def store(sample_chunks):
    return InMemoryChunkStore(sample_chunks)


class TestSimilaritySearch:
    """Tests for cosine similarity queries."""

    def test_orders_by_similarity(self, store):
        hits = store.similarity_search([1.0, 0.0, 0.0, 0.0], CompanyScope("acme"), 2)

        assert [hit.chunk.chunk_id for hit in hits] == ["a1-1", "a2-2"]
        assert hits[0].score == pytest.approx(1.0)

    def test_respects_scope(self, store):
        hits = store.similarity_search([1.0, 0.0, 0.0, 0.0], CompanyScope("globex"), 10)

        assert {hit.chunk.company_id for hit in hits} == {"globex"}

    def test_ties_broken_by_insertion_order(self):
        store = InMemoryChunkStore(
            [
                Chunk("first", "d", "c", "one", embedding=(0.0, 1.0)),
                Chunk("second", "d", "c", "two", embedding=(0.0, 1.0)),
            ]
        )

        hits = store.similarity_search([0.0, 2.0], DocumentScope("d"), 5)

        assert [hit.chunk.chunk_id for hit in hits] == ["first", "second"]

    def test_skips_chunks_without_matching_embedding(self):
        store = InMemoryChunkStore(
            [
                Chunk("none", "d", "c", "no vector"),
                Chunk("short", "d", "c", "wrong size", embedding=(1.0,)),
                Chunk("ok", "d", "c", "right size", embedding=(1.0, 0.0)),
            ]
        )

        hits = store.similarity_search([1.0, 0.0], DocumentScope("d"), 5)

        assert [hit.chunk.chunk_id for hit in hits] == ["ok"]

    def test_zero_vector_returns_nothing(self, store):
        assert store.similarity_search([0.0, 0.0, 0.0, 0.0], CompanyScope("acme"), 5) == []


class TestLexicalSearch:
    """Tests for BM25 keyword queries."""

    def test_only_chunks_sharing_a_token(self, store):
        hits = store.lexical_search("cloud subscriptions", CompanyScope("acme"), 10)

        assert {hit.chunk.chunk_id for hit in hits} == {"a1-1", "a2-2"}

    def test_shorter_chunk_scores_higher(self, store):
        hits = store.lexical_search("cloud revenue", CompanyScope("acme"), 10)

        assert [hit.chunk.chunk_id for hit in hits] == ["a2-2", "a1-1"]
        assert hits[0].score > hits[1].score

    def test_term_in_every_chunk_of_document(self):
        lease = InMemoryChunkStore(
            [
                Chunk("c1", "lease", "acme", "Rent is due; rent rises yearly; late rent; rent."),
                Chunk("c2", "lease", "acme", "Rent is payable to the landlord."),
                Chunk("c3", "lease", "acme", "The tenant pays rent by transfer."),
            ]
        )

        hits = lease.lexical_search("rent", DocumentScope("lease"), 10)

        assert hits[0].chunk.chunk_id == "c1"
        assert all(hit.score > 0 for hit in hits)

    def test_single_chunk_scope_scores_positive(self):
        lease = InMemoryChunkStore([Chunk("c1", "lease", "acme", "Monthly rent")])

        hits = lease.lexical_search("rent", DocumentScope("lease"), 10)

        assert [hit.chunk.chunk_id for hit in hits] == ["c1"]
        assert hits[0].score > 0

    def test_case_insensitive(self, store):
        hits = store.lexical_search("BUYBACK", DocumentScope("doc-a2"), 10)

        assert [hit.chunk.chunk_id for hit in hits] == ["a2-1"]

    def test_no_overlap_returns_nothing(self, store):
        assert store.lexical_search("zeppelin", CompanyScope("acme"), 10) == []

    def test_multi_document_scope(self, store):
        hits = store.lexical_search("revenue", MultiDocumentScope.of(["doc-a1", "doc-g1"]), 10)

        assert {hit.chunk.chunk_id for hit in hits} == {"a1-1", "g1-1", "g1-2"}

    def test_limit(self, store):
        assert len(store.lexical_search("revenue", CompanyScope("globex"), 1)) == 1


class TestWrites:
    """Tests for adding and deleting chunks."""

    def test_count(self, store):
        assert store.count() == 8
        assert store.count(CompanyScope("acme")) == 6
        assert store.count(DocumentScope("doc-g1")) == 2
        assert store.count(MultiDocumentScope.of([])) == 0

    def test_duplicate_chunk_id_rejected(self, store, sample_chunks):
        with pytest.raises(ChunkValidationError):
            store.add_chunks([sample_chunks[0]])

        assert store.count() == 8

    def test_document_cannot_change_company(self, store):
        intruder = Chunk("x-1", "doc-a1", "globex", "Borrowed text")

        with pytest.raises(ChunkValidationError):
            store.add_chunks([intruder])

        assert store.get("x-1") is None

    def test_invalid_batch_is_rejected_whole(self):
        store = InMemoryChunkStore()
        batch = [
            Chunk("n-1", "doc-n", "acme", "valid"),
            Chunk("n-1", "doc-n", "acme", "duplicate in batch"),
        ]

        with pytest.raises(ChunkValidationError):
            store.add_chunks(batch)

        assert store.count() == 0

    def test_delete_document(self, store):
        assert store.delete_document("doc-a1") == 3
        assert store.count(CompanyScope("acme")) == 3
        assert store.lexical_search("quarterly", CompanyScope("acme"), 5) == []
        assert store.delete_document("doc-a1") == 0

    def test_document_can_be_reassigned_after_delete(self, store):
        store.delete_document("doc-g1")
        store.add_chunks([Chunk("g1-9", "doc-g1", "acme", "Re-filed under acme")])

        assert store.count(CompanyScope("acme")) == 7
