"""Unit tests for the operator CLI, run against an in-memory corpus."""

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from docretrieval.adapters.inbound.cli import commands
from docretrieval.adapters.inbound.cli.commands import app, load_corpus
from docretrieval.core.domain.exceptions import ChunkValidationError
from docretrieval.core.services import EmbeddingCache, EnsembleRetriever

pytestmark = pytest.mark.unit

runner = CliRunner()


@pytest.fixture
def cache(fake_provider):
    cache = EmbeddingCache(fake_provider)
    with (
        patch.object(commands, "get_embedding_cache", return_value=cache),
        patch.object(commands, "setup_logging"),
    ):
        yield cache


class TestLoadCorpus:
    def test_loads_records(self, corpus_file):
        chunks = load_corpus(corpus_file)

        assert len(chunks) == 8
        assert chunks[0].chunk_id == "a1-1"
        assert chunks[0].company_id == "acme"
        assert chunks[0].embedding is None

    def test_invalid_line(self, tmp_path):
        path = tmp_path / "bad.jsonl"
        path.write_text('{"chunk_id": "x"}\n', encoding="utf-8")

        with pytest.raises(ChunkValidationError) as exc_info:
            load_corpus(path)

        assert exc_info.value.extra_context["line"] == 1


class TestSearchCommand:
    def test_company_search(self, cache, corpus_file):
        result = runner.invoke(
            app,
            [
                "search",
                "cloud revenue",
                "--company",
                "acme",
                "--corpus",
                str(corpus_file),
                "--as-prompt",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "[1] [Source: doc-a" in result.output
        assert "doc-g1" not in result.output

    def test_document_search_table(self, cache, corpus_file):
        result = runner.invoke(
            app, ["search", "board buyback", "--document", "doc-a2", "--corpus", str(corpus_file)]
        )

        assert result.exit_code == 0, result.output
        assert "doc-a2" in result.output
        assert "doc-a1" not in result.output

    def test_corpus_embeddings_go_through_cache(self, cache, corpus_file, fake_provider):
        runner.invoke(
            app, ["search", "revenue", "--company", "acme", "--corpus", str(corpus_file)]
        )

        assert len(fake_provider.batch_calls) == 1
        assert len(fake_provider.batch_calls[0]) == 8

    @pytest.mark.parametrize("query,exit_code", [("revenue", 0), ("   ", 2)])
    def test_corpus_retriever_is_closed(self, cache, corpus_file, query, exit_code):
        with patch.object(
            EnsembleRetriever, "close", autospec=True, side_effect=EnsembleRetriever.close
        ) as close:
            result = runner.invoke(
                app, ["search", query, "--company", "acme", "--corpus", str(corpus_file)]
            )

        assert result.exit_code == exit_code, result.output
        close.assert_called_once()

    def test_requires_exactly_one_scope(self, cache, corpus_file):
        result = runner.invoke(app, ["search", "revenue", "--corpus", str(corpus_file)])

        assert result.exit_code == 2

    def test_empty_query_exit_code(self, cache, corpus_file):
        result = runner.invoke(
            app, ["search", "   ", "--company", "acme", "--corpus", str(corpus_file)]
        )

        assert result.exit_code == 2
        assert "DR_VAL_002" in result.output

    def test_bad_corpus_exit_code(self, cache, tmp_path):
        path = tmp_path / "bad.jsonl"
        path.write_text("not json\n", encoding="utf-8")

        result = runner.invoke(
            app, ["search", "revenue", "--company", "acme", "--corpus", str(path)]
        )

        assert result.exit_code == 1
        assert "DR_STO_003" in result.output


class TestMultiSearchCommand:
    def test_multi_search(self, cache, corpus_file):
        result = runner.invoke(
            app,
            [
                "multi-search",
                "cloud revenue",
                "--document",
                "doc-a1",
                "--document",
                "doc-a2",
                "--corpus",
                str(corpus_file),
                "--as-prompt",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "doc-g1" not in result.output


class TestCacheStatsCommand:
    def test_cache_stats(self, cache, fake_provider):
        result = runner.invoke(app, ["cache-stats", "a", "b", "a"])

        assert result.exit_code == 0, result.output
        assert fake_provider.batch_calls == [["a", "b"]]
        stats = cache.stats()
        assert stats.size == 2
        assert stats.hits == 2
        assert "Embedding cache" in result.output

    def test_reports_failures(self, cache, fake_provider):
        fake_provider.fail_all = True

        result = runner.invoke(app, ["cache-stats", "a"])

        assert result.exit_code == 0
        assert "could not be embedded" in result.output
