"""Unit tests for prompt formatting and text helpers."""

import pytest

from docretrieval.core.domain import MatchedBy, SearchResult
from docretrieval.core.domain.utils import normalize_text, tokenize
from docretrieval.core.services.formatting import NO_RESULTS_MESSAGE, format_results_for_prompt

pytestmark = pytest.mark.unit


def _result(chunk_id, document_id, text, page_number=None):
    return SearchResult(
        chunk_id=chunk_id,
        document_id=document_id,
        text=text,
        page_number=page_number,
        fused_score=1.0,
        matched_by=MatchedBy.BOTH,
    )


class TestFormatResultsForPrompt:
    def test_no_results(self):
        assert format_results_for_prompt([]) == NO_RESULTS_MESSAGE

    def test_numbered_source_blocks(self):
        text = format_results_for_prompt(
            [
                _result("a1-1", "doc-a1", "Revenue grew.", page_number=4),
                _result("a2-1", "doc-a2", "Costs fell."),
            ],
            titles={"doc-a1": "Annual Report 2024"},
        )

        assert text == (
            "[1] [Source: Annual Report 2024, page 4]\nRevenue grew.\n\n"
            "[2] [Source: doc-a2]\nCosts fell."
        )

    def test_text_is_normalized(self):
        text = format_results_for_prompt([_result("c", "d", "\ufeffRevenue\n\n  grew.")])

        assert text.endswith("\nRevenue grew.")

    def test_stops_after_max_chars(self):
        results = [_result(f"c{i}", "d", "x" * 50) for i in range(5)]

        text = format_results_for_prompt(results, max_chars=60)

        assert text.count("[Source: d]") == 1

    def test_passage_text_never_exceeds_max_chars(self):
        results = [_result(f"c{i}", "d", "y" * 30) for i in range(4)]

        text = format_results_for_prompt(results, max_chars=90)

        assert text.count("[Source: d]") == 3
        assert text.count("y") == 90

    def test_oversized_top_passage_is_truncated(self):
        text = format_results_for_prompt([_result("c", "d", "z" * 500)], max_chars=100)

        assert text == "[1] [Source: d]\n" + "z" * 100


class TestTextHelpers:
    def test_normalize_text(self):
        assert normalize_text("\ufeff  Net income\t rose ") == "Net income rose"
        assert normalize_text("") == ""

    def test_tokenize(self):
        tokens = tokenize("Q3 revenue: up 5 % in a year!")

        assert tokens == ["q3", "revenue", "up", "5", "in", "year"]
        assert tokenize("") == []
