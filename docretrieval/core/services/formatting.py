"""Prompt formatting for retrieved passages."""

from collections.abc import Mapping

from ..domain import SearchResult
from ..domain.utils import normalize_text

NO_RESULTS_MESSAGE = "No relevant passages were found in the selected documents."


def format_results_for_prompt(
    results: list[SearchResult],
    titles: Mapping[str, str] | None = None,
    max_chars: int = 8000,
) -> str:
    """Render search results as numbered, source-tagged prompt blocks.

    Args:
        results: Ranked search results.
        titles: Optional document id to display title mapping.
        max_chars: Budget for passage text, headers excluded. A passage
            that would overrun it ends the output; the top passage is
            truncated to fit instead of being dropped.

    Returns:
        Prompt-ready text, or a fixed message when there are no results.
    """
    if not results:
        return NO_RESULTS_MESSAGE

    titles = titles or {}
    parts: list[str] = []
    char_count = 0

    for index, result in enumerate(results, start=1):
        content = normalize_text(result.text)
        if char_count + len(content) > max_chars:
            if parts:
                break
            content = content[:max_chars]
        title = normalize_text(titles.get(result.document_id) or result.document_id)
        page = f", page {result.page_number}" if result.page_number is not None else ""
        parts.append(f"[{index}] [Source: {title}{page}]\n{content}")
        char_count += len(content)

    return "\n\n".join(parts)
