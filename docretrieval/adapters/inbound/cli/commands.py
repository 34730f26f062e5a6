"""Operator CLI for the retrieval core."""

import dataclasses
import json
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ....common.exception_handler import format_exception_json, get_exit_code
from ....composition.container import (
    build_ensemble_retriever,
    get_embedding_cache,
    get_ensemble_retriever,
)
from ....config.logging import setup_logging
from ....config.settings import settings
from ....core.domain import Chunk, SearchOptions, SearchResult
from ....core.domain.exceptions import ChunkValidationError
from ....core.services import EnsembleRetriever, format_results_for_prompt
from ....core.services.indexing import embed_missing
from ...outbound.chunk_store import InMemoryChunkStore

app = typer.Typer(
    name="docretrieval",
    help="Scoped hybrid (BM25 + vector) search over company documents",
    add_completion=False,
)

console = Console()

# Determine if we're in debug mode (shows full stack traces)
DEBUG_MODE = os.getenv("DEBUG", "false").lower() == "true"

PREVIEW_CHARS = 120


def handle_cli_error(exc: Exception) -> None:
    """Handle and display errors in CLI with structured format.

    In debug mode, shows full JSON error details.
    In normal mode, shows a user-friendly message with error code.
    """
    error_data = format_exception_json(exc, include_trace=DEBUG_MODE)

    if DEBUG_MODE:
        console.print(
            Panel(
                json.dumps(error_data, indent=2),
                title="[bold red]Error Details[/]",
                border_style="red",
            )
        )
    else:
        error_code = error_data["error"].get("code", "UNKNOWN")
        console.print(f"\n[red]Error [{error_code}]:[/] {error_data['error']['message']}")
        console.print(f"[dim]Type: {error_data['error']['type']}[/]")
        console.print("[dim]Set DEBUG=true for full details[/]")


def load_corpus(path: Path) -> list[Chunk]:
    """Read chunk records from a JSONL file.

    Each line is an object with ``chunk_id``, ``document_id``,
    ``company_id`` and ``text``, plus optional ``page_number`` and
    ``embedding``. Blank lines are skipped.
    """
    chunks: list[Chunk] = []
    with path.open(encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                record = json.loads(line)
                embedding = record.get("embedding")
                chunks.append(
                    Chunk(
                        chunk_id=str(record["chunk_id"]),
                        document_id=str(record["document_id"]),
                        company_id=str(record["company_id"]),
                        text=record["text"],
                        page_number=record.get("page_number"),
                        embedding=tuple(embedding) if embedding else None,
                    )
                )
            except (json.JSONDecodeError, KeyError, TypeError) as e:
                raise ChunkValidationError(
                    f"Invalid chunk record on line {line_number} of {path.name}",
                    cause=e,
                    context={"path": str(path), "line": line_number},
                ) from e
    return chunks


@contextmanager
def retriever_for(corpus: Path | None) -> Iterator[EnsembleRetriever]:
    """Retriever over ``corpus`` loaded in memory, or over the configured store.

    A corpus retriever is closed on exit; the shared configured one is not.
    """
    if corpus is None:
        yield get_ensemble_retriever()
        return

    cache = get_embedding_cache()
    chunks = embed_missing(load_corpus(corpus), cache)
    store = InMemoryChunkStore(chunks)
    console.print(f"[dim]Loaded {store.count()} chunk(s) from {corpus}[/]")
    with build_ensemble_retriever(store, cache) as retriever:
        yield retriever


def build_options(
    limit: int | None, sparse_weight: float | None, dense_weight: float | None
) -> SearchOptions:
    overrides = {
        name: value
        for name, value in (
            ("limit", limit),
            ("sparse_weight", sparse_weight),
            ("dense_weight", dense_weight),
        )
        if value is not None
    }
    return dataclasses.replace(settings.default_search_options(), **overrides)


def render_results(query: str, results: list[SearchResult], as_prompt: bool) -> None:
    if as_prompt:
        console.print(format_results_for_prompt(results), markup=False, highlight=False)
        return

    if not results:
        console.print("[yellow]No results.[/]")
        return

    table = Table(title=f"Results for: {query}")
    table.add_column("#", justify="right")
    table.add_column("Chunk")
    table.add_column("Document")
    table.add_column("Page", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Matched by")
    table.add_column("Text")

    for rank, result in enumerate(results, start=1):
        preview = result.text[:PREVIEW_CHARS] + ("..." if len(result.text) > PREVIEW_CHARS else "")
        table.add_row(
            str(rank),
            result.chunk_id,
            result.document_id,
            str(result.page_number) if result.page_number is not None else "-",
            f"{result.fused_score:.3f}",
            result.matched_by.value,
            escape(preview),
        )
    console.print(table)


@app.callback()
def main() -> None:
    """Configure logging before any command runs."""
    setup_logging(settings.log_level, json_format=settings.log_json)


@app.command()
def search(
    query: str = typer.Argument(..., help="Question to search for"),
    document: str | None = typer.Option(None, "--document", help="Search one document"),
    company: str | None = typer.Option(None, "--company", help="Search a company's documents"),
    limit: int | None = typer.Option(None, help="Maximum number of results"),
    sparse_weight: float | None = typer.Option(None, help="Weight of the keyword score"),
    dense_weight: float | None = typer.Option(None, help="Weight of the vector score"),
    corpus: Path | None = typer.Option(None, exists=True, help="JSONL file of chunks"),
    as_prompt: bool = typer.Option(False, "--as-prompt", help="Print prompt-formatted text"),
) -> None:
    """Search one document or a whole company."""
    if (document is None) == (company is None):
        raise typer.BadParameter("Pass exactly one of --document or --company")

    try:
        options = build_options(limit, sparse_weight, dense_weight)
        with retriever_for(corpus) as retriever:
            if document is not None:
                results = retriever.document_search(query, document, options)
            else:
                results = retriever.company_search(query, company, options)
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(get_exit_code(exc)) from exc

    render_results(query, results, as_prompt)


@app.command("multi-search")
def multi_search(
    query: str = typer.Argument(..., help="Question to search for"),
    documents: list[str] = typer.Option(..., "--document", help="Document id (repeatable)"),
    limit: int | None = typer.Option(None, help="Maximum number of results"),
    sparse_weight: float | None = typer.Option(None, help="Weight of the keyword score"),
    dense_weight: float | None = typer.Option(None, help="Weight of the vector score"),
    corpus: Path | None = typer.Option(None, exists=True, help="JSONL file of chunks"),
    as_prompt: bool = typer.Option(False, "--as-prompt", help="Print prompt-formatted text"),
) -> None:
    """Search an explicit set of documents belonging to one company."""
    try:
        options = build_options(limit, sparse_weight, dense_weight)
        with retriever_for(corpus) as retriever:
            results = retriever.multi_search(query, documents, options)
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(get_exit_code(exc)) from exc

    render_results(query, results, as_prompt)


@app.command("cache-stats")
def cache_stats(
    texts: list[str] = typer.Argument(..., help="Texts to embed"),
) -> None:
    """Embed texts twice through the cache and show its statistics."""
    try:
        cache = get_embedding_cache()
        first = cache.get_batch(texts)
        cache.get_batch(texts)
    except Exception as exc:
        handle_cli_error(exc)
        raise typer.Exit(get_exit_code(exc)) from exc

    failed = sum(1 for vector in first if not vector)
    stats = cache.stats()

    table = Table(title="Embedding cache")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Policy", stats.policy)
    table.add_row("Entries", str(stats.size))
    table.add_row("Hits", str(stats.hits))
    table.add_row("Misses", str(stats.misses))
    table.add_row("Failures", str(stats.failures))
    console.print(table)

    if stats.sample:
        console.print("[dim]Sample keys:[/]")
        for key in stats.sample:
            console.print(f"  [dim]{key[:PREVIEW_CHARS]}[/]")
    if failed:
        console.print(f"[yellow]{failed} text(s) could not be embedded[/]")


if __name__ == "__main__":
    app()
