"""Qdrant chunk store for production deployment.

Chunks live in one collection; ``document_id`` and ``company_id`` are
keyword-indexed payload fields so every scope becomes a payload filter
evaluated inside Qdrant. Lexical search uses Qdrant's full-text index to
fetch every in-scope chunk that contains a query token and ranks that
candidate set with BM25+.
"""

import logging
import time
import uuid
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from rank_bm25 import BM25Plus

if TYPE_CHECKING:
    from qdrant_client import QdrantClient
    from qdrant_client.http import models as qmodels

from ....core.domain import (
    Chunk,
    CompanyScope,
    DocumentScope,
    MultiDocumentScope,
    Scope,
    ScoredChunk,
)
from ....core.domain.exceptions import (
    ChunkValidationError,
    InvalidScopeError,
    StoreUnavailableError,
)
from ....core.domain.utils import tokenize
from ....core.ports.chunk_store_port import ChunkStorePort

logger = logging.getLogger(__name__)

# Constants
UPSERT_BATCH_SIZE = 100
DEFAULT_LEXICAL_PAGE_SIZE = 256
POINT_ID_NAMESPACE = uuid.UUID("6f1c5a52-3d0e-4e57-9a43-2b1f0c9e7d11")


def point_id_for(chunk_id: str) -> str:
    """Stable Qdrant point id for a chunk id."""
    return str(uuid.uuid5(POINT_ID_NAMESPACE, chunk_id))


class QdrantChunkStore(ChunkStorePort):  # type: ignore[misc]
    """Qdrant-backed chunk store with scope-level payload filtering."""

    def __init__(
        self,
        url: str,
        api_key: str,
        collection_name: str = "document_chunks",
        dimension: int = 768,
        lexical_page_size: int = DEFAULT_LEXICAL_PAGE_SIZE,
        client: "QdrantClient | None" = None,
    ) -> None:
        """Initialize the Qdrant chunk store.

        Args:
            url: Qdrant cluster URL.
            api_key: Qdrant API key.
            collection_name: Collection holding the chunks.
            dimension: Embedding dimension of the collection.
            lexical_page_size: Points fetched per scroll page during lexical search.
            client: Pre-built client (tests); created lazily otherwise.
        """
        self.url = url
        self.api_key = api_key
        self.collection_name = collection_name
        self.dimension = dimension
        self.lexical_page_size = lexical_page_size
        self._client = client
        self._collection_ready = False

    def _get_client(self) -> "QdrantClient":
        """Get or create Qdrant client connection."""
        if not self._client:
            try:
                from qdrant_client import QdrantClient

                self._client = QdrantClient(url=self.url, api_key=self.api_key)
                logger.info("Connected to Qdrant at: %s", self.url)
            except Exception as e:
                raise StoreUnavailableError(
                    f"Failed to connect to Qdrant at {self.url}",
                    cause=e,
                    context={"url": self.url},
                ) from e

        if not self._collection_ready:
            self._ensure_collection(self._client)
        return self._client

    def _ensure_collection(self, client: "QdrantClient") -> None:
        """Create the collection and its payload indexes if missing."""
        from qdrant_client.http import models

        try:
            existing = {c.name for c in client.get_collections().collections}
            if self.collection_name not in existing:
                logger.info(f"Creating collection {self.collection_name}")
                client.create_collection(
                    collection_name=self.collection_name,
                    vectors_config=models.VectorParams(
                        size=self.dimension,
                        distance=models.Distance.COSINE,
                    ),
                )

            for field_name in ("document_id", "company_id"):
                client.create_payload_index(
                    collection_name=self.collection_name,
                    field_name=field_name,
                    field_schema=models.PayloadSchemaType.KEYWORD,
                )
            client.create_payload_index(
                collection_name=self.collection_name,
                field_name="text",
                field_schema=models.TextIndexParams(
                    type=models.TextIndexType.TEXT,
                    tokenizer=models.TokenizerType.WORD,
                    lowercase=True,
                ),
            )
        except Exception as e:
            raise StoreUnavailableError(
                f"Failed to prepare collection {self.collection_name}",
                cause=e,
                context={"collection": self.collection_name},
            ) from e

        self._collection_ready = True

    def _scope_condition(self, scope: Scope) -> "qmodels.FieldCondition":
        """Translate a scope into a Qdrant payload condition."""
        from qdrant_client.http import models

        if isinstance(scope, DocumentScope):
            condition = models.FieldCondition(
                key="document_id", match=models.MatchValue(value=scope.document_id)
            )
        elif isinstance(scope, CompanyScope):
            condition = models.FieldCondition(
                key="company_id", match=models.MatchValue(value=scope.company_id)
            )
        elif isinstance(scope, MultiDocumentScope):
            condition = models.FieldCondition(
                key="document_id", match=models.MatchAny(any=sorted(scope.document_ids))
            )
        else:
            raise InvalidScopeError(f"Unsupported scope type: {type(scope).__name__}")
        return condition

    def _build_filter(self, scope: Scope) -> "qmodels.Filter":
        from qdrant_client.http import models

        return models.Filter(must=[self._scope_condition(scope)])

    @staticmethod
    def _is_empty(scope: Scope) -> bool:
        return isinstance(scope, MultiDocumentScope) and not scope.document_ids

    @staticmethod
    def _to_chunk(payload: dict[str, Any]) -> tuple[Chunk, int]:
        chunk = Chunk(
            chunk_id=payload["chunk_id"],
            document_id=payload["document_id"],
            company_id=payload["company_id"],
            text=payload.get("text", ""),
            page_number=payload.get("page_number"),
        )
        return chunk, int(payload.get("sequence", 0))

    def _query_failed(
        self, operation: str, e: Exception, scope: Scope | None = None
    ) -> StoreUnavailableError:
        logger.error(f"Qdrant {operation} failed: {e}")
        context: dict[str, Any] = {"collection": self.collection_name, "operation": operation}
        if scope is not None:
            context["scope"] = repr(scope)
        return StoreUnavailableError(f"Qdrant {operation} failed", cause=e, context=context)

    def similarity_search(
        self, vector: Sequence[float], scope: Scope, limit: int
    ) -> list[ScoredChunk]:
        """Cosine similarity search within the scope."""
        if limit < 1 or not vector or self._is_empty(scope):
            return []

        query_filter = self._build_filter(scope)
        client = self._get_client()
        try:
            response = client.query_points(
                collection_name=self.collection_name,
                query=list(vector),
                query_filter=query_filter,
                limit=limit,
                with_payload=True,
            )
        except Exception as e:
            raise self._query_failed("similarity search", e, scope) from e

        points = response.points if hasattr(response, "points") else response
        hits = []
        for point in points:
            chunk, sequence = self._to_chunk(dict(point.payload or {}))
            hits.append(ScoredChunk(chunk=chunk, score=float(point.score), sequence=sequence))
        hits.sort(key=lambda hit: (-hit.score, hit.sequence))
        return hits[:limit]

    def lexical_search(self, text: str, scope: Scope, limit: int) -> list[ScoredChunk]:
        """Keyword search within the scope, ranked with BM25+."""
        from qdrant_client.http import models

        query_tokens = tokenize(text)
        if limit < 1 or not query_tokens or self._is_empty(scope):
            return []

        scroll_filter = models.Filter(
            must=[self._scope_condition(scope)],
            should=[
                models.FieldCondition(key="text", match=models.MatchText(text=token))
                for token in dict.fromkeys(query_tokens)
            ],
        )

        client = self._get_client()
        points: list[Any] = []
        offset: Any = None
        try:
            while True:
                page, offset = client.scroll(
                    collection_name=self.collection_name,
                    scroll_filter=scroll_filter,
                    limit=self.lexical_page_size,
                    offset=offset,
                    with_payload=True,
                    with_vectors=False,
                )
                points.extend(page)
                if offset is None:
                    break
        except Exception as e:
            raise self._query_failed("lexical search", e, scope) from e
        logger.debug("Lexical prefilter matched %d chunk(s)", len(points))

        entries = [self._to_chunk(dict(point.payload or {})) for point in points]
        corpus = [tokenize(chunk.text) for chunk, _ in entries]
        if not any(corpus):
            return []

        scores = BM25Plus(corpus).get_scores(query_tokens)
        wanted = set(query_tokens)
        hits = [
            ScoredChunk(chunk=chunk, score=float(score), sequence=sequence)
            for (chunk, sequence), tokens, score in zip(entries, corpus, scores)
            if wanted.intersection(tokens)
        ]
        hits.sort(key=lambda hit: (-hit.score, hit.sequence))
        return hits[:limit]

    def _check_ownership(self, client: "QdrantClient", chunks: list[Chunk]) -> None:
        """Reject chunks whose document already belongs to another company."""
        owners: dict[str, str] = {}
        for chunk in chunks:
            owner = owners.setdefault(chunk.document_id, chunk.company_id)
            if owner != chunk.company_id:
                raise ChunkValidationError(
                    f"Document {chunk.document_id} spans two companies in one batch",
                    context={"document_id": chunk.document_id},
                )

        for document_id, company_id in owners.items():
            try:
                existing, _ = client.scroll(
                    collection_name=self.collection_name,
                    scroll_filter=self._build_filter(DocumentScope(document_id)),
                    limit=1,
                    with_payload=True,
                    with_vectors=False,
                )
            except Exception as e:
                raise self._query_failed("ownership check", e) from e
            if existing and (existing[0].payload or {}).get("company_id") != company_id:
                raise ChunkValidationError(
                    f"Document {document_id} already belongs to another company",
                    context={"document_id": document_id, "company_id": company_id},
                )

    def add_chunks(self, chunks: list[Chunk]) -> int:
        """Upsert chunks; each must carry an embedding of the collection dimension."""
        if not chunks:
            return 0

        from qdrant_client.models import PointStruct

        for chunk in chunks:
            if not chunk.embedding or len(chunk.embedding) != self.dimension:
                raise ChunkValidationError(
                    f"Chunk {chunk.chunk_id} needs a {self.dimension}-dimension embedding",
                    context={"chunk_id": chunk.chunk_id},
                )

        client = self._get_client()
        self._check_ownership(client, chunks)

        base_sequence = time.time_ns()
        points = [
            PointStruct(
                id=point_id_for(chunk.chunk_id),
                vector=list(chunk.embedding or ()),
                payload={
                    "chunk_id": chunk.chunk_id,
                    "document_id": chunk.document_id,
                    "company_id": chunk.company_id,
                    "text": chunk.text,
                    "page_number": chunk.page_number,
                    "sequence": base_sequence + i,
                },
            )
            for i, chunk in enumerate(chunks)
        ]

        # Upsert in batches
        for i in range(0, len(points), UPSERT_BATCH_SIZE):
            try:
                client.upsert(
                    collection_name=self.collection_name,
                    points=points[i : i + UPSERT_BATCH_SIZE],
                )
            except Exception as e:
                raise self._query_failed("upsert", e) from e

        logger.info("Added %d chunk(s) to %s", len(chunks), self.collection_name)
        return len(chunks)

    def delete_document(self, document_id: str) -> int:
        """Delete every point belonging to ``document_id``."""
        from qdrant_client.http import models

        document_filter = self._build_filter(DocumentScope(document_id))
        client = self._get_client()
        try:
            removed = client.count(
                collection_name=self.collection_name, count_filter=document_filter, exact=True
            ).count
            if removed:
                client.delete(
                    collection_name=self.collection_name,
                    points_selector=models.FilterSelector(filter=document_filter),
                )
        except Exception as e:
            raise self._query_failed("delete", e) from e

        logger.info("Deleted %d chunk(s) of document %s", removed, document_id)
        return removed

    def count(self, scope: Scope | None = None) -> int:
        if scope is not None and self._is_empty(scope):
            return 0
        count_filter = self._build_filter(scope) if scope is not None else None
        client = self._get_client()
        try:
            return client.count(
                collection_name=self.collection_name, count_filter=count_filter, exact=True
            ).count
        except Exception as e:
            raise self._query_failed("count", e, scope) from e
