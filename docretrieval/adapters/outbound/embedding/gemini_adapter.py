"""Google Gemini embedding provider.

Uses the ``google.genai`` SDK. One task type is used for every call so a
given text always maps to the same vector, which is what lets the
embedding cache key on text alone.
"""

import logging
import time
from typing import Any

from ....common.rate_limiter import RateLimiter
from ....core.domain.exceptions import (
    EmbeddingAPIError,
    EmbeddingDimensionError,
    EmbeddingError,
    EmbeddingRateLimitError,
)
from ....core.ports.embedding_port import EmbeddingPort

logger = logging.getLogger(__name__)

# Constants
EMBEDDING_BATCH_SIZE = 100
MAX_EMBEDDING_RETRIES = 3
DEFAULT_EMBEDDING_DIMENSION = 768
RATE_LIMIT_MARKERS = ("429", "RESOURCE_EXHAUSTED", "quota")


class GeminiEmbeddingProvider(EmbeddingPort):
    """Embedding provider backed by the Gemini embeddings API."""

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-embedding-001",
        dimension: int = DEFAULT_EMBEDDING_DIMENSION,
        task_type: str = "SEMANTIC_SIMILARITY",
        rate_limiter: RateLimiter | None = None,
        retry_base_delay: float = 1.0,
    ) -> None:
        """Initialize the provider.

        Args:
            api_key: Google AI API key.
            model_name: Embedding model name.
            dimension: Requested output dimensionality.
            task_type: Gemini task type applied to every request.
            rate_limiter: Optional limiter shared across calls.
            retry_base_delay: First backoff delay in seconds (doubles per retry).
        """
        self.api_key = api_key
        self.model_name = model_name
        self._dimension = dimension
        self.task_type = task_type
        self.rate_limiter = rate_limiter or RateLimiter(None)
        self.retry_base_delay = retry_base_delay
        self._client = None

    @property
    def dimension(self) -> int:
        return self._dimension

    def _get_client(self) -> Any:
        """Get or create the genai client."""
        if self._client is None:
            from google import genai

            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def embed(self, text: str) -> list[float]:
        """Generate the embedding for one text."""
        return self._embed_texts([text])[0]

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for several texts, in request batches."""
        if not texts:
            return []

        vectors: list[list[float]] = []
        for i in range(0, len(texts), EMBEDDING_BATCH_SIZE):
            vectors.extend(self._embed_texts(texts[i : i + EMBEDDING_BATCH_SIZE]))
        return vectors

    def _classify(self, e: Exception, count: int) -> EmbeddingError:
        context = {"model": self.model_name, "texts": count}
        if any(marker in str(e) for marker in RATE_LIMIT_MARKERS):
            return EmbeddingRateLimitError("Embedding quota exceeded", cause=e, context=context)
        return EmbeddingAPIError(f"Embedding request failed: {e}", cause=e, context=context)

    def _embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Call the API with retries and validate the response."""
        try:
            client = self._get_client()
        except Exception as e:
            raise EmbeddingAPIError(
                f"Could not create Gemini client: {e}",
                cause=e,
                context={"model": self.model_name},
            ) from e
        last_error: Exception | None = None

        for attempt in range(MAX_EMBEDDING_RETRIES):
            self.rate_limiter.acquire()
            try:
                result = client.models.embed_content(
                    model=self.model_name,
                    contents=texts,
                    config={
                        "task_type": self.task_type,
                        "output_dimensionality": self._dimension,
                    },
                )
                break
            except Exception as e:
                last_error = e
                if attempt < MAX_EMBEDDING_RETRIES - 1:
                    delay = self.retry_base_delay * (2**attempt)
                    logger.debug(f"Embedding attempt {attempt + 1} failed, retrying in {delay}s")
                    time.sleep(delay)
        else:
            logger.error(f"Failed to embed texts after retries: {last_error}")
            raise self._classify(last_error, len(texts))

        embeddings = getattr(result, "embeddings", None) or []
        vectors = [list(embedding.values or []) for embedding in embeddings]
        if len(vectors) != len(texts):
            raise EmbeddingAPIError(
                f"Expected {len(texts)} embeddings, got {len(vectors)}",
                context={"model": self.model_name},
            )

        for vector in vectors:
            if len(vector) != self._dimension:
                raise EmbeddingDimensionError(
                    f"Expected dimension {self._dimension}, got {len(vector)}",
                    context={"model": self.model_name},
                )
        return vectors
