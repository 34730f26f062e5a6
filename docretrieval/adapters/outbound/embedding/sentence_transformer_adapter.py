"""Local embedding provider using sentence-transformers."""

import logging
from typing import Any

from ....core.domain.exceptions import EmbeddingAPIError
from ....core.ports.embedding_port import EmbeddingPort

logger = logging.getLogger(__name__)


class SentenceTransformerEmbeddingProvider(EmbeddingPort):
    """Wrapper for a sentence-transformers model, for offline and dev use."""

    def __init__(self, model_name: str = "all-MiniLM-L6-v2", batch_size: int = 32) -> None:
        """Initialize the provider.

        Args:
            model_name: Name of the sentence-transformers model to use.
                        Default is all-MiniLM-L6-v2 (fast, 384 dims).
            batch_size: Batch size for encoding.
        """
        self.model_name = model_name
        self.batch_size = batch_size
        self._model: Any = None

    def _load_model(self) -> Any:
        """Lazy load the model on first use.

        Raises:
            EmbeddingAPIError: If the model cannot be downloaded or loaded.
        """
        if self._model is None:
            try:
                from sentence_transformers import SentenceTransformer
            except ImportError as e:
                raise ImportError(
                    "Please install sentence-transformers to use local embeddings: "
                    "pip install sentence-transformers"
                ) from e
            logger.info(f"Loading embedding model: {self.model_name}")
            try:
                self._model = SentenceTransformer(self.model_name)
            except Exception as e:
                raise EmbeddingAPIError(
                    f"Could not load embedding model {self.model_name}: {e}",
                    cause=e,
                    context={"model": self.model_name},
                ) from e
        return self._model

    @property
    def dimension(self) -> int:
        return int(self._load_model().get_sentence_embedding_dimension())

    def embed(self, text: str) -> list[float]:
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        model = self._load_model()
        try:
            embeddings = model.encode(
                texts,
                batch_size=self.batch_size,
                convert_to_numpy=True,
                show_progress_bar=len(texts) > 100,
            )
        except Exception as e:
            raise EmbeddingAPIError(
                f"Local embedding failed: {e}", cause=e, context={"model": self.model_name}
            ) from e
        return embeddings.tolist()
