"""Attach embeddings to chunks that arrive without one."""

import dataclasses
import logging

from ..domain import Chunk
from .embedding_cache import EmbeddingCache

logger = logging.getLogger(__name__)


def embed_missing(chunks: list[Chunk], cache: EmbeddingCache) -> list[Chunk]:
    """Return ``chunks`` with embeddings computed for those lacking one.

    Chunks whose text could not be embedded are returned unchanged; they
    remain reachable through lexical search only.
    """
    missing = [i for i, chunk in enumerate(chunks) if not chunk.has_embedding]
    if not missing:
        return list(chunks)

    vectors = cache.get_batch([chunks[i].text for i in missing])
    updated = list(chunks)
    failed = 0
    for i, vector in zip(missing, vectors):
        if vector:
            updated[i] = dataclasses.replace(chunks[i], embedding=tuple(vector))
        else:
            failed += 1

    if failed:
        logger.warning(f"{failed} of {len(missing)} chunk(s) left without an embedding")
    else:
        logger.info("Embedded %d chunk(s)", len(missing))
    return updated
