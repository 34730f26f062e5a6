"""Memoizing cache in front of the embedding provider.

Embedding is the slowest and most expensive step of a search, and the
same query text is asked again and again, so vectors are cached by exact
input text for the lifetime of the cache instance.

Failure policy: a provider error yields an empty vector for the affected
text(s) and nothing is cached, so the next call for the same text tries
the provider again. A search that cannot embed its query loses its dense
leg instead of failing.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass, field

from ..domain.exceptions import EmbeddingError
from ..ports.embedding_port import EmbeddingPort

logger = logging.getLogger(__name__)

STATS_SAMPLE_SIZE = 5


class EvictionPolicy(ABC):
    """Decides which entries leave the cache."""

    name: str = "abstract"

    @abstractmethod
    def touch(self, entries: OrderedDict, key: str) -> None:
        """Record a hit on ``key``."""
        ...

    @abstractmethod
    def trim(self, entries: OrderedDict) -> list[str]:
        """Drop entries after an insert and return the evicted keys."""
        ...


class UnboundedPolicy(EvictionPolicy):
    """Never evict. Entries live until ``clear()`` or process exit."""

    name = "unbounded"

    def touch(self, entries: OrderedDict, key: str) -> None:
        return None

    def trim(self, entries: OrderedDict) -> list[str]:
        return []


class LRUPolicy(EvictionPolicy):
    """Keep at most ``max_entries`` vectors, evicting the least recently used."""

    name = "lru"

    def __init__(self, max_entries: int) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries

    def touch(self, entries: OrderedDict, key: str) -> None:
        entries.move_to_end(key)

    def trim(self, entries: OrderedDict) -> list[str]:
        evicted = []
        while len(entries) > self.max_entries:
            key, _ = entries.popitem(last=False)
            evicted.append(key)
        return evicted


def eviction_policy_for(max_entries: int | None) -> EvictionPolicy:
    """Map a configured entry budget to a policy (``None``/``0`` = unbounded)."""
    if max_entries and max_entries > 0:
        return LRUPolicy(max_entries)
    return UnboundedPolicy()


@dataclass
class CacheStats:
    """Snapshot of the cache for observability. Never used for retrieval."""

    size: int
    sample: list[str] = field(default_factory=list)
    hits: int = 0
    misses: int = 0
    failures: int = 0
    policy: str = UnboundedPolicy.name


class EmbeddingCache:
    """Exact-text embedding cache with batch deduplication."""

    def __init__(self, provider: EmbeddingPort, eviction: EvictionPolicy | None = None) -> None:
        """Initialize the cache.

        Args:
            provider: Embedding provider consulted on misses.
            eviction: Eviction policy; defaults to no eviction.
        """
        self.provider = provider
        self.eviction = eviction or UnboundedPolicy()
        self._entries: OrderedDict[str, tuple[float, ...]] = OrderedDict()
        # Guards bookkeeping only; provider calls happen outside the lock.
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._failures = 0

    def _lookup(self, text: str) -> tuple[float, ...] | None:
        with self._lock:
            vector = self._entries.get(text)
            if vector is None:
                self._misses += 1
                return None
            self._hits += 1
            self.eviction.touch(self._entries, text)
            return vector

    def _store(self, text: str, vector: list[float]) -> tuple[float, ...]:
        frozen = tuple(vector)
        with self._lock:
            self._entries[text] = frozen
            self._entries.move_to_end(text)
            evicted = self.eviction.trim(self._entries)
        if evicted:
            logger.debug("Evicted %d embedding(s) from cache", len(evicted))
        return frozen

    def _record_failures(self, count: int) -> None:
        with self._lock:
            self._failures += count

    def get(self, text: str) -> list[float]:
        """Return the embedding for ``text``, computing it on a miss.

        Args:
            text: Exact text to embed.

        Returns:
            The embedding vector, or an empty list if the provider failed.
        """
        cached = self._lookup(text)
        if cached is not None:
            logger.debug("Embedding cache hit (%d chars)", len(text))
            return list(cached)

        try:
            vector = self.provider.embed(text)
        except EmbeddingError as e:
            self._record_failures(1)
            logger.warning(f"Embedding failed, not caching: {e.message}")
            return []

        if not vector:
            self._record_failures(1)
            logger.warning("Embedding provider returned an empty vector, not caching")
            return []

        return list(self._store(text, vector))

    def get_batch(self, texts: list[str]) -> list[list[float]]:
        """Return embeddings for ``texts`` in input order.

        Cached texts are served from the cache. The remaining texts are
        deduplicated and sent to the provider in a single batch call.

        Args:
            texts: Texts to embed; may contain duplicates.

        Returns:
            One vector per input position. Positions whose text could not
            be embedded hold an empty list.
        """
        resolved: dict[str, tuple[float, ...]] = {}
        pending: list[str] = []
        seen: set[str] = set()

        for text in texts:
            if text in seen:
                continue
            seen.add(text)
            cached = self._lookup(text)
            if cached is not None:
                resolved[text] = cached
            else:
                pending.append(text)

        if pending:
            logger.debug(
                "Embedding %d distinct text(s) for a batch of %d", len(pending), len(texts)
            )
            resolved.update(self._embed_pending(pending))

        return [list(resolved[text]) if text in resolved else [] for text in texts]

    def _embed_pending(self, pending: list[str]) -> dict[str, tuple[float, ...]]:
        try:
            vectors = self.provider.embed_batch(pending)
        except EmbeddingError as e:
            self._record_failures(len(pending))
            logger.warning(f"Batch embedding failed for {len(pending)} text(s): {e.message}")
            return {}

        if len(vectors) != len(pending):
            self._record_failures(len(pending))
            logger.warning(
                "Embedding provider returned %d vectors for %d texts, discarding batch",
                len(vectors),
                len(pending),
            )
            return {}

        stored = {}
        failed = 0
        for text, vector in zip(pending, vectors):
            if not vector:
                failed += 1
                continue
            stored[text] = self._store(text, vector)

        if failed:
            self._record_failures(failed)
            logger.warning(f"{failed} text(s) in batch came back without an embedding")
        return stored

    def clear(self) -> None:
        """Empty the cache; subsequent lookups are misses."""
        with self._lock:
            size = len(self._entries)
            self._entries.clear()
        logger.info("Embedding cache cleared (%d entries)", size)

    def stats(self) -> CacheStats:
        """Current entry count and a bounded sample of cached keys."""
        with self._lock:
            return CacheStats(
                size=len(self._entries),
                sample=list(self._entries.keys())[:STATS_SAMPLE_SIZE],
                hits=self._hits,
                misses=self._misses,
                failures=self._failures,
                policy=self.eviction.name,
            )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, text: str) -> bool:
        return text in self._entries
