from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import asdict, dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    key: str
    embedding: list[float]
    inserted_at: float  # ms, from the cache clock


@dataclass(frozen=True)
class CacheStats:
    size: int
    capacity: int
    ttl_ms: float
    hits: int
    misses: int
    expirations: int
    evictions: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class EmbeddingCache:
    """
    Bounded LRU cache of query embeddings with lazy TTL expiry.

    Keys are the exact query text. Expired entries are only purged when the
    key is looked up again; there is no background sweep. The OrderedDict
    order is recency order, least recently used first.
    """

    def __init__(
        self,
        capacity: int = 100,
        ttl_minutes: float = 60,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        if int(capacity) < 1:
            raise ValueError("capacity must be a positive integer")
        if ttl_minutes < 0:
            raise ValueError("ttl_minutes must not be negative")
        self.capacity = int(capacity)
        self.ttl_ms = float(ttl_minutes) * 60 * 1000
        self._clock = clock
        self._store: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._expirations = 0
        self._evictions = 0

    def _now_ms(self) -> float:
        return self._clock() * 1000.0

    def _is_expired(self, entry: CacheEntry, now_ms: float) -> bool:
        return now_ms - entry.inserted_at >= self.ttl_ms

    def get(self, key: str) -> list[float] | None:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._misses += 1
                return None
            if self._is_expired(entry, self._now_ms()):
                del self._store[key]
                self._misses += 1
                self._expirations += 1
                logger.debug(f"Embedding cache expired: {key[:50]!r}")
                return None
            self._store.move_to_end(key)
            self._hits += 1
            return list(entry.embedding)

    def set(self, key: str, embedding: list[float]) -> None:
        with self._lock:
            if key not in self._store and len(self._store) >= self.capacity:
                evicted, _ = self._store.popitem(last=False)
                self._evictions += 1
                logger.debug(f"Embedding cache evicted: {evicted[:50]!r}")
            self._store[key] = CacheEntry(key=key, embedding=list(embedding), inserted_at=self._now_ms())
            self._store.move_to_end(key)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def hit_rate(self) -> float:
        with self._lock:
            total = self._hits + self._misses
            if total == 0:
                return 0.0
            return self._hits / total

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                size=len(self._store),
                capacity=self.capacity,
                ttl_ms=self.ttl_ms,
                hits=self._hits,
                misses=self._misses,
                expirations=self._expirations,
                evictions=self._evictions,
            )

    def keys(self) -> list[str]:
        # Recency order, least recently used first. Does not touch recency or expiry.
        with self._lock:
            return list(self._store)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._store
