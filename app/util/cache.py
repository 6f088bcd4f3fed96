import threading
import time
from collections import OrderedDict
from typing import Generic, TypeVar, TypeVarTuple, Unpack

VT = TypeVar("VT")
KTs = TypeVarTuple("KTs")


class CacheMetrics:
    """Thread-safe cache metrics tracker."""

    hits: int
    misses: int
    evictions: int
    _lock: threading.Lock

    def __init__(self):
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def record_hit(self):
        with self._lock:
            self.hits += 1

    def record_miss(self):
        with self._lock:
            self.misses += 1

    def record_eviction(self):
        with self._lock:
            self.evictions += 1

    def hit_rate(self) -> float:
        """Return cache hit rate as percentage (0-100)."""
        with self._lock:
            total = self.hits + self.misses
            if total == 0:
                return 0.0
            return (self.hits / total) * 100


class SimpleCache(Generic[VT, Unpack[KTs]]):
    _cache: OrderedDict[tuple[Unpack[KTs]], tuple[float, VT]]
    _lock: threading.Lock
    _maxsize: int | None
    _metrics: CacheMetrics

    def __init__(self, maxsize: int | None = None):
        """Initialize cache with optional size limit.

        Args:
            maxsize: Maximum number of entries. None = unlimited. Uses LRU eviction.
        """
        self._cache = OrderedDict()
        self._lock = threading.Lock()
        self._maxsize = maxsize
        self._metrics = CacheMetrics()

    def get(self, ttl: int, *query: Unpack[KTs]) -> VT | None:
        with self._lock:
            hit = self._cache.get(query)
            if not hit:
                self._metrics.record_miss()
                return None
            cached_at, value = hit
            if cached_at + ttl < time.time():
                self._metrics.record_miss()
                return None
            # Move to end for LRU tracking
            self._cache.move_to_end(query)
            self._metrics.record_hit()
            return value

    def set(self, value: VT, *query: Unpack[KTs]):
        with self._lock:
            if query in self._cache:
                del self._cache[query]

            self._cache[query] = (time.time(), value)

            if self._maxsize is not None and len(self._cache) > self._maxsize:
                oldest_key = next(iter(self._cache))
                del self._cache[oldest_key]
                self._metrics.record_eviction()

    def get_metrics(self) -> CacheMetrics:
        """Return the metrics tracker for this cache."""
        return self._metrics

    def size(self) -> int:
        """Return current number of entries in cache."""
        with self._lock:
            return len(self._cache)
