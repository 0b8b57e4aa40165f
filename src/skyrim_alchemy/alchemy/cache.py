"""
Memoization of the pairwise "do these ingredients share an effect" check.

Two interchangeable implementations: `SharedEffectsCache` is bounded and
safe to share between worker threads, `SharedEffectsCacheUnsync` is a
plain dict for single-threaded use. Both key on the ordered pair of
ingredient ids so (a, b) and (b, a) hit the same entry.
"""

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, Protocol, Tuple

from ..game_data.models import GlobalFormId, Ingredient

logger = logging.getLogger(__name__)

# Plenty for a thousand ingredients (C(1000, 2) is just under 500k)
CACHE_CAPACITY = 500_000

PairKey = Tuple[GlobalFormId, GlobalFormId]


def pair_key(a: Ingredient, b: Ingredient) -> PairKey:
    """Key for the unordered pair (a, b)."""
    if b.global_id < a.global_id:
        return b.global_id, a.global_id
    return a.global_id, b.global_id


class SharedEffects(Protocol):
    """Anything that can answer `shares_effects_with` for a pair of ingredients."""

    def cached_shares_effects_with(self, a: Ingredient, b: Ingredient) -> bool: ...

    def clear(self) -> None: ...


@dataclass
class CacheStats:
    """Hit/miss counters, mostly for debug logging."""
    hits: int = 0
    misses: int = 0
    evictions: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0


class SharedEffectsCache:
    """Thread-safe bounded cache; least recently used entries are evicted first."""

    def __init__(self, capacity: int = CACHE_CAPACITY):
        if capacity <= 0:
            raise ValueError(f"cache capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.stats = CacheStats()
        self._items: OrderedDict[PairKey, bool] = OrderedDict()
        self._lock = threading.Lock()

    def cached_shares_effects_with(self, a: Ingredient, b: Ingredient) -> bool:
        key = pair_key(a, b)
        with self._lock:
            value = self._items.get(key)
            if value is not None:
                self._items.move_to_end(key)
                self.stats.hits += 1
                return value
            self.stats.misses += 1

        # Computed outside the lock; a concurrent miss on the same key
        # stores the same value
        value = a.shares_effects_with(b)
        with self._lock:
            self._items[key] = value
            self._items.move_to_end(key)
            while len(self._items) > self.capacity:
                self._items.popitem(last=False)
                self.stats.evictions += 1
        return value

    def clear(self) -> None:
        with self._lock:
            self._items.clear()
            self.stats = CacheStats()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class SharedEffectsCacheUnsync:
    """Unbounded dict-backed cache for single-threaded use."""

    def __init__(self):
        self._items: Dict[PairKey, bool] = {}

    def cached_shares_effects_with(self, a: Ingredient, b: Ingredient) -> bool:
        key = pair_key(a, b)
        value = self._items.get(key)
        if value is None:
            value = self._items[key] = a.shares_effects_with(b)
        return value

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)
