"""In-memory stores backing throttled functions.

LruCache keeps at most `max_size` entries and evicts the least recently
used one on overflow. MapStore is the unbounded variant. Both support
weak references so cache items never keep their store alive.
"""

from __future__ import annotations

import logging
import math
import threading
from collections import OrderedDict
from typing import Hashable, Iterator, MutableMapping, Optional, TypeVar, Union

from throttle.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

_MISSING = object()

# Guards lookups and removals that race with expiry on the scheduler thread
STORE_LOCK = threading.RLock()


class MapStore(dict):
    # Unbounded store; plain dicts cannot be weakly referenced
    __slots__ = ("__weakref__",)


def normalize_max_size(max_size: Union[int, float, None]) -> Union[int, float]:
    if max_size is None:
        return math.inf
    if isinstance(max_size, bool) or not isinstance(max_size, (int, float)):
        raise ConfigurationError("max_size must be a number")
    if math.isnan(max_size) or max_size < 1:
        raise ConfigurationError("max_size must be at least 1")
    return max_size if math.isinf(max_size) else int(max_size)


class LruCache(MutableMapping[K, V]):
    # Fixed-capacity LRU mapping; the OrderedDict order is the recency queue
    # (front = least recently used, back = most recently used).
    __slots__ = ("_store", "_max_size", "_lock", "__weakref__")

    def __init__(self, *, max_size: Union[int, float, None] = None) -> None:
        self._max_size = normalize_max_size(max_size)
        self._store: "OrderedDict[K, V]" = OrderedDict()

        # Expiry timers may delete from a timer thread
        self._lock = threading.RLock()

    @property
    def max_size(self) -> Union[int, float]:
        return self._max_size

    def __contains__(self, key: object) -> bool:
        # Membership never counts as a use
        return key in self._store

    def __getitem__(self, key: K) -> V:
        with self._lock:
            value = self._store[key]
            self._store.move_to_end(key, last=True)
            return value

    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        try:
            return self[key]
        except KeyError:
            return default

    def peek(self, key: K, default: Optional[V] = None) -> Optional[V]:
        # Read without counting as a use
        return self._store.get(key, default)

    def __setitem__(self, key: K, value: V) -> None:
        with self._lock:
            self._store[key] = value
            self._store.move_to_end(key, last=True)

            # One insertion can overflow by at most one entry
            if len(self._store) > self._max_size:
                evicted, _ = self._store.popitem(last=False)
                logger.debug("Evicted least recently used key %r", evicted)

    def __delitem__(self, key: K) -> None:
        with self._lock:
            del self._store[key]

    def pop(self, key: K, default: object = _MISSING) -> V:
        with self._lock:
            if default is _MISSING:
                return self._store.pop(key)
            return self._store.pop(key, default)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __iter__(self) -> Iterator[K]:
        # Snapshot so iteration is safe against timer-driven deletes
        with self._lock:
            return iter(list(self._store))

    def __len__(self) -> int:
        return len(self._store)

    def __repr__(self) -> str:
        return f"LruCache(max_size={self._max_size!r}, size={len(self._store)})"


def peek(store: MutableMapping, key: Hashable, default: object = None) -> object:
    """Read `key` from any store without touching LRU recency."""
    if isinstance(store, LruCache):
        return store.peek(key, default)
    if key in store:
        return store[key]
    return default
