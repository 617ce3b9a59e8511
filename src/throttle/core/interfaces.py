"""Core protocol and interface definitions.

Defines the Store protocol that backs a throttled function. Any mapping
with dict semantics for these five operations can be passed as `cache`
(dict, OrderedDict, LruCache, ...).
"""

from __future__ import annotations

from typing import Any, Hashable, Protocol


class Store(Protocol):
    """Contract for any key -> CacheItem store."""
    def __contains__(self, key: object) -> bool:
        ...

    def __getitem__(self, key: Hashable) -> Any:
        ...

    def __setitem__(self, key: Hashable, value: Any) -> None:
        ...

    def pop(self, key: Hashable, default: Any = None) -> Any:
        ...

    def clear(self) -> None:
        ...
