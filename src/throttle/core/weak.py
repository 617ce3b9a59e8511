"""Non-owning references to throttle stores.

A cache item needs to remove itself from its store when its expiry timer
fires, but the timer must not keep the store alive. WeakHandle wraps the
store in a weakref when the object allows it and falls back to a strong
reference otherwise (e.g. a plain dict passed as `cache`). In fallback
mode the store is retained until outstanding timers fire.
"""

from __future__ import annotations

import logging
import weakref
from typing import Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WeakHandle(Generic[T]):
    __slots__ = ("_ref", "_supported")

    def __init__(self, target: T) -> None:
        try:
            self._ref: Callable[[], Optional[T]] = weakref.ref(target)
            self._supported = True
        except TypeError:
            logger.debug("%s does not support weak references, holding it strongly", type(target).__name__)
            self._ref = lambda: target
            self._supported = False

    @property
    def supported(self) -> bool:
        return self._supported

    def get(self) -> Optional[T]:
        # None means the target has been reclaimed
        return self._ref()

    @property
    def is_dead(self) -> bool:
        return self._ref() is None


def weak(target: T) -> WeakHandle[T]:
    return WeakHandle(target)
