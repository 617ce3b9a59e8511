"""Per-key cache item: value/error state, staleness and hard expiry.

A CacheItem is created the first time a key is looked up. Every commit of
a value or an error stamps `updated_at`, re-arms the expiry timer and
notifies the `on_updated` observer. When the timer fires the item removes
itself from its store through a weak handle, so a discarded store is never
kept alive by pending timers.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from typing import Any, Callable, Hashable, Optional, Union

from throttle.core.cache import STORE_LOCK, peek
from throttle.core.interfaces import Store
from throttle.core.timers import TimerHandle, schedule
from throttle.core.weak import WeakHandle

logger = logging.getLogger(__name__)

MaxAge = Union[float, int, bool, None]


def _noop(item: "CacheItem") -> None:
    return None


def _expires(max_age: MaxAge) -> bool:
    # None, False and inf all mean "never hard-expires"
    if max_age is None or max_age is False:
        return False
    return not math.isinf(max_age)


def _failed_future(loop: asyncio.AbstractEventLoop, err: BaseException) -> "asyncio.Future[Any]":
    future = loop.create_future()
    future.set_exception(err)
    # Mark as retrieved; awaiting it later still raises
    future.exception()
    return future


class CacheItem:
    """Cached state for one resolved key.

    Staleness (`delay`) decides when the wrapped function may be invoked
    again; hard expiry (`max_age`) removes the item from its store no
    matter how it is accessed. An item with a pending computation is never
    stale, which keeps at most one computation in flight per key.
    """

    def __init__(
        self,
        *,
        key: Hashable,
        delay: Optional[float] = math.inf,
        max_age: MaxAge = None,
        weak_cache: Optional[WeakHandle[Store]] = None,
        on_updated: Optional[Callable[["CacheItem"], Any]] = None,
    ) -> None:
        self.key = key
        self.initialized = False
        self.pending: Optional["asyncio.Task[Any]"] = None

        self._value: Any = None
        self._error: Optional[BaseException] = None
        self._delay = delay
        self._max_age = max_age
        self._weak_cache = weak_cache
        self._on_updated = on_updated or _noop
        self._updated_at: Optional[float] = None
        self._expires_at: Optional[float] = None
        self._timer: Optional[TimerHandle] = None

    def __repr__(self) -> str:
        return (
            f"CacheItem(key={self.key!r}, initialized={self.initialized}, "
            f"pending={self.pending is not None}, stale={self.stale})"
        )

    @property
    def stale(self) -> bool:
        if self.pending is not None:
            return False

        if self._updated_at is None:
            return True

        if not self._delay:
            return True

        return self._updated_at + self._delay <= time.monotonic()

    @property
    def updated_at(self) -> Optional[float]:
        return self._updated_at

    @property
    def expires_at(self) -> Optional[float]:
        return self._expires_at

    @property
    def expired(self) -> bool:
        # Hard expiry holds even if the timer has not run yet
        return self._expires_at is not None and self._expires_at <= time.monotonic()

    @property
    def value(self) -> Any:
        return self._value

    @value.setter
    def value(self, v: Any) -> None:
        self._error = None
        self._value = v

        self._updated()

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    @error.setter
    def error(self, err: BaseException) -> None:
        # While a computation is pending the failure is committed as a failed
        # future so holders of the pending task see it asynchronously.
        if self.pending is not None:
            self.value = _failed_future(self.pending.get_loop(), err)
            return

        self._error = err
        self._value = None

        self._updated()

    @property
    def delay(self) -> Optional[float]:
        return self._delay

    @delay.setter
    def delay(self, delay: Optional[float]) -> None:
        self._delay = delay

    @property
    def max_age(self) -> MaxAge:
        return self._max_age

    @max_age.setter
    def max_age(self, max_age: MaxAge) -> None:
        self._max_age = max_age
        self._arm_timer()

    def clear(self) -> None:
        """Remove this item from its store and stop its expiry timer."""
        self._cancel_timer()

        cache = self._cache()
        if cache is not None:
            with STORE_LOCK:
                cache.pop(self.key, None)

    def _cache(self) -> Optional[Store]:
        if self._weak_cache is None:
            return None
        return self._weak_cache.get()

    def _expire(self) -> None:
        cache = self._cache()

        with STORE_LOCK:
            self._timer = None
            self._expires_at = None

            if cache is None:
                return

            # The key may have been cleared and taken over by a newer item
            current = peek(cache, self.key, self)
            if current is not self:
                return

            logger.debug("Cache item %r expired after %ss", self.key, self._max_age)
            cache.pop(self.key, None)

    def _cancel_timer(self) -> None:
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
        self._expires_at = None

    def _arm_timer(self) -> None:
        self._cancel_timer()

        if not _expires(self._max_age):
            return

        self._expires_at = time.monotonic() + self._max_age
        self._timer = schedule(self._max_age, self._expire)

    def _updated(self) -> None:
        self.initialized = True
        self.pending = None
        self._updated_at = time.monotonic()

        self._arm_timer()

        self._on_updated(self)
