"""Memoize a function's results per argument key.

`throttle(func, ...)` returns a wrapped version of `func` that only invokes
`func` when no result is cached for the call's key or the cached result is
older than `delay`. Coroutine functions are supported: while a call is in
flight, concurrent calls for the same key share its task instead of
invoking `func` again.

    from throttle import throttle

    fetch_user = throttle(client.fetch_user, delay=30, max_age=300)
    user = await fetch_user(42)
    fetch_user.clear(42)

    @throttle(max_size=128)
    def render(template, **context):
        ...
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
import math
from typing import Any, Callable, Optional, Union

from throttle import config
from throttle.core.cache import STORE_LOCK, LruCache, MapStore, normalize_max_size
from throttle.core.errors import ConfigurationError
from throttle.core.interfaces import Store
from throttle.core.item import CacheItem
from throttle.core.keys import default_resolver, to_resolver_key
from throttle.core.policies import ErrorHandler, ErrorPolicy, resolve_on_error
from throttle.core.weak import weak

logger = logging.getLogger(__name__)

__all__ = ["throttle", "ErrorPolicy", "ConfigurationError"]


def _get_cache(cache: Optional[Store], max_size: Union[int, float, None]) -> Store:
    if cache is not None:
        return cache

    if max_size is not None and normalize_max_size(max_size) < math.inf:
        return LruCache(max_size=max_size)

    return MapStore()


def _acknowledge(task: "asyncio.Task[Any]") -> None:
    # Retrieve the exception so an unawaited failure is not reported by asyncio
    if not task.cancelled():
        task.exception()


async def _settle(future: "asyncio.Future[Any]", item: CacheItem, on_error: ErrorHandler) -> Any:
    try:
        try:
            await future
        except Exception as err:
            outcome = on_error(err, item)
            if inspect.isawaitable(outcome):
                outcome = await outcome
            return outcome

        # Keep the completed future as the value so cached hits stay awaitable
        item.value = future
        return future.result()
    finally:
        item.pending = None


def _execute(func: Callable[..., Any], args: tuple, kwargs: dict, item: CacheItem, on_error: ErrorHandler) -> Any:
    try:
        result = func(*args, **kwargs)
    except Exception as err:
        return on_error(err, item)

    if not inspect.isawaitable(result):
        item.value = result
        return result

    future = asyncio.ensure_future(result)
    pending = asyncio.ensure_future(_settle(future, item, on_error))
    pending.add_done_callback(_acknowledge)

    item.pending = pending
    return pending


def throttle(
    func: Optional[Callable[..., Any]] = None,
    *,
    delay: Optional[float] = None,
    max_age: Union[float, int, bool, None] = None,
    max_size: Union[int, float, None] = None,
    cache: Optional[Store] = None,
    resolver: Optional[Callable[..., Any]] = None,
    on_updated: Optional[Callable[[CacheItem], Any]] = None,
    on_error: Union[ErrorPolicy, str, ErrorHandler, None] = None,
    unbounded: bool = False,
) -> Any:
    """Create a throttled version of `func`.

    Params:
      - delay: seconds a cached result is served before `func` runs again
        (default: never, see THROTTLE_DEFAULT_DELAY). 0 disables caching
        between calls.
      - max_age: seconds after its last update an item is dropped from the
        cache, whether or not it is accessed. None/False/inf disables it.
      - max_size: keep at most this many keys (least recently used evicted).
      - cache: custom store with dict semantics (`in`, `[]`, `[]=`, `pop`,
        `clear`). No capacity management is done on it.
      - resolver: returns what matters for the cache key given the call's
        arguments. Defaults to all positional and keyword arguments.
      - on_updated: called with the CacheItem every time it is updated; it may
        change `item.delay` / `item.max_age` for the next cycle.
      - on_error: "cached" (default), "clear", "persist" or a callable
        `(error, item)` whose return value becomes the call's result.
      - unbounded: explicitly allow a cache with no max_age/max_size bound.

    Without `func`, returns a decorator.

    Raises:
      ConfigurationError if `func` is not callable or the cache would grow
      without bound (none of cache/max_age/max_size and no `unbounded=True`).
    """
    options = dict(
        delay=delay,
        max_age=max_age,
        max_size=max_size,
        cache=cache,
        resolver=resolver,
        on_updated=on_updated,
        on_error=on_error,
        unbounded=unbounded,
    )
    if func is None:
        return functools.partial(throttle, **options)

    if not callable(func):
        raise ConfigurationError("First parameter to throttle must be callable.")

    if cache is None and max_age is None and max_size is None and not unbounded:
        raise ConfigurationError(
            'No cache limitation options set, set at least one of "cache", "max_age" or "max_size" '
            '(or pass unbounded=True).'
        )

    item_delay = config.DEFAULT_DELAY if delay is None else delay
    item_max_age = max_age or None
    key_of = resolver or default_resolver
    store = _get_cache(cache, max_size)
    handle_error = resolve_on_error(on_error)

    # Items reach the store only through this handle, so pending expiry
    # timers never keep a discarded store alive.
    weak_cache = weak(store)

    @functools.wraps(func)
    def throttled(*args: Any, **kwargs: Any) -> Any:
        key = to_resolver_key(key_of(*args, **kwargs))

        with STORE_LOCK:
            item = store[key] if key in store else None

            # Expiry timers run on another thread and may lag behind
            if item is not None and item.expired:
                logger.debug("Cache item %r expired before its timer ran", key)
                item.clear()
                item = None

            if item is None:
                store[key] = CacheItem(
                    key=key,
                    delay=item_delay,
                    max_age=item_max_age,
                    weak_cache=weak_cache,
                    on_updated=on_updated,
                )
                item = store[key]

        if item.stale:
            logger.debug("Invoking %s for key %r", getattr(func, "__qualname__", func), key)
            return _execute(func, args, kwargs, item, handle_error)

        if not item.initialized:
            return item.pending

        if item.error is not None:
            raise item.error

        return item.value

    def clear(*args: Any, **kwargs: Any) -> None:
        """Clear the whole cache, or only the item for the given arguments."""
        if not args and not kwargs:
            with STORE_LOCK:
                store.clear()
            return

        key = to_resolver_key(key_of(*args, **kwargs))
        with STORE_LOCK:
            store.pop(key, None)

    throttled.clear = clear  # type: ignore[attr-defined]
    throttled.cache = store  # type: ignore[attr-defined]
    return throttled
