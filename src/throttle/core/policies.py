"""Error policies applied when a throttled function raises or its task fails.

- clear: the item is removed from the cache and the error is raised
- persist: the error is stored on the item and raised; later calls raise it
  too until the item is recomputed
- cached: the last good value is returned if the item ever had one,
  otherwise the error is raised
- a custom callable receives (error, item) and decides everything; its
  return value becomes the call's result
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, Union

from throttle import config
from throttle.core.item import CacheItem

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[BaseException, CacheItem], Any]


class ErrorPolicy(str, Enum):
    CLEAR = "clear"
    PERSIST = "persist"
    CACHED = "cached"


def _clear(err: BaseException, item: CacheItem) -> Any:
    item.clear()
    raise err


def _persist(err: BaseException, item: CacheItem) -> Any:
    item.error = err
    raise err


def _cached(err: BaseException, item: CacheItem) -> Any:
    if item.initialized:
        logger.debug("Serving cached value for %r after error: %r", item.key, err)
        return item.value

    raise err


_HANDLERS: Dict[ErrorPolicy, ErrorHandler] = {
    ErrorPolicy.CLEAR: _clear,
    ErrorPolicy.PERSIST: _persist,
    ErrorPolicy.CACHED: _cached,
}


def _default_policy() -> ErrorPolicy:
    try:
        return ErrorPolicy(config.DEFAULT_ON_ERROR)
    except ValueError:
        return ErrorPolicy.CACHED


def resolve_on_error(on_error: Union[ErrorPolicy, str, ErrorHandler, None]) -> ErrorHandler:
    """Resolve `on_error` once, at wrap time, into a handler function."""
    if callable(on_error):
        return on_error

    try:
        policy = ErrorPolicy(on_error)
    except ValueError:
        policy = _default_policy()

    return _HANDLERS[policy]
