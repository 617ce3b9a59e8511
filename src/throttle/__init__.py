"""In-process memoization of function results.

See `throttle.wrapper.throttle` for the options.
"""

from throttle.core.cache import LruCache, MapStore
from throttle.core.errors import ConfigurationError, ThrottleError
from throttle.core.item import CacheItem
from throttle.core.policies import ErrorPolicy
from throttle.wrapper import throttle

__all__ = [
    "throttle",
    "CacheItem",
    "ConfigurationError",
    "ErrorPolicy",
    "LruCache",
    "MapStore",
    "ThrottleError",
]
