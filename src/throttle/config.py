"""Configuration and environment helpers for the project.

Provides small helpers to read typed environment variables and exposes
library-level defaults used by throttle() and the cache items
(DEFAULT_ON_ERROR, DEFAULT_DELAY, DAEMON_TIMERS).
"""

from __future__ import annotations

import math
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def _env_str(name: str, default: str) -> str:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower()


# Error policy used when `on_error` is missing or unknown
DEFAULT_ON_ERROR = _env_str("THROTTLE_ON_ERROR", "cached")

# Seconds before a cached result is recomputed (inf = never)
DEFAULT_DELAY = _env_float("THROTTLE_DEFAULT_DELAY", math.inf)

# Thread timers (used outside an event loop) must not block interpreter exit
DAEMON_TIMERS = _env_bool("THROTTLE_DAEMON_TIMERS", True)
