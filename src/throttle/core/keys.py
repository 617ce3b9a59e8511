"""Cache key resolution.

Turns whatever a resolver returns into a hashable, stable key:
- a one-element list/tuple collapses to the key of its element
- primitives (None, bool, int, float, str, bytes) stringify
- everything else becomes a SHA-256 of a canonical JSON rendering, so
  equal dicts/lists/sets/dates map to the same key across calls
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from typing import Any, List

_PRIMITIVES = (type(None), bool, int, float, str, bytes)


class KeywordArguments(dict):
    # Marks call kwargs so they never key like a positional mapping
    __slots__ = ()


def default_resolver(*args: Any, **kwargs: Any) -> List[Any]:
    # Identity over the full argument list; kwargs ride along as one mapping
    if kwargs:
        return [*args, KeywordArguments(kwargs)]
    return list(args)


def _dumps(value: Any) -> str:
    return json.dumps(_canonical(value), sort_keys=True)


def _canonical(value: Any) -> Any:
    if isinstance(value, (type(None), bool, int, float, str)):
        return value
    if isinstance(value, Mapping):
        # Keys may be any hashable, so sort by their canonical form
        pairs = [[_dumps(k), _canonical(v)] for k, v in value.items()]
        tag = "kwargs" if isinstance(value, KeywordArguments) else "map"
        return {tag: sorted(pairs, key=lambda kv: kv[0])}
    if isinstance(value, (set, frozenset)):
        return {"set": sorted(_dumps(v) for v in value)}
    if isinstance(value, (list, tuple)):
        return [_canonical(v) for v in value]
    return {type(value).__name__: str(value)}


def hash_key(value: Any) -> str:
    return hashlib.sha256(_dumps(value).encode("utf-8")).hexdigest()


def to_resolver_key(value: Any) -> str:
    if isinstance(value, (list, tuple)) and len(value) == 1:
        return to_resolver_key(value[0])

    if isinstance(value, _PRIMITIVES):
        return str(value)

    return hash_key(value)
