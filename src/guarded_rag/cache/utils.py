"""Cache key construction and error-absorbing cache access."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from typing import Any

from guarded_rag.observability.logger import get_logger
from guarded_rag.protocols.cache import Cache

logger = get_logger("cache")


def hash_data(data: str | list | tuple | set | frozenset | Mapping[str, Any]) -> str:
    """Deterministic SHA-256 digest of a cacheable payload.

    Collections are sorted first, so inputs with the same members map to the
    same key regardless of order.
    """
    if isinstance(data, str):
        normalized = data
    elif isinstance(data, (list, tuple, set, frozenset)):
        normalized = json.dumps(sorted(data, key=_sort_key))
    else:
        normalized = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


def _sort_key(item: Any) -> str:
    return item if isinstance(item, str) else json.dumps(item, sort_keys=True, default=str)


def create_cache_key(prefix: str, *parts: str | int) -> str:
    return ":".join([prefix, *(str(p) for p in parts)])


async def safe_get(cache: Cache | None, key: str) -> Any | None:
    """Read from the cache; a cache failure is reported as a miss."""
    if cache is None:
        return None
    try:
        return await cache.get(key)
    except Exception as e:
        logger.debug("cache_get_failed", key=key, error=str(e))
        return None


async def safe_set(cache: Cache | None, key: str, value: Any, ttl: float | None = None) -> None:
    """Write to the cache; a cache failure is logged and ignored."""
    if cache is None:
        return
    try:
        await cache.set(key, value, ttl)
    except Exception as e:
        logger.debug("cache_set_failed", key=key, error=str(e))
