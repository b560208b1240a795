"""In-memory key/value cache with per-entry expiry.

Expired entries are invisible to ``get`` and are also removed by a
background sweep task so memory stays bounded even for keys that are never
read again. All operations share one ``asyncio.Lock`` and are safe to call
from concurrent queries.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from guarded_rag.exceptions import CacheError
from guarded_rag.observability.logger import get_logger

logger = get_logger("ttl_cache")

SWEEP_INTERVAL_S = 60.0


@dataclass
class CacheEntry:
    value: Any
    expires_at: float | None = None

    def expired(self, now: float) -> bool:
        return self.expires_at is not None and now > self.expires_at


class TTLCache:
    def __init__(
        self,
        default_ttl: float | None = None,
        sweep_interval: float = SWEEP_INTERVAL_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._default_ttl = default_ttl
        self._sweep_interval = sweep_interval
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()
        self._sweeper: asyncio.Task | None = None

    async def get(self, key: str) -> Any | None:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expired(self._clock()):
                del self._entries[key]
                return None
            return entry.value

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store ``value``; a missing or zero ``ttl`` falls back to the default TTL."""
        effective_ttl = ttl or self._default_ttl
        if effective_ttl is not None and effective_ttl < 0:
            raise CacheError(f"Invalid TTL for {key}: {effective_ttl}")
        expires_at = self._clock() + effective_ttl if effective_ttl else None
        async with self._lock:
            self._entries[key] = CacheEntry(value=value, expires_at=expires_at)
        logger.debug("cache_set", key=key, ttl=effective_ttl)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._entries.pop(key, None)

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()

    async def sweep(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        async with self._lock:
            now = self._clock()
            expired = [k for k, e in self._entries.items() if e.expired(now)]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("cache_swept", cleaned=len(expired))
        return len(expired)

    def start(self) -> None:
        """Start the periodic sweep on the running event loop."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_loop())

    async def close(self) -> None:
        if self._sweeper is not None:
            self._sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweeper
            self._sweeper = None
        await self.clear()

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            try:
                await self.sweep()
            except Exception as e:
                logger.warning("cache_sweep_failed", error=str(e))

    @property
    def size(self) -> int:
        return len(self._entries)

    def stats(self) -> dict[str, Any]:
        return {"size": len(self._entries), "keys": list(self._entries)}
