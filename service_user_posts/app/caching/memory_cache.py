"""
In-memory TTL cache for the Gateway service.
"""

import asyncio
import threading
import time
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

from shared.logging import get_logger


class Cache(Protocol):
    """Key/value store consulted by the cache-aside user client."""

    def set(self, key: str, value: Any) -> None:
        ...

    def get(self, key: str) -> Tuple[Optional[Any], bool]:
        ...

    def __len__(self) -> int:
        ...


class NullCache:
    """Cache that never stores anything; used when caching is disabled."""

    def set(self, key: str, value: Any) -> None:
        return None

    def get(self, key: str) -> Tuple[Optional[Any], bool]:
        return None, False

    def __len__(self) -> int:
        return 0


class MemoryCache:
    """Thread-safe dict cache with a fixed TTL per entry.

    Expired entries are treated as misses on read, so correctness does not
    depend on the janitor. The janitor only reclaims memory by sweeping
    expired entries every ``cleanup_interval`` seconds once ``start()`` has
    been awaited from a running event loop.
    """

    def __init__(
        self,
        ttl_seconds: float,
        cleanup_interval_seconds: float = 0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self.cleanup_interval_seconds = cleanup_interval_seconds
        self.logger = get_logger("gateway.cache")

        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}  # key -> (value, expires_at)
        self._lock = threading.Lock()
        self._janitor: Optional[asyncio.Task] = None

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, replacing any previous entry."""
        expires_at = self._clock() + self.ttl_seconds
        with self._lock:
            self._entries[key] = (value, expires_at)

    def get(self, key: str) -> Tuple[Optional[Any], bool]:
        """Return ``(value, True)`` for a live entry, ``(None, False)`` otherwise."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return None, False

        value, expires_at = entry
        if now >= expires_at:
            return None, False
        return value, True

    def delete_expired(self) -> int:
        """Drop expired entries and return how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    async def start(self) -> None:
        """Start the janitor task on the running loop."""
        if self.cleanup_interval_seconds <= 0 or self._janitor is not None:
            return
        self._janitor = asyncio.create_task(self._run_janitor())
        self.logger.info("Cache janitor started", interval_seconds=self.cleanup_interval_seconds)

    async def stop(self) -> None:
        """Cancel the janitor task and wait for it to finish."""
        if self._janitor is None:
            return
        self._janitor.cancel()
        try:
            await self._janitor
        except asyncio.CancelledError:
            pass
        self._janitor = None
        self.logger.info("Cache janitor stopped")

    async def _run_janitor(self) -> None:
        while True:
            await asyncio.sleep(self.cleanup_interval_seconds)
            removed = self.delete_expired()
            if removed:
                self.logger.debug("Swept expired cache entries", removed=removed)
