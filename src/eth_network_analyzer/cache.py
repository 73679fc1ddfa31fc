"""
In-memory cache with a fixed time-to-live per entry.
"""

import time
import logging
import threading
from collections import OrderedDict
from typing import Any, Callable, Hashable, Optional

logger = logging.getLogger(__name__)


class TTLCache:
    """Key/value store whose entries stop being served ``ttl`` seconds after insertion.

    Expired entries are dropped lazily on read and by ``sweep()``. When
    ``max_entries`` is set, a full cache sweeps expired entries before
    evicting the oldest insertions. ``None`` marks a miss, so ``None`` itself
    cannot be cached.
    """

    def __init__(self, ttl: float = 300.0, max_entries: Optional[int] = None,
                 clock: Callable[[], float] = time.monotonic, name: str = "cache"):
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        self.ttl = ttl
        self.max_entries = max_entries
        self.name = name
        self._clock = clock
        self._entries: "OrderedDict[Hashable, tuple]" = OrderedDict()
        self._lock = threading.Lock()

    def _is_expired(self, inserted_at: float, now: float) -> bool:
        return now - inserted_at >= self.ttl

    def get(self, key: Hashable) -> Optional[Any]:
        """Return the cached value, or None if missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            value, inserted_at = entry
            if self._is_expired(inserted_at, self._clock()):
                del self._entries[key]
                logger.debug(f"{self.name}: entry {key!r} expired")
                return None
            return value

    def set(self, key: Hashable, value: Any) -> None:
        """Store a value, replacing any previous entry for the key."""
        if value is None:
            raise ValueError("None cannot be cached")

        with self._lock:
            now = self._clock()
            self._entries.pop(key, None)

            if self.max_entries and len(self._entries) >= self.max_entries:
                self._sweep_locked(now)
                while len(self._entries) >= self.max_entries:
                    evicted, _ = self._entries.popitem(last=False)
                    logger.debug(f"{self.name}: evicted {evicted!r}")

            self._entries[key] = (value, now)

    def _sweep_locked(self, now: float) -> int:
        expired = [key for key, (_, inserted_at) in self._entries.items()
                   if self._is_expired(inserted_at, now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def sweep(self) -> int:
        """Drop every expired entry. Returns the number removed."""
        with self._lock:
            removed = self._sweep_locked(self._clock())
        if removed:
            logger.info(f"{self.name}: swept {removed} expired entries")
        return removed

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
