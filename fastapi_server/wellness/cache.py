"""
In-memory result cache with per-entry TTL.
"""
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_TTL_MS = 5 * 60 * 1000


class ResultCache:
    """
    Process-local key/value cache with lazy expiration.

    Entries are stored with an absolute expiry and removed the next time they
    are looked up after that instant. There is no size bound and no background
    sweep, so keys should stay low-cardinality (per user/team/date query
    results). Each process keeps its own contents.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """
        Initialize cache.

        Args:
            clock: Returns the current time in seconds. Must be monotonic.
        """
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def _now_ms(self) -> float:
        return self._clock() * 1000

    def _lookup(self, key: str) -> Tuple[bool, Any]:
        # Caller holds the lock
        entry = self._entries.get(key)
        if entry is None:
            return False, None

        value, expiry = entry
        if expiry > self._now_ms():
            return True, value

        del self._entries[key]
        logger.debug("Evicted expired cache entry %s", key)
        return False, None

    def set(self, key: str, value: Any, ttl_ms: int = DEFAULT_TTL_MS) -> None:
        """
        Store a value, replacing any existing entry for the key.

        Args:
            key: Cache key
            value: Value to cache
            ttl_ms: Time-to-live in milliseconds
        """
        with self._lock:
            self._entries[key] = (value, self._now_ms() + ttl_ms)

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        """
        Get cached value if not expired.

        Args:
            key: Cache key
            default: Returned when the key is missing or expired

        Returns:
            Cached value or default
        """
        with self._lock:
            found, value = self._lookup(key)
        return value if found else default

    def has(self, key: str) -> bool:
        """Check whether a fresh entry exists for the key."""
        with self._lock:
            found, _ = self._lookup(key)
        return found

    def clear(self, key: str) -> None:
        """Delete a specific cache entry."""
        with self._lock:
            self._entries.pop(key, None)

    def clear_all(self) -> None:
        """Clear all cache entries."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
