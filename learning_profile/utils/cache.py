"""
In-memory TTL cache for profile reads
"""

from typing import Any, Dict, Optional
import time
from threading import Lock

from learning_profile.utils.logger import logger


class CacheEntry:
    """Cache entry with TTL"""

    __slots__ = ("value", "expires_at")

    def __init__(self, value: Any, ttl_seconds: int):
        self.value = value
        self.expires_at = time.monotonic() + ttl_seconds

    @property
    def is_expired(self) -> bool:
        return time.monotonic() >= self.expires_at


class Cache:
    """Thread-safe in-memory cache with TTL"""

    def __init__(self, default_ttl: int = 120):
        """
        Initialize cache

        Args:
            default_ttl: Default TTL in seconds
        """
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = Lock()
        self.default_ttl = default_ttl

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache, dropping it if expired"""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired:
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self.default_ttl
        with self._lock:
            self._entries[key] = CacheEntry(value, ttl)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    async def cleanup_expired(self) -> int:
        """Remove expired entries; returns how many were dropped"""
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.is_expired]
            for key in expired:
                del self._entries[key]

        if expired:
            logger.debug(f"Cleaned up {len(expired)} expired cache entries")
        return len(expired)

    def stats(self) -> dict:
        with self._lock:
            total = len(self._entries)
            expired = sum(1 for entry in self._entries.values() if entry.is_expired)
        return {
            "total_entries": total,
            "expired_entries": expired,
            "active_entries": total - expired
        }


def profile_cache_key(profile_id: str) -> str:
    return f"profile:{profile_id}"
