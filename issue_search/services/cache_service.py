"""
Services - Cache Service

TTL-based cache for query embeddings.
"""

from typing import Any, Optional
from cachetools import TTLCache
import threading

from issue_search.config import get_settings


class CacheService:
    """Thread-safe TTL cache keyed by string."""

    def __init__(self, settings=None):
        self.settings = settings or get_settings()
        self._lock = threading.Lock()
        self._cache = TTLCache(
            maxsize=self.settings.cache.max_entries,
            ttl=self.settings.cache.ttl_query,
        )

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None
        """
        if not self.settings.cache.enabled:
            return None

        with self._lock:
            return self._cache.get(key)

    def set(self, key: str, value: Any) -> None:
        """Set value in cache."""
        if not self.settings.cache.enabled:
            return

        with self._lock:
            self._cache[key] = value

