# fileexp/services/translation_cache.py
"""
Process-lifetime memo of provider results keyed by base name.
"""

import logging
import threading
from typing import Optional

logger = logging.getLogger(__name__)


class _NotTranslatable:
    """Sentinel type: the provider confirmed there is nothing to translate."""

    _instance: Optional["_NotTranslatable"] = None

    def __new__(cls) -> "_NotTranslatable":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_TRANSLATABLE"

    def __bool__(self) -> bool:
        return False


NOT_TRANSLATABLE = _NotTranslatable()


class TranslationCache:
    """
    Translation cache keyed by normalized base name.

    Entries are write-once: the first stored result wins and later writes for
    the same key are ignored. Failures are never stored, so a failed name is
    retried on the next request.

    Thread-safe for concurrent access.
    """

    def __init__(self) -> None:
        self._cache: dict[str, str | _NotTranslatable] = {}
        self._hits = 0
        self._misses = 0
        self._lock = threading.Lock()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._cache

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def get(self, key: str) -> str | _NotTranslatable | None:
        """
        Get cached value for a base name.

        Returns:
            The translation, NOT_TRANSLATABLE, or None on a miss
        """
        with self._lock:
            if key in self._cache:
                self._hits += 1
                return self._cache[key]
            self._misses += 1
            return None

    def set(self, key: str, translation: Optional[str]) -> bool:
        """
        Store a result. None is stored as NOT_TRANSLATABLE.

        Returns:
            True if the value was stored, False if the key was already set
        """
        value: str | _NotTranslatable = NOT_TRANSLATABLE if translation is None else translation
        with self._lock:
            if key in self._cache:
                logger.debug("Cache entry already set for %r, keeping first result", key)
                return False
            self._cache[key] = value
            return True

    def clear(self) -> None:
        """Clear all cached translations and reset statistics."""
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0
            logger.debug("Translation cache cleared")

    @property
    def stats(self) -> dict:
        """Get cache statistics."""
        with self._lock:
            total = self._hits + self._misses
            hit_rate = (self._hits / total * 100) if total > 0 else 0.0
            return {
                "size": len(self._cache),
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": f"{hit_rate:.1f}%",
            }
