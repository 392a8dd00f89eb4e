"""
Render cache for Desa Chat Markup, dood!

A RenderTree depends on nothing but its source string, so trees can be
reused for repeated messages (chat history re-renders, the greeting sent on
every page load). Keys are always the exact source string.
"""

import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Dict, Optional, Tuple

from .ast_nodes import MDDocument

logger = logging.getLogger(__name__)


class RenderCache:
    """Thread-safe in-memory cache of RenderTrees keyed by source string, dood!

    Entries expire after ``defaultTtl`` seconds (checked on read). When the
    cache is full the oldest entry is evicted.

    Example:
        >>> cache = RenderCache(defaultTtl=600, maxSize=100)
        >>> cache.set("**Halo**", document)
        >>> cache.get("**Halo**") is document
        True
    """

    def __init__(self, defaultTtl: int = 3600, maxSize: int = 1000):
        """Initialize render cache, dood!

        Args:
            defaultTtl: Entry lifetime in seconds, 0 or less disables expiry (default: 3600)
            maxSize: Maximum number of stored trees (default: 1000)
        """
        self._defaultTtl = defaultTtl
        self._maxSize = maxSize
        self._lock = threading.RLock()
        self._entries: "OrderedDict[str, Tuple[float, MDDocument]]" = OrderedDict()
        self._hits = 0
        self._misses = 0

    def _checkKey(self, key: Any) -> str:
        if not isinstance(key, str):
            raise TypeError(f"RenderCache expects string keys, got {type(key).__name__}, dood!")
        return key

    def get(self, key: str, ttl: Optional[int] = None) -> Optional[MDDocument]:
        """Get cached tree for a source string, or None if missing or expired.

        Args:
            key: Source message
            ttl: Optional TTL override for this lookup in seconds
        """
        key = self._checkKey(key)
        effectiveTtl = self._defaultTtl if ttl is None else ttl

        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            storedAt, document = entry
            if effectiveTtl > 0 and time.time() - storedAt > effectiveTtl:
                del self._entries[key]
                self._misses += 1
                return None

            self._hits += 1
            return document

    def set(self, key: str, value: MDDocument) -> bool:
        """Store a tree for a source string, dood!

        Returns:
            bool: True if stored, False if the cache cannot hold entries
        """
        key = self._checkKey(key)
        if self._maxSize <= 0:
            return False

        with self._lock:
            if key in self._entries:
                del self._entries[key]
            while len(self._entries) >= self._maxSize:
                evictedKey, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted cached tree for message of {len(evictedKey)} chars")
            self._entries[key] = (time.time(), value)
            return True

    def clear(self) -> None:
        """Remove all entries, dood!"""
        with self._lock:
            self._entries.clear()

    def getStats(self) -> Dict[str, Any]:
        """Get cache statistics, dood!"""
        with self._lock:
            return {
                "enabled": True,
                "entries": len(self._entries),
                "maxSize": self._maxSize,
                "defaultTtl": self._defaultTtl,
                "hits": self._hits,
                "misses": self._misses,
            }


class NullRenderCache(RenderCache):
    """No-op cache that never stores anything, dood!

    Useful for:
    - Testing without cache side effects
    - Disabling cache through configuration
    """

    def __init__(self):
        super().__init__(defaultTtl=0, maxSize=0)

    def get(self, key: str, ttl: Optional[int] = None) -> Optional[MDDocument]:
        self._checkKey(key)
        return None

    def set(self, key: str, value: MDDocument) -> bool:
        self._checkKey(key)
        return False

    def getStats(self) -> Dict[str, Any]:
        return {"enabled": False}


def createRenderCache(config: Dict[str, Any]) -> RenderCache:
    """Create a cache from the ``[cache]`` config table, dood!"""
    if not config.get("enabled", True):
        return NullRenderCache()
    return RenderCache(
        defaultTtl=int(config.get("ttl", 3600)),
        maxSize=int(config.get("max-size", 1000)),
    )
