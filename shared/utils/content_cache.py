"""Content-addressed TTL cache for auxiliary, non-authorization data.

Keys are derived from the content they describe (for example a connection
descriptor), never from user identity, and entries expire after a fixed
time-to-live. One cache is owned per process; it is not shared across
instances.
"""

# flake8: noqa: E501

import hashlib
import json
import logging
import threading
import time
from typing import Any, Optional

from cachetools import TTLCache

logger = logging.getLogger(__name__)

_MISSING = object()


class ContentCache:
    """Thread-safe ``get``/``put``/``invalidate`` wrapper around ``TTLCache``."""

    def __init__(self, maxsize: int = 1024, ttl: float = 300, timer=time.monotonic):
        self._cache = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)
        self._lock = threading.RLock()
        self.ttl = ttl

    @staticmethod
    def key_for(namespace: str, **parts: Any) -> str:
        """
        Build a stable key from a namespace and content parts.

        Parts are JSON-encoded with sorted keys and hashed, so the same
        content always maps to the same key regardless of argument order.
        """
        encoded = json.dumps(parts, sort_keys=True, default=str, separators=(",", ":"))
        digest = hashlib.sha256(encoded.encode("utf-8")).hexdigest()
        return f"{namespace}:{digest}"

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            value = self._cache.get(key, _MISSING)
        if value is _MISSING:
            logger.debug("Cache miss %s", key)
            return default
        return value

    def put(self, key: str, value: Any) -> None:
        with self._lock:
            self._cache[key] = value

    def invalidate(self, key: Optional[str] = None, prefix: Optional[str] = None) -> int:
        """
        Drop one key, every key under a namespace prefix, or everything.

        Returns:
            Number of entries removed
        """
        with self._lock:
            if key is not None:
                return 1 if self._cache.pop(key, _MISSING) is not _MISSING else 0
            if prefix is not None:
                doomed = [k for k in list(self._cache.keys()) if k.startswith(prefix)]
                for k in doomed:
                    self._cache.pop(k, None)
                return len(doomed)
            removed = len(self._cache)
            self._cache.clear()
            return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
