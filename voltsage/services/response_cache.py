"""Bounded in-process cache for provider search results."""

import logging
import time
from collections import OrderedDict
from typing import Any, Optional, Tuple

from voltsage.core.config import settings

logger = logging.getLogger(__name__)


def build_cache_key(provider_id: str, lat: float, lon: float, radius: float,
                    decimals: int = settings.CACHE_COORD_ROUND_DECIMALS) -> str:
    """Key on normalized request parameters rather than the request URL (which carries the API key)."""
    return f"stations:{provider_id}:{lat:.{decimals}f}:{lon:.{decimals}f}:{radius:g}"


class ResponseCache:
    """Least-recently-used cache with a per-entry TTL.

    Single event loop only; entries are evicted oldest-first once
    ``max_entries`` is reached.
    """

    def __init__(self, max_entries: int = settings.CACHE_MAX_ENTRIES,
                 expire_seconds: int = settings.CACHE_EXPIRE_SECONDS):
        self.max_entries = max(1, max_entries)
        self.expire_seconds = expire_seconds
        self._entries: "OrderedDict[str, Tuple[float, Any]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self.expire_seconds > 0 and time.monotonic() - stored_at > self.expire_seconds:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (time.monotonic(), value)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted cache entry %s", evicted)

    def clear(self) -> None:
        self._entries.clear()
