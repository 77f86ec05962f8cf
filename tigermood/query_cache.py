import logging
import time
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)

Key = Tuple[Hashable, ...]
_MISSING = object()


class QueryCache:
    """In-memory TTL cache for read endpoints, keyed by tuples.

    The first element of a key names the resource ("posts", "rewards", ...)
    so a mutation can drop every cached page of that resource at once.
    """

    def __init__(self, ttl: float = 30.0, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[Key, Tuple[float, Any]] = {}

    def __len__(self):
        return len(self._entries)

    def get(self, key: Key, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return default
        return value

    def set(self, key: Key, value: Any, ttl: Optional[float] = None) -> None:
        self._entries[key] = (self._clock() + (self.ttl if ttl is None else ttl), value)

    def __contains__(self, key):
        return self.get(key, _MISSING) is not _MISSING

    async def get_or_fetch(self, key: Key, fetch: Callable[[], Awaitable[Any]],
                           ttl: Optional[float] = None) -> Any:
        cached = self.get(key, _MISSING)
        if cached is not _MISSING:
            logger.debug("cache hit %s", key)
            return cached
        value = await fetch()
        self.set(key, value, ttl)
        return value

    def invalidate(self, *prefixes: Hashable) -> int:
        """Drop entries whose key starts with any of the given resource names."""
        stale = [k for k in self._entries if k and k[0] in prefixes]
        for k in stale:
            del self._entries[k]
        return len(stale)

    def cleanup(self) -> int:
        now = self._clock()
        expired = [k for k, (exp, _) in self._entries.items() if now >= exp]
        for k in expired:
            del self._entries[k]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
