"""In-process TTL cache for rarely-changing rows (settings).

Backed by cachetools.TTLCache. A second, unbounded-by-time store keeps the
last value read for each key so reads can still be served while the
database is unreachable.
"""

import asyncio
import functools
import logging
from collections import OrderedDict
from collections.abc import Callable
from typing import Any, TypeVar

from cachetools import TTLCache  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)

# Distinguishes "not cached" from a cached None
_MISSING = object()

F = TypeVar("F", bound=Callable[..., Any])


class AsyncTTLCache:
    """TTL cache with a bounded last-known-good store."""

    def __init__(self, maxsize: int = 128, ttl: float = 60.0):
        self._maxsize = maxsize
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl)
        self._stale: OrderedDict[str, Any] = OrderedDict()
        self._locks: dict[str, asyncio.Lock] = {}

    def lock(self, key: str) -> asyncio.Lock:
        return self._locks.setdefault(key, asyncio.Lock())

    def get(self, key: str) -> Any:
        """Return the fresh value or ``_MISSING``."""
        return self._cache.get(key, _MISSING)

    def set(self, key: str, value: Any) -> None:
        self._cache[key] = value
        self._stale[key] = value
        self._stale.move_to_end(key)
        while len(self._stale) > self._maxsize:
            self._stale.popitem(last=False)

    def invalidate(self, key: str) -> None:
        """Drop the fresh value and the last-known-good one."""
        self._cache.pop(key, None)
        self._stale.pop(key, None)

    def clear(self) -> None:
        self._cache.clear()
        self._stale.clear()

    def get_stale(self, key: str) -> Any:
        return self._stale.get(key, _MISSING)


def cached(cache: AsyncTTLCache, key_func: Callable[..., str]):
    """Cache the result of an async repository read.

    *key_func* receives the same arguments as the decorated coroutine. When the
    read fails and a last-known-good value exists, that value is returned with
    a warning; otherwise the error propagates.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            cache_key = key_func(*args, **kwargs)
            result = cache.get(cache_key)
            if result is not _MISSING:
                return result

            async with cache.lock(cache_key):
                result = cache.get(cache_key)
                if result is not _MISSING:
                    return result
                try:
                    result = await func(*args, **kwargs)
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    stale = cache.get_stale(cache_key)
                    if stale is _MISSING:
                        raise
                    logger.warning(f"Returning stale value for {cache_key} ({type(exc).__name__})")
                    return stale
                cache.set(cache_key, result)
                return result

        wrapper.cache = cache  # type: ignore[attr-defined]
        return wrapper  # type: ignore[return-value]

    return decorator
