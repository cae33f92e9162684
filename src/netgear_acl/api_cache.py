#!/usr/bin/env python3
"""
Time-based cache for fetched router pages and parsed device lists.
Reduces redundant page fetches between a read and the postback that follows it.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence

log = logging.getLogger(__name__)

PAGE_KEY = "page"
DEVICES_KEY = "devices"

DEFAULT_TTL_MINUTES = 5

# Devices are parsed from the page, so dropping the page drops them too.
DEFAULT_DEPENDENTS = {PAGE_KEY: (DEVICES_KEY,)}


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


class TimedCache:
    """
    Expiring memoization keyed by name.

    Not thread-safe: callers are expected to use one cache per thread.
    """

    def __init__(self, clock: Callable[[], float] = time.time,
                 dependents: Optional[Dict[str, Sequence[str]]] = None):
        """
        Initialize the cache.

        Args:
            clock: Returns the current time in seconds (injectable for tests)
            dependents: Keys invalidated together with a parent key
        """
        self._clock = clock
        self._dependents = dict(DEFAULT_DEPENDENTS if dependents is None else dependents)
        self._cache: Dict[str, CacheEntry] = {}

    def get_or_create(self, key: str, producer: Callable[[], Any],
                      ttl_minutes: float = DEFAULT_TTL_MINUTES) -> Any:
        """
        Return the cached value for key, calling producer on a miss or expiry.

        Args:
            key: Cache key
            producer: Builds the value when it is missing or expired
            ttl_minutes: Lifetime of a freshly produced value

        Returns:
            Cached or freshly produced value
        """
        now = self._clock()
        entry = self._cache.get(key)

        if entry is not None:
            if now < entry.expires_at:
                log.debug(f"Cache hit: {key}")
                return entry.value
            del self._cache[key]
            log.debug(f"Cache expired: {key}")

        value = producer()
        self._cache[key] = CacheEntry(value=value, expires_at=now + ttl_minutes * 60)
        log.debug(f"Cache set: {key} (ttl: {ttl_minutes} min)")
        return value

    def invalidate(self, key: str) -> None:
        """
        Remove key and its dependents from the cache.

        Args:
            key: Cache key to invalidate
        """
        for name in (key, *self._dependents.get(key, ())):
            if self._cache.pop(name, None) is not None:
                log.debug(f"Cache invalidated: {name}")

