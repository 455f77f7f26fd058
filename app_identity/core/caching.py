"""Caching decorator for ``AppUserInfoLookup``.

Wraps another lookup (typically the Keycloak one) and keeps successful
results in memory, bounded by entry count and by age.

Usage:
    keycloak_lookup = KeycloakAppUserInfoLookup(credentials)
    cached_lookup = CachingAppUserInfoLookup.from_config(
        CacheConfig(delegate=keycloak_lookup, max_size=1000,
                    expire_after_write=timedelta(minutes=15))
    )

Misses and failures are never cached, so a user that was not yet
provisioned, or an identity provider that was briefly down, is retried on
the next call.
"""
from __future__ import annotations
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, Dict, Generic, Hashable, Optional, TypeVar

from .domain import UserId
from .user_info import AppUserInfo, AppUserInfoLookup

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

DEFAULT_MAX_SIZE = 1000
DEFAULT_EXPIRE_AFTER_WRITE = timedelta(minutes=15)


@dataclass
class _Entry(Generic[V]):
    value: V
    written_at: float
    accessed_at: float


class ExpiringCache(Generic[K, V]):
    """Thread-safe LRU cache with optional write- and access-based expiry.

    Times come from ``clock`` (seconds, monotonic); tests pass a fake one.
    """

    def __init__(
        self,
        max_size: int,
        expire_after_write: Optional[timedelta] = None,
        expire_after_access: Optional[timedelta] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_size < 0:
            raise ValueError("max_size must not be negative")
        self.max_size = max_size
        self._write_ttl = expire_after_write.total_seconds() if expire_after_write is not None else None
        self._access_ttl = expire_after_access.total_seconds() if expire_after_access is not None else None
        self._clock = clock
        self._entries: "OrderedDict[K, _Entry[V]]" = OrderedDict()
        self._lock = threading.Lock()

    def get_if_present(self, key: K) -> Optional[V]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            now = self._clock()
            if self._is_expired(entry, now):
                del self._entries[key]
                return None

            entry.accessed_at = now
            # Move to end for LRU tracking
            self._entries.move_to_end(key)
            return entry.value

    def put(self, key: K, value: V) -> None:
        with self._lock:
            if self.max_size == 0:
                return
            now = self._clock()
            self._entries.pop(key, None)
            self._entries[key] = _Entry(value=value, written_at=now, accessed_at=now)
            self._evict(now)

    def invalidate(self, key: K) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def invalidate_all(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            self._cleanup_expired(self._clock())
            return len(self._entries)

    def _is_expired(self, entry: _Entry[V], now: float) -> bool:
        if self._write_ttl is not None and now - entry.written_at >= self._write_ttl:
            return True
        if self._access_ttl is not None and now - entry.accessed_at >= self._access_ttl:
            return True
        return False

    def _cleanup_expired(self, now: float) -> None:
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._entries[key]

    def _evict(self, now: float) -> None:
        if len(self._entries) <= self.max_size:
            return
        self._cleanup_expired(now)
        while len(self._entries) > self.max_size:
            self._entries.popitem(last=False)


@dataclass
class CacheConfig:
    """Settings for ``CachingAppUserInfoLookup``.

    ``expire_after_write`` and ``expire_after_access`` may be combined; an
    entry expires as soon as either duration has elapsed. ``None`` disables
    the respective policy.
    """
    delegate: Optional[AppUserInfoLookup] = None
    max_size: int = DEFAULT_MAX_SIZE
    expire_after_write: Optional[timedelta] = DEFAULT_EXPIRE_AFTER_WRITE
    expire_after_access: Optional[timedelta] = None
    clock: Callable[[], float] = field(default=time.monotonic)


class CachingAppUserInfoLookup:
    """``AppUserInfoLookup`` that memoizes successful lookups of a delegate.

    Concurrent misses for the same user may each call the delegate; the last
    result written wins.
    """

    def __init__(self, delegate: AppUserInfoLookup, cache: ExpiringCache[UserId, AppUserInfo]):
        if delegate is None:
            raise TypeError("delegate must not be None")
        if cache is None:
            raise TypeError("cache must not be None")
        self.delegate = delegate
        self._cache = cache
        self._stats: Dict[str, int] = {"hits": 0, "misses": 0}
        self._stats_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: CacheConfig) -> "CachingAppUserInfoLookup":
        """Build a caching lookup.

        Raises:
            RuntimeError: If no delegate is configured
            ValueError: If max_size is negative
        """
        if config.delegate is None:
            raise RuntimeError("Delegate lookup must be set")

        cache: ExpiringCache[UserId, AppUserInfo] = ExpiringCache(
            max_size=config.max_size,
            expire_after_write=config.expire_after_write,
            expire_after_access=config.expire_after_access,
            clock=config.clock,
        )
        return cls(config.delegate, cache)

    def find_user_info(self, user_id: UserId) -> Optional[AppUserInfo]:
        cached = self._cache.get_if_present(user_id)
        if cached is not None:
            self._record("hits")
            logger.debug("User info cache hit for userId: %s", user_id)
            return cached

        self._record("misses")
        result = self.delegate.find_user_info(user_id)
        if result is not None:
            self._cache.put(user_id, result)
        return result

    def invalidate(self, user_id: UserId) -> None:
        self._cache.invalidate(user_id)

    def invalidate_all(self) -> None:
        self._cache.invalidate_all()

    def stats(self) -> Dict[str, int]:
        with self._stats_lock:
            return {**self._stats, "size": len(self._cache)}

    def __len__(self) -> int:
        return len(self._cache)

    def close(self) -> None:
        """Close the delegate if it holds resources."""
        close = getattr(self.delegate, "close", None)
        if callable(close):
            close()

    def _record(self, counter: str) -> None:
        with self._stats_lock:
            self._stats[counter] += 1
