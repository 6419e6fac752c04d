from __future__ import annotations

import json
import warnings
from dataclasses import dataclass
from threading import RLock
from time import monotonic
from typing import Any, Callable, Dict

from redis import Redis
from redis.exceptions import RedisError
from routemap.core.settings import settings


@dataclass
class _CacheEntry:
    value: Any
    expires_at: float


class CacheBackend:
    """In-memory TTL cache with namespace based invalidation."""

    def __init__(self) -> None:
        self._store: Dict[str, Dict[str, _CacheEntry]] = {}
        self._lock = RLock()

    def get(self, namespace: str, key: str) -> Any | None:
        with self._lock:
            bucket = self._store.get(namespace)
            if not bucket:
                return None
            entry = bucket.get(key)
            if not entry:
                return None
            if monotonic() >= entry.expires_at:
                bucket.pop(key, None)
                return None
            return entry.value

    def set(self, namespace: str, key: str, value: Any, ttl_seconds: int) -> None:
        expires_at = monotonic() + max(ttl_seconds, 1)
        with self._lock:
            bucket = self._store.setdefault(namespace, {})
            bucket[key] = _CacheEntry(value=value, expires_at=expires_at)

    def invalidate(self, namespace: str, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._store.pop(namespace, None)
                return
            bucket = self._store.get(namespace)
            if bucket is not None:
                bucket.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def remember(
        self,
        namespace: str,
        key: str,
        ttl_seconds: int,
        loader: Callable[[], Any],
    ) -> Any:
        cached = self.get(namespace, key)
        if cached is not None:
            return cached
        value = loader()
        self.set(namespace, key, value, ttl_seconds)
        return value


class RedisCacheBackend(CacheBackend):
    """Redis-backed cache shared across worker processes.

    Values are stored as JSON, so callers cache plain dumps of their models
    (``model_dump(mode="json")``) rather than model instances. Redis failures
    degrade to cache misses.
    """

    def __init__(
        self,
        url: str,
        namespace_prefix: str = "cache",
        client: Redis | None = None,
    ) -> None:
        self._client = (
            client if client is not None else Redis.from_url(url, decode_responses=True)
        )
        self._prefix = namespace_prefix.rstrip(":")

    def _full_key(self, namespace: str, key: str) -> str:
        return f"{self._prefix}:{namespace}:{key}"

    def _delete_matching(self, pattern: str) -> None:
        keys = list(self._client.scan_iter(pattern))
        if keys:
            self._client.delete(*keys)

    def get(self, namespace: str, key: str) -> Any | None:
        try:
            raw = self._client.get(self._full_key(namespace, key))
        except RedisError:
            return None
        return None if raw is None else json.loads(raw)

    def set(self, namespace: str, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            self._client.setex(
                self._full_key(namespace, key),
                max(ttl_seconds, 1),
                json.dumps(value, separators=(",", ":")),
            )
        except RedisError as exc:
            warnings.warn(f"Redis cache write failed for {namespace}:{key} ({exc})")

    def invalidate(self, namespace: str, key: str | None = None) -> None:
        try:
            if key is None:
                self._delete_matching(f"{self._prefix}:{namespace}:*")
            else:
                self._client.delete(self._full_key(namespace, key))
        except RedisError as exc:
            warnings.warn(f"Redis cache invalidation failed for {namespace} ({exc})")

    def clear(self) -> None:
        try:
            self._delete_matching(f"{self._prefix}:*")
        except RedisError as exc:
            warnings.warn(f"Redis cache clear failed ({exc})")


def _init_cache_backend() -> CacheBackend:
    if settings.cache_provider == "redis":
        try:
            return RedisCacheBackend(
                settings.redis_url, namespace_prefix=settings.cache_namespace
            )
        except (RedisError, ValueError) as exc:  # pragma: no cover - optional path
            warnings.warn(
                f"Redis cache init failed ({exc}), falling back to in-memory cache"
            )
    return CacheBackend()


cache_backend = _init_cache_backend()
