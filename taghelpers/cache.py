"""Cache stores for computed integrity values.

Every store implements :class:`IntegrityCache`. External stores fail open:
a store error is logged and reported as a miss (or a dropped write) so the
resolver falls back to hashing the file directly.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from django.core.exceptions import ImproperlyConfigured
from redis import Redis
from redis.exceptions import RedisError

from common.logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class IntegrityCache(Protocol):
    """Minimal key-value contract used by the integrity resolver."""

    def get(self, key: str) -> Optional[str]:
        """Return the cached value or ``None`` when absent."""

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``."""

    def clear(self) -> None:
        """Drop every cached value owned by this store."""


class InMemoryIntegrityCache:
    """Unbounded process-local map guarded by a lock."""

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._entries[key] = value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RedisIntegrityCache:
    """Redis-backed store shared between worker processes.

    Keys are written without a TTL; Redis eviction policy is the only
    expiry. ``clear`` removes the keys under this store's prefix.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        *,
        prefix: str = "Integrity-",
        client_factory: Optional[Callable[[], Redis]] = None,
    ) -> None:
        if client_factory is None:
            if not url:
                raise ImproperlyConfigured("RedisIntegrityCache requires a redis URL")
            client_factory = lambda: Redis.from_url(url, decode_responses=True)  # noqa: E731
        self._client_factory = client_factory
        self._client: Optional[Redis] = None
        self._lock = threading.Lock()
        self.prefix = prefix

    def _redis(self) -> Redis:
        with self._lock:
            if self._client is None:
                self._client = self._client_factory()
            return self._client

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str) -> Optional[str]:
        try:
            value = self._redis().get(self._key(key))
        except RedisError as exc:
            logger.warning("integrity.cache.unavailable", op="get", error=str(exc))
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value or None

    def set(self, key: str, value: str) -> None:
        try:
            self._redis().set(self._key(key), value)
        except RedisError as exc:
            logger.warning("integrity.cache.unavailable", op="set", error=str(exc))

    def clear(self) -> None:
        try:
            client = self._redis()
            keys = list(client.scan_iter(match=f"{self.prefix}*"))
            if keys:
                client.delete(*keys)
        except RedisError as exc:
            logger.warning("integrity.cache.unavailable", op="clear", error=str(exc))


class DjangoIntegrityCache:
    """Adapter over a configured ``django.core.cache`` alias."""

    def __init__(self, alias: str = "default", *, prefix: str = "Integrity-") -> None:
        self.alias = alias
        self.prefix = prefix

    def _backend(self) -> Any:
        from django.core.cache import caches

        return caches[self.alias]

    def get(self, key: str) -> Optional[str]:
        try:
            return self._backend().get(f"{self.prefix}{key}")
        except Exception as exc:
            logger.warning(
                "integrity.cache.unavailable", op="get", alias=self.alias, error=str(exc)
            )
            return None

    def set(self, key: str, value: str) -> None:
        try:
            # timeout=None keeps the entry until the backend evicts it.
            self._backend().set(f"{self.prefix}{key}", value, timeout=None)
        except Exception as exc:
            logger.warning(
                "integrity.cache.unavailable", op="set", alias=self.alias, error=str(exc)
            )

    def clear(self) -> None:
        # Django backends cannot delete by prefix; clearing drops the alias.
        try:
            self._backend().clear()
        except Exception as exc:
            logger.warning(
                "integrity.cache.unavailable",
                op="clear",
                alias=self.alias,
                error=str(exc),
            )


def build_integrity_cache(backend: str, **options: Any) -> IntegrityCache:
    """Return the cache store registered under ``backend``."""

    name = (backend or "").strip().lower()
    if name == "memory":
        return InMemoryIntegrityCache()
    if name == "redis":
        return RedisIntegrityCache(
            options.get("url"),
            prefix=options.get("prefix", "Integrity-"),
        )
    if name == "django":
        return DjangoIntegrityCache(
            options.get("alias", "default"),
            prefix=options.get("prefix", "Integrity-"),
        )
    raise ImproperlyConfigured(f"Unknown integrity cache backend: {backend!r}")


__all__ = [
    "DjangoIntegrityCache",
    "InMemoryIntegrityCache",
    "IntegrityCache",
    "RedisIntegrityCache",
    "build_integrity_cache",
]
