import logging
import threading

import pytest
from django.core.exceptions import ImproperlyConfigured
from redis.exceptions import RedisError

from taghelpers.cache import (
    DjangoIntegrityCache,
    InMemoryIntegrityCache,
    IntegrityCache,
    RedisIntegrityCache,
    build_integrity_cache,
)


class FakeRedis:
    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value):
        self.store[key] = value
        return True

    def scan_iter(self, match=None):
        prefix = (match or "*").rstrip("*")
        return [key for key in list(self.store) if key.startswith(prefix)]

    def delete(self, *keys):
        for key in keys:
            self.store.pop(key, None)
        return len(keys)


class BrokenRedis:
    def get(self, key):
        raise RedisError("boom")

    def set(self, key, value):
        raise RedisError("boom")

    def scan_iter(self, match=None):
        raise RedisError("boom")


def test_in_memory_cache_round_trip():
    cache = InMemoryIntegrityCache()

    assert cache.get("sha256:css/site.css") is None
    cache.set("sha256:css/site.css", "sha256-abc")
    assert cache.get("sha256:css/site.css") == "sha256-abc"

    cache.clear()
    assert cache.get("sha256:css/site.css") is None
    assert len(cache) == 0


def test_in_memory_cache_tolerates_concurrent_writers():
    cache = InMemoryIntegrityCache()

    def _write(offset):
        for index in range(200):
            cache.set(f"sha256:file-{offset}-{index}", "v")

    threads = [threading.Thread(target=_write, args=(n,)) for n in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(cache) == 8 * 200


def test_redis_cache_namespaces_keys():
    fake = FakeRedis()
    cache = RedisIntegrityCache(prefix="Integrity-", client_factory=lambda: fake)

    cache.set("sha256:js/app.js", "sha256-xyz")

    assert fake.store == {"Integrity-sha256:js/app.js": "sha256-xyz"}
    assert cache.get("sha256:js/app.js") == "sha256-xyz"


def test_redis_cache_decodes_bytes():
    fake = FakeRedis()
    fake.store["Integrity-sha256:a.js"] = b"sha256-raw"
    cache = RedisIntegrityCache(client_factory=lambda: fake)

    assert cache.get("sha256:a.js") == "sha256-raw"


def test_redis_clear_only_touches_own_prefix():
    fake = FakeRedis()
    fake.store["other:key"] = "keep"
    cache = RedisIntegrityCache(prefix="Integrity-", client_factory=lambda: fake)
    cache.set("sha256:a.js", "v1")
    cache.set("sha384:b.js", "v2")

    cache.clear()

    assert fake.store == {"other:key": "keep"}


def test_redis_cache_fails_open(caplog):
    cache = RedisIntegrityCache(client_factory=BrokenRedis)

    with caplog.at_level(logging.WARNING):
        assert cache.get("sha256:a.js") is None
        cache.set("sha256:a.js", "v")
        cache.clear()

    assert "integrity.cache.unavailable" in caplog.text


def test_redis_cache_fails_open_when_client_cannot_be_built():
    def _factory():
        raise RedisError("no server")

    cache = RedisIntegrityCache(client_factory=_factory)

    assert cache.get("sha256:a.js") is None


def test_redis_cache_requires_url_without_factory():
    with pytest.raises(ImproperlyConfigured):
        RedisIntegrityCache()


def test_django_cache_adapter_uses_alias(settings):
    settings.CACHES = {
        "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"},
        "sri": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "sri-tests",
        },
    }
    cache = DjangoIntegrityCache("sri")

    cache.set("sha256:css/site.css", "sha256-abc")

    from django.core.cache import caches

    assert caches["sri"].get("Integrity-sha256:css/site.css") == "sha256-abc"
    assert cache.get("sha256:css/site.css") == "sha256-abc"
    cache.clear()
    assert cache.get("sha256:css/site.css") is None


def test_django_cache_adapter_fails_open_for_unknown_alias(caplog):
    cache = DjangoIntegrityCache("missing-alias")

    with caplog.at_level(logging.WARNING):
        assert cache.get("sha256:a.js") is None
        cache.set("sha256:a.js", "v")

    assert "integrity.cache.unavailable" in caplog.text


@pytest.mark.parametrize(
    "backend, expected",
    [
        ("memory", InMemoryIntegrityCache),
        ("MEMORY", InMemoryIntegrityCache),
        ("redis", RedisIntegrityCache),
        ("django", DjangoIntegrityCache),
    ],
)
def test_build_integrity_cache(backend, expected):
    cache = build_integrity_cache(backend, url="redis://localhost:6379/0")

    assert isinstance(cache, expected)
    assert isinstance(cache, IntegrityCache)


def test_build_integrity_cache_rejects_unknown_backend():
    with pytest.raises(ImproperlyConfigured):
        build_integrity_cache("memcached")
