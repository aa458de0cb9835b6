from pathlib import Path

import pytest
from django.apps import apps

from taghelpers.cache import InMemoryIntegrityCache
from taghelpers.integrity import IntegrityResolver
from taghelpers.paths import WebRootLookup


SITE_CSS = b"body{}"
APP_JS = b"console.log('app');\n"
APP_MIN_JS = b"console.log('app')"


@pytest.fixture
def asset_root(tmp_path: Path) -> Path:
    """A throwaway web root with a stylesheet and a script (plus its .min)."""

    root = tmp_path / "wwwroot"
    (root / "css").mkdir(parents=True)
    (root / "js").mkdir()
    (root / "css" / "site.css").write_bytes(SITE_CSS)
    (root / "js" / "app.js").write_bytes(APP_JS)
    (root / "js" / "app.min.js").write_bytes(APP_MIN_JS)
    return root


@pytest.fixture
def integrity_cache() -> InMemoryIntegrityCache:
    return InMemoryIntegrityCache()


@pytest.fixture
def file_reads():
    """Record every path the resolver reads from disk."""

    reads: list[Path] = []

    def _read(path: Path) -> bytes:
        reads.append(path)
        return path.read_bytes()

    _read.calls = reads
    return _read


@pytest.fixture
def resolver(asset_root, integrity_cache, file_reads) -> IntegrityResolver:
    return IntegrityResolver(
        integrity_cache, WebRootLookup(asset_root), read_bytes=file_reads
    )


@pytest.fixture
def app_asset_root(settings, asset_root) -> Path:
    """Point the app-owned resolver used by template tags at ``asset_root``."""

    settings.TAGHELPERS_ASSET_ROOT = asset_root
    settings.TAGHELPERS_INTEGRITY_CACHE = "memory"
    return asset_root


@pytest.fixture(autouse=True)
def _reset_app_resolver():
    config = apps.get_app_config("taghelpers")
    config.reset_integrity_resolver()
    yield
    config.reset_integrity_resolver()
