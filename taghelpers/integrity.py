"""Subresource Integrity values for local script and stylesheet assets.

An ``integrity`` attribute that is empty or names one of ``sha256``,
``sha384`` or ``sha512`` (case-insensitive) is replaced with the SRI digest
of the referenced local file, e.g. ``<script src="/js/site.js" integrity>``
becomes ``integrity="sha256-..."``. Any other value, including a complete
SRI string, is left exactly as authored.

Computed values are cached per ``(algorithm, path)`` and never invalidated by
the resolver itself; a file edited after its first hash keeps the old value
until the cache is cleared or the process restarts.
"""

from __future__ import annotations

import base64
import hashlib
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterator, Mapping, Optional

from common.logging import get_logger

from .cache import IntegrityCache
from .paths import AssetRootLookup, is_remote, min_variant, normalize_asset_path

logger = get_logger(__name__)


class SriAlgorithm(str, Enum):
    SHA256 = "sha256"
    SHA384 = "sha384"
    SHA512 = "sha512"


DEFAULT_ALGORITHM = SriAlgorithm.SHA256

_HASHERS: dict[SriAlgorithm, Callable[[bytes], Any]] = {
    SriAlgorithm.SHA256: hashlib.sha256,
    SriAlgorithm.SHA384: hashlib.sha384,
    SriAlgorithm.SHA512: hashlib.sha512,
}


@dataclass(frozen=True)
class IntegrityDigest:
    algorithm: SriAlgorithm
    base64_hash: str

    def __str__(self) -> str:
        return f"{self.algorithm.value}-{self.base64_hash}"


def parse_algorithm(raw_value: Optional[str]) -> Optional[SriAlgorithm]:
    """Map an authored ``integrity`` value to an algorithm selector.

    Empty or whitespace-only values select :data:`DEFAULT_ALGORITHM`. Only
    exact, case-insensitive algorithm names select anything else; every other
    token returns ``None``.
    """

    token = (raw_value or "").strip().lower()
    if not token:
        return DEFAULT_ALGORITHM
    try:
        return SriAlgorithm(token)
    except ValueError:
        return None


def compute_digest(algorithm: SriAlgorithm, data: bytes) -> IntegrityDigest:
    """Hash ``data`` and base64-encode the raw digest bytes."""

    raw = _HASHERS[algorithm](data).digest()
    return IntegrityDigest(algorithm, base64.b64encode(raw).decode("ascii"))


def cache_key(algorithm: SriAlgorithm, normalized_path: str) -> str:
    return f"{algorithm.value}:{normalized_path}"


def _read_file(path: Path) -> bytes:
    return path.read_bytes()


class IntegrityResolver:
    """Resolve ``integrity`` attribute values for one asset root."""

    def __init__(
        self,
        cache: IntegrityCache,
        asset_root_lookup: AssetRootLookup,
        *,
        normalize: Callable[[str], str] = normalize_asset_path,
        read_bytes: Callable[[Path], bytes] = _read_file,
        include_min_variants: bool = False,
    ) -> None:
        self.cache = cache
        self.asset_root_lookup = asset_root_lookup
        self.normalize = normalize
        self.read_bytes = read_bytes
        self.include_min_variants = include_min_variants

    def candidate_paths(self, asset_path: str) -> Iterator[str]:
        """Yield the normalised paths whose digests make up the attribute."""

        if is_remote(asset_path):
            logger.warning("integrity.remote_asset_unsupported", asset=asset_path)
            return
        path = self.normalize(asset_path)
        yield path
        if self.include_min_variants:
            variant = min_variant(path)
            if variant != path:
                yield variant

    def digest_for(self, normalized_path: str, algorithm: SriAlgorithm) -> Optional[str]:
        """Return the serialised digest for one path, hashing it on a cache miss."""

        key = cache_key(algorithm, normalized_path)
        cached = self._cache_get(key)
        if cached is not None:
            logger.debug("integrity.cache.hit", key=key)
            return cached

        location = self.asset_root_lookup(normalized_path)
        if location is None or not location.is_file():
            logger.warning(
                "integrity.asset_missing",
                path=normalized_path,
                location=str(location) if location else None,
            )
            return None

        try:
            data = self.read_bytes(location)
        except OSError as exc:
            logger.warning(
                "integrity.asset_unreadable",
                path=normalized_path,
                location=str(location),
                error=str(exc),
            )
            return None

        value = str(compute_digest(algorithm, data))
        self._cache_set(key, value)
        logger.debug("integrity.cache.miss", key=key, size=len(data))
        return value

    # Any store may be injected; a failing store degrades to hashing from disk.
    def _cache_get(self, key: str) -> Optional[str]:
        try:
            return self.cache.get(key)
        except Exception as exc:
            logger.warning("integrity.cache.unavailable", op="get", error=str(exc))
            return None

    def _cache_set(self, key: str, value: str) -> None:
        try:
            self.cache.set(key, value)
        except Exception as exc:
            logger.warning("integrity.cache.unavailable", op="set", error=str(exc))

    def resolve(self, raw_value: Optional[str], asset_path: str) -> Optional[str]:
        """Return the new attribute value, or ``None`` to keep it unchanged."""

        algorithm = parse_algorithm(raw_value)
        if algorithm is None:
            logger.debug("integrity.passthrough", value=raw_value, asset=asset_path)
            return None

        digests = [
            digest
            for digest in (
                self.digest_for(path, algorithm)
                for path in self.candidate_paths(asset_path)
            )
            if digest
        ]
        if not digests:
            logger.warning(
                "integrity.no_digest", asset=asset_path, algorithm=algorithm.value
            )
        return " ".join(digests)

    def process(self, attributes: Mapping[str, Optional[str]]) -> dict[str, Optional[str]]:
        """Return ``attributes`` with a computed ``integrity`` value.

        Elements without an ``integrity`` attribute, or without ``src`` and
        ``href``, come back unchanged. ``src`` wins when both are present.
        Errors are logged and never raised into the render.
        """

        result = dict(attributes)
        if "integrity" not in result:
            return result

        source = result.get("src") or result.get("href")
        if not source:
            return result

        try:
            value = self.resolve(result["integrity"], source)
        except Exception:
            logger.exception("integrity.process_failed", asset=source)
            return dict(attributes)

        if value is not None:
            result["integrity"] = value
        return result

    def clear_cache(self) -> None:
        self.cache.clear()


__all__ = [
    "DEFAULT_ALGORITHM",
    "IntegrityDigest",
    "IntegrityResolver",
    "SriAlgorithm",
    "cache_key",
    "compute_digest",
    "parse_algorithm",
]
