"""Asset path normalisation and asset-root lookup."""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath
from typing import Callable, Optional

AssetRootLookup = Callable[[str], Optional[Path]]

_REMOTE_PREFIXES: tuple[str, ...] = ("http://", "https://", "//", "data:")


def normalize_asset_path(value: str) -> str:
    """Strip at most one leading ``~`` and then at most one leading ``/``.

    ``"~/js/app.js"``, ``"/js/app.js"`` and ``"js/app.js"`` all become
    ``"js/app.js"``.
    """

    path = value.strip()
    if path.startswith("~"):
        path = path[1:]
    if path.startswith("/"):
        path = path[1:]
    return path


def is_remote(value: str) -> bool:
    """Return ``True`` for references that point off the local asset root."""

    lowered = value.strip().lower()
    return lowered.startswith(_REMOTE_PREFIXES)


def min_variant(path: str) -> str:
    """Return the minified sibling of ``path``, or the plain one for ``.min.``."""

    posix = PurePosixPath(path)
    if ".min." in posix.name:
        return str(posix.with_name(posix.name.replace(".min.", ".", 1)))
    if not posix.suffix:
        return path
    return str(posix.with_name(f"{posix.stem}.min{posix.suffix}"))


class WebRootLookup:
    """Resolve normalised asset paths against an on-disk web root.

    Paths that resolve outside of the root (``../`` segments, absolute
    components) are reported as missing.
    """

    def __init__(self, root: os.PathLike[str] | str) -> None:
        self.root = Path(root).resolve()

    def __call__(self, normalized_path: str) -> Optional[Path]:
        # Query strings and fragments are cache busters, not part of the file.
        relative = normalized_path.split("?", 1)[0].split("#", 1)[0]
        if not relative:
            return None
        candidate = (self.root / relative).resolve()
        if candidate != self.root and self.root not in candidate.parents:
            return None
        return candidate

    def __repr__(self) -> str:
        return f"WebRootLookup({str(self.root)!r})"


__all__ = [
    "AssetRootLookup",
    "WebRootLookup",
    "is_remote",
    "min_variant",
    "normalize_asset_path",
]
