"""Pure Python asset root expansion (no Pants dependencies).

Turns the configured root specifiers into the ordered tuple of directories a
resolver searches:

    1. configured specifiers, in declaration order
    2. ``assetPath`` redirects from every asset-manifest.json under scan_dir

Specifiers holding a wildcard are expanded in place to the directories they
match. Paths that do not exist are dropped.
"""

from __future__ import annotations

import glob
import json
import logging
import os
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, Optional, Sequence

from pants_asset_assembly._exceptions import ExpansionError, ManifestParseError
from pants_asset_assembly._types import ASSET_MANIFEST_NAME, AssetRoots, ManifestRedirect

logger = logging.getLogger(__name__)

PathPredicate = Callable[[str], bool]

# Manifests shipped with the asset tooling itself are not module roots.
DEFAULT_IGNORED_MANIFEST_PATHS = ("asset-manager",)

_WILDCARD_CHARS = ("*", "?", "[")

_MISSING_ASSET_PATH = "missing assetPath property"


def ignore_substrings(substrings: Iterable[str]) -> PathPredicate:
    """Build an ignore predicate matching any path containing one of ``substrings``."""
    needles = tuple(s for s in substrings if s)

    def _ignored(path: str) -> bool:
        return any(needle in path for needle in needles)

    return _ignored


def has_wildcard(spec: str) -> bool:
    return any(ch in spec for ch in _WILDCARD_CHARS)


# =============================================================================
# ManifestLocator
# =============================================================================


def read_asset_manifest(path: str) -> ManifestRedirect:
    """Read one asset-manifest.json.

    Raises:
        ManifestParseError: If the file is not a JSON object or lacks assetPath.
    """
    try:
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, ValueError) as exc:
        raise ManifestParseError(path, str(exc)) from exc

    if not isinstance(data, dict):
        raise ManifestParseError(path, "expected a JSON object")

    asset_path = data.get("assetPath")
    if not asset_path or not isinstance(asset_path, str):
        raise ManifestParseError(path, _MISSING_ASSET_PATH)

    return ManifestRedirect(source_dir=os.path.dirname(path), asset_path=asset_path)


def find_manifest_redirects(
    scan_dir: Optional[str],
    *,
    ignore: Optional[PathPredicate] = None,
) -> AssetRoots:
    """Resolved ``assetPath`` directories of every asset manifest under ``scan_dir``.

    A malformed manifest, or one without ``assetPath``, contributes nothing.
    """
    if not scan_dir:
        return ()
    if ignore is None:
        ignore = ignore_substrings(DEFAULT_IGNORED_MANIFEST_PATHS)

    pattern = os.path.join(glob.escape(scan_dir), "**", ASSET_MANIFEST_NAME)
    redirects: list[str] = []
    for manifest_path in sorted(glob.glob(pattern, recursive=True)):
        if ignore(manifest_path):
            logger.debug("Ignoring tooling manifest %s", manifest_path)
            continue
        try:
            redirect = read_asset_manifest(manifest_path)
        except ManifestParseError as exc:
            if exc.reason == _MISSING_ASSET_PATH:
                logger.warning("Missing assetPath property in the manifest file: %s", manifest_path)
            else:
                logger.error("Unable to parse manifest file '%s': %s", manifest_path, exc.reason)
            continue
        redirects.append(redirect.resolved_path)

    return tuple(redirects)


# =============================================================================
# PathExpander
# =============================================================================


def expand_path(spec: str) -> list[str]:
    """Expand one specifier: literal paths pass through, globs keep directory matches.

    Raises:
        ExpansionError: If globbing fails.
    """
    if not has_wildcard(spec):
        return [spec]

    # Matches are produced lazily, so consume them inside the try.
    try:
        matches = [m.rstrip(os.sep) for m in glob.iglob(spec) if os.path.isdir(m)]
    except (OSError, ValueError, re.error) as exc:
        raise ExpansionError(spec, str(exc)) from exc

    return sorted(matches)


def expand_paths(
    root_specs: Sequence[str],
    scan_dir: Optional[str] = None,
    *,
    ignore: Optional[PathPredicate] = None,
    max_workers: Optional[int] = None,
) -> AssetRoots:
    """Expand root specifiers into the ordered, existing asset roots.

    Args:
        root_specs: Literal directories or glob patterns, highest priority first.
        scan_dir: Directory searched for asset-manifest.json redirects.
        ignore: Predicate for manifests to skip (defaults to tooling manifests).
        max_workers: Thread count for the per-specifier fan-out.

    Returns:
        Absolute directories in priority order.

    Raises:
        ExpansionError: If any specifier cannot be expanded.
    """
    specs = list(root_specs) + list(find_manifest_redirects(scan_dir, ignore=ignore))
    if not specs:
        return ()

    # map() yields in submission order, regardless of completion order.
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        expanded = list(executor.map(expand_path, specs))

    roots: list[str] = []
    for paths in expanded:
        for path in paths:
            if path and os.path.exists(path):
                roots.append(os.path.abspath(path))
            elif path:
                logger.debug("Dropping missing asset root %s", path)

    return tuple(roots)
