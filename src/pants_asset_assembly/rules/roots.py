"""Asset root expansion rule."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Iterable

from pants.base.build_environment import get_buildroot
from pants.engine.fs import Digest, PathGlobs, Snapshot
from pants.engine.rules import Get, collect_rules, rule

from pants_asset_assembly._paths import expand_paths, ignore_substrings
from pants_asset_assembly._types import ASSET_MANIFEST_NAME, AssetRoots
from pants_asset_assembly.subsystem import AssetAssemblySubsystem

logger = logging.getLogger(__name__)


# =============================================================================
# Request / Result types
# =============================================================================


@dataclass(frozen=True)
class ExpandedAssetRootsRequest:
    """Request for the configured asset roots, expanded."""


@dataclass(frozen=True)
class ExpandedAssetRoots:
    """Concrete asset root directories in priority order.

    ``digest`` covers every file below the roots, so a changed asset yields a
    new value and invalidates the resolutions built on it.
    """

    roots: AssetRoots
    digest: Digest


# =============================================================================
# Helpers
# =============================================================================


def _tracked_globs(paths: Iterable[str], buildroot: str, pattern: str = "**") -> tuple[str, ...]:
    """Build-root relative globs matching ``pattern`` below each of ``paths``.

    Paths outside the build root cannot be watched by the engine and are
    skipped.
    """
    globs = []
    for path in paths:
        relative = os.path.relpath(os.path.join(buildroot, path), buildroot)
        if relative == os.pardir or relative.startswith(os.pardir + os.sep):
            logger.debug("Asset root %s is outside the build root and is not tracked", path)
            continue
        globs.append(pattern if relative == os.curdir else f"{relative}/{pattern}")
    return tuple(globs)


# =============================================================================
# Rules
# =============================================================================


@rule(desc="Expand asset roots")
async def expand_asset_roots(
    request: ExpandedAssetRootsRequest,
    subsystem: AssetAssemblySubsystem,
) -> ExpandedAssetRoots:
    buildroot = get_buildroot()
    specs = tuple(os.path.join(buildroot, spec) for spec in subsystem.asset_roots)
    scan_dir = os.path.join(buildroot, subsystem.scan_dir) if subsystem.scan_dir else None

    # Wildcard matches and manifest redirects change as files come and go.
    await Get(
        Snapshot,
        PathGlobs(
            _tracked_globs(specs, buildroot)
            + _tracked_globs([scan_dir] if scan_dir else [], buildroot, f"**/{ASSET_MANIFEST_NAME}")
        ),
    )

    roots = expand_paths(
        specs,
        scan_dir,
        ignore=ignore_substrings(subsystem.ignore_manifest_paths),
    )
    contents = await Get(Snapshot, PathGlobs(_tracked_globs(roots, buildroot)))

    logger.info("Expanded %d asset root(s), tracking %d file(s)", len(roots), len(contents.files))

    return ExpandedAssetRoots(roots=roots, digest=contents.digest)


def rules():
    return collect_rules()
