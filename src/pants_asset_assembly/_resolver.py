"""Pure Python content resolution (no Pants dependencies).

A request ``(base_path, name, extension, asset_type)`` is matched against the
asset roots in priority order:

    1. <root>/<base_path>/<asset_type>/<name>.<extension>   single file
    2. <root>/<base_path>/<asset_type>/<name>/assembly.json  module assembly

The first root holding a single file wins; assemblies are only considered
when no root holds the file.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Iterable, Optional, Sequence

from pants_asset_assembly._assembly import read_assembly_manifest
from pants_asset_assembly._exceptions import AssetAssemblyError, NotFoundError, TransformError
from pants_asset_assembly._paths import PathPredicate, expand_paths
from pants_asset_assembly._transforms import (
    DEFAULT_AMBIENT_LOCALE_EXPR,
    MemberKind,
    MemberSource,
    assemble,
    classify_member,
)
from pants_asset_assembly._types import (
    DEFAULT_LOCALE,
    AssemblyManifest,
    AssetRequest,
    AssetRoots,
    AssetType,
    ResolutionOutcome,
    ResolvedArtifact,
    is_binary_request,
)
from pants_asset_assembly._utils import minify_js

logger = logging.getLogger(__name__)

_TEXT_MEMBER_KINDS = frozenset({MemberKind.SCRIPT, MemberKind.STYLESHEET, MemberKind.TEMPLATE})


def _read_text(path: str) -> str:
    """UTF-8 text of ``path``.

    Raises:
        TransformError: If the file cannot be read or is not UTF-8.
    """
    try:
        with open(path, encoding="utf-8") as fh:
            return fh.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise TransformError(path, f"Unable to read asset: {exc}") from exc


@dataclass(frozen=True)
class Resolver:
    """Resolves asset requests against a fixed, ordered tuple of roots."""

    roots: AssetRoots
    compress: bool = False
    default_locale: str = DEFAULT_LOCALE
    ambient_locale_expr: str = DEFAULT_AMBIENT_LOCALE_EXPR
    max_workers: Optional[int] = None

    def __call__(self, base_path: str, name: str, extension: str, asset_type: str) -> ResolvedArtifact:
        return self.resolve(base_path, name, extension, asset_type)

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def find_file(self, relative_path: str) -> Optional[str]:
        """First root holding ``relative_path`` as a regular file."""
        for root in self.roots:
            candidate = os.path.join(root, relative_path)
            logger.debug("Probing %s", candidate)
            if os.path.isfile(candidate):
                return candidate
        return None

    def find_assembly(self, relative_dir: str) -> Optional[AssemblyManifest]:
        """Manifest of the first root holding ``relative_dir`` as an assembly.

        Raises:
            ManifestParseError: If the winning assembly.json is malformed.
        """
        for root in self.roots:
            manifest = read_assembly_manifest(os.path.join(root, relative_dir))
            if manifest is not None:
                return manifest
        return None

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def resolve(
        self,
        base_path: str,
        name: str,
        extension: str,
        asset_type: str,
        *,
        locale: Optional[str] = None,
    ) -> ResolvedArtifact:
        """Resolve one asset request.

        Raises:
            NotFoundError: If no root holds the file or an assembly for it.
            InvalidRequestError: If ``base_path`` escapes the roots.
            ManifestParseError: If the matched assembly.json is malformed.
            TransformError: If an asset or member cannot be read, transformed
                or minified.
        """
        request = AssetRequest(
            name=name,
            extension=extension,
            asset_type=asset_type,
            base_path=base_path,
            locale=locale,
        )
        return self.resolve_request(request)

    def resolve_request(self, request: AssetRequest) -> ResolvedArtifact:
        disk_path = self.find_file(request.relative_file())
        if disk_path is not None:
            artifact = self._single_file(request, disk_path)
        else:
            manifest = self.find_assembly(request.relative_assembly_dir())
            if manifest is None:
                raise NotFoundError(
                    request.base_path, request.name, request.extension, request.asset_type
                )
            artifact = self._assembly(request, manifest)

        artifact = self._post_process(artifact)
        logger.info("Resolved %s -> %s", request.describe(), artifact.disk_path)
        return artifact

    def resolve_many(self, requests: Iterable[AssetRequest]) -> list[ResolutionOutcome]:
        """Resolve a batch; a failing request is reported, never fatal to the rest."""
        outcomes = []
        for request in requests:
            try:
                outcomes.append(ResolutionOutcome(request, artifact=self.resolve_request(request)))
            except AssetAssemblyError as exc:
                logger.error("Failed to resolve %s: %s", request.describe(), exc)
                outcomes.append(ResolutionOutcome(request, error=exc))
        return outcomes

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _single_file(self, request: AssetRequest, disk_path: str) -> ResolvedArtifact:
        if is_binary_request(request.asset_type, request.extension):
            return ResolvedArtifact(
                disk_path=disk_path,
                raw_content=None,
                processed_content=None,
                asset_type=request.asset_type,
            )
        content = _read_text(disk_path)
        return ResolvedArtifact(
            disk_path=disk_path,
            raw_content=content,
            processed_content=content,
            asset_type=request.asset_type,
        )

    def _locate_member(self, request: AssetRequest, manifest: AssemblyManifest, member: str) -> str:
        """Member path inside the module, else ``<type>/<member>`` under the roots."""
        local = os.path.normpath(os.path.join(manifest.module_dir, member))
        if os.path.isfile(local):
            return local
        shared = self.find_file(os.path.join(request.relative_dir(), member))
        if shared is None:
            raise NotFoundError(
                request.base_path,
                request.name,
                request.extension,
                request.asset_type,
                member=member,
            )
        return shared

    def _assembly(self, request: AssetRequest, manifest: AssemblyManifest) -> ResolvedArtifact:
        located = [
            (member, self._locate_member(request, manifest, member), classify_member(member))
            for member in manifest.members
        ]

        def _load(entry: tuple[str, str, MemberKind]) -> MemberSource:
            label, path, kind = entry
            content = _read_text(path) if kind in _TEXT_MEMBER_KINDS else None
            return MemberSource(label=label, path=path, kind=kind, content=content)

        # Reads may finish in any order; map() hands them back in manifest order.
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            sources = list(executor.map(_load, located))

        content = assemble(
            manifest,
            sources,
            asset_type=request.asset_type,
            locale=request.locale,
            default_locale=self.default_locale,
            ambient_locale_expr=self.ambient_locale_expr,
        )
        return ResolvedArtifact(
            disk_path=manifest.manifest_path,
            raw_content=content,
            processed_content=content,
            asset_type=request.asset_type,
            is_assembly=True,
        )

    def _post_process(self, artifact: ResolvedArtifact) -> ResolvedArtifact:
        if not self.compress or artifact.raw_content is None:
            return artifact
        if artifact.asset_type != AssetType.JS.value:
            return artifact
        return replace(
            artifact,
            processed_content=minify_js(artifact.raw_content, source=artifact.disk_path),
        )


def make_resolver(
    asset_roots: Sequence[str],
    compress: bool = False,
    *,
    scan_dir: Optional[str] = None,
    ignore: Optional[PathPredicate] = None,
    default_locale: str = DEFAULT_LOCALE,
    ambient_locale_expr: str = DEFAULT_AMBIENT_LOCALE_EXPR,
    max_workers: Optional[int] = None,
) -> Resolver:
    """Expand ``asset_roots`` once and build a resolver over them.

    Raises:
        ExpansionError: If a root specifier cannot be expanded.
    """
    roots = expand_paths(asset_roots, scan_dir, ignore=ignore, max_workers=max_workers)
    logger.debug("Asset roots: %s", ", ".join(roots) or "(none)")
    return Resolver(
        roots=roots,
        compress=compress,
        default_locale=default_locale,
        ambient_locale_expr=ambient_locale_expr,
        max_workers=max_workers,
    )
