"""Pure Python asset map generation (no Pants dependencies).

The asset map records, for every request written out, where its output
landed and the content hash used for cache busting::

    assets:
      js/app1.js:
        output: js/app1-6f1e....js
        source: /repo/web/js/app1.js
        hash: 6f1e...
        gzip: false
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence

import yaml

from pants_asset_assembly._types import AssetRequest, ResolvedArtifact
from pants_asset_assembly._utils import hashed_file_name


def output_path_for(
    request: AssetRequest,
    artifact: ResolvedArtifact,
    *,
    hash_file_names: bool = False,
) -> str:
    """Path, relative to the output directory, that an artifact is written to.

    Assemblies are written where a single file of the same request would be.
    Binary assets always keep their name.
    """
    path = request.relative_file()
    if artifact.processed_content is None:
        return path
    if hash_file_names:
        path = hashed_file_name(path, artifact.processed_content)
    return path


@dataclass(frozen=True)
class AssetMapEntry:
    """One written asset."""

    request: str  # <base_path>/<type>/<name>.<ext>
    output: str  # Path relative to the output directory
    source: str  # Resolved disk path
    content_hash: Optional[str] = None  # None for binary assets
    gzip: bool = False

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"output": self.output, "source": self.source}
        if self.content_hash is not None:
            result["hash"] = self.content_hash
        result["gzip"] = self.gzip
        return result


def render_asset_map(entries: Sequence[AssetMapEntry]) -> str:
    """Serialize entries to YAML, keyed by request and sorted for stable output."""
    assets = {e.request: e.to_dict() for e in sorted(entries, key=lambda e: e.request)}
    return yaml.dump(
        {"assets": assets},
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )


def parse_asset_map(content: str) -> list[AssetMapEntry]:
    """Read an asset map back into entries.

    Raises:
        ValueError: If the document does not have the asset map shape.
    """
    try:
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"asset map is not valid YAML: {exc}") from exc
    assets = data.get("assets") if isinstance(data, dict) else None
    if assets is None:
        return []
    if not isinstance(assets, dict):
        raise ValueError("asset map 'assets' must be a mapping")

    entries = []
    for request, info in assets.items():
        if not isinstance(info, dict) or "output" not in info or "source" not in info:
            raise ValueError(f"Invalid asset map entry for {request!r}")
        entries.append(
            AssetMapEntry(
                request=request,
                output=info["output"],
                source=info["source"],
                content_hash=info.get("hash"),
                gzip=bool(info.get("gzip", False)),
            )
        )
    return entries


def stale_outputs(previous: Sequence[AssetMapEntry], current: Sequence[AssetMapEntry]) -> list[str]:
    """Outputs recorded in ``previous`` that ``current`` no longer writes.

    With hashed file names every content change leaves the old file behind;
    these are the paths to remove.
    """
    written = {e.output for e in current}
    return sorted({e.output for e in previous} - written)
