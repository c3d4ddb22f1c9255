"""Asset resolution rule: web_asset target -> resolved artifact."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from pants.engine.rules import Get, collect_rules, rule
from pants.engine.target import FieldSet

from pants_asset_assembly._asset_map import output_path_for
from pants_asset_assembly._exceptions import AssetAssemblyError
from pants_asset_assembly._resolver import Resolver
from pants_asset_assembly._types import AssetRequest, ResolvedArtifact, default_extension
from pants_asset_assembly.rules.roots import ExpandedAssetRoots, ExpandedAssetRootsRequest
from pants_asset_assembly.subsystem import AssetAssemblySubsystem
from pants_asset_assembly.targets import (
    AssetNameField,
    AssetTypeField,
    BasePathField,
    ExtensionField,
    LocaleField,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Request / Result types
# =============================================================================


@dataclass(frozen=True)
class WebAssetFieldSet(FieldSet):
    """Fields required to resolve a web_asset target."""

    required_fields = (AssetTypeField, AssetNameField)

    asset_type: AssetTypeField
    asset_name: AssetNameField
    extension: ExtensionField
    base_path: BasePathField
    locale: LocaleField


@dataclass(frozen=True)
class AssetResolveRequest:
    field_set: WebAssetFieldSet


@dataclass(frozen=True)
class AssetResolveResult:
    """Resolution outcome for one target. Failures are carried, not raised."""

    address: str
    request: Optional[AssetRequest] = None
    artifact: Optional[ResolvedArtifact] = None
    output_path: Optional[str] = None  # Relative to the configured output_dir
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# =============================================================================
# Rules
# =============================================================================


@rule(desc="Resolve web asset")
async def resolve_web_asset(
    request: AssetResolveRequest,
    subsystem: AssetAssemblySubsystem,
) -> AssetResolveResult:
    fs = request.field_set
    address = fs.address.spec
    asset_type = fs.asset_type.value

    extension = fs.extension.value or default_extension(asset_type)
    if not extension:
        return AssetResolveResult(
            address=address,
            error=f"extension is required for asset_type {asset_type!r}",
        )

    asset_request = AssetRequest(
        name=fs.asset_name.value,
        extension=extension,
        asset_type=asset_type,
        base_path=fs.base_path.value or "",
        locale=fs.locale.value,
    )

    expanded = await Get(ExpandedAssetRoots, ExpandedAssetRootsRequest())
    resolver = Resolver(
        roots=expanded.roots,
        compress=subsystem.compress,
        default_locale=subsystem.default_locale,
        ambient_locale_expr=subsystem.ambient_locale_expr,
    )

    # One broken asset must not fail the whole batch.
    try:
        artifact = resolver.resolve_request(asset_request)
    except AssetAssemblyError as exc:
        logger.error("Failed to resolve %s: %s", address, exc)
        return AssetResolveResult(address=address, request=asset_request, error=str(exc))

    return AssetResolveResult(
        address=address,
        request=asset_request,
        artifact=artifact,
        output_path=output_path_for(
            asset_request,
            artifact,
            hash_file_names=subsystem.hash_file_names,
        ),
    )


def rules():
    return collect_rules()
