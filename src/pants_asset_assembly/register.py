"""Pants plugin registration for web asset resolution and assembly.

Backend path: pants_asset_assembly

Enable in pants.toml:

    [GLOBAL]
    backend_packages = [
        "pants_asset_assembly",
    ]

    [asset-assembly]
    asset_roots = ["web/app", "modules/*/assets"]
    scan_dir = "node_modules"
    compress = true
"""

from __future__ import annotations

from typing import Iterable, Type

from pants.engine.rules import Rule
from pants.option.subsystem import Subsystem

from pants_asset_assembly.goals import assemble as assemble_goal
from pants_asset_assembly.rules import resolve as resolve_rule
from pants_asset_assembly.rules import roots as roots_rule
from pants_asset_assembly.subsystem import AssetAssemblySubsystem
from pants_asset_assembly.targets import WebAssetTarget


def rules() -> Iterable[Rule]:
    return [
        *roots_rule.rules(),
        *resolve_rule.rules(),
        *assemble_goal.rules(),
    ]


def target_types() -> Iterable[type]:
    return [WebAssetTarget]


def subsystems() -> Iterable[Type[Subsystem]]:
    return [AssetAssemblySubsystem]
