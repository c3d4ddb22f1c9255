"""asset-assemble goal: resolve web_asset targets and write them to dist/."""

from __future__ import annotations

import shutil
from pathlib import Path

from pants.engine.console import Console
from pants.engine.goal import Goal, GoalSubsystem
from pants.engine.rules import Get, MultiGet, collect_rules, goal_rule
from pants.engine.target import FilteredTargets

from pants_asset_assembly._asset_map import (
    AssetMapEntry,
    parse_asset_map,
    render_asset_map,
    stale_outputs,
)
from pants_asset_assembly._exceptions import AssetAssemblyError
from pants_asset_assembly._utils import ensure_directory, write_to_file
from pants_asset_assembly.rules.resolve import (
    AssetResolveRequest,
    AssetResolveResult,
    WebAssetFieldSet,
)
from pants_asset_assembly.subsystem import AssetAssemblySubsystem

ASSET_MAP_FILE_NAME = "asset-map.yml"


class AssetAssembleGoalSubsystem(GoalSubsystem):
    name = "asset-assemble"
    help = "Resolve web_asset targets against the asset roots and write the results."


class AssetAssembleGoal(Goal):
    subsystem_cls = AssetAssembleGoalSubsystem
    environment_behavior = Goal.EnvironmentBehavior.LOCAL_ONLY


def _previous_entries(map_path: Path, console: Console) -> list[AssetMapEntry]:
    if not map_path.is_file():
        return []
    try:
        return parse_asset_map(map_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        console.print_stderr(f"Ignoring unreadable asset map {map_path}: {exc}")
        return []


def _remove_stale(output_dir: Path, relative: str, console: Console) -> None:
    path = (output_dir / relative).resolve()
    if output_dir.resolve() not in path.parents:
        console.print_stderr(f"Not removing {relative}: outside {output_dir}")
        return
    try:
        path.unlink()
    except FileNotFoundError:
        return
    except OSError as exc:
        console.print_stderr(f"Unable to remove stale {path}: {exc}")
        return
    console.print_stdout(f"Removed stale: {path}")


@goal_rule
async def run_asset_assemble(
    console: Console,
    targets: FilteredTargets,
    subsystem: AssetAssemblySubsystem,
) -> AssetAssembleGoal:
    asset_targets = [t for t in targets if WebAssetFieldSet.is_applicable(t)]

    if not asset_targets:
        console.print_stderr("No web_asset targets found.")
        return AssetAssembleGoal(exit_code=0)

    results = await MultiGet(
        Get(
            AssetResolveResult,
            AssetResolveRequest(WebAssetFieldSet.create(t)),
        )
        for t in asset_targets
    )

    output_dir = ensure_directory(subsystem.output_dir)
    entries: list[AssetMapEntry] = []
    failed = 0

    for result in results:
        if not result.ok:
            failed += 1
            console.print_stderr(f"FAIL  {result.address}: {result.error}")
            continue

        artifact = result.artifact
        dest = output_dir / result.output_path

        try:
            if artifact.is_binary:
                ensure_directory(dest.parent)
                shutil.copy2(artifact.disk_path, dest)
                use_gzip = False
            else:
                use_gzip = subsystem.gzip
                write_to_file(dest, artifact.processed_content, gzip=use_gzip)
        except (AssetAssemblyError, OSError) as exc:
            failed += 1
            console.print_stderr(f"FAIL  {result.address}: unable to write {dest}: {exc}")
            continue

        entries.append(
            AssetMapEntry(
                request=result.request.describe(),
                output=result.output_path,
                source=artifact.disk_path,
                content_hash=artifact.content_hash,
                gzip=use_gzip,
            )
        )
        console.print_stdout(f"Wrote: {dest} ({result.address})")

    map_path = output_dir / ASSET_MAP_FILE_NAME
    # A failed target keeps its previous output until it builds again.
    if not failed:
        for stale in stale_outputs(_previous_entries(map_path, console), entries):
            _remove_stale(output_dir, stale, console)

    if entries:
        map_path.write_text(render_asset_map(entries), encoding="utf-8")
        console.print_stdout(f"Asset map: {map_path}")

    if failed:
        console.print_stderr(f"\n{failed} of {len(results)} asset(s) failed.")
        return AssetAssembleGoal(exit_code=1)

    return AssetAssembleGoal(exit_code=0)


def rules():
    return collect_rules()
