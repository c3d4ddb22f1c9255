"""Global asset assembly configuration subsystem."""

from __future__ import annotations

from pants.option.option_types import BoolOption, StrListOption, StrOption
from pants.option.subsystem import Subsystem

from pants_asset_assembly._paths import DEFAULT_IGNORED_MANIFEST_PATHS
from pants_asset_assembly._transforms import DEFAULT_AMBIENT_LOCALE_EXPR
from pants_asset_assembly._types import DEFAULT_LOCALE


class AssetAssemblySubsystem(Subsystem):
    """Global configuration for web asset resolution and assembly."""

    options_scope = "asset-assembly"
    help = "Configuration for resolving and assembling web assets."

    asset_roots = StrListOption(
        default=[],
        help=(
            "Asset root directories, highest priority first. Entries may be glob "
            "patterns (e.g. 'modules/*/assets'); only matching directories are used. "
            "Relative entries are relative to the build root."
        ),
    )

    scan_dir = StrOption(
        default="",
        help=(
            "Directory scanned for asset-manifest.json files. Each manifest's assetPath "
            "is appended to the asset roots, after the configured ones. Empty = no scan."
        ),
    )

    ignore_manifest_paths = StrListOption(
        default=list(DEFAULT_IGNORED_MANIFEST_PATHS),
        help="asset-manifest.json files whose path contains any of these strings are skipped.",
    )

    compress = BoolOption(
        default=False,
        help="Minify resolved JavaScript assets.",
    )

    gzip = BoolOption(
        default=False,
        help="gzip text assets when writing them out.",
    )

    hash_file_names = BoolOption(
        default=False,
        help="Write text assets as <name>-<md5>.<ext> for cache busting.",
    )

    default_locale = StrOption(
        default=DEFAULT_LOCALE,
        help="Fallback language for assembled locale data.",
    )

    ambient_locale_expr = StrOption(
        default=DEFAULT_AMBIENT_LOCALE_EXPR,
        help="JavaScript expression read at runtime when no locale is fixed at build time.",
    )

    output_dir = StrOption(
        default="dist/assets",
        help="Directory that resolved assets are written to.",
    )
