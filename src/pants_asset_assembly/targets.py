"""Asset assembly target types for Pants BUILD files.

Provides:
  - web_asset: a logical asset resolved against the configured asset roots
"""

from __future__ import annotations

from pants.engine.target import (
    COMMON_TARGET_FIELDS,
    StringField,
    Target,
)
from pants.util.strutil import softwrap


class AssetTypeField(StringField):
    alias = "asset_type"
    required = True
    help = softwrap(
        """
        Typed asset folder searched under each asset root (e.g. 'js', 'css', 'img').
        """
    )


class AssetNameField(StringField):
    alias = "asset_name"
    required = True
    help = softwrap(
        """
        Asset name without extension. Matches either '<asset_type>/<asset_name>.<extension>'
        or a module assembly directory '<asset_type>/<asset_name>/assembly.json'.
        """
    )


class ExtensionField(StringField):
    alias = "extension"
    default = None
    help = softwrap(
        """
        File extension of the asset. Defaults to the asset type for 'js' and 'css';
        required for every other type.
        """
    )


class BasePathField(StringField):
    alias = "base_path"
    default = ""
    help = "Sub-path under each asset root that the typed folder lives in."


class LocaleField(StringField):
    alias = "locale"
    default = None
    help = softwrap(
        """
        Language fixed into assembled locale glue. When unset, the browser's
        ambient locale is used, falling back to the default locale.
        """
    )


class WebAssetTarget(Target):
    alias = "web_asset"
    core_fields = (
        *COMMON_TARGET_FIELDS,
        AssetTypeField,
        AssetNameField,
        ExtensionField,
        BasePathField,
        LocaleField,
    )
    help = softwrap(
        """
        A web asset resolved from the asset roots configured in [asset-assembly].
        Single files are copied; module assemblies are concatenated from the files
        their assembly.json lists.
        """
    )
