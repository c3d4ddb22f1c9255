"""Domain types for asset resolution and assembly."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional

from pants_asset_assembly._exceptions import InvalidRequestError
from pants_asset_assembly._utils import generate_hash, merge


class AssetType(str, Enum):
    """Typed asset sub-folders searched under every asset root."""

    JS = "js"
    CSS = "css"
    IMG = "img"


DEFAULT_LOCALE = "en"

ASSEMBLY_MANIFEST_NAME = "assembly.json"
ASSET_MANIFEST_NAME = "asset-manifest.json"

# Extensions never decoded as text, whatever folder they are requested from.
BINARY_EXTENSIONS = frozenset(
    {
        "png", "gif", "jpg", "jpeg", "ico", "svgz", "webp", "bmp",
        "woff", "woff2", "ttf", "otf", "eot", "swf",
    }
)


def is_binary_request(asset_type: str, extension: str) -> bool:
    """Whether a request is served by disk path only, without text content."""
    return asset_type == AssetType.IMG.value or extension.lower() in BINARY_EXTENSIONS


def default_extension(asset_type: str) -> Optional[str]:
    """Extension implied by the asset type, for types that have one."""
    if asset_type in (AssetType.JS.value, AssetType.CSS.value):
        return asset_type
    return None


AssetRoots = tuple[str, ...]


def normalize_base_path(base_path: str) -> str:
    """``base_path`` as a path below an asset root.

    Leading separators are dropped, so ``/admin`` and ``admin`` name the same
    folder of every root.

    Raises:
        InvalidRequestError: If the path climbs out of the root with ``..``.
    """
    relative = base_path.lstrip("/" + os.sep)
    if not relative:
        return ""
    normalized = os.path.normpath(relative)
    if normalized == os.curdir:
        return ""
    if os.path.isabs(normalized) or normalized.split(os.sep)[0] == os.pardir:
        raise InvalidRequestError(base_path, "must stay inside the asset roots")
    return normalized


@dataclass(frozen=True)
class AssetRequest:
    """A logical asset request: ``{base_path}/{asset_type}/{name}.{extension}``."""

    name: str
    extension: str
    asset_type: str
    base_path: str = ""
    locale: Optional[str] = None

    def relative_dir(self) -> str:
        """Typed folder of the request below each root.

        Raises:
            InvalidRequestError: If ``base_path`` escapes the roots.
        """
        return os.path.join(normalize_base_path(self.base_path), self.asset_type)

    def relative_file(self) -> str:
        return os.path.join(self.relative_dir(), f"{self.name}.{self.extension}")

    def relative_assembly_dir(self) -> str:
        return os.path.join(self.relative_dir(), self.name)

    def describe(self) -> str:
        # Label only; never raises, even for a rejected base_path.
        parts = (self.base_path.strip("/" + os.sep), self.asset_type, f"{self.name}.{self.extension}")
        return "/".join(p for p in parts if p)


@dataclass(frozen=True)
class ManifestRedirect:
    """An ``assetPath`` redirect read from an asset-manifest.json."""

    source_dir: str  # Directory holding the manifest
    asset_path: str  # Value of assetPath, relative to source_dir

    @property
    def resolved_path(self) -> str:
        return os.path.normpath(os.path.join(self.source_dir, self.asset_path))


@dataclass(frozen=True)
class AssemblyManifest:
    """Ordered member list of a module assembly (assembly.json)."""

    module_name: str
    module_dir: str
    members: tuple[str, ...] = ()

    @property
    def manifest_path(self) -> str:
        return os.path.join(self.module_dir, ASSEMBLY_MANIFEST_NAME)

    def member_paths(self) -> Iterator[str]:
        """Absolute member paths, in declared order."""
        for member in self.members:
            yield os.path.normpath(os.path.join(self.module_dir, member))


@dataclass(frozen=True)
class LocaleBundle:
    """Translation data for one module, keyed by language code."""

    base_name: str
    languages: dict[str, Any] = field(default_factory=dict)
    default_locale: str = DEFAULT_LOCALE

    def __bool__(self) -> bool:
        return bool(self.languages)

    def language_for(self, locale: Optional[str]) -> Optional[str]:
        """Bundle key serving ``locale``: exact match, else its language part."""
        if not locale:
            return None
        if locale in self.languages:
            return locale
        language = re.split(r"[-_]", locale)[0]
        return language if language in self.languages else None

    def select(self, locale: Optional[str] = None) -> dict[str, Any]:
        """Default-language keys overridden key by key by ``locale``'s keys.

        Unknown locales fall back to the default language alone.
        """
        default = self.languages.get(self.default_locale) or {}
        language = self.language_for(locale)
        if language is None:
            return merge(default)
        return merge(default, self.languages[language])


@dataclass(frozen=True)
class ResolvedArtifact:
    """The outcome of one successful resolution."""

    disk_path: str  # Matched file, or the assembly.json of an assembly
    raw_content: Optional[str]  # As found on disk, or as assembled
    processed_content: Optional[str]  # After optional minification
    asset_type: str = ""
    is_assembly: bool = False

    @property
    def is_binary(self) -> bool:
        return self.raw_content is None

    @property
    def content_hash(self) -> Optional[str]:
        if self.processed_content is None:
            return None
        return generate_hash(self.processed_content)


@dataclass(frozen=True)
class ResolutionOutcome:
    """One entry of a batch resolution: an artifact or the error it raised."""

    request: AssetRequest
    artifact: Optional[ResolvedArtifact] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None
