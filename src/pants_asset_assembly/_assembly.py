"""Pure Python assembly manifest handling (no Pants dependencies).

A module assembly is a directory holding an ``assembly.json``::

    js/fullModule/
        assembly.json       {"name": "fullModule",
                             "files": ["helpers.js", "main.js",
                                       "fullModule_en.json", "template.html"]}
        helpers.js
        main.js
        fullModule_en.json
        fullModule_es.json
        template.html

Members are listed relative to the module directory, in inclusion order.
"""

from __future__ import annotations

import json
import os
from typing import Optional

from pants_asset_assembly._exceptions import ManifestParseError
from pants_asset_assembly._types import ASSEMBLY_MANIFEST_NAME, AssemblyManifest


def is_assembly_dir(path: str) -> bool:
    return os.path.isfile(os.path.join(path, ASSEMBLY_MANIFEST_NAME))


def parse_assembly_manifest(content: str, module_dir: str) -> AssemblyManifest:
    """Parse assembly.json content for the module living in ``module_dir``.

    Accepts ``{"name": ..., "files": [...]}`` or a bare list of files.

    Raises:
        ManifestParseError: If the content is not a valid assembly manifest.
    """
    manifest_path = os.path.join(module_dir, ASSEMBLY_MANIFEST_NAME)
    try:
        data = json.loads(content)
    except ValueError as exc:
        raise ManifestParseError(manifest_path, str(exc)) from exc

    module_name = os.path.basename(os.path.normpath(module_dir))
    if isinstance(data, list):
        files = data
    elif isinstance(data, dict):
        files = data.get("files")
        name = data.get("name")
        if name is not None:
            if not isinstance(name, str) or not name:
                raise ManifestParseError(manifest_path, "name must be a non-empty string")
            module_name = name
    else:
        raise ManifestParseError(manifest_path, "expected a JSON object or array")

    if not isinstance(files, list):
        raise ManifestParseError(manifest_path, "files must be a list of file names")
    for member in files:
        if not isinstance(member, str) or not member:
            raise ManifestParseError(manifest_path, f"invalid member entry: {member!r}")

    return AssemblyManifest(
        module_name=module_name,
        module_dir=module_dir,
        members=tuple(files),
    )


def read_assembly_manifest(module_dir: str) -> Optional[AssemblyManifest]:
    """Load the assembly manifest of ``module_dir``.

    Returns:
        The manifest, or None if the directory is not an assembly.

    Raises:
        ManifestParseError: If assembly.json exists but is malformed.
    """
    manifest_path = os.path.join(module_dir, ASSEMBLY_MANIFEST_NAME)
    if not os.path.isfile(manifest_path):
        return None
    try:
        with open(manifest_path, encoding="utf-8") as fh:
            content = fh.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestParseError(manifest_path, str(exc)) from exc
    return parse_assembly_manifest(content, module_dir)

