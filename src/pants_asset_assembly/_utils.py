"""Pure Python asset utilities (no Pants dependencies).

Hashing, gzip, script minification, option merging and the write-out
helpers used when resolved artifacts are persisted to disk.
"""

from __future__ import annotations

import gzip
import hashlib
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from calmjs.parse import es5
from calmjs.parse.exceptions import ECMARegexSyntaxError, ECMASyntaxError
from calmjs.parse.unparsers.es5 import minify_print

from pants_asset_assembly._exceptions import AssetAssemblyError, MinifyError

logger = logging.getLogger(__name__)


def merge(*objects: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Shallow merge from left to right; later keys win. ``None`` counts as empty."""
    merged: dict[str, Any] = {}
    for obj in objects:
        if obj:
            merged.update(obj)
    return merged


def generate_hash(content: str) -> str:
    """MD5 hex digest of the UTF-8 encoding of ``content``.

    Matches ``md5sum`` over the same content written to disk as UTF-8, so
    hashed file names agree with hashes computed by external tooling.
    """
    return hashlib.md5(content.encode("utf-8")).hexdigest()


def hashed_file_name(path: str, content: str) -> str:
    """Insert the content hash before the extension: ``app.js`` -> ``app-<md5>.js``."""
    head, ext = os.path.splitext(path)
    return f"{head}-{generate_hash(content)}{ext}"


def minify_js(content: str, *, source: Optional[str] = None) -> str:
    """Minify script text, preserving its runtime behavior.

    Local identifiers are shortened; globals are left alone so concatenated
    assemblies keep their shared top-level names.

    Raises:
        MinifyError: If ``content`` does not parse.
    """
    try:
        program = es5(content)
    except (ECMASyntaxError, ECMARegexSyntaxError) as exc:
        raise MinifyError(source, f"Unable to minify script: {exc}") from exc
    return minify_print(program, obfuscate=True, obfuscate_globals=False)


def gzip_string(contents: Union[str, bytes]) -> bytes:
    """gzip ``contents``; identical input always produces identical bytes."""
    if isinstance(contents, str):
        contents = contents.encode("utf-8")
    return gzip.compress(contents, mtime=0)


def ensure_directory(path: Union[str, Path]) -> Path:
    """Create ``path`` and any missing parents. Existing directories are fine."""
    directory = Path(path)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.error("Unable to create folder '%s': %s", directory, exc)
        raise AssetAssemblyError(f"Unable to create folder {str(directory)!r}: {exc}") from exc
    return directory


def write_to_file(
    path: Union[str, Path],
    contents: Union[str, bytes],
    *,
    gzip: bool = False,
) -> Path:
    """Persist an artifact, creating parent directories as needed.

    Args:
        path: Destination file.
        contents: Text (written as UTF-8) or raw bytes.
        gzip: Compress the bytes before writing.

    Returns:
        The absolute path written.
    """
    file_path = Path(path).resolve()
    if gzip:
        data = gzip_string(contents)
    elif isinstance(contents, str):
        data = contents.encode("utf-8")
    else:
        data = contents

    ensure_directory(file_path.parent)
    file_path.write_bytes(data)
    logger.info("Wrote %s (%d bytes%s)", file_path, len(data), ", gzip" if gzip else "")
    return file_path
