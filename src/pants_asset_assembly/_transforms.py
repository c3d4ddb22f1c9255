"""Pure Python assembly transforms (no Pants dependencies).

Each assembly member is classified by extension and turned into one or more
output parts. Parts are concatenated in manifest order under a module header
(``/* Module assembly: <module> */`` for stylesheets):

    //Module assembly: <module>

    /*
     * Included File: <member or "Injected code">
     */

    <content>

Member kinds:
  - script / stylesheet: copied verbatim
  - locale data (<base>_<lang>.json): every language file of <base> merged
    into one ``langs`` object, followed by injected locale-selection glue
  - template (.html): <body> contents embedded as a JavaScript string with a
    ``getSnippets()`` accessor
  - binary: never inlined
"""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from pants_asset_assembly._exceptions import TransformError
from pants_asset_assembly._types import DEFAULT_LOCALE, AssemblyManifest, AssetType, LocaleBundle

logger = logging.getLogger(__name__)

# Stands in for line breaks while the template body is handled as one line.
LINE_BREAK_SENTINEL = "\x00BACKSLASHN\x00"

INJECTED_CODE_LABEL = "Injected code"

DEFAULT_AMBIENT_LOCALE_EXPR = "window.locale"

EXCLUDE_LINE_MARKER = "<!-- exclude LINE -->"
EXCLUDE_START_MARKER = "<!-- exclude START -->"
EXCLUDE_END_MARKER = "<!-- exclude END -->"

_BODY_PATTERN = re.compile(r"<body[^>]*>(.*?)</body>", re.IGNORECASE | re.DOTALL)

# Language codes are lower case, with an optional region: en, pt_BR, zh_Hant.
_LOCALE_FILE_PATTERN = re.compile(
    r"^(?P<base>.+)_(?P<lang>[a-z]{2,3}(?:[_-][A-Z][A-Za-z0-9]*)?)\.json$"
)


class MemberKind(str, Enum):
    """Closed set of assembly member kinds."""

    SCRIPT = "script"
    STYLESHEET = "stylesheet"
    LOCALE_DATA = "locale_data"
    TEMPLATE = "template"
    BINARY = "binary"


_KIND_BY_EXTENSION = {
    ".js": MemberKind.SCRIPT,
    ".css": MemberKind.STYLESHEET,
    ".json": MemberKind.LOCALE_DATA,
    ".html": MemberKind.TEMPLATE,
    ".htm": MemberKind.TEMPLATE,
    ".png": MemberKind.BINARY,
    ".gif": MemberKind.BINARY,
    ".jpg": MemberKind.BINARY,
    ".jpeg": MemberKind.BINARY,
    ".ico": MemberKind.BINARY,
    ".webp": MemberKind.BINARY,
    ".woff": MemberKind.BINARY,
    ".woff2": MemberKind.BINARY,
    ".ttf": MemberKind.BINARY,
    ".eot": MemberKind.BINARY,
}


def classify_member(path: str) -> MemberKind:
    """Member kind for ``path``.

    Raises:
        TransformError: For extensions with no transform.
    """
    ext = os.path.splitext(path)[1].lower()
    try:
        return _KIND_BY_EXTENSION[ext]
    except KeyError:
        raise TransformError(path, f"Unsupported assembly member type {ext or '(none)'!r}") from None


@dataclass(frozen=True)
class MemberSource:
    """A member file located on disk, with its text when the kind needs it."""

    label: str  # Member name as written in assembly.json
    path: str
    kind: MemberKind
    content: Optional[str] = None


@dataclass(frozen=True)
class AssemblyPart:
    """One block of assembly output."""

    label: str
    content: str


# =============================================================================
# Rendering
# =============================================================================


def include_header(label: str) -> str:
    return f"/*\n * Included File: {label}\n */\n\n"


def module_header(module_name: str, asset_type: str = AssetType.JS.value) -> str:
    # Stylesheets have no line comments.
    if asset_type == AssetType.CSS.value:
        return f"/* Module assembly: {module_name} */\n\n"
    return f"//Module assembly: {module_name}\n\n"


def render_assembly(
    module_name: str,
    parts: Sequence[AssemblyPart],
    asset_type: str = AssetType.JS.value,
) -> str:
    """Concatenate parts, in order, under the module header."""
    chunks = [module_header(module_name, asset_type)]
    for part in parts:
        chunks.append(include_header(part.label))
        chunks.append(part.content)
        chunks.append("\n\n")
    return "".join(chunks)


# =============================================================================
# Locale data
# =============================================================================


def split_locale_file_name(file_name: str) -> Optional[tuple[str, str]]:
    """``fullModule_es.json`` -> ``("fullModule", "es")``; None if not a locale file."""
    match = _LOCALE_FILE_PATTERN.match(os.path.basename(file_name))
    if not match:
        return None
    return match.group("base"), match.group("lang")


def read_locale_files(
    directory: str,
    base_name: str,
    *,
    default_locale: str = DEFAULT_LOCALE,
) -> LocaleBundle:
    """Merge every ``<base_name>_<lang>.json`` in ``directory`` into one bundle.

    Everything between ``<base_name>_`` and ``.json`` is the language, so
    ``mod_zh_CN.json`` contributes ``zh_CN``. Languages are ordered by file
    name. Files that fail to read or parse are logged and skipped.
    """
    pattern = re.compile(rf"^{re.escape(base_name)}_(?P<lang>.+)\.json$")
    languages: dict[str, object] = {}

    for file_name in sorted(os.listdir(directory)):
        match = pattern.match(file_name)
        if not match:
            continue
        path = os.path.join(directory, file_name)
        try:
            with open(path, encoding="utf-8") as fh:
                languages[match.group("lang")] = json.load(fh)
        except (OSError, ValueError) as exc:
            logger.error("Unable to parse locale file: %s :: %s", path, exc)

    return LocaleBundle(base_name=base_name, languages=languages, default_locale=default_locale)


def locale_bundle_script(bundle: LocaleBundle) -> str:
    return "var langs = " + json.dumps(bundle.languages, separators=(",", ":"), ensure_ascii=False) + ";"


def locale_selection_script(
    *,
    locale: Optional[str] = None,
    default_locale: str = DEFAULT_LOCALE,
    ambient_locale_expr: str = DEFAULT_AMBIENT_LOCALE_EXPR,
) -> str:
    """Runtime glue choosing the active language and building ``lang``.

    Selection order: ``locale`` (fixed at build time) -> the ambient browser
    signal -> ``default_locale``. ``lang`` holds the default language's keys
    overridden by the selected language's keys.
    """
    override = json.dumps(locale) if locale else "null"
    default = json.dumps(default_locale)
    return (
        f"var locale = {override} || {ambient_locale_expr} || {default};"
        "locale = typeof(locale) == 'string' ? locale : locale[0].split('-')[0];"
        f"var l1 = langs[locale] || langs[locale.split('-')[0]] || langs[{default}];"
        f"var lang = $.extend({{}}, langs[{default}], l1);"
    )


# =============================================================================
# Templates
# =============================================================================


def remove_line_breaks(html: str) -> str:
    """Drop ``\\r`` and mark every ``\\n`` with the line-break sentinel."""
    return html.replace("\r", "").replace("\n", LINE_BREAK_SENTINEL)


def extract_body(html: str) -> str:
    """Contents of the first <body> element, or the whole document without one."""
    one_line = remove_line_breaks(html)
    match = _BODY_PATTERN.search(one_line)
    body = match.group(1) if match else one_line
    return body.strip()


def flatten_string(html: str) -> str:
    """Render sentinel-separated markup as a concatenated JavaScript string literal.

    Lines carrying the exclude LINE marker are dropped, as is every line from
    an exclude START marker through the next exclude END marker.
    """
    escaped = html.replace("\\", "\\\\").replace('"', '\\"')
    chunks = []
    in_exclude_block = False

    for line in escaped.split(LINE_BREAK_SENTINEL):
        if EXCLUDE_START_MARKER in line:
            in_exclude_block = True

        if not in_exclude_block and EXCLUDE_LINE_MARKER not in line:
            chunks.append(f'"{line}\\n" + \n')

        if EXCLUDE_END_MARKER in line:
            in_exclude_block = False

    chunks.append('""')
    return "".join(chunks)


def convert_html_to_js(html: str, has_lang_resources: bool) -> str:
    """Embed a template's body as ``snippetsRaw`` plus a ``getSnippets()`` accessor."""
    markup = "snippetsRaw.format(lang)" if has_lang_resources else "snippetsRaw"
    return (
        "\nvar snippetsRaw = "
        + flatten_string(extract_body(html))
        + ";\n"
        + "\n\nfunction getSnippets(){\nvar snip = document.createElement('div');"
        + f"\n$(snip).html({markup});\n"
        + "\nreturn snip;\n}\n"
    )


# =============================================================================
# Assembly
# =============================================================================


def build_assembly_parts(
    sources: Sequence[MemberSource],
    *,
    locale: Optional[str] = None,
    default_locale: str = DEFAULT_LOCALE,
    ambient_locale_expr: str = DEFAULT_AMBIENT_LOCALE_EXPR,
) -> list[AssemblyPart]:
    """Transform member sources, in order, into output parts.

    Raises:
        TransformError: For binary members, misnamed or empty locale data,
            or a text member without content.
    """
    has_lang_resources = any(s.kind is MemberKind.LOCALE_DATA for s in sources)
    emitted_locales: set[tuple[str, str]] = set()
    parts: list[AssemblyPart] = []

    for source in sources:
        kind = source.kind
        if kind is MemberKind.SCRIPT or kind is MemberKind.STYLESHEET:
            parts.append(AssemblyPart(source.label, _require_content(source)))
        elif kind is MemberKind.LOCALE_DATA:
            split = split_locale_file_name(source.path)
            if split is None:
                raise TransformError(
                    source.path, "Locale files must be named <base>_<lang>.json"
                )
            directory = os.path.dirname(source.path)
            base_name = split[0]
            if (directory, base_name) in emitted_locales:
                continue
            emitted_locales.add((directory, base_name))

            bundle = read_locale_files(directory, base_name, default_locale=default_locale)
            if not bundle:
                raise TransformError(source.path, f"No readable locale data for {base_name!r}")
            if locale and bundle.language_for(locale) is None:
                logger.warning(
                    "No %r locale data for %s, falling back to %r", locale, base_name, default_locale
                )
            logger.debug(
                "Locale %s of %s resolves %d key(s)",
                locale or default_locale,
                base_name,
                len(bundle.select(locale)),
            )
            parts.append(AssemblyPart(source.label, locale_bundle_script(bundle)))
            parts.append(
                AssemblyPart(
                    INJECTED_CODE_LABEL,
                    locale_selection_script(
                        locale=locale,
                        default_locale=default_locale,
                        ambient_locale_expr=ambient_locale_expr,
                    ),
                )
            )
        elif kind is MemberKind.TEMPLATE:
            parts.append(
                AssemblyPart(
                    source.label,
                    convert_html_to_js(_require_content(source), has_lang_resources),
                )
            )
        elif kind is MemberKind.BINARY:
            raise TransformError(source.path, "Binary files cannot be included in an assembly")
        else:
            raise TransformError(source.path, f"No transform for member kind {kind!r}")

    return parts


def assemble(
    manifest: AssemblyManifest,
    sources: Sequence[MemberSource],
    *,
    asset_type: str = AssetType.JS.value,
    **locale_options,
) -> str:
    """Full assembly text for ``manifest`` from its ordered member sources.

    Raises:
        TransformError: If a member cannot be transformed, or a stylesheet
            assembly lists anything but stylesheets.
    """
    if asset_type == AssetType.CSS.value:
        for source in sources:
            if source.kind is not MemberKind.STYLESHEET:
                raise TransformError(source.path, "Stylesheet assemblies may only include .css files")

    parts = build_assembly_parts(sources, **locale_options)
    logger.debug("Assembled %s from %d part(s)", manifest.module_name, len(parts))
    return render_assembly(manifest.module_name, parts, asset_type)


def _require_content(source: MemberSource) -> str:
    if source.content is None:
        raise TransformError(source.path, "Member content was not read")
    return source.content
