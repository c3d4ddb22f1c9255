"""Tests for assembly transforms (pure functions, no Pants engine)."""

from __future__ import annotations

import json
import logging

import pytest

from pants_asset_assembly._exceptions import TransformError
from pants_asset_assembly._transforms import (
    INJECTED_CODE_LABEL,
    LINE_BREAK_SENTINEL,
    AssemblyPart,
    MemberKind,
    MemberSource,
    assemble,
    build_assembly_parts,
    classify_member,
    convert_html_to_js,
    extract_body,
    flatten_string,
    locale_bundle_script,
    locale_selection_script,
    module_header,
    read_locale_files,
    render_assembly,
    split_locale_file_name,
)
from pants_asset_assembly._types import AssemblyManifest, LocaleBundle


# =============================================================================
# Classification
# =============================================================================


class TestClassifyMember:
    @pytest.mark.parametrize(
        "path,kind",
        [
            ("main.js", MemberKind.SCRIPT),
            ("theme.CSS", MemberKind.STYLESHEET),
            ("mod_en.json", MemberKind.LOCALE_DATA),
            ("template.html", MemberKind.TEMPLATE),
            ("legacy.htm", MemberKind.TEMPLATE),
            ("arrow.png", MemberKind.BINARY),
        ],
    )
    def test_known(self, path: str, kind: MemberKind):
        assert classify_member(path) is kind

    @pytest.mark.parametrize("path", ["notes.txt", "Makefile", "script.coffee"])
    def test_unknown_raises(self, path: str):
        with pytest.raises(TransformError) as exc_info:
            classify_member(path)
        assert exc_info.value.path == path


# =============================================================================
# Rendering
# =============================================================================


class TestRenderAssembly:
    def test_single_part(self):
        text = render_assembly("simpleModule", [AssemblyPart("main.js", 'var m="main.js";')])
        assert text == (
            "//Module assembly: simpleModule\n\n"
            "/*\n * Included File: main.js\n */\n\n"
            'var m="main.js";\n\n'
        )

    def test_no_parts(self):
        assert render_assembly("empty", []) == "//Module assembly: empty\n\n"

    def test_stylesheet_header_is_block_comment(self):
        text = render_assembly("theme", [AssemblyPart("a.css", "body{}")], "css")
        assert text == (
            "/* Module assembly: theme */\n\n"
            "/*\n * Included File: a.css\n */\n\n"
            "body{}\n\n"
        )

    @pytest.mark.parametrize(
        "asset_type,header",
        [
            ("js", "//Module assembly: m\n\n"),
            ("css", "/* Module assembly: m */\n\n"),
        ],
    )
    def test_module_header(self, asset_type: str, header: str):
        assert module_header("m", asset_type) == header


# =============================================================================
# Locale data
# =============================================================================


class TestSplitLocaleFileName:
    def test_valid(self):
        assert split_locale_file_name("/m/fullModule_es.json") == ("fullModule", "es")

    def test_underscored_base(self):
        assert split_locale_file_name("my_module_en.json") == ("my_module", "en")

    @pytest.mark.parametrize(
        "file_name,expected",
        [
            ("mod_zh_CN.json", ("mod", "zh_CN")),
            ("mod_pt_BR.json", ("mod", "pt_BR")),
            ("my_module_zh_Hant.json", ("my_module", "zh_Hant")),
            ("mod_es-MX.json", ("mod", "es-MX")),
        ],
    )
    def test_region(self, file_name: str, expected):
        assert split_locale_file_name(file_name) == expected

    def test_invalid(self):
        assert split_locale_file_name("strings.json") is None


class TestReadLocaleFiles:
    def test_merges_languages(self, tmp_path):
        (tmp_path / "mod_en.json").write_text('{"title": "value"}')
        (tmp_path / "mod_es.json").write_text('{"title": "espanol"}')
        (tmp_path / "other_en.json").write_text('{"x": 1}')
        bundle = read_locale_files(str(tmp_path), "mod")
        assert bundle.base_name == "mod"
        assert list(bundle.languages) == ["en", "es"]
        assert bundle.languages["es"] == {"title": "espanol"}

    def test_region_languages_included(self, tmp_path):
        (tmp_path / "mod_en.json").write_text('{"t": "v"}')
        (tmp_path / "mod_zh_CN.json").write_text('{"t": "zh"}')
        bundle = read_locale_files(str(tmp_path), "mod")
        assert bundle.languages == {"en": {"t": "v"}, "zh_CN": {"t": "zh"}}
        assert locale_bundle_script(bundle) == 'var langs = {"en":{"t":"v"},"zh_CN":{"t":"zh"}};'

    def test_unparseable_skipped(self, tmp_path, caplog):
        (tmp_path / "mod_en.json").write_text('{"title": "value"}')
        (tmp_path / "mod_fr.json").write_text("{oops")
        with caplog.at_level(logging.ERROR):
            bundle = read_locale_files(str(tmp_path), "mod")
        assert list(bundle.languages) == ["en"]
        assert "Unable to parse locale file" in caplog.text

    def test_base_name_is_literal(self, tmp_path):
        (tmp_path / "a.b_en.json").write_text("{}")
        (tmp_path / "aXb_en.json").write_text("{}")
        bundle = read_locale_files(str(tmp_path), "a.b")
        assert list(bundle.languages) == ["en"]


class TestLocaleScripts:
    def test_bundle_script_is_compact_json(self):
        bundle = LocaleBundle("m", {"en": {"title": "value"}, "es": {"title": "espanol"}})
        assert locale_bundle_script(bundle) == (
            'var langs = {"en":{"title":"value"},"es":{"title":"espanol"}};'
        )

    def test_bundle_script_keeps_unicode(self):
        bundle = LocaleBundle("m", {"es": {"title": "español"}})
        assert "español" in locale_bundle_script(bundle)

    def test_selection_without_override(self):
        script = locale_selection_script()
        assert script.startswith('var locale = null || window.locale || "en";')
        assert 'var lang = $.extend({}, langs["en"], l1);' in script

    def test_selection_with_override(self):
        script = locale_selection_script(locale="es", default_locale="fr")
        assert script.startswith('var locale = "es" || window.locale || "fr";')
        assert 'langs["fr"]' in script

    def test_custom_ambient_signal(self):
        script = locale_selection_script(ambient_locale_expr="FS.locale || window.locale")
        assert "null || FS.locale || window.locale ||" in script


# =============================================================================
# Templates
# =============================================================================


class TestExtractBody:
    def test_body_contents(self):
        html = "<html><head><title>x</title></head><body class='a'>\nhi\n</body></html>"
        assert extract_body(html) == f"{LINE_BREAK_SENTINEL}hi{LINE_BREAK_SENTINEL}"

    def test_case_insensitive(self):
        assert extract_body("<BODY>hi</Body>") == "hi"

    def test_non_greedy(self):
        assert extract_body("<body>one</body><body>two</body>") == "one"

    def test_no_body_uses_whole_document(self):
        assert extract_body("  <div>fragment</div>  ") == "<div>fragment</div>"

    def test_carriage_returns_dropped(self):
        assert extract_body("<body>a\r\nb</body>") == f"a{LINE_BREAK_SENTINEL}b"


class TestFlattenString:
    def test_lines_terminated(self):
        html = f"a{LINE_BREAK_SENTINEL}b"
        assert flatten_string(html) == '"a\\n" + \n"b\\n" + \n""'

    def test_quotes_escaped(self):
        assert flatten_string('<p class="x">') == '"<p class=\\"x\\">\\n" + \n""'

    def test_backslashes_escaped(self):
        assert flatten_string("a\\b") == '"a\\\\b\\n" + \n""'

    def test_exclusion_markers(self):
        html = (
            "<body>\n"
            "keep one\n"
            "<p>preview only</p><!-- exclude LINE -->\n"
            "<!-- exclude START -->\n"
            "hidden\n"
            "<!-- exclude END -->\n"
            "keep two\n"
            "</body>"
        )
        assert flatten_string(extract_body(html)) == (
            '"\\n" + \n'
            '"keep one\\n" + \n'
            '"keep two\\n" + \n'
            '"\\n" + \n'
            '""'
        )

    def test_start_and_end_on_same_line(self):
        html = f"a{LINE_BREAK_SENTINEL}<!-- exclude START -->x<!-- exclude END -->{LINE_BREAK_SENTINEL}b"
        assert flatten_string(html) == '"a\\n" + \n"b\\n" + \n""'


class TestConvertHtmlToJs:
    HTML = "<html><body>\n    html template body\n</body></html>"

    def test_with_lang_resources(self):
        assert convert_html_to_js(self.HTML, True) == (
            "\nvar snippetsRaw = "
            '"\\n" + \n'
            '"    html template body\\n" + \n'
            '"\\n" + \n'
            '"";\n'
            "\n\nfunction getSnippets(){\nvar snip = document.createElement('div');"
            "\n$(snip).html(snippetsRaw.format(lang));\n"
            "\nreturn snip;\n}\n"
        )

    def test_without_lang_resources(self):
        js = convert_html_to_js(self.HTML, False)
        assert "$(snip).html(snippetsRaw);" in js
        assert ".format(lang)" not in js


# =============================================================================
# Assembly
# =============================================================================


@pytest.fixture
def module_dir(tmp_path):
    (tmp_path / "fullModule_en.json").write_text(json.dumps({"title": "value", "onlyEN": "value"}))
    (tmp_path / "fullModule_es.json").write_text(json.dumps({"title": "espanol"}))
    return tmp_path


def _source(module_dir, label, content=None):
    path = str(module_dir / label)
    return MemberSource(label=label, path=path, kind=classify_member(label), content=content)


class TestBuildAssemblyParts:
    def test_scripts_in_order(self, tmp_path):
        parts = build_assembly_parts(
            [_source(tmp_path, "a.js", "var a;"), _source(tmp_path, "b.js", "var b;")]
        )
        assert parts == [AssemblyPart("a.js", "var a;"), AssemblyPart("b.js", "var b;")]

    def test_stylesheets_verbatim(self, tmp_path):
        parts = build_assembly_parts([_source(tmp_path, "theme.css", "body {}\n")])
        assert parts == [AssemblyPart("theme.css", "body {}\n")]

    def test_locale_emits_bundle_and_injected_code(self, module_dir):
        parts = build_assembly_parts([_source(module_dir, "fullModule_en.json")], locale="es")
        assert [p.label for p in parts] == ["fullModule_en.json", INJECTED_CODE_LABEL]
        assert parts[0].content == (
            'var langs = {"en":{"title":"value","onlyEN":"value"},"es":{"title":"espanol"}};'
        )
        assert parts[1].content.startswith('var locale = "es" ||')

    def test_missing_build_locale_warns(self, module_dir, caplog):
        with caplog.at_level(logging.WARNING):
            parts = build_assembly_parts([_source(module_dir, "fullModule_en.json")], locale="fr")
        assert parts[1].content.startswith('var locale = "fr" ||')
        assert "No 'fr' locale data for fullModule" in caplog.text

    def test_region_build_locale_served_by_language(self, module_dir, caplog):
        with caplog.at_level(logging.WARNING):
            build_assembly_parts([_source(module_dir, "fullModule_en.json")], locale="es-MX")
        assert "locale data" not in caplog.text

    def test_locale_base_emitted_once(self, module_dir):
        parts = build_assembly_parts(
            [_source(module_dir, "fullModule_en.json"), _source(module_dir, "fullModule_es.json")]
        )
        assert [p.label for p in parts] == ["fullModule_en.json", INJECTED_CODE_LABEL]

    def test_template_formats_with_lang_when_locale_present(self, module_dir):
        parts = build_assembly_parts(
            [
                _source(module_dir, "template.html", "<body>\nhi\n</body>"),
                _source(module_dir, "fullModule_en.json"),
            ]
        )
        assert parts[0].label == "template.html"
        assert "snippetsRaw.format(lang)" in parts[0].content

    def test_misnamed_locale_file(self, tmp_path):
        (tmp_path / "strings.json").write_text("{}")
        with pytest.raises(TransformError):
            build_assembly_parts([_source(tmp_path, "strings.json")])

    def test_empty_locale_bundle(self, tmp_path):
        (tmp_path / "mod_en.json").write_text("{broken")
        with pytest.raises(TransformError) as exc_info:
            build_assembly_parts([_source(tmp_path, "mod_en.json")])
        assert "mod" in str(exc_info.value)

    def test_binary_member_rejected(self, tmp_path):
        with pytest.raises(TransformError):
            build_assembly_parts([_source(tmp_path, "arrow.png")])

    def test_unread_text_member(self, tmp_path):
        with pytest.raises(TransformError):
            build_assembly_parts([_source(tmp_path, "main.js")])


class TestAssemble:
    def test_full_module(self, module_dir):
        manifest = AssemblyManifest(
            "fullModule",
            str(module_dir),
            ("helpers.js", "main.js", "fullModule_en.json", "template.html"),
        )
        sources = [
            _source(module_dir, "helpers.js", 'var h="helper.js";'),
            _source(module_dir, "main.js", 'var m="main.js";'),
            _source(module_dir, "fullModule_en.json"),
            _source(module_dir, "template.html", "<body>\n    html template body\n</body>"),
        ]
        text = assemble(manifest, sources)

        assert text.startswith("//Module assembly: fullModule\n\n")
        headers = [
            " * Included File: helpers.js",
            " * Included File: main.js",
            " * Included File: fullModule_en.json",
            f" * Included File: {INJECTED_CODE_LABEL}",
            " * Included File: template.html",
        ]
        positions = [text.index(h) for h in headers]
        assert positions == sorted(positions)
        assert text.index('var h="helper.js";') < text.index('var m="main.js";')
        assert text.endswith("return snip;\n}\n\n\n")

    def test_stylesheet_module(self, tmp_path):
        manifest = AssemblyManifest("theme", str(tmp_path), ("a.css", "b.css"))
        sources = [_source(tmp_path, "a.css", "body{color:red}"), _source(tmp_path, "b.css", "p{}")]
        text = assemble(manifest, sources, asset_type="css")
        assert text.startswith("/* Module assembly: theme */\n\n/*\n * Included File: a.css")
        assert "//" not in text

    @pytest.mark.parametrize("label", ["main.js", "template.html", "fullModule_en.json"])
    def test_stylesheet_module_rejects_other_kinds(self, module_dir, label: str):
        manifest = AssemblyManifest("theme", str(module_dir), ("a.css", label))
        sources = [_source(module_dir, "a.css", "body{}"), _source(module_dir, label, "x")]
        with pytest.raises(TransformError) as exc_info:
            assemble(manifest, sources, asset_type="css")
        assert exc_info.value.path == str(module_dir / label)
