"""Unit tests for SCSS compilation, the partial registry and ``font-url``."""

from __future__ import annotations

import typing as typ

import pytest

from slate_pages.assets import FontCollector, ImportRegistry, StylesheetCompiler
from slate_pages.errors import CompileError
from slate_pages.staging import MemoryTree

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from slate_pages.sources import SourceTree

    MakeSource = cabc.Callable[[dict[str, str | bytes]], SourceTree]

BASE_FILES: dict[str, str | bytes] = {
    "stylesheets/_variables.scss": "$accent: #111 !default;\n",
    "stylesheets/_rtl.scss": ".rtl-marker { direction: rtl; }\n",
    "stylesheets/screen.css.scss": (
        "@import 'variables';\na { color: $accent; }\n@import 'rtl';\n"
    ),
}


def _stage(
    tree: SourceTree, *, rtl: bool = False, minify: bool = False, **kwargs: str
) -> tuple[MemoryTree, tuple[str, ...], tuple[str, ...]]:
    target = MemoryTree()
    target.makedirs("stylesheets")
    target.makedirs("fonts")
    report = StylesheetCompiler(tree, minify=minify).stage(target, rtl=rtl, **kwargs)
    return target, report.stylesheets, report.fonts


def _css(target: MemoryTree, path: str) -> str:
    return target.freeze().read_bytes(path).decode("utf-8")


def test_targets_compile_to_css(make_source: MakeSource) -> None:
    """Each ``.css.scss`` target becomes a ``.css`` file; partials do not."""
    tree = make_source(BASE_FILES)
    target, stylesheets, fonts = _stage(tree)
    assert stylesheets == ("stylesheets/screen.css",)
    assert fonts == ()
    assert "color: #111" in _css(target, "stylesheets/screen.css")


def test_rtl_partial_is_empty_when_disabled(make_source: MakeSource) -> None:
    """Importing ``rtl`` is harmless without RTL and includes it with RTL."""
    tree = make_source(BASE_FILES)
    target, _sheets, _fonts = _stage(tree, rtl=False)
    assert "rtl-marker" not in _css(target, "stylesheets/screen.css")
    target, _sheets, _fonts = _stage(tree, rtl=True)
    assert "rtl-marker" in _css(target, "stylesheets/screen.css")


def test_registry_importer_resolves_names() -> None:
    """The registry resolves names through its importer callback."""
    registry = ImportRegistry()
    registry.register("variables", "$a: 1;")
    assert registry.importer("variables") == [("_variables.scss", "$a: 1;")]
    assert registry.importer("unknown") is None


def test_style_override_redefines_variables(make_source: MakeSource) -> None:
    """A front-matter style partial and caller text are layered ahead of targets."""
    files = dict(BASE_FILES)
    files["stylesheets/_brand.scss"] = "$accent: #222;\n"
    tree = make_source(files)

    target, _sheets, _fonts = _stage(tree, style="brand")
    assert "color: #222" in _css(target, "stylesheets/screen.css")

    target, _sheets, _fonts = _stage(tree, style="brand", style_text="$accent: #333;")
    assert "color: #333" in _css(target, "stylesheets/screen.css")


def test_unknown_style_override_is_rejected(make_source: MakeSource) -> None:
    """A style name without a matching partial is a compile error."""
    tree = make_source(BASE_FILES)
    with pytest.raises(CompileError, match="'missing'"):
        _stage(tree, style="missing")


def test_font_url_rewrites_and_copies_font(make_source: MakeSource) -> None:
    """``font-url`` rewrites to ``../fonts`` and the font is staged."""
    tree = make_source(
        {
            "stylesheets/screen.css.scss": (
                "@font-face { font-family: 'r'; src: font-url('roboto.woff'); }\n"
            ),
            "fonts/roboto.woff": b"wOFF",
            "fonts/unused.woff": b"wOFF",
        }
    )
    target, _sheets, fonts = _stage(tree)
    assert "url(../fonts/roboto.woff)" in _css(target, "stylesheets/screen.css")
    assert fonts == ("fonts/roboto.woff",)
    assert target.listdir("fonts") == ["roboto.woff"]


def test_font_collector_rejects_empty_path() -> None:
    """A URL without a path is reported as an illegal font URL."""
    fonts = FontCollector()
    with pytest.raises(ValueError, match="illegal font url"):
        fonts.font_url("?#iefix")
    assert fonts.paths == set()


def test_syntax_error_is_compile_error(make_source: MakeSource) -> None:
    """libsass failures surface as CompileError naming the target."""
    tree = make_source({"stylesheets/broken.css.scss": "a { color: ; "})
    with pytest.raises(CompileError, match="broken.css.scss"):
        _stage(tree)


def test_output_style_follows_minify_flag(make_source: MakeSource) -> None:
    """Minified output is compressed onto a single line."""
    tree = make_source(BASE_FILES)
    target, _sheets, _fonts = _stage(tree, minify=True)
    assert _css(target, "stylesheets/screen.css").strip() == "a{color:#111}"
