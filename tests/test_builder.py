"""End-to-end tests for one-shot builds of the bundled sample and user trees.

The tests build into temporary directories through
``slate_pages.builder.build_directory`` and inspect the generated page with
BeautifulSoup, so the layout, content loader and asset pipeline are exercised
together the way the ``slate site`` command runs them.
"""

from __future__ import annotations

import typing as typ

import pytest
from bs4 import BeautifulSoup

from slate_pages.builder import build_directory, build_site
from slate_pages.config import BuildParameters, Toggle
from slate_pages.errors import ParseError, SourceError
from slate_pages.sources import SourceTree
from slate_pages.staging import MemoryTree

if typ.TYPE_CHECKING:
    from pathlib import Path

    from conftest import WriteTree


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """Return an empty user directory; every file comes from the defaults."""
    path = tmp_path / "docs"
    path.mkdir()
    return path


def _soup(path: Path) -> BeautifulSoup:
    return BeautifulSoup(path.read_text(encoding="utf-8"), "html.parser")


def test_bundled_sample_builds_complete_site(source_dir: Path, tmp_path: Path) -> None:
    """The default tree renders the page, bundles, stylesheets and images."""
    output = tmp_path / "site"
    report = build_directory(source_dir, output, BuildParameters())

    assert report.search is True
    assert report.rtl is False
    assert (output / "index.html").is_file()
    assert (output / "scripts" / "all.js").is_file()
    assert not (output / "scripts" / "all_nosearch.js").exists()
    assert sorted(p.name for p in (output / "stylesheets").iterdir()) == [
        "print.css",
        "screen.css",
    ]
    assert (output / "images" / "logo.png").is_file()
    assert (output / "fonts").is_dir()

    soup = _soup(output / "index.html")
    assert soup.title.get_text() == "API Reference"
    assert soup.find("script", src="scripts/all.js") is not None
    toc_links = [link["href"] for link in soup.select("#toc a.toc-link")]
    assert toc_links[:2] == ["#introduction", "#authentication"]
    assert "#errors" in toc_links
    for href in toc_links:
        assert soup.find(id=href[1:]) is not None, f"missing heading for {href}"
    assert soup.select("pre.highlight.tab-python")


def test_search_override_wins_over_front_matter(
    source_dir: Path, tmp_path: Path
) -> None:
    """Disabling search ships the no-search bundle and drops the search box."""
    output = tmp_path / "site"
    params = BuildParameters(search=Toggle.DISABLED)
    report = build_directory(source_dir, output, params)

    assert report.search is False
    assert (output / "scripts" / "all_nosearch.js").is_file()
    assert not (output / "scripts" / "all.js").exists()
    soup = _soup(output / "index.html")
    assert soup.find("script", src="scripts/all_nosearch.js") is not None
    assert soup.find("input", id="input-search") is None


def test_logo_override_skips_default_logo(
    source_dir: Path, tmp_path: Path, write_tree: WriteTree
) -> None:
    """A selected logo replaces ``logo.png`` in the output and the page."""
    write_tree(source_dir, {"images/brand.png": b"\x89PNG brand"})
    output = tmp_path / "site"
    report = build_directory(source_dir, output, BuildParameters(logo="brand.png"))

    assert report.images == ("images/brand.png",)
    assert not (output / "images" / "logo.png").exists()
    soup = _soup(output / "index.html")
    assert soup.find("img", class_="logo")["src"] == "images/brand.png"


def test_repeated_build_skips_unchanged_images(
    source_dir: Path, tmp_path: Path
) -> None:
    """Images already up to date are not copied again."""
    output = tmp_path / "site"
    first = build_directory(source_dir, output, BuildParameters())
    second = build_directory(source_dir, output, BuildParameters())
    assert first.images == ("images/logo.png",)
    assert second.images == ()


def test_user_document_overrides_sample(
    source_dir: Path, tmp_path: Path, write_tree: WriteTree
) -> None:
    """A user entry document replaces the sample; its includes are appended."""
    write_tree(
        source_dir,
        {
            "index.html.md": (
                "---\ntitle: Mine\nincludes:\n  - extra\nenable_rtl: true\n---\n"
                "# First\n"
            ),
            "includes/_extra.md": "# Second\n",
        },
    )
    output = tmp_path / "site"
    params = BuildParameters(minify_html=False)
    report = build_directory(source_dir, output, params)

    assert report.rtl is True
    html = (output / "index.html").read_text(encoding="utf-8")
    assert "\n" in html
    soup = BeautifulSoup(html, "html.parser")
    assert [h1["id"] for h1 in soup.select(".content h1")] == ["first", "second"]
    assert "toc-wrapper" in (output / "stylesheets" / "screen.css").read_text(
        encoding="utf-8"
    )


def test_missing_include_aborts_build(
    source_dir: Path, tmp_path: Path, write_tree: WriteTree
) -> None:
    """An include that cannot be found fails the pass with its name."""
    write_tree(source_dir, {"index.html.md": "---\nincludes: [nope]\n---\n# A\n"})
    with pytest.raises(SourceError, match="'nope'"):
        build_directory(source_dir, tmp_path / "site", BuildParameters())


def test_broken_layout_is_parse_error(
    source_dir: Path, tmp_path: Path, write_tree: WriteTree
) -> None:
    """A layout template that does not compile is reported as a parse error."""
    write_tree(source_dir, {"layouts/layout.jinja": "{% if %}"})
    with pytest.raises(ParseError, match="layout"):
        build_directory(source_dir, tmp_path / "site", BuildParameters())


def test_build_into_memory_tree() -> None:
    """The orchestrator writes into any output tree, including memory."""
    target = MemoryTree()
    report = build_site(SourceTree.for_directory(None), target, BuildParameters())
    snapshot = target.freeze()
    for path in report.files:
        assert snapshot.stat(path) is not None, path
    assert snapshot.read_bytes("index.html").lower().startswith(b"<!doctype html>")
