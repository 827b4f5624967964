"""Unit tests for the layered source resolver."""

from __future__ import annotations

import typing as typ

import pytest

from slate_pages.errors import SourceError
from slate_pages.sources import BUNDLED_ROOT, SourceTree, split_lines

if typ.TYPE_CHECKING:
    from pathlib import Path

    from conftest import WriteTree


@pytest.fixture
def layered(tmp_path: Path, write_tree: WriteTree) -> SourceTree:
    user = write_tree(
        tmp_path / "user",
        {"index.html.md": "user", "scripts/app.js": "user app"},
    )
    defaults = write_tree(
        tmp_path / "defaults",
        {
            "index.html.md": "default",
            "scripts/app.js": "default app",
            "scripts/lib.js": "default lib",
            "layouts/layout.jinja": "layout",
        },
    )
    return SourceTree((user, defaults))


def test_user_file_shadows_default(layered: SourceTree) -> None:
    """A user file wins over the bundled file with the same logical path."""
    assert layered.read_text("index.html.md") == "user"
    assert layered.read_text("scripts/app.js") == "user app"


def test_missing_user_file_falls_back_to_default(layered: SourceTree) -> None:
    """Files absent from the user root come from the defaults."""
    assert layered.read_text("layouts/layout.jinja") == "layout"
    assert layered.locate("layouts/layout.jinja").parent.parent.name == "defaults"


def test_listdir_merges_every_root(layered: SourceTree) -> None:
    """Listing unions the names of all roots holding the directory."""
    assert layered.listdir("scripts") == ["app.js", "lib.js"]


def test_walk_yields_logical_files(layered: SourceTree) -> None:
    """Walking returns each logical path once, files only."""
    assert sorted(layered.walk()) == [
        "index.html.md",
        "layouts/layout.jinja",
        "scripts/app.js",
        "scripts/lib.js",
    ]


def test_missing_path_raises_source_error(layered: SourceTree) -> None:
    """A path held by no root is a SourceError, which is also FileNotFoundError."""
    with pytest.raises(SourceError, match="nothing.md"):
        layered.read_bytes("nothing.md")
    with pytest.raises(FileNotFoundError):
        layered.stat("nothing.md")
    assert not layered.exists("nothing.md")
    assert not layered.is_dir("nothing")


def test_missing_directory_listing_raises(layered: SourceTree) -> None:
    """Listing a directory missing from every root fails."""
    with pytest.raises(SourceError, match="fonts"):
        layered.listdir("fonts")


def test_escaping_paths_are_rejected(layered: SourceTree) -> None:
    """Logical paths never escape the roots."""
    with pytest.raises(SourceError, match="escapes"):
        layered.read_text("../secret.txt")


def test_for_directory_layers_over_bundled_defaults(tmp_path: Path) -> None:
    """The bundled tree is the last layer and provides the sample document."""
    tree = SourceTree.for_directory(tmp_path)
    assert tree.roots == (tmp_path.resolve(), BUNDLED_ROOT)
    assert tree.exists("index.html.md")
    assert tree.is_dir("stylesheets")


def test_for_directory_requires_existing_directory(tmp_path: Path) -> None:
    """A missing user directory is reported before any lookup."""
    with pytest.raises(SourceError, match="does not exist"):
        SourceTree.for_directory(tmp_path / "absent")


def test_for_directory_without_source_uses_defaults_only() -> None:
    """``None`` builds a tree from the bundled defaults alone."""
    assert SourceTree.for_directory(None).roots == (BUNDLED_ROOT,)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("a\nb\n", ["a", "b"]),
        ("a\nb", ["a", "b"]),
        ("a\r\n\r\nb\n", ["a", "", "b"]),
        ("x\u2028y\x0cz\x85\n", ["x\u2028y\x0cz\x85"]),
        ("", []),
    ],
)
def test_split_lines_breaks_on_newline_only(text: str, expected: list[str]) -> None:
    """Only ``\\n`` separates lines; other separator characters are content."""
    assert split_lines(text) == expected
