"""Shared fixtures for building small source trees on disk."""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest
import structlog

from slate_pages.sources import SourceTree

if typ.TYPE_CHECKING:
    import collections.abc as cabc

WriteTree = typ.Callable[[Path, dict[str, str | bytes]], Path]


@pytest.fixture(autouse=True)
def _reset_logging() -> cabc.Iterator[None]:
    """Drop logging configuration bound to a test's captured streams."""
    yield
    structlog.reset_defaults()


def _write_tree(root: Path, files: dict[str, str | bytes]) -> Path:
    for logical, content in files.items():
        path = root / logical
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def write_tree() -> WriteTree:
    """Return a helper writing ``{logical path: content}`` under a root."""
    return _write_tree


@pytest.fixture
def make_source(
    tmp_path: Path,
) -> cabc.Callable[[dict[str, str | bytes]], SourceTree]:
    """Return a factory for source trees layered over an empty defaults root.

    The defaults root is empty so tests control every file the build sees.
    """
    counter = {"value": 0}

    def _make(files: dict[str, str | bytes]) -> SourceTree:
        counter["value"] += 1
        user = _write_tree(tmp_path / f"source-{counter['value']}", files)
        defaults = tmp_path / "defaults"
        defaults.mkdir(exist_ok=True)
        return SourceTree((user, defaults))

    return _make
