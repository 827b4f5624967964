"""Layered source resolution over a user tree and the bundled defaults.

A :class:`SourceTree` is an ordered list of filesystem roots, highest
precedence first. Every lookup walks the roots in order and answers from the
first root that holds the path, so a user can override any bundled file by
placing a file with the same logical path in their own directory. Reads never
modify a root and no lookup result is cached: each call re-resolves.

Example
-------
>>> from pathlib import Path
>>> tree = SourceTree.for_directory(Path("docs"))  # doctest: +SKIP
>>> tree.read_text("layouts/layout.jinja")[:15]  # doctest: +SKIP
'<!doctype html>'
"""

from __future__ import annotations

import dataclasses as dc
import posixpath
import typing as typ
from pathlib import Path

from .errors import SourceError

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import os

BUNDLED_ROOT = Path(__file__).resolve().parent / "bundled"


def _split(path: str) -> tuple[str, ...]:
    """Normalise a logical POSIX path into its parts, rejecting escapes."""
    normalized = posixpath.normpath(path.replace("\\", "/")).lstrip("/")
    if normalized in ("", "."):
        return ()
    parts = tuple(normalized.split("/"))
    if parts[0] == "..":
        msg = f"Source path '{path}' escapes the source tree."
        raise SourceError(msg)
    return parts


def split_lines(text: str) -> list[str]:
    """Split ``text`` on ``\\n`` only, dropping one trailing ``\\r`` per line.

    Unlike :meth:`str.splitlines`, form feeds and Unicode separators such as
    U+2028 stay inside their line, so lines re-joined with ``\\n`` reproduce
    the content unchanged.

    Examples
    --------
    >>> split_lines("a\\r\\nb\\u2028c\\n")
    ['a', 'b\\u2028c']
    >>> split_lines("")
    []
    """
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line.removesuffix("\r") for line in lines]


@dc.dataclass(frozen=True, slots=True)
class SourceTree:
    """Read-only union of filesystem roots, highest precedence first.

    Attributes
    ----------
    roots : tuple[Path, ...]
        Directories consulted in order; typically the user's source directory
        followed by :data:`BUNDLED_ROOT`.
    """

    roots: tuple[Path, ...]

    @classmethod
    def for_directory(
        cls, directory: Path | None, *, defaults: Path = BUNDLED_ROOT
    ) -> SourceTree:
        """Return a tree layering ``directory`` over the bundled defaults.

        Parameters
        ----------
        directory : Path or None
            User source directory. ``None`` builds from the defaults alone.
        defaults : Path, optional
            Root used as the lowest-precedence layer.

        Raises
        ------
        SourceError
            If ``directory`` is given but is not an existing directory.
        """
        if directory is None:
            return cls((defaults,))
        if not directory.is_dir():
            msg = f"Source directory '{directory}' does not exist."
            raise SourceError(msg)
        return cls((directory.resolve(), defaults))

    def locate(self, path: str) -> Path:
        """Return the concrete filesystem path that wins for ``path``.

        Raises
        ------
        SourceError
            If no root contains ``path``.
        """
        parts = _split(path)
        for root in self.roots:
            candidate = root.joinpath(*parts)
            if candidate.exists():
                return candidate
        msg = f"'{path}' not found in any source root."
        raise SourceError(msg)

    def exists(self, path: str) -> bool:
        """Return whether any root contains ``path``."""
        parts = _split(path)
        return any(root.joinpath(*parts).exists() for root in self.roots)

    def is_dir(self, path: str) -> bool:
        """Return whether ``path`` resolves to a directory."""
        try:
            return self.locate(path).is_dir()
        except SourceError:
            return False

    def open(self, path: str) -> typ.BinaryIO:
        """Open the winning file for ``path`` in binary mode."""
        located = self.locate(path)
        try:
            return located.open("rb")
        except OSError as exc:
            msg = f"Cannot open '{path}': {exc}"
            raise SourceError(msg) from exc

    def read_bytes(self, path: str) -> bytes:
        """Return the content of the winning file for ``path``."""
        with self.open(path) as handle:
            return handle.read()

    def read_text(self, path: str) -> str:
        """Return the UTF-8 decoded content of the winning file for ``path``."""
        data = self.read_bytes(path)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            msg = f"'{path}' is not valid UTF-8: {exc}"
            raise SourceError(msg) from exc

    def stat(self, path: str) -> os.stat_result:
        """Return ``os.stat`` information for the winning file of ``path``."""
        located = self.locate(path)
        try:
            return located.stat()
        except OSError as exc:
            msg = f"Cannot stat '{path}': {exc}"
            raise SourceError(msg) from exc

    def listdir(self, directory: str) -> list[str]:
        """Return the sorted entry names of ``directory`` across all roots.

        Names from every root that has the directory are merged; each name is
        later resolved by precedence through :meth:`locate`, so a user file
        shadows a bundled file of the same name without hiding its siblings.

        Raises
        ------
        SourceError
            If no root contains ``directory`` as a directory.
        """
        parts = _split(directory)
        names: set[str] = set()
        found = False
        for root in self.roots:
            candidate = root.joinpath(*parts)
            if candidate.is_dir():
                found = True
                names.update(entry.name for entry in candidate.iterdir())
        if not found:
            msg = f"Directory '{directory}' not found in any source root."
            raise SourceError(msg)
        return sorted(names)

    def walk(self, directory: str = "") -> cabc.Iterator[str]:
        """Yield the logical paths of every file under ``directory``."""
        for name in self.listdir(directory):
            logical = posixpath.join(directory, name) if directory else name
            if self.is_dir(logical):
                yield from self.walk(logical)
            else:
                yield logical


__all__ = ["BUNDLED_ROOT", "SourceTree", "split_lines"]
