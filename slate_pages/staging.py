"""Atomic staging of build output into directory or in-memory trees.

Every producer in the build (page writer, script bundler, stylesheet
compiler, image and font copier) writes through :func:`atomic_write`: the
payload goes to a uniquely named temporary file in the destination directory,
which is renamed over the final name only once it is complete. Readers of the
output therefore never observe a partially written file, and a failure leaves
neither a temporary file nor a truncated destination behind.

Two output trees implement the :class:`OutputTree` protocol:

- :class:`DirectoryTree` writes into a real directory (one-shot builds).
- :class:`MemoryTree` keeps files in memory (live rebuilds) and can be frozen
  into an immutable :class:`Snapshot` for concurrent serving.
"""

from __future__ import annotations

import dataclasses as dc
import io
import os
import posixpath
import tempfile
import time
import types
import typing as typ
import uuid
from pathlib import Path

from .errors import StageError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .sources import SourceTree

TEMP_PREFIX = ".slate-"


def _normalize(path: str) -> str:
    """Return ``path`` as a normalised relative POSIX path ('' for the root)."""
    normalized = posixpath.normpath(path.replace("\\", "/")).lstrip("/")
    return "" if normalized == "." else normalized


@dc.dataclass(frozen=True, slots=True)
class FileStat:
    """Size and modification time of a staged file."""

    size: int
    mtime_ns: int


@typ.runtime_checkable
class OutputTree(typ.Protocol):
    """Minimal filesystem surface the build writes into."""

    def makedirs(self, path: str) -> None:
        """Create ``path`` and any missing parents."""
        ...

    def mkstemp(self, directory: str, suffix: str) -> tuple[str, typ.BinaryIO]:
        """Create a uniquely named file in ``directory`` open for writing."""
        ...

    def rename(self, source: str, destination: str) -> None:
        """Atomically move ``source`` over ``destination``."""
        ...

    def remove(self, path: str) -> None:
        """Delete ``path`` if it exists."""
        ...

    def stat(self, path: str) -> FileStat | None:
        """Return file information, or ``None`` when ``path`` is absent."""
        ...

    def set_mtime(self, path: str, mtime_ns: int) -> None:
        """Set the modification time of ``path``."""
        ...

    def listdir(self, directory: str) -> list[str]:
        """Return the sorted entry names of ``directory``."""
        ...


class DirectoryTree:
    """Output tree rooted at a real directory."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def _resolve(self, path: str) -> Path:
        normalized = _normalize(path)
        return self.root / normalized if normalized else self.root

    def makedirs(self, path: str) -> None:
        self._resolve(path).mkdir(parents=True, exist_ok=True)

    def mkstemp(self, directory: str, suffix: str) -> tuple[str, typ.BinaryIO]:
        fd, name = tempfile.mkstemp(
            dir=self._resolve(directory), prefix=TEMP_PREFIX, suffix=suffix
        )
        handle = os.fdopen(fd, "wb")
        return posixpath.join(_normalize(directory), Path(name).name), handle

    def rename(self, source: str, destination: str) -> None:
        os.replace(self._resolve(source), self._resolve(destination))

    def remove(self, path: str) -> None:
        self._resolve(path).unlink(missing_ok=True)

    def stat(self, path: str) -> FileStat | None:
        try:
            info = self._resolve(path).stat()
        except FileNotFoundError:
            return None
        return FileStat(size=info.st_size, mtime_ns=info.st_mtime_ns)

    def set_mtime(self, path: str, mtime_ns: int) -> None:
        os.utime(self._resolve(path), ns=(mtime_ns, mtime_ns))

    def listdir(self, directory: str) -> list[str]:
        return sorted(entry.name for entry in self._resolve(directory).iterdir())


@dc.dataclass(frozen=True, slots=True)
class FileEntry:
    """Immutable content and modification time of an in-memory file."""

    data: bytes
    mtime_ns: int


class _MemoryHandle(io.BytesIO):
    """Writable buffer that commits itself into a :class:`MemoryTree` on close."""

    def __init__(self, tree: MemoryTree, path: str) -> None:
        super().__init__()
        self._tree = tree
        self._path = path

    def close(self) -> None:
        if not self.closed:
            self._tree._commit(self._path, self.getvalue())  # noqa: SLF001
        super().close()


class MemoryTree:
    """Disposable in-memory output tree used for live rebuilds.

    The tree is written by a single build and then frozen; it performs no
    locking of its own.
    """

    def __init__(self) -> None:
        self._files: dict[str, FileEntry] = {}
        self._dirs: set[str] = {""}

    def _require_dir(self, directory: str) -> str:
        normalized = _normalize(directory)
        if normalized not in self._dirs:
            msg = f"No such directory: '{directory}'"
            raise FileNotFoundError(msg)
        return normalized

    def _commit(self, path: str, data: bytes) -> None:
        self._files[path] = FileEntry(data=data, mtime_ns=time.time_ns())

    def makedirs(self, path: str) -> None:
        normalized = _normalize(path)
        while normalized:
            self._dirs.add(normalized)
            normalized = posixpath.dirname(normalized)

    def mkstemp(self, directory: str, suffix: str) -> tuple[str, typ.BinaryIO]:
        parent = self._require_dir(directory)
        name = posixpath.join(parent, f"{TEMP_PREFIX}{uuid.uuid4().hex}{suffix}")
        self._files[name] = FileEntry(data=b"", mtime_ns=time.time_ns())
        return name, _MemoryHandle(self, name)

    def rename(self, source: str, destination: str) -> None:
        source = _normalize(source)
        destination = _normalize(destination)
        self._require_dir(posixpath.dirname(destination))
        try:
            entry = self._files.pop(source)
        except KeyError as exc:
            msg = f"No such file: '{source}'"
            raise FileNotFoundError(msg) from exc
        self._files[destination] = entry

    def remove(self, path: str) -> None:
        self._files.pop(_normalize(path), None)

    def stat(self, path: str) -> FileStat | None:
        entry = self._files.get(_normalize(path))
        if entry is None:
            return None
        return FileStat(size=len(entry.data), mtime_ns=entry.mtime_ns)

    def set_mtime(self, path: str, mtime_ns: int) -> None:
        normalized = _normalize(path)
        try:
            entry = self._files[normalized]
        except KeyError as exc:
            msg = f"No such file: '{path}'"
            raise FileNotFoundError(msg) from exc
        self._files[normalized] = dc.replace(entry, mtime_ns=mtime_ns)

    def listdir(self, directory: str) -> list[str]:
        return _children(self._require_dir(directory), self._files, self._dirs)

    def freeze(self) -> Snapshot:
        """Return an immutable snapshot of the current tree contents."""
        return Snapshot(
            files=types.MappingProxyType(dict(self._files)),
            directories=frozenset(self._dirs),
        )


def _children(
    directory: str, files: cabc.Iterable[str], dirs: cabc.Iterable[str]
) -> list[str]:
    """Return the direct child names of ``directory`` among ``files``/``dirs``."""
    names = {
        posixpath.basename(path)
        for path in (*files, *dirs)
        if path and posixpath.dirname(path) == directory
    }
    return sorted(names)


@dc.dataclass(frozen=True, slots=True)
class Snapshot:
    """One complete, immutable build output published for concurrent reads.

    Attributes
    ----------
    files : Mapping[str, FileEntry]
        Read-only mapping of logical path to file content.
    directories : frozenset[str]
        Logical directory paths, including ``''`` for the root.
    created_at : float
        Wall-clock time the snapshot was frozen.
    """

    files: cabc.Mapping[str, FileEntry]
    directories: frozenset[str]
    created_at: float = dc.field(default_factory=time.time)

    def exists(self, path: str) -> bool:
        """Return whether ``path`` is a file or directory in the snapshot."""
        normalized = _normalize(path)
        return normalized in self.files or normalized in self.directories

    def is_dir(self, path: str) -> bool:
        """Return whether ``path`` is a directory in the snapshot."""
        return _normalize(path) in self.directories

    def read_bytes(self, path: str) -> bytes:
        """Return the content of ``path``.

        Raises
        ------
        FileNotFoundError
            If the snapshot holds no file at ``path``.
        """
        entry = self.files.get(_normalize(path))
        if entry is None:
            msg = f"No such file in snapshot: '{path}'"
            raise FileNotFoundError(msg)
        return entry.data

    def stat(self, path: str) -> FileStat | None:
        """Return file information, or ``None`` when ``path`` is absent."""
        entry = self.files.get(_normalize(path))
        if entry is None:
            return None
        return FileStat(size=len(entry.data), mtime_ns=entry.mtime_ns)

    def listdir(self, directory: str) -> list[str]:
        """Return the sorted entry names of ``directory``."""
        normalized = _normalize(directory)
        if normalized not in self.directories:
            msg = f"No such directory in snapshot: '{directory}'"
            raise FileNotFoundError(msg)
        return _children(normalized, self.files, self.directories)


def atomic_write(
    target: OutputTree,
    path: str,
    payload: bytes,
    *,
    mtime_ns: int | None = None,
) -> None:
    """Write ``payload`` to ``path`` through a temporary file and a rename.

    Parameters
    ----------
    target : OutputTree
        Tree receiving the file; the destination directory must exist.
    path : str
        Logical destination path inside ``target``.
    payload : bytes
        Complete file content.
    mtime_ns : int, optional
        Modification time applied to the file before it becomes visible.

    Raises
    ------
    StageError
        If creating, writing or renaming the temporary file fails. The
        temporary file is removed before the error propagates and the
        destination keeps its previous content, if any.
    """
    directory = posixpath.dirname(_normalize(path))
    try:
        temp_name, handle = target.mkstemp(directory, ".slate")
    except OSError as exc:
        msg = f"Cannot create a temporary file for '{path}': {exc}"
        raise StageError(msg) from exc

    committed = False
    try:
        with handle:
            handle.write(payload)
        if mtime_ns is not None:
            target.set_mtime(temp_name, mtime_ns)
        target.rename(temp_name, path)
        committed = True
    except OSError as exc:
        msg = f"Cannot stage '{path}': {exc}"
        raise StageError(msg) from exc
    finally:
        if not committed:
            target.remove(temp_name)


def update_target(source: SourceTree, target: OutputTree, path: str) -> bool:
    """Copy ``path`` from ``source`` unless the destination already matches.

    Source and destination are considered equivalent when both their size and
    modification time agree. The copy carries the source modification time,
    so repeating it without touching the source is a no-op.

    Returns
    -------
    bool
        ``True`` when the file was copied, ``False`` when it was skipped.
    """
    info = source.stat(path)
    existing = target.stat(path)
    if (
        existing is not None
        and existing.size == info.st_size
        and existing.mtime_ns == info.st_mtime_ns
    ):
        return False
    atomic_write(target, path, source.read_bytes(path), mtime_ns=info.st_mtime_ns)
    return True


__all__ = [
    "DirectoryTree",
    "FileEntry",
    "FileStat",
    "MemoryTree",
    "OutputTree",
    "Snapshot",
    "atomic_write",
    "update_target",
]
