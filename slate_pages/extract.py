"""Copy bundled default files into a user directory for customisation."""

from __future__ import annotations

import dataclasses as dc
import posixpath
import typing as typ

import structlog

from slate_pages._constants import ENTRY_DOCUMENT, INCLUDE_TEMPLATE
from slate_pages.errors import ConfigError, StageError
from slate_pages.sources import BUNDLED_ROOT, SourceTree
from slate_pages.staging import DirectoryTree, atomic_write

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

COMPONENT_DIRS = ("fonts", "images", "layouts", "scripts", "stylesheets")
CONTENTS = (ENTRY_DOCUMENT, INCLUDE_TEMPLATE.format(name="errors"))
DEFAULT_COMPONENTS = ("contents",)

logger = structlog.get_logger(__name__)


@dc.dataclass(frozen=True, slots=True)
class ExtractReport:
    """Files written and existing files left untouched."""

    written: tuple[str, ...]
    skipped: tuple[str, ...]


def list_bundled() -> list[str]:
    """Return the logical paths of every bundled default file, sorted."""
    return sorted(SourceTree((BUNDLED_ROOT,)).walk())


def select_components(components: cabc.Iterable[str]) -> list[str]:
    """Expand component names into bundled file paths.

    Parameters
    ----------
    components : Iterable[str]
        ``all``, ``contents`` (the entry document and its sample include),
        one of ``fonts``, ``images``, ``layouts``, ``scripts`` or
        ``stylesheets``, or the path of a single bundled file.

    Raises
    ------
    ConfigError
        If a name is neither a component nor a bundled file.

    Examples
    --------
    >>> select_components(["contents"])
    ['includes/_errors.md', 'index.html.md']
    """
    bundled = list_bundled()
    selected: set[str] = set()
    for component in components:
        if component == "all":
            return bundled
        if component == "contents":
            selected.update(CONTENTS)
        elif component in COMPONENT_DIRS:
            selected.update(
                path for path in bundled if path.startswith(f"{component}/")
            )
        elif component in bundled:
            selected.add(component)
        else:
            msg = f"Unknown bundled component or file {component!r}."
            raise ConfigError(msg)
    return sorted(selected)


def extract(
    directory: Path,
    components: cabc.Sequence[str] = DEFAULT_COMPONENTS,
    *,
    overwrite: bool = False,
) -> ExtractReport:
    """Copy the selected bundled files into ``directory``.

    Existing files are kept unless ``overwrite`` is set.

    Raises
    ------
    ConfigError
        If a component name is unknown.
    StageError
        If a file cannot be written.
    """
    paths = select_components(components or DEFAULT_COMPONENTS)
    bundled = SourceTree((BUNDLED_ROOT,))
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        msg = f"Cannot create directory '{directory}': {exc}"
        raise StageError(msg) from exc
    target = DirectoryTree(directory)

    written: list[str] = []
    skipped: list[str] = []
    for path in paths:
        if target.stat(path) is not None and not overwrite:
            logger.warning("EXTRACT_SKIPPED_EXISTING", path=path)
            skipped.append(path)
            continue
        try:
            target.makedirs(posixpath.dirname(path))
        except OSError as exc:
            msg = f"Cannot create directory for '{path}': {exc}"
            raise StageError(msg) from exc
        atomic_write(target, path, bundled.read_bytes(path))
        written.append(path)
    return ExtractReport(written=tuple(written), skipped=tuple(skipped))


__all__ = ["ExtractReport", "extract", "list_bundled", "select_components"]
