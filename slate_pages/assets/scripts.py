"""Script bundling driven by leading ``//= require`` directives.

Each script directly under ``scripts/`` is an entry. Its bundle holds every
file it requires (recursively, dependencies first) followed by its own body,
with each file included once per bundle. Directives are honoured only in the
contiguous run of lines at the very top of a file: the first line that is not
a directive, blank lines included, ends directive scanning for that file.

Example
-------
Given ``scripts/app.js``::

    //= require ./lib/util
    //= require ./lib/dom
    init();

the bundle for ``app.js`` is ``lib/util.js``, then ``lib/dom.js``, then
``init();``.
"""

from __future__ import annotations

import dataclasses as dc
import posixpath
import re
import typing as typ

import rjsmin
import structlog

from slate_pages._constants import (
    NO_SEARCH_BUNDLE,
    SCRIPT_SUFFIX,
    SCRIPTS_DIR,
    SEARCH_BUNDLE,
)
from slate_pages.errors import SourceError
from slate_pages.sources import split_lines
from slate_pages.staging import atomic_write

if typ.TYPE_CHECKING:
    from slate_pages.sources import SourceTree
    from slate_pages.staging import OutputTree

REQUIRE_PATTERN = re.compile(r"^//= require (.+)$")

logger = structlog.get_logger(__name__)


@dc.dataclass(frozen=True, slots=True)
class ScriptBundle:
    """Flattened bundle for one entry script.

    Attributes
    ----------
    entry : str
        Entry file name relative to ``scripts/``.
    files : tuple[str, ...]
        Every file included, in the order their bodies appear.
    content : str
        Concatenated bodies.
    """

    entry: str
    files: tuple[str, ...]
    content: str


@dc.dataclass(slots=True)
class _BundleState:
    """Per-entry accumulator: files already included and the output lines."""

    loaded: list[str] = dc.field(default_factory=list)
    lines: list[str] = dc.field(default_factory=list)


class ScriptBundler:
    """Build and stage one bundle per entry script."""

    def __init__(self, tree: SourceTree, *, minify: bool = True) -> None:
        self.tree = tree
        self.minify = minify

    def entries(self, *, search: bool) -> list[str]:
        """Return the entry scripts to bundle, honouring the search flag.

        ``all.js`` ships only with search enabled and ``all_nosearch.js``
        only without it.
        """
        skipped = NO_SEARCH_BUNDLE if search else SEARCH_BUNDLE
        return [
            name
            for name in self.tree.listdir(SCRIPTS_DIR)
            if name.endswith(SCRIPT_SUFFIX)
            and name != skipped
            and not self.tree.is_dir(posixpath.join(SCRIPTS_DIR, name))
        ]

    def bundle(self, entry: str) -> ScriptBundle:
        """Resolve the require graph of ``entry`` and concatenate it.

        Raises
        ------
        SourceError
            If ``entry`` or a required file does not exist.
        """
        state = _BundleState()
        self._load(entry, state, required_by=None)
        return ScriptBundle(
            entry=entry, files=tuple(state.loaded), content="".join(state.lines)
        )

    def _load(
        self, source: str, state: _BundleState, *, required_by: str | None
    ) -> None:
        if source in state.loaded:
            return
        state.loaded.append(source)
        path = posixpath.join(SCRIPTS_DIR, source)
        if not self.tree.exists(path):
            if required_by is None:
                msg = f"Script '{path}' not found."
            else:
                msg = f"Script '{path}' required by '{required_by}' not found."
            raise SourceError(msg)

        directory = posixpath.dirname(source)
        scanning = True
        for line in split_lines(self.tree.read_text(path)):
            if scanning:
                match = REQUIRE_PATTERN.match(line)
                if match is not None:
                    name = match.group(1).strip() + SCRIPT_SUFFIX
                    required = posixpath.normpath(posixpath.join(directory, name))
                    self._load(required, state, required_by=path)
                    continue
                scanning = False
            state.lines.append(f"{line}\n")

    def payload(self, bundle: ScriptBundle) -> bytes:
        """Return the bundle bytes, minified with ``rjsmin`` when enabled."""
        content = rjsmin.jsmin(bundle.content) if self.minify else bundle.content
        return content.encode("utf-8")

    def stage(self, target: OutputTree, *, search: bool) -> list[str]:
        """Bundle every entry and write it to ``scripts/`` in ``target``.

        Returns
        -------
        list[str]
            Output paths written.
        """
        written: list[str] = []
        for entry in self.entries(search=search):
            bundle = self.bundle(entry)
            output = posixpath.join(SCRIPTS_DIR, entry)
            atomic_write(target, output, self.payload(bundle))
            logger.debug("SCRIPT_BUNDLED", entry=entry, files=len(bundle.files))
            written.append(output)
        return written


__all__ = ["REQUIRE_PATTERN", "ScriptBundle", "ScriptBundler"]
