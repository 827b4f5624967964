"""SCSS compilation through libsass with a partial registry and ``font-url``.

Before compiling, every ``stylesheets/_<name>.scss`` partial is registered in
an :class:`ImportRegistry` under ``<name>``; ``@import '<name>'`` statements
resolve against it. When right-to-left support is disabled ``_rtl.scss`` is
not registered and ``rtl`` resolves to an empty stylesheet instead, so
``@import 'rtl'`` stays harmless.

Targets are the ``<name>.css.scss`` files; each compiles to
``stylesheets/<name>.css``. The ``font-url($url)`` function rewrites font
references to ``url(../fonts/<url>)`` and records the referenced path in a
:class:`FontCollector`, whose paths are copied into ``fonts/`` once every
target has compiled.
"""

from __future__ import annotations

import dataclasses as dc
import posixpath
import typing as typ
from urllib.parse import urlsplit

import sass
import structlog

from slate_pages._constants import (
    FONTS_DIR,
    PARTIAL_PREFIX,
    RTL_PARTIAL,
    SCSS_SUFFIX,
    STYLESHEET_TARGET_SUFFIX,
    STYLESHEETS_DIR,
)
from slate_pages.errors import CompileError
from slate_pages.staging import atomic_write, update_target

if typ.TYPE_CHECKING:
    from slate_pages.sources import SourceTree
    from slate_pages.staging import OutputTree

DISABLED_PARTIAL_SOURCE = "// disabled\n"

logger = structlog.get_logger(__name__)


class ImportRegistry:
    """Mapping of partial names to their SCSS source."""

    def __init__(self) -> None:
        self._sources: dict[str, str] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._sources

    def __len__(self) -> int:
        return len(self._sources)

    def names(self) -> list[str]:
        """Return the registered partial names, sorted."""
        return sorted(self._sources)

    def register(self, name: str, source: str) -> None:
        """Register ``source`` under ``name``, replacing any earlier entry."""
        self._sources[name] = source

    def source(self, name: str) -> str | None:
        """Return the source registered for ``name``, if any."""
        return self._sources.get(name)

    def importer(self, path: str) -> list[tuple[str, str]] | None:
        """libsass importer callback: resolve ``@import`` through the registry.

        Returning ``None`` lets libsass fall back to its own resolution.
        """
        source = self._sources.get(path)
        if source is None:
            return None
        return [(f"{PARTIAL_PREFIX}{path}{SCSS_SUFFIX}", source)]

    @classmethod
    def from_tree(cls, tree: SourceTree, *, rtl: bool) -> ImportRegistry:
        """Register every partial under ``stylesheets/`` in ``tree``.

        Parameters
        ----------
        tree : SourceTree
            Source tree to scan.
        rtl : bool
            When ``False`` the RTL partial is replaced by an empty stylesheet.
        """
        registry = cls()
        rtl_file = f"{PARTIAL_PREFIX}{RTL_PARTIAL}{SCSS_SUFFIX}"
        if not rtl:
            registry.register(RTL_PARTIAL, DISABLED_PARTIAL_SOURCE)
        for name in tree.listdir(STYLESHEETS_DIR):
            path = posixpath.join(STYLESHEETS_DIR, name)
            if not (name.startswith(PARTIAL_PREFIX) and name.endswith(SCSS_SUFFIX)):
                continue
            if tree.is_dir(path) or (not rtl and name == rtl_file):
                continue
            partial = name[len(PARTIAL_PREFIX) : -len(SCSS_SUFFIX)]
            registry.register(partial, tree.read_text(path))
        return registry


@dc.dataclass(slots=True)
class FontCollector:
    """Set of font paths referenced through ``font-url`` calls."""

    paths: set[str] = dc.field(default_factory=set)

    def font_url(self, url: object) -> str:
        """Implement ``font-url($url)``: record the path, return the CSS URL.

        Raises
        ------
        ValueError
            If ``url`` is not a string or has no path component. libsass
            reports the exception as a compilation error naming the call.

        Examples
        --------
        >>> fonts = FontCollector()
        >>> fonts.font_url("slate.woff?#iefix")
        'url(../fonts/slate.woff?#iefix)'
        >>> sorted(fonts.paths)
        ['slate.woff']
        """
        if not isinstance(url, str):
            msg = f"illegal font url font-url({url!r})"
            raise ValueError(msg)  # noqa: TRY004 - surfaced by libsass
        try:
            path = urlsplit(url).path
        except ValueError as exc:
            msg = f"illegal font url font-url({url})"
            raise ValueError(msg) from exc
        if not path:
            msg = f"illegal font url font-url({url})"
            raise ValueError(msg)
        self.paths.add(path)
        return f"url(../{FONTS_DIR}/{url})"


@dc.dataclass(frozen=True, slots=True)
class StylesheetReport:
    """Stylesheets written and fonts discovered while compiling."""

    stylesheets: tuple[str, ...]
    fonts: tuple[str, ...]


class StylesheetCompiler:
    """Compile and stage every stylesheet target of a source tree."""

    def __init__(self, tree: SourceTree, *, minify: bool = True) -> None:
        self.tree = tree
        self.minify = minify

    @property
    def output_style(self) -> str:
        """Return the libsass output style for the minify setting."""
        return "compressed" if self.minify else "expanded"

    def targets(self) -> list[str]:
        """Return the ``*.css.scss`` file names under ``stylesheets/``."""
        return [
            name
            for name in self.tree.listdir(STYLESHEETS_DIR)
            if name.endswith(STYLESHEET_TARGET_SUFFIX)
            and not name.startswith(PARTIAL_PREFIX)
            and not self.tree.is_dir(posixpath.join(STYLESHEETS_DIR, name))
        ]

    def compile(
        self,
        name: str,
        *,
        registry: ImportRegistry,
        fonts: FontCollector,
        header: str = "",
    ) -> str:
        """Compile the target ``name`` and return its CSS.

        Parameters
        ----------
        name : str
            Target file name under ``stylesheets/``.
        registry : ImportRegistry
            Partials available to ``@import``.
        fonts : FontCollector
            Receives every path passed to ``font-url``.
        header : str, optional
            SCSS placed ahead of the target source (style overrides).

        Raises
        ------
        CompileError
            If libsass rejects the stylesheet, including a malformed
            ``font-url`` call.
        """
        source = self.tree.read_text(posixpath.join(STYLESHEETS_DIR, name))
        try:
            return sass.compile(
                string=f"{header}{source}",
                output_style=self.output_style,
                importers=[(0, registry.importer)],
                custom_functions=[
                    sass.SassFunction("font-url", ("$url",), fonts.font_url)
                ],
            )
        except sass.CompileError as exc:
            msg = f"Cannot compile stylesheet '{name}': {exc}"
            raise CompileError(msg) from exc

    def stage(
        self,
        target: OutputTree,
        *,
        rtl: bool,
        style: str = "",
        style_text: str = "",
    ) -> StylesheetReport:
        """Compile every target into ``target`` and copy the referenced fonts.

        Parameters
        ----------
        target : OutputTree
            Output tree receiving ``stylesheets/`` and ``fonts/`` files.
        rtl : bool
            Whether the right-to-left partial is compiled in.
        style : str, optional
            Name of a registered partial imported ahead of every target.
        style_text : str, optional
            Raw SCSS layered after ``style`` and before every target.

        Raises
        ------
        CompileError
            If ``style`` names an unknown partial or a target fails to compile.
        """
        registry = ImportRegistry.from_tree(self.tree, rtl=rtl)
        header = ""
        if style:
            if style not in registry:
                msg = f"Style override '{style}' is not a stylesheet partial."
                raise CompileError(msg)
            header = f"@import '{style}';\n"
        if style_text:
            header = f"{header}{style_text}\n"

        fonts = FontCollector()
        written: list[str] = []
        for name in self.targets():
            css = self.compile(name, registry=registry, fonts=fonts, header=header)
            output = posixpath.join(STYLESHEETS_DIR, name.removesuffix(SCSS_SUFFIX))
            atomic_write(target, output, css.encode("utf-8"))
            logger.debug("STYLESHEET_COMPILED", stylesheet=output)
            written.append(output)

        copied: list[str] = []
        for font in sorted(fonts.paths):
            path = posixpath.join(FONTS_DIR, font)
            update_target(self.tree, target, path)
            copied.append(path)
        return StylesheetReport(stylesheets=tuple(written), fonts=tuple(copied))


__all__ = [
    "FontCollector",
    "ImportRegistry",
    "StylesheetCompiler",
    "StylesheetReport",
]
