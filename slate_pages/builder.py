"""One-pass build of a documentation site into an output tree.

:func:`build_site` runs the pipeline in a fixed order: create the output
directories, load and render the entry document, stage the page, bundle the
scripts, compile stylesheets and copy the fonts they reference, then copy the
images. Later steps use the search, RTL and logo settings resolved while
loading the document. The first failure aborts the pass; files staged by
earlier steps are left in place, so callers that need an all-or-nothing
result build into a disposable tree (as the live monitor does).

Example
-------
>>> from pathlib import Path
>>> from slate_pages.config import BuildParameters
>>> params = BuildParameters()
>>> report = build_directory(Path("docs"), Path("site"), params)  # doctest: +SKIP
>>> report.page  # doctest: +SKIP
'index.html'
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import structlog

from slate_pages._constants import OUTPUT_DIRS, OUTPUT_PAGE
from slate_pages.assets import ScriptBundler, StylesheetCompiler, stage_images
from slate_pages.content import load_document
from slate_pages.errors import SourceError, StageError
from slate_pages.sources import SourceTree
from slate_pages.staging import DirectoryTree, atomic_write

if typ.TYPE_CHECKING:
    from pathlib import Path

    from slate_pages.config import BuildParameters
    from slate_pages.staging import OutputTree

logger = structlog.get_logger(__name__)


@dc.dataclass(frozen=True, slots=True)
class BuildReport:
    """Summary of one build pass.

    Attributes
    ----------
    page : str
        Path of the rendered entry page.
    scripts, stylesheets, fonts : tuple[str, ...]
        Paths staged by the asset pipeline.
    images : tuple[str, ...]
        Images actually copied (up-to-date images are skipped).
    search, rtl : bool
        Flags resolved from the front matter and the caller's overrides.
    logo : str
        Logo resolved from the front matter and the caller's override.
    """

    page: str
    scripts: tuple[str, ...]
    stylesheets: tuple[str, ...]
    fonts: tuple[str, ...]
    images: tuple[str, ...]
    search: bool
    rtl: bool
    logo: str

    @property
    def files(self) -> tuple[str, ...]:
        """Return every path staged during the pass."""
        return (
            self.page,
            *self.scripts,
            *self.stylesheets,
            *self.fonts,
            *self.images,
        )


def _read_style_file(params: BuildParameters) -> str:
    if params.style_file is None:
        return ""
    try:
        return params.style_file.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot read style file '{params.style_file}': {exc}"
        raise SourceError(msg) from exc


def build_site(
    source: SourceTree, target: OutputTree, params: BuildParameters
) -> BuildReport:
    """Build the site described by ``source`` into ``target``.

    Parameters
    ----------
    source : SourceTree
        Layered source tree (user directory over the bundled defaults).
    target : OutputTree
        Tree receiving the page and the ``scripts``, ``stylesheets``,
        ``fonts`` and ``images`` directories.
    params : BuildParameters
        Caller overrides and minification switches.

    Returns
    -------
    BuildReport
        The staged paths and the resolved flags.

    Raises
    ------
    SlateError
        The first fatal error of any step (``SourceError``, ``ParseError``,
        ``CompileError`` or ``StageError``).
    """
    style_text = _read_style_file(params)
    for directory in OUTPUT_DIRS:
        try:
            target.makedirs(directory)
        except OSError as exc:
            msg = f"Cannot create output directory '{directory}': {exc}"
            raise StageError(msg) from exc

    document, page = load_document(source, params)
    atomic_write(target, OUTPUT_PAGE, page.payload(minify=params.minify_html))
    logger.debug("PAGE_STAGED", page=OUTPUT_PAGE, headings=len(page.toc))
    matter = document.front_matter

    scripts = ScriptBundler(source, minify=params.minify_js).stage(
        target, search=matter.search
    )
    stylesheets = StylesheetCompiler(source, minify=params.minify_css).stage(
        target, rtl=matter.enable_rtl, style=matter.style, style_text=style_text
    )
    images = stage_images(source, target, matter.logo)

    report = BuildReport(
        page=OUTPUT_PAGE,
        scripts=tuple(scripts),
        stylesheets=stylesheets.stylesheets,
        fonts=stylesheets.fonts,
        images=tuple(images),
        search=matter.search,
        rtl=matter.enable_rtl,
        logo=matter.logo,
    )
    logger.info(
        "BUILD_COMPLETED",
        scripts=len(report.scripts),
        stylesheets=len(report.stylesheets),
        fonts=len(report.fonts),
        images=len(report.images),
        search=report.search,
        rtl=report.rtl,
    )
    return report


def build_directory(
    source_dir: Path | None, output_dir: Path, params: BuildParameters
) -> BuildReport:
    """Build ``source_dir`` (or the bundled defaults) into ``output_dir``."""
    tree = SourceTree.for_directory(source_dir)
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        msg = f"Cannot create output directory '{output_dir}': {exc}"
        raise StageError(msg) from exc
    return build_site(tree, DirectoryTree(output_dir), params)


__all__ = ["BuildReport", "build_directory", "build_site"]
