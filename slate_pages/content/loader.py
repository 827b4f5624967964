"""Load the entry document and render the documentation page.

:func:`load_document` reads ``index.html.md`` from a :class:`SourceTree`,
splits off its front matter, appends the declared includes, parses the
combined Markdown once and derives both the table of contents and the body
HTML from that single tree before expanding the layout template.

Example
-------
>>> from slate_pages.config import BuildParameters
>>> from slate_pages.sources import SourceTree
>>> tree = SourceTree.for_directory(None)
>>> document, page = load_document(tree, BuildParameters())  # doctest: +SKIP
>>> document.front_matter.title  # doctest: +SKIP
'API Reference'
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import minify_html
from jinja2 import BaseLoader, Environment, TemplateError, TemplateNotFound

from slate_pages._constants import ENTRY_DOCUMENT, INCLUDE_TEMPLATE, LAYOUT_TEMPLATE
from slate_pages.errors import ParseError, SourceError

from .extensions import parse_markdown
from .front_matter import FrontMatter, parse_front_matter, split_front_matter
from .renderer import CodeHighlighter, render_body
from .toc import TocEntry, collect_toc, render_toc

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from slate_pages.config import BuildParameters
    from slate_pages.sources import SourceTree


class SourceTreeLoader(BaseLoader):
    """Jinja2 loader resolving template names through a :class:`SourceTree`."""

    def __init__(self, tree: SourceTree) -> None:
        self.tree = tree

    def get_source(
        self, environment: Environment, template: str
    ) -> tuple[str, str | None, cabc.Callable[[], bool] | None]:
        """Return the template source and its winning filesystem path."""
        if not self.tree.exists(template) or self.tree.is_dir(template):
            raise TemplateNotFound(template)
        located = self.tree.locate(template)
        source = self.tree.read_text(template)
        mtime = located.stat().st_mtime_ns

        def uptodate() -> bool:
            try:
                return self.tree.locate(template).stat().st_mtime_ns == mtime
            except (OSError, SourceError):
                return False

        return source, str(located), uptodate


@dc.dataclass(frozen=True, slots=True)
class BodySegment:
    """One piece of the document body: the entry file or one include."""

    source: str
    text: str


@dc.dataclass(frozen=True, slots=True)
class ParsedDocument:
    """Front matter (with overrides applied) and the ordered body segments."""

    front_matter: FrontMatter
    segments: tuple[BodySegment, ...]

    @property
    def text(self) -> str:
        """Return the Markdown body, segments separated by a blank line.

        The separator keeps a table or list that ends one segment from
        swallowing the first block of the next.
        """
        return "".join(
            segment.text.rstrip("\n") + "\n\n" for segment in self.segments
        )


@dc.dataclass(frozen=True, slots=True)
class RenderedPage:
    """The expanded layout plus the pieces it was built from."""

    html: str
    toc: tuple[TocEntry, ...]
    toc_html: str
    content_html: str

    def payload(self, *, minify: bool) -> bytes:
        """Return the page bytes, minified with ``minify-html`` when asked."""
        text = self.html
        if minify:
            text = minify_html.minify(
                text,
                minify_css=True,
                minify_js=True,
                keep_closing_tags=True,
                keep_html_and_head_opening_tags=True,
            )
        return text.encode("utf-8")


def read_document(tree: SourceTree, params: BuildParameters) -> ParsedDocument:
    """Read the entry document and its includes into a :class:`ParsedDocument`.

    Raises
    ------
    SourceError
        If the entry document or an include is missing.
    ParseError
        If the front matter is malformed.
    """
    if not tree.exists(ENTRY_DOCUMENT):
        msg = f"Entry document '{ENTRY_DOCUMENT}' not found."
        raise SourceError(msg)
    preamble, body = split_front_matter(
        tree.read_text(ENTRY_DOCUMENT), source=ENTRY_DOCUMENT
    )
    front_matter = parse_front_matter(preamble, source=ENTRY_DOCUMENT)

    segments = [BodySegment(source=ENTRY_DOCUMENT, text=body)]
    for name in front_matter.includes:
        path = INCLUDE_TEMPLATE.format(name=name)
        if not tree.exists(path):
            msg = f"Include '{name}' declared in '{ENTRY_DOCUMENT}' not found."
            raise SourceError(msg)
        segments.append(BodySegment(source=path, text=tree.read_text(path)))

    return ParsedDocument(
        front_matter=front_matter.apply(params), segments=tuple(segments)
    )


def _environment(tree: SourceTree) -> Environment:
    return Environment(
        loader=SourceTreeLoader(tree),
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render_page(tree: SourceTree, document: ParsedDocument) -> RenderedPage:
    """Render ``document`` through the layout template.

    Raises
    ------
    SourceError
        If the layout template is missing.
    ParseError
        If the layout template fails to compile or render.
    """
    try:
        template = _environment(tree).get_template(LAYOUT_TEMPLATE)
    except TemplateNotFound as exc:
        msg = f"Layout template '{LAYOUT_TEMPLATE}' not found."
        raise SourceError(msg) from exc
    except TemplateError as exc:
        msg = f"Cannot compile layout template '{LAYOUT_TEMPLATE}': {exc}"
        raise ParseError(msg) from exc

    markdown_tree = parse_markdown(document.text)
    toc = tuple(collect_toc(markdown_tree))
    toc_html = render_toc(toc)
    content_html = render_body(markdown_tree, CodeHighlighter())

    matter = document.front_matter
    try:
        html = template.render(
            page=matter,
            toc=toc_html,
            content=content_html,
            highlight_css=matter.highlight_css(),
            language_tabs=[dc.asdict(tab) for tab in matter.language_tabs],
        )
    except TemplateError as exc:
        msg = f"Cannot render layout template '{LAYOUT_TEMPLATE}': {exc}"
        raise ParseError(msg) from exc
    return RenderedPage(
        html=html, toc=toc, toc_html=toc_html, content_html=content_html
    )


def load_document(
    tree: SourceTree, params: BuildParameters
) -> tuple[ParsedDocument, RenderedPage]:
    """Load, parse and render the entry document.

    Parameters
    ----------
    tree : SourceTree
        Layered source tree holding the entry document, includes and layout.
    params : BuildParameters
        Caller overrides for the logo, search and RTL flags.

    Returns
    -------
    tuple[ParsedDocument, RenderedPage]
        The parsed document (front matter with overrides applied) and the
        rendered page.

    Raises
    ------
    SourceError
        If the entry document, an include or the layout is missing.
    ParseError
        If the front matter or layout template is malformed.
    """
    document = read_document(tree, params)
    return document, render_page(tree, document)


__all__ = [
    "BodySegment",
    "ParsedDocument",
    "RenderedPage",
    "SourceTreeLoader",
    "load_document",
    "read_document",
    "render_page",
]
