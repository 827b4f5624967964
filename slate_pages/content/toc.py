"""Table-of-contents extraction from a parsed document tree."""

from __future__ import annotations

import dataclasses as dc
import html
import re
import typing as typ

from markdown.util import HTML_PLACEHOLDER_RE

from .extensions import TITLE_CLASS

if typ.TYPE_CHECKING:
    import xml.etree.ElementTree as etree  # noqa: N813

    from .extensions import MarkdownTree

TOC_LEVELS = {"h1": 1, "h2": 2}


@dc.dataclass(frozen=True, slots=True)
class TocEntry:
    """A heading listed in the table of contents."""

    level: int
    anchor: str
    title: str


@dc.dataclass(slots=True)
class _Capture:
    """The heading currently open and the inline markup captured for it."""

    level: int
    anchor: str
    buffer: list[str] = dc.field(default_factory=list)


class TocCollector:
    """Walk a document tree and collect level 1-2 headings.

    While a heading is open every nested node is rendered into the capture
    buffer rather than skipped, so emphasis, code spans and links inside a
    heading survive into the entry title (escaped).
    """

    def __init__(self, tree: MarkdownTree) -> None:
        self._stash = tree.md.htmlStash
        self._capture: _Capture | None = None
        self.entries: list[TocEntry] = []

    def visit(self, element: etree.Element) -> None:
        """Visit ``element`` and its descendants in document order."""
        level = TOC_LEVELS.get(element.tag)
        if level is not None and TITLE_CLASS not in element.get("class", "").split():
            self._enter(level, element.get("id", ""))
            self._text(element.text)
            for child in element:
                self._render(child)
            self._leave()
            return
        for child in element:
            self.visit(child)

    def _enter(self, level: int, anchor: str) -> None:
        self._capture = _Capture(level=level, anchor=anchor)

    def _leave(self) -> None:
        capture = self._capture
        if capture is None:  # pragma: no cover - paired with _enter
            return
        self.entries.append(
            TocEntry(
                level=capture.level,
                anchor=capture.anchor,
                title=html.escape("".join(capture.buffer).strip()),
            )
        )
        self._capture = None

    def _text(self, text: str | None) -> None:
        if text and self._capture is not None:
            self._capture.buffer.append(self._unstash(text))

    def _render(self, element: etree.Element) -> None:
        """Render an inline node (tag, text, children, tail) into the buffer."""
        if self._capture is None:  # pragma: no cover - only called while open
            return
        attributes = "".join(
            f' {name}="{html.escape(value)}"' for name, value in element.items()
        )
        self._capture.buffer.append(f"<{element.tag}{attributes}>")
        self._text(element.text)
        for child in element:
            self._render(child)
        self._capture.buffer.append(f"</{element.tag}>")
        self._text(element.tail)

    def _unstash(self, text: str) -> str:
        """Replace raw-HTML stash placeholders with their stored markup."""

        def _lookup(match: re.Match[str]) -> str:
            stored = self._stash.rawHtmlBlocks[int(match.group(1))]
            return stored if isinstance(stored, str) else ""

        return HTML_PLACEHOLDER_RE.sub(_lookup, text)


def collect_toc(tree: MarkdownTree) -> list[TocEntry]:
    """Return the table-of-contents entries of ``tree`` in document order."""
    collector = TocCollector(tree)
    collector.visit(tree.root)
    return collector.entries


@dc.dataclass(slots=True)
class _OpenItem:
    level: int
    has_list: bool = False


def render_toc(entries: typ.Iterable[TocEntry]) -> str:
    """Render ``entries`` as nested list items.

    A deeper heading opens a ``<ul class="toc-list-h<level>">`` inside the
    current item; a heading at the same level closes the current item; a
    shallower heading closes every deeper item and its list. Each item links
    to its heading anchor and repeats the title in ``data-title``.

    Examples
    --------
    >>> print(render_toc([TocEntry(1, "intro", "Intro"), TocEntry(2, "d", "D")]))
    <li>
    <a href="#intro" class="toc-h1 toc-link" data-title="Intro">Intro</a>
    <ul class="toc-list-h2">
    <li>
    <a href="#d" class="toc-h2 toc-link" data-title="D">D</a>
    </li>
    </ul>
    </li>
    <BLANKLINE>
    """
    parts: list[str] = []
    stack: list[_OpenItem] = []

    def _close() -> None:
        item = stack.pop()
        if item.has_list:
            parts.append("</ul>\n")
        parts.append("</li>\n")

    for entry in entries:
        while stack and stack[-1].level >= entry.level:
            _close()
        if stack and not stack[-1].has_list:
            parts.append(f'<ul class="toc-list-h{entry.level}">\n')
            stack[-1].has_list = True
        parts.append(
            f'<li>\n<a href="#{html.escape(entry.anchor)}" '
            f'class="toc-h{entry.level} toc-link" data-title="{entry.title}">'
            f"{entry.title}</a>\n"
        )
        stack.append(_OpenItem(level=entry.level))
    while stack:
        _close()
    return "".join(parts)


__all__ = ["TocCollector", "TocEntry", "collect_toc", "render_toc"]
