"""Body rendering with Pygments-highlighted code samples."""

from __future__ import annotations

import html
import typing as typ
import xml.etree.ElementTree as etree  # noqa: N813

import structlog
from pygments.lexers import get_lexer_by_name
from pygments.lexers.special import TextLexer
from pygments.token import STANDARD_TYPES
from pygments.util import ClassNotFound

from .extensions import FENCED_ATTRIBUTE

if typ.TYPE_CHECKING:
    from pygments.lexer import Lexer

    from .extensions import MarkdownTree

logger = structlog.get_logger(__name__)


class CodeHighlighter:
    """Render code samples as ``<pre class="highlight LANG tab-LANG">`` blocks.

    Each token becomes an escaped ``<span>`` carrying the short Pygments class
    of its token type (``k``, ``s2``, ``nf`` ...). Tokens without a standard
    class are written escaped with no wrapping span. Highlighting never fails
    a build: an unknown language uses the plain-text lexer and a lexer error
    falls back to the escaped raw code.
    """

    def highlight(self, code: str, lang: str = "") -> str:
        """Return the highlighted HTML block for ``code``.

        Parameters
        ----------
        code : str
            Raw source of the code sample.
        lang : str, optional
            Language tag of the fence; empty selects the plain-text lexer.

        Returns
        -------
        str
            A ``<pre>`` element whose classes drive the language switcher.

        Examples
        --------
        >>> CodeHighlighter().highlight("x", "nosuchlang")
        '<pre class="highlight nosuchlang tab-nosuchlang"><code>x</code></pre>\\n'
        """
        classes = f"highlight {lang} tab-{lang}" if lang else "highlight"
        lexer = self._lexer(lang)
        try:
            body = "".join(
                self._token(token_type, value)
                for token_type, value in lexer.get_tokens(code)
            )
        except Exception as exc:  # noqa: BLE001 - highlighting must not fail a build
            logger.warning("HIGHLIGHT_FAILED", lang=lang, error=str(exc))
            body = html.escape(code)
        return f'<pre class="{html.escape(classes)}"><code>{body}</code></pre>\n'

    @staticmethod
    def _lexer(lang: str) -> Lexer:
        options = {"stripnl": False, "ensurenl": False}
        if not lang:
            return TextLexer(**options)
        try:
            return get_lexer_by_name(lang, **options)
        except ClassNotFound:
            logger.debug("UNKNOWN_LANGUAGE", lang=lang)
            return TextLexer(**options)

    @staticmethod
    def _token(token_type: typ.Any, value: str) -> str:  # noqa: ANN401
        css_class = STANDARD_TYPES.get(token_type, "")
        if not css_class:
            return html.escape(value)
        return f'<span class="{css_class}">{html.escape(value)}</span>'


class BodyRenderer:
    """Second traversal of the document tree producing the body HTML.

    Fenced ``<pre>`` nodes are swapped for highlighted HTML kept in the
    Markdown HTML stash; every other node keeps python-markdown's standard
    rendering. The tree is modified in place, so collect the table of
    contents first.
    """

    def __init__(self, tree: MarkdownTree, highlighter: CodeHighlighter) -> None:
        self.tree = tree
        self.highlighter = highlighter

    def render(self) -> str:
        """Return the body HTML of the document."""
        self._replace_fenced(self.tree.root)
        return self.tree.serialize()

    def _replace_fenced(self, parent: etree.Element) -> None:
        for index, child in enumerate(list(parent)):
            marker = child.get(FENCED_ATTRIBUTE)
            if child.tag != "pre" or marker is None:
                self._replace_fenced(child)
                continue
            block = self.tree.blocks[int(marker)]
            placeholder = etree.Element("p")
            placeholder.text = self.tree.md.htmlStash.store(
                self.highlighter.highlight(block.code, block.lang)
            )
            placeholder.tail = child.tail
            parent[index] = placeholder


def render_body(tree: MarkdownTree, highlighter: CodeHighlighter | None = None) -> str:
    """Render the body HTML of ``tree`` (see :class:`BodyRenderer`)."""
    return BodyRenderer(tree, highlighter or CodeHighlighter()).render()


__all__ = ["BodyRenderer", "CodeHighlighter", "render_body"]
