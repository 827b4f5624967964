"""Entry-document loading: front matter, Markdown, table of contents and code."""

from .front_matter import (
    FrontMatter,
    LanguageTab,
    parse_front_matter,
    split_front_matter,
)
from .loader import ParsedDocument, RenderedPage, load_document
from .renderer import CodeHighlighter
from .toc import TocEntry, render_toc

__all__ = [
    "CodeHighlighter",
    "FrontMatter",
    "LanguageTab",
    "ParsedDocument",
    "RenderedPage",
    "TocEntry",
    "load_document",
    "parse_front_matter",
    "render_toc",
    "split_front_matter",
]
