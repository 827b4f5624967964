"""Markdown extensions that keep fenced code blocks as document-tree nodes.

python-markdown's stock ``fenced_code`` extension highlights code during
preprocessing and hides the result in the HTML stash, so the parsed tree never
sees the block. :class:`SlateExtension` instead lifts each fence out of the
source, leaves a placeholder paragraph behind, and turns that placeholder into
a ``<pre data-fenced>`` element during block parsing. Later traversals (the
table of contents and the body renderer) then walk a single tree that still
knows where every code sample lives.

The extension also understands a leading ``% Title`` block, rendered as an
``<h1 class="title">`` heading that the table of contents skips.
"""

from __future__ import annotations

import dataclasses as dc
import re
import typing as typ
import xml.etree.ElementTree as etree  # noqa: N813

from markdown import Markdown
from markdown.blockprocessors import BlockProcessor
from markdown.extensions import Extension
from markdown.preprocessors import Preprocessor
from markdown.util import ETX, STX, AtomicString

if typ.TYPE_CHECKING:
    from markdown.blockparser import BlockParser

FENCE_OPEN_PATTERN = re.compile(
    r"^(?P<indent>[ ]*)(?P<fence>`{3,}|~{3,})[ ]*(?P<lang>[A-Za-z0-9_+#.-]*)"
)
PLACEHOLDER_PATTERN = re.compile(rf"^{STX}fenced:(\d+){ETX}$")
TITLE_BLOCK_PREFIX = "% "
FENCED_ATTRIBUTE = "data-fenced"
LANG_ATTRIBUTE = "data-lang"
TITLE_CLASS = "title"
LIST_TAGS = frozenset({"ol", "ul"})


@dc.dataclass(frozen=True, slots=True)
class FencedBlock:
    """Raw content of one fenced code block."""

    lang: str
    code: str


def _placeholder(index: int) -> str:
    return f"{STX}fenced:{index}{ETX}"


class FencedCodePreprocessor(Preprocessor):
    """Lift fenced code out of the source lines into :attr:`blocks`."""

    def __init__(self, md: Markdown, blocks: list[FencedBlock]) -> None:
        super().__init__(md)
        self.blocks = blocks

    def run(self, lines: list[str]) -> list[str]:
        """Replace every fence with a blank-line-delimited placeholder."""
        output: list[str] = []
        position = 0
        while position < len(lines):
            match = FENCE_OPEN_PATTERN.match(lines[position])
            if match is None or (
                match.group("fence")[0] == "`" and "`" in lines[position][match.end() :]
            ):
                output.append(lines[position])
                position += 1
                continue
            indent = match.group("indent")
            fence = match.group("fence")
            closing = re.compile(
                rf"^[ ]*{re.escape(fence[0])}{{{len(fence)},}}[ ]*$"
            )
            code: list[str] = []
            position += 1
            while position < len(lines) and not closing.match(lines[position]):
                code.append(_dedent(lines[position], len(indent)))
                position += 1
            position += 1
            self.blocks.append(
                FencedBlock(
                    lang=match.group("lang"),
                    code="".join(f"{line}\n" for line in code),
                )
            )
            # Exactly one blank line on each side, so an indented placeholder
            # still starts its block and nests under a preceding list item.
            if output and output[-1].strip():
                output.append("")
            output.extend([f"{indent}{_placeholder(len(self.blocks) - 1)}", ""])
            if position < len(lines) and not lines[position].strip():
                position += 1
        return output


def _dedent(line: str, width: int) -> str:
    """Remove up to ``width`` leading spaces from ``line``."""
    stripped = len(line) - len(line.lstrip(" "))
    return line[min(stripped, width) :]


class FencedCodeBlockProcessor(BlockProcessor):
    """Turn a fenced-code placeholder paragraph into a ``<pre>`` node."""

    def __init__(self, parser: BlockParser, blocks: list[FencedBlock]) -> None:
        super().__init__(parser)
        self.blocks = blocks

    def test(self, parent: etree.Element, block: str) -> bool:
        if PLACEHOLDER_PATTERN.match(block.strip()) is None:
            return False
        # An indented placeholder after a list belongs to the last list item;
        # leave it to the list indent processor, which re-parses it dedented.
        sibling = self.lastChild(parent)
        return not (
            block.startswith(" " * self.tab_length)
            and sibling is not None
            and sibling.tag in LIST_TAGS
        )

    def run(self, parent: etree.Element, blocks: list[str]) -> None:
        match = PLACEHOLDER_PATTERN.match(blocks.pop(0).strip())
        if match is None:  # pragma: no cover - guarded by test()
            return
        index = int(match.group(1))
        fenced = self.blocks[index]
        pre = etree.SubElement(parent, "pre")
        pre.set(FENCED_ATTRIBUTE, str(index))
        pre.set(LANG_ATTRIBUTE, fenced.lang)
        code = etree.SubElement(pre, "code")
        code.text = AtomicString(fenced.code)


class TitleBlockProcessor(BlockProcessor):
    """Render a leading ``% Title`` block as ``<h1 class="title">``."""

    def test(self, parent: etree.Element, block: str) -> bool:
        return (
            parent is self.parser.root
            and len(parent) == 0
            and block.startswith(TITLE_BLOCK_PREFIX)
        )

    def run(self, parent: etree.Element, blocks: list[str]) -> None:
        block = blocks.pop(0)
        title = " ".join(
            line.removeprefix("%").strip()
            for line in block.split("\n")
            if line.startswith("%")
        )
        heading = etree.SubElement(parent, "h1")
        heading.set("class", TITLE_CLASS)
        heading.text = title


class SlateExtension(Extension):
    """Register the fenced-code and title-block processors.

    The fenced blocks collected while parsing are exposed through
    :attr:`blocks` and cleared whenever the Markdown instance is reset.
    """

    def __init__(self, **kwargs: typ.Any) -> None:
        super().__init__(**kwargs)
        self.blocks: list[FencedBlock] = []

    def extendMarkdown(  # type: ignore[override]  # noqa: N802
        self, md: Markdown
    ) -> None:
        """Register the processors on the Markdown instance."""
        md.registerExtension(self)
        md.preprocessors.register(
            FencedCodePreprocessor(md, self.blocks), "slate_fenced_code", 29
        )
        md.parser.blockprocessors.register(
            FencedCodeBlockProcessor(md.parser, self.blocks), "slate_fenced_code", 105
        )
        md.parser.blockprocessors.register(
            TitleBlockProcessor(md.parser), "slate_title_block", 106
        )

    def reset(self) -> None:
        """Forget the fenced blocks of the previous document."""
        self.blocks.clear()


@dc.dataclass(slots=True)
class MarkdownTree:
    """A parsed document tree plus the Markdown instance that produced it."""

    md: Markdown
    root: etree.Element
    blocks: list[FencedBlock]

    def serialize(self) -> str:
        """Serialise :attr:`root` and run the Markdown postprocessors.

        Placeholders stored in the HTML stash (raw HTML and highlighted code)
        are swapped back in by the postprocessors.
        """
        output = self.md.serializer(self.root)
        open_tag = f"<{self.md.doc_tag}>"
        close_tag = f"</{self.md.doc_tag}>"
        if output.strip().endswith(f"<{self.md.doc_tag} />"):
            output = ""
        else:
            start = output.index(open_tag) + len(open_tag)
            output = output[start : output.rindex(close_tag)].strip()
        for postprocessor in self.md.postprocessors:
            output = postprocessor.run(output)
        return output.strip()


def build_markdown() -> tuple[Markdown, SlateExtension]:
    """Return a Markdown instance configured for Slate documents."""
    extension = SlateExtension()
    md = Markdown(
        extensions=["tables", "sane_lists", "def_list", "attr_list", "toc", extension]
    )
    return md, extension


def parse_markdown(text: str) -> MarkdownTree:
    """Parse ``text`` into a document tree exactly once.

    The preprocessors, block parser and treeprocessors run in the same order
    as :meth:`markdown.Markdown.convert`, but serialisation is deferred so the
    tree can be traversed first.

    Examples
    --------
    >>> tree = parse_markdown("# Intro\\n\\n```python\\nx = 1\\n```\\n")
    >>> [child.tag for child in tree.root]
    ['h1', 'pre']
    >>> tree.blocks[0].lang
    'python'
    """
    md, extension = build_markdown()
    lines = text.split("\n")
    for preprocessor in md.preprocessors:
        lines = preprocessor.run(lines)
    root = md.parser.parseDocument(lines).getroot()
    for treeprocessor in md.treeprocessors:
        replaced = treeprocessor.run(root)
        if replaced is not None:
            root = replaced
    return MarkdownTree(md=md, root=root, blocks=extension.blocks)


__all__ = [
    "FENCED_ATTRIBUTE",
    "LANG_ATTRIBUTE",
    "TITLE_CLASS",
    "FencedBlock",
    "MarkdownTree",
    "SlateExtension",
    "build_markdown",
    "parse_markdown",
]
