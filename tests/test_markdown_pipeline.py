"""Unit tests for the single-parse markdown pipeline.

The document is parsed once; the table of contents is collected from the tree
and the body renderer then swaps fenced code nodes for highlighted HTML.
"""

from __future__ import annotations

from textwrap import dedent

import pytest
from bs4 import BeautifulSoup

from slate_pages.content import CodeHighlighter, TocEntry, render_toc
from slate_pages.content.extensions import parse_markdown
from slate_pages.content.renderer import render_body
from slate_pages.content.toc import collect_toc

DOCUMENT = dedent(
    """\
    % Kittn Reference

    # Introduction

    Welcome.

    ## Authentication *keys*

    ```python
    def authorize(key):
        return key
    ```

    # Kittens

    ```shell
    curl "http://example.com/api/kittens" \\
      -H "Authorization: <key>"
    ```

    ### Not in the table of contents
    """
)


@pytest.fixture
def rendered() -> tuple[list[TocEntry], str]:
    tree = parse_markdown(DOCUMENT)
    toc = collect_toc(tree)
    return toc, render_body(tree)


def test_toc_lists_h1_and_h2_in_document_order(
    rendered: tuple[list[TocEntry], str],
) -> None:
    """Only first- and second-level headings are collected, title block excluded."""
    toc, _body = rendered
    assert [(entry.level, entry.anchor) for entry in toc] == [
        (1, "introduction"),
        (2, "authentication-keys"),
        (1, "kittens"),
    ]


def test_toc_title_keeps_escaped_inline_markup(
    rendered: tuple[list[TocEntry], str],
) -> None:
    """Inline markup inside a heading is captured and escaped."""
    toc, _body = rendered
    assert toc[1].title == "Authentication &lt;em&gt;keys&lt;/em&gt;"


def test_toc_anchors_match_body_ids(rendered: tuple[list[TocEntry], str]) -> None:
    """Every entry links to a heading id present in the body."""
    toc, body = rendered
    soup = BeautifulSoup(body, "html.parser")
    headings = soup.find_all(["h1", "h2"])
    ids = {heading["id"] for heading in headings if heading.get("id")}
    assert {entry.anchor for entry in toc} <= ids


def test_title_block_renders_as_title_heading(
    rendered: tuple[list[TocEntry], str],
) -> None:
    """A leading percent block becomes ``h1.title``."""
    _toc, body = rendered
    soup = BeautifulSoup(body, "html.parser")
    title = soup.find("h1", class_="title")
    assert title is not None
    assert title.get_text() == "Kittn Reference"


def test_fenced_code_is_highlighted_in_place(
    rendered: tuple[list[TocEntry], str],
) -> None:
    """Fenced blocks become language-tagged highlight blocks at their position."""
    _toc, body = rendered
    soup = BeautifulSoup(body, "html.parser")
    blocks = soup.find_all("pre", class_="highlight")
    assert [block["class"] for block in blocks] == [
        ["highlight", "python", "tab-python"],
        ["highlight", "shell", "tab-shell"],
    ]
    assert blocks[0].find("span", class_="k").get_text() == "def"
    assert blocks[0].find("span", class_="nf").get_text() == "authorize"
    assert '"Authorization: <key>"' in blocks[1].get_text()
    assert blocks[0].find_previous("h2")["id"] == "authentication-keys"
    assert soup.find("pre", attrs={"data-fenced": True}) is None


def test_code_inside_fence_is_not_parsed_as_markdown() -> None:
    """Headings and HTML inside a fence stay literal code."""
    tree = parse_markdown("```\n# not a heading\n<div>raw</div>\n```\n")
    assert collect_toc(tree) == []
    body = render_body(tree)
    assert "# not a heading" in body
    assert "&lt;div&gt;raw&lt;/div&gt;" in body


def test_fence_nested_in_list_item_is_highlighted() -> None:
    """A fence indented under a list item renders as a block inside that item."""
    source = dedent(
        """\
        1. Install the client

            ```python
            x = 1
            ```

        2. Call the API
        """
    )
    soup = BeautifulSoup(render_body(parse_markdown(source)), "html.parser")
    items = soup.find("ol").find_all("li", recursive=False)
    assert len(items) == 2
    block = items[0].find("pre", class_="highlight")
    assert block is not None
    assert block["class"] == ["highlight", "python", "tab-python"]
    assert block.get_text() == "x = 1\n"
    assert soup.find("code", string=lambda text: "python" in (text or "")) is None


def test_highlighter_unknown_language_is_plain_text() -> None:
    """An unknown language degrades to escaped text and keeps its tab class."""
    html = CodeHighlighter().highlight("a < b\n", "klingon")
    assert html == (
        '<pre class="highlight klingon tab-klingon"><code>a &lt; b\n</code></pre>\n'
    )


def test_highlighter_without_language() -> None:
    """A fence without a language uses the bare ``highlight`` class."""
    assert CodeHighlighter().highlight("x\n").startswith('<pre class="highlight">')


def test_render_toc_nesting_is_well_formed() -> None:
    """Deeper entries open a nested list; shallower ones close it."""
    html = render_toc(
        [
            TocEntry(1, "a", "A"),
            TocEntry(2, "b", "B"),
            TocEntry(2, "c", "C"),
            TocEntry(1, "d", "D &amp; E"),
        ]
    )
    soup = BeautifulSoup(f"<ul>{html}</ul>", "html.parser")
    top = soup.ul.find_all("li", recursive=False)
    assert [item.a["href"] for item in top] == ["#a", "#d"]
    nested = top[0].find("ul", class_="toc-list-h2")
    assert [link["href"] for link in nested.find_all("a")] == ["#b", "#c"]
    assert top[1].a["data-title"] == "D & E"
    assert top[1].a["class"] == ["toc-h1", "toc-link"]
    assert html.count("<li>") == html.count("</li>") == 4


def test_render_toc_empty() -> None:
    """No headings render no list items."""
    assert render_toc([]) == ""
