"""Unit tests for front-matter scanning, parsing and overrides."""

from __future__ import annotations

from textwrap import dedent

import pytest

from slate_pages.config import BuildParameters, Toggle
from slate_pages.content import (
    FrontMatter,
    LanguageTab,
    parse_front_matter,
    split_front_matter,
)
from slate_pages.errors import ParseError

DOCUMENT = dedent(
    """\
    ---
    title: Kittn API
    language_tabs:
      - shell
      - python: Python 3
    toc_footers:
      - <a href="#">Sign up</a>
    includes:
      - errors
    search: true
    logo: kittn.png
    highlight_style: friendly
    colour: blue
    ---
    # Introduction
    """
)


def test_split_separates_preamble_and_body() -> None:
    """The delimiters are consumed and the body starts after the block."""
    preamble, body = split_front_matter(DOCUMENT)
    assert preamble.startswith("title: Kittn API\n")
    assert body == "# Introduction\n"


def test_split_without_front_matter_keeps_whole_body() -> None:
    """A first line other than the delimiter means there is no front matter."""
    text = "# Title\n---\nnot front matter\n"
    assert split_front_matter(text) == ("", text)


def test_split_keeps_unicode_separators_in_body() -> None:
    """Only ``\\n`` ends a line; U+2028 and form feeds stay in the body."""
    text = "---\r\ntitle: x\r\n---\r\n# A\u2028B\nC\x0cD\n"
    preamble, body = split_front_matter(text)
    assert preamble == "title: x\n"
    assert body == "# A\u2028B\nC\x0cD\n"


def test_split_rejects_unterminated_block() -> None:
    """An opening delimiter with no closing one is a parse error."""
    with pytest.raises(ParseError, match="index.html.md"):
        split_front_matter("---\ntitle: x\n# Body\n", source="index.html.md")


def test_parse_reads_known_keys_and_ignores_others() -> None:
    """Known keys are typed; unknown keys such as ``colour`` are ignored."""
    preamble, _body = split_front_matter(DOCUMENT)
    matter = parse_front_matter(preamble)

    assert matter.title == "Kittn API"
    assert matter.search is True
    assert matter.enable_rtl is False
    assert matter.language_tabs == (
        LanguageTab(name="shell", label="shell"),
        LanguageTab(name="python", label="Python 3"),
    )
    assert matter.toc_footers == ('<a href="#">Sign up</a>',)
    assert matter.includes == ("errors",)
    assert matter.logo == "kittn.png"


def test_empty_preamble_gives_defaults() -> None:
    """A missing or empty block yields the all-defaults front matter."""
    assert parse_front_matter("") == FrontMatter()


@pytest.mark.parametrize(
    ("preamble", "message"),
    [
        ("search: maybe\n", "'search'"),
        ("includes: errors\n", "'includes'"),
        ("language_tabs:\n  - {a: A, b: B}\n", "Invalid language tab"),
        ("title: [unclosed\n", "Cannot parse"),
        ("- a list\n", "must be a mapping"),
    ],
)
def test_parse_rejects_wrong_types(preamble: str, message: str) -> None:
    """Wrongly typed values and malformed YAML are parse errors."""
    with pytest.raises(ParseError, match=message):
        parse_front_matter(preamble)


@pytest.mark.parametrize(
    ("search", "expected"),
    [(Toggle.UNSET, True), (Toggle.ENABLED, True), (Toggle.DISABLED, False)],
)
def test_search_override_precedence(
    search: Toggle,
    expected: bool,  # noqa: FBT001
) -> None:
    """An explicit override wins over front matter; unset keeps it."""
    matter = FrontMatter(search=True).apply(BuildParameters(search=search))
    assert matter.search is expected


def test_rtl_and_logo_overrides() -> None:
    """RTL follows the tri-state rule and a caller logo replaces the declared one."""
    matter = FrontMatter(enable_rtl=False, logo="a.png")
    applied = matter.apply(BuildParameters(rtl=Toggle.ENABLED, logo="b.svg"))
    assert applied.enable_rtl is True
    assert applied.logo == "b.svg"
    assert matter.apply(BuildParameters()).logo == "a.png"


def test_highlight_css_falls_back_for_unknown_style() -> None:
    """An unknown highlight style renders the default theme instead of failing."""
    unknown = FrontMatter(highlight_style="no-such-style").highlight_css()
    assert unknown == FrontMatter().highlight_css()
    assert ".highlight" in unknown
