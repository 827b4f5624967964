"""Front-matter scanning and parsing for the entry document.

The entry document may open with a YAML block fenced by ``---`` lines::

    ---
    title: API Reference
    language_tabs:
      - shell
      - python: Python 3
    includes:
      - errors
    search: true
    ---

    # Introduction

A first line other than ``---`` means the document has no front matter and
the whole file is body.
"""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ

import structlog
from pygments.formatters.html import HtmlFormatter
from pygments.util import ClassNotFound
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from slate_pages._constants import DEFAULT_HIGHLIGHT_STYLE, FRONT_MATTER_DELIMITER
from slate_pages.errors import ParseError
from slate_pages.sources import split_lines

if typ.TYPE_CHECKING:
    from slate_pages.config import BuildParameters

logger = structlog.get_logger(__name__)


class _ScanState(enum.Enum):
    BEFORE = "before"
    INSIDE = "inside"
    BODY = "body"


@dc.dataclass(frozen=True, slots=True)
class LanguageTab:
    """One entry of the language switcher: lexer name plus display label."""

    name: str
    label: str


@dc.dataclass(frozen=True, slots=True)
class FrontMatter:
    """Metadata declared at the top of the entry document.

    Attributes
    ----------
    title : str
        Page title.
    search : bool
        Whether the search box and its script bundle ship with the page.
    highlight_style : str
        Pygments style name used for code highlighting CSS.
    language_tabs : tuple[LanguageTab, ...]
        Languages offered by the code-sample switcher.
    toc_footers : tuple[str, ...]
        Raw HTML snippets listed under the table of contents.
    includes : tuple[str, ...]
        Names resolved to ``includes/_<name>.md`` and appended to the body.
    style : str
        Name of a stylesheet partial layered ahead of every stylesheet.
    logo : str
        Logo file name under ``images/``.
    enable_rtl : bool
        Whether right-to-left styles are compiled in.
    html_head : str
        Raw snippet injected into the page ``<head>``.
    """

    title: str = ""
    search: bool = False
    highlight_style: str = ""
    language_tabs: tuple[LanguageTab, ...] = ()
    toc_footers: tuple[str, ...] = ()
    includes: tuple[str, ...] = ()
    style: str = ""
    logo: str = ""
    enable_rtl: bool = False
    html_head: str = ""

    def apply(self, params: BuildParameters) -> FrontMatter:
        """Return a copy with the caller's logo, search and RTL overrides applied.

        Examples
        --------
        >>> from slate_pages.config import BuildParameters, Toggle
        >>> matter = FrontMatter(search=True)
        >>> matter.apply(BuildParameters(search=Toggle.DISABLED)).search
        False
        >>> matter.apply(BuildParameters()).search
        True
        """
        return dc.replace(
            self,
            logo=params.logo or self.logo,
            search=params.search.resolve(self.search),
            enable_rtl=params.rtl.resolve(self.enable_rtl),
        )

    def highlight_css(self) -> str:
        """Return Pygments CSS for ``highlight_style`` scoped to ``.highlight``.

        An unknown style name falls back to ``monokai`` with a warning.
        """
        style = self.highlight_style or DEFAULT_HIGHLIGHT_STYLE
        try:
            formatter = HtmlFormatter(style=style)
        except ClassNotFound:
            logger.warning("UNKNOWN_HIGHLIGHT_STYLE", style=style)
            formatter = HtmlFormatter(style=DEFAULT_HIGHLIGHT_STYLE)
        return formatter.get_style_defs(".highlight")


def split_front_matter(text: str, *, source: str = "document") -> tuple[str, str]:
    """Split ``text`` into its front-matter block and its body.

    Parameters
    ----------
    text : str
        Full content of the entry document.
    source : str, optional
        Name used in error messages.

    Returns
    -------
    tuple[str, str]
        The YAML between the delimiters (empty when absent) and the body,
        each line terminated by a newline.

    Raises
    ------
    ParseError
        If the opening delimiter is never closed.

    Examples
    --------
    >>> split_front_matter("---\\ntitle: x\\n---\\n# Hi\\n")
    ('title: x\\n', '# Hi\\n')
    >>> split_front_matter("# Hi\\n")
    ('', '# Hi\\n')
    """
    state = _ScanState.BEFORE
    preamble: list[str] = []
    body: list[str] = []
    for line in split_lines(text):
        match state:
            case _ScanState.BEFORE:
                state = _ScanState.BODY
                if line == FRONT_MATTER_DELIMITER:
                    state = _ScanState.INSIDE
                    continue
            case _ScanState.INSIDE:
                if line == FRONT_MATTER_DELIMITER:
                    state = _ScanState.BODY
                else:
                    preamble.append(f"{line}\n")
                continue
            case _ScanState.BODY:
                pass
        body.append(f"{line}\n")
    if state is _ScanState.INSIDE:
        msg = f"Front matter in '{source}' is missing its closing '---'."
        raise ParseError(msg)
    return "".join(preamble), "".join(body)


def parse_front_matter(preamble: str, *, source: str = "document") -> FrontMatter:
    """Parse the YAML ``preamble`` into :class:`FrontMatter`.

    Unknown keys are ignored; an empty preamble yields the defaults.

    Raises
    ------
    ParseError
        If the YAML is malformed, is not a mapping, or a value has the wrong
        type.
    """
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        loaded = loader.load(preamble) if preamble.strip() else None
    except YAMLError as exc:
        msg = f"Cannot parse front matter in '{source}': {exc}"
        raise ParseError(msg) from exc
    if loaded is None:
        return FrontMatter()
    if not isinstance(loaded, dict):
        msg = f"Front matter in '{source}' must be a mapping."
        raise ParseError(msg)

    fields = _Fields(loaded, source)
    return FrontMatter(
        title=fields.text("title"),
        search=fields.flag("search"),
        highlight_style=fields.text("highlight_style"),
        language_tabs=_language_tabs(loaded.get("language_tabs"), source),
        toc_footers=fields.texts("toc_footers"),
        includes=fields.texts("includes"),
        style=fields.text("style"),
        logo=fields.text("logo"),
        enable_rtl=fields.flag("enable_rtl"),
        html_head=fields.text("html_head"),
    )


@dc.dataclass(frozen=True, slots=True)
class _Fields:
    """Typed accessors over the raw front-matter mapping."""

    raw: dict[str, typ.Any]
    source: str

    def _fail(self, key: str, expected: str) -> typ.NoReturn:
        msg = f"Front matter key '{key}' in '{self.source}' must be {expected}."
        raise ParseError(msg)

    def text(self, key: str) -> str:
        value = self.raw.get(key)
        if value is None:
            return ""
        if isinstance(value, bool) or not isinstance(value, str | int | float):
            self._fail(key, "a string")
        return str(value)

    def flag(self, key: str) -> bool:
        value = self.raw.get(key)
        if value is None:
            return False
        if not isinstance(value, bool):
            self._fail(key, "true or false")
        return value

    def texts(self, key: str) -> tuple[str, ...]:
        value = self.raw.get(key)
        if value is None:
            return ()
        if not isinstance(value, list) or not all(
            isinstance(item, str) for item in value
        ):
            self._fail(key, "a list of strings")
        return tuple(value)


def _language_tabs(value: object, source: str) -> tuple[LanguageTab, ...]:
    """Normalise ``language_tabs`` entries given as names or ``{name: label}``."""
    if value is None:
        return ()
    if not isinstance(value, list):
        msg = f"Front matter key 'language_tabs' in '{source}' must be a list."
        raise ParseError(msg)
    tabs: list[LanguageTab] = []
    for item in value:
        if isinstance(item, str):
            tabs.append(LanguageTab(name=item, label=item))
        elif isinstance(item, dict) and len(item) == 1:
            [(name, label)] = item.items()
            tabs.append(LanguageTab(name=str(name), label=str(label or name)))
        else:
            msg = (
                f"Invalid language tab {item!r} in '{source}': expected a name "
                "or a single 'name: label' mapping."
            )
            raise ParseError(msg)
    return tuple(tabs)


__all__ = ["FrontMatter", "LanguageTab", "parse_front_matter", "split_front_matter"]
