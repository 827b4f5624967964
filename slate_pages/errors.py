"""Error hierarchy for slate_pages.

Every fatal build failure inherits from :class:`SlateError` so one-shot
commands can report it and the live monitor can log it without crashing the
server. Highlighting problems are not errors: the renderer degrades to plain
escaped text instead.
"""

from __future__ import annotations


class SlateError(Exception):
    """Base error for all slate_pages operations."""


class ConfigError(SlateError, ValueError):
    """Raised when build parameters or the configuration file are invalid."""


class SourceError(SlateError, FileNotFoundError):
    """Raised when an entry file, include, layout or asset cannot be read."""


class ParseError(SlateError):
    """Raised when front matter or the document body cannot be parsed."""


class CompileError(SlateError):
    """Raised when a stylesheet or script bundle fails to compile or minify."""


class StageError(SlateError):
    """Raised when writing or renaming a file in the output tree fails."""


__all__ = [
    "CompileError",
    "ConfigError",
    "ParseError",
    "SlateError",
    "SourceError",
    "StageError",
]
