"""Render Slate-style API documentation sites from Markdown sources.

The package turns a directory of Markdown content, includes, SCSS stylesheets,
scripts and images into a static documentation site. A bundled default tree
supplies every file the user does not override, so an empty source directory
still renders the sample documentation.

Exports
-------
- ``app``: Cyclopts application behind the ``slate`` console script.
- ``main``: Convenience function that invokes the Cyclopts app.
- ``build_site``: Run one build pass into an output tree.
- ``__version__``: Package version string.

Examples
--------
>>> from slate_pages import build_site
>>> from slate_pages.config import BuildParameters
>>> from slate_pages.sources import SourceTree
>>> from slate_pages.staging import MemoryTree
>>> tree = SourceTree.for_directory(None)
>>> report = build_site(tree, MemoryTree(), BuildParameters())  # doctest: +SKIP
>>> "index.html" in report.files  # doctest: +SKIP
True
"""

from __future__ import annotations

from ._constants import __version__
from .builder import build_site
from .cli import app, main

__all__ = ["__version__", "app", "build_site", "main"]
