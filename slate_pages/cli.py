"""Cyclopts CLI entrypoint for building and serving Slate documentation.

The ``slate`` console script defined here renders a source directory (layered
over the bundled defaults) into a static site, serves the rendered site over
HTTP while optionally rebuilding it on every change, and extracts the bundled
defaults so they can be customised. Every option can also be supplied through
a ``SLATE_*`` environment variable, and options not given on the command line
fall back to the ``slate.yaml`` file found in the source directory.

Examples
--------
Build the documentation in ``docs`` into ``site`` without minifying scripts:

>>> from slate_pages.cli import app
>>> app(["site", "docs", "site", "--no-minify", "js"])  # doctest: +SKIP

Serve the bundled sample and rebuild on change:

>>> app(["serve", "docs", "--monitor"])  # doctest: +SKIP
"""

from __future__ import annotations

import dataclasses as dc
import sys
import typing as typ
from pathlib import Path

import cyclopts
import structlog
from cyclopts import App, Parameter

from ._constants import DEFAULT_CONFIG_FILE, SLATE_VERSION, __version__
from .builder import build_directory
from .config import BuildParameters, Toggle, load_build_parameters
from .errors import ConfigError, SlateError
from .extract import extract as extract_bundled
from .extract import list_bundled
from .log import configure_logging
from .monitor import LiveMonitor
from .server import DEFAULT_ADDRESS, make_server

app = App(  # type: ignore[unknown-argument]
    name="slate",
    version=__version__,
    config=cyclopts.config.Env("SLATE_", command=False),
)

logger = structlog.get_logger(__name__)

Flag = typ.Annotated[bool, Parameter(negative=())]


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def resolve_parameters(
    source: Path | None,
    *,
    config: Path | None = None,
    search: bool = False,
    no_search: bool = False,
    rtl: bool = False,
    no_rtl: bool = False,
    logo: str | None = None,
    style: Path | None = None,
    no_minify: typ.Sequence[str] = (),
) -> BuildParameters:
    """Merge the configuration file with command-line overrides.

    The configuration file defaults to ``slate.yaml`` inside ``source``.
    Command-line values win over file values, which in turn win over the
    document front matter when the build resolves its flags.

    Raises
    ------
    ConfigError
        If the file is invalid, both flags of a pair are set, or a
        ``--no-minify`` entry is unknown.
    """
    if config is None and source is not None:
        config = source / DEFAULT_CONFIG_FILE
    base = load_build_parameters(config)
    search_flag = Toggle.from_flags(enable=search, disable=no_search, name="search")
    rtl_flag = Toggle.from_flags(enable=rtl, disable=no_rtl, name="rtl")
    params = dc.replace(
        base,
        search=search_flag.overrides(base.search),
        rtl=rtl_flag.overrides(base.rtl),
        logo=logo or base.logo,
        style_file=style or base.style_file,
    )
    return params.with_no_minify(no_minify)


@app.command(help="Render a documentation source directory into a static site.")
def site(
    source: typ.Annotated[Path, Parameter(help="Documentation source directory")],
    output: typ.Annotated[Path, Parameter(help="Directory receiving the site")],
    *,
    search: typ.Annotated[
        bool, Parameter(help="Enable the search box", negative=())
    ] = False,
    no_search: typ.Annotated[
        bool, Parameter(help="Disable the search box", negative=())
    ] = False,
    rtl: typ.Annotated[
        bool, Parameter(help="Enable right-to-left styles", negative=())
    ] = False,
    no_rtl: typ.Annotated[
        bool, Parameter(help="Disable right-to-left styles", negative=())
    ] = False,
    logo: typ.Annotated[
        str | None, Parameter(help="Logo file name under images/")
    ] = None,
    style: typ.Annotated[
        Path | None, Parameter(help="SCSS file layered ahead of every stylesheet")
    ] = None,
    no_minify: typ.Annotated[
        list[str] | None,
        Parameter(help="Disable minification: css, js, html or all", negative=()),
    ] = None,
    config: typ.Annotated[
        Path | None, Parameter(help="Path to slate.yaml (default: SOURCE/slate.yaml)")
    ] = None,
    verbose: Flag = False,
) -> None:
    """Build ``source`` into ``output`` once."""
    configure_logging(verbose=verbose)
    params = resolve_parameters(
        source,
        config=config,
        search=search,
        no_search=no_search,
        rtl=rtl,
        no_rtl=no_rtl,
        logo=logo,
        style=style,
        no_minify=no_minify or (),
    )
    report = build_directory(source, output, params)
    print(f"Generated {len(report.files)} files into {_format_path(output)}")


@app.command(help="Serve rendered documentation over HTTP.")
def serve(
    source: typ.Annotated[
        Path | None,
        Parameter(help="Documentation source directory (default: bundled sample)"),
    ] = None,
    *,
    address: typ.Annotated[
        str, Parameter(help="host:port to listen at")
    ] = DEFAULT_ADDRESS,
    monitor: typ.Annotated[
        bool, Parameter(help="Rebuild the site when the source changes", negative=())
    ] = False,
    search: Flag = False,
    no_search: Flag = False,
    rtl: Flag = False,
    no_rtl: Flag = False,
    logo: str | None = None,
    style: Path | None = None,
    no_minify: typ.Annotated[list[str] | None, Parameter(negative=())] = None,
    config: Path | None = None,
    verbose: Flag = False,
) -> None:
    """Build ``source`` in memory and serve it until interrupted."""
    configure_logging(verbose=verbose)
    params = resolve_parameters(
        source,
        config=config,
        search=search,
        no_search=no_search,
        rtl=rtl,
        no_rtl=no_rtl,
        logo=logo,
        style=style,
        no_minify=no_minify or (),
    )
    live = LiveMonitor(source, params)
    live.start(watch_changes=monitor)
    server = make_server(live.snapshot, address)
    host, port = server.server_address[:2]
    print(f"Serving documentation at http://{host or 'localhost'}:{port}/")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("SERVER_INTERRUPTED")
    finally:
        server.server_close()
        live.stop()


@app.command(help="Copy bundled Slate files into a directory for customisation.")
def extract(
    directory: typ.Annotated[
        Path | None, Parameter(help="Directory receiving the files")
    ] = None,
    *components: typ.Annotated[
        str,
        Parameter(
            help="all, contents, fonts, images, layouts, scripts, stylesheets "
            "or a bundled file name"
        ),
    ],
    list_: typ.Annotated[
        bool, Parameter(name="--list", help="List bundled files", negative=())
    ] = False,
    overwrite: typ.Annotated[
        bool, Parameter(help="Overwrite existing files", negative=())
    ] = False,
) -> None:
    """Extract bundled components (``contents`` by default)."""
    if list_:
        for path in list_bundled():
            print(path)
        return
    if directory is None:
        msg = "Missing target directory; pass a directory or --list."
        raise ConfigError(msg)
    configure_logging()
    report = extract_bundled(directory, components, overwrite=overwrite)
    for path in report.written:
        print(f"extracted {_format_path(directory / path)}")
    for path in report.skipped:
        print(f"kept existing {_format_path(directory / path)}")


@app.command(name="version", help="Print the slate-pages and bundled Slate versions.")
def show_version() -> None:
    """Print version information."""
    print(f"slate-pages {__version__} (bundled Slate {SLATE_VERSION})")


def main() -> None:
    """Run the CLI, turning build errors into a non-zero exit."""
    try:
        app()
    except SlateError as exc:
        print(f"slate: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()


__all__ = ["app", "main", "resolve_parameters"]
