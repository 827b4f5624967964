"""Serve a published :class:`~slate_pages.staging.Snapshot` over HTTP.

Each request captures the current snapshot once, through the callable it was
given, and serves the whole response from that snapshot. A rebuild published
mid-response therefore never mixes files from two builds.
"""

from __future__ import annotations

import functools
import mimetypes
import posixpath
import typing as typ
from email.utils import formatdate
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import unquote, urlsplit

import structlog

from slate_pages._constants import OUTPUT_PAGE, __version__
from slate_pages.errors import ConfigError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from slate_pages.staging import Snapshot

DEFAULT_ADDRESS = "localhost:8080"

logger = structlog.get_logger(__name__)


def parse_address(address: str) -> tuple[str, int]:
    """Split ``host:port`` into its parts; an empty host binds all interfaces.

    Examples
    --------
    >>> parse_address("localhost:8080")
    ('localhost', 8080)
    >>> parse_address(":9000")
    ('', 9000)
    """
    host, separator, port = address.rpartition(":")
    if not separator or not port.isdigit():
        msg = f"Invalid listen address {address!r}; expected host:port."
        raise ConfigError(msg)
    return host.strip("[]"), int(port)


def request_path(raw: str) -> str | None:
    """Map a request target onto a logical snapshot path.

    Returns ``None`` for targets escaping the site root.

    Examples
    --------
    >>> request_path("/stylesheets/screen.css?v=1")
    'stylesheets/screen.css'
    >>> request_path("/")
    ''
    >>> request_path("/../secret") is None
    True
    """
    path = unquote(urlsplit(raw).path)
    if ".." in path.split("/"):
        return None
    normalized = posixpath.normpath(f"/{path}").lstrip("/")
    return "" if normalized == "." else normalized


class SnapshotRequestHandler(BaseHTTPRequestHandler):
    """Answer ``GET`` and ``HEAD`` requests from the current snapshot."""

    server_version = f"slate-pages/{__version__}"

    def __init__(
        self,
        *args: typ.Any,  # noqa: ANN401
        snapshots: cabc.Callable[[], Snapshot],
        **kwargs: typ.Any,  # noqa: ANN401
    ) -> None:
        self.snapshots = snapshots
        super().__init__(*args, **kwargs)

    def do_GET(self) -> None:  # noqa: N802
        """Serve the file body."""
        self._respond(include_body=True)

    def do_HEAD(self) -> None:  # noqa: N802
        """Serve the headers only."""
        self._respond(include_body=False)

    def _respond(self, *, include_body: bool) -> None:
        snapshot = self.snapshots()
        path = request_path(self.path)
        if path is not None and snapshot.is_dir(path):
            path = posixpath.join(path, OUTPUT_PAGE) if path else OUTPUT_PAGE
        info = snapshot.stat(path) if path is not None else None
        if path is None or info is None:
            self.send_error(HTTPStatus.NOT_FOUND, "File not found")
            return
        body = snapshot.read_bytes(path)
        content_type, _encoding = mimetypes.guess_type(path)
        self.send_response(HTTPStatus.OK)
        self.send_header("Content-Type", content_type or "application/octet-stream")
        self.send_header("Content-Length", str(len(body)))
        self.send_header(
            "Last-Modified", formatdate(info.mtime_ns / 1e9, usegmt=True)
        )
        self.end_headers()
        if include_body:
            self.wfile.write(body)

    def log_message(self, format: str, *args: typ.Any) -> None:  # noqa: A002, ANN401
        """Route access logs through structlog."""
        logger.debug("HTTP_REQUEST", client=self.client_address[0], line=format % args)


def make_server(
    snapshots: cabc.Callable[[], Snapshot], address: str = DEFAULT_ADDRESS
) -> ThreadingHTTPServer:
    """Return a threaded HTTP server answering from ``snapshots()``.

    Parameters
    ----------
    snapshots : Callable[[], Snapshot]
        Returns the snapshot to serve; called once per request.
    address : str, optional
        ``host:port`` to listen on; port ``0`` picks a free port.
    """
    handler = functools.partial(SnapshotRequestHandler, snapshots=snapshots)
    return ThreadingHTTPServer(parse_address(address), handler)


__all__ = [
    "DEFAULT_ADDRESS",
    "SnapshotRequestHandler",
    "make_server",
    "parse_address",
    "request_path",
]
