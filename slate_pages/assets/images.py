"""Change-aware staging of ``images/``."""

from __future__ import annotations

import posixpath
import typing as typ

import structlog

from slate_pages._constants import DEFAULT_LOGO, IMAGES_DIR
from slate_pages.staging import update_target

if typ.TYPE_CHECKING:
    from slate_pages.sources import SourceTree
    from slate_pages.staging import OutputTree

logger = structlog.get_logger(__name__)


def stage_images(tree: SourceTree, target: OutputTree, logo: str = "") -> list[str]:
    """Copy every image into ``target`` unless it is already up to date.

    Parameters
    ----------
    tree : SourceTree
        Source tree holding ``images/``.
    target : OutputTree
        Output tree receiving the copies.
    logo : str, optional
        Selected logo file name. When another logo is selected the default
        ``logo.png`` is not shipped.

    Returns
    -------
    list[str]
        Paths actually copied; files whose size and modification time
        already match are skipped.
    """
    copied: list[str] = []
    for name in tree.listdir(IMAGES_DIR):
        path = posixpath.join(IMAGES_DIR, name)
        if tree.is_dir(path) or (name == DEFAULT_LOGO and logo not in ("", name)):
            continue
        if update_target(tree, target, path):
            copied.append(path)
    logger.debug("IMAGES_STAGED", copied=len(copied))
    return copied


__all__ = ["stage_images"]
