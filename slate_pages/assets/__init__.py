"""Asset pipeline: script bundles, compiled stylesheets, fonts and images."""

from .images import stage_images
from .scripts import ScriptBundle, ScriptBundler
from .stylesheets import (
    FontCollector,
    ImportRegistry,
    StylesheetCompiler,
    StylesheetReport,
)

__all__ = [
    "FontCollector",
    "ImportRegistry",
    "ScriptBundle",
    "ScriptBundler",
    "StylesheetCompiler",
    "StylesheetReport",
    "stage_images",
]
