"""Build parameters and their optional YAML configuration file.

This subpackage defines the explicit overrides a caller can pass to a build
(:class:`BuildParameters`) and the three-valued :class:`Toggle` used for the
search and right-to-left flags, plus :func:`load_build_parameters`, which reads
``slate.yaml`` when a source tree ships one.

Examples
--------
>>> from slate_pages.config import BuildParameters, Toggle
>>> params = BuildParameters(search=Toggle.DISABLED)
>>> params.search.resolve(True)
False
>>> Toggle.UNSET.resolve(True)
True
"""

from .loader import load_build_parameters
from .models import NO_MINIFY_KINDS, BuildParameters, Toggle

__all__ = [
    "NO_MINIFY_KINDS",
    "BuildParameters",
    "Toggle",
    "load_build_parameters",
]
