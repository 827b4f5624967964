"""Typed models describing explicit build parameters."""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ
from pathlib import Path  # noqa: TC003 - used for runtime type metadata

from slate_pages.errors import ConfigError

NO_MINIFY_KINDS = ("css", "js", "html", "all")


class Toggle(enum.Enum):
    """Three-valued override flag.

    ``UNSET`` defers to the value declared in the document front matter, while
    ``ENABLED`` and ``DISABLED`` win regardless of it.
    """

    UNSET = "unset"
    ENABLED = "enabled"
    DISABLED = "disabled"

    @classmethod
    def from_value(cls, value: bool | None) -> Toggle:  # noqa: FBT001
        """Map ``None``/``True``/``False`` onto the three states."""
        match value:
            case None:
                return cls.UNSET
            case True:
                return cls.ENABLED
            case False:
                return cls.DISABLED
            case _:
                msg = f"Expected a boolean or null toggle, got {value!r}."
                raise ConfigError(msg)

    @classmethod
    def from_flags(cls, *, enable: bool, disable: bool, name: str) -> Toggle:
        """Combine a ``--name``/``--no-name`` flag pair into a toggle.

        Raises
        ------
        ConfigError
            If both flags are set.
        """
        if enable and disable:
            msg = f"Both --{name} and --no-{name} set."
            raise ConfigError(msg)
        if enable:
            return cls.ENABLED
        if disable:
            return cls.DISABLED
        return cls.UNSET

    def resolve(self, default: bool) -> bool:  # noqa: FBT001
        """Return the effective value given the front-matter ``default``."""
        match self:
            case Toggle.ENABLED:
                return True
            case Toggle.DISABLED:
                return False
            case Toggle.UNSET:
                return default

    def overrides(self, other: Toggle) -> Toggle:
        """Return ``self`` unless it is unset, in which case ``other``."""
        return other if self is Toggle.UNSET else self


@dc.dataclass(frozen=True, slots=True)
class BuildParameters:
    """Explicit overrides supplied by the caller of a build.

    Attributes
    ----------
    minify_html, minify_css, minify_js : bool
        Independent minification switches for the page, stylesheets and
        script bundles.
    search : Toggle
        Search box override; ``UNSET`` keeps the front-matter ``search`` value.
    rtl : Toggle
        Right-to-left override; ``UNSET`` keeps the front-matter ``enable_rtl``.
    logo : str or None
        Logo file name under ``images/``; overrides the front-matter ``logo``.
    style_file : Path or None
        SCSS file whose text is layered ahead of every compiled stylesheet.
    """

    minify_html: bool = True
    minify_css: bool = True
    minify_js: bool = True
    search: Toggle = Toggle.UNSET
    rtl: Toggle = Toggle.UNSET
    logo: str | None = None
    style_file: Path | None = None

    def with_no_minify(self, kinds: typ.Iterable[str]) -> BuildParameters:
        """Return a copy with minification disabled for each of ``kinds``.

        Parameters
        ----------
        kinds : Iterable[str]
            Any of ``css``, ``js``, ``html`` or ``all``; comma-separated
            entries are split.

        Raises
        ------
        ConfigError
            If an entry is not one of the known kinds.
        """
        changes: dict[str, bool] = {}
        for raw in kinds:
            for kind in (part.strip().lower() for part in raw.split(",")):
                if not kind:
                    continue
                if kind not in NO_MINIFY_KINDS:
                    msg = f"Unknown parameter {kind!r} to --no-minify."
                    raise ConfigError(msg)
                if kind == "all":
                    changes.update(minify_css=False, minify_js=False, minify_html=False)
                else:
                    changes[f"minify_{kind}"] = False
        return dc.replace(self, **changes) if changes else self


__all__ = ["NO_MINIFY_KINDS", "BuildParameters", "Toggle"]
