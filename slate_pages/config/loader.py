"""Load build parameters from an optional ``slate.yaml`` file."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from slate_pages.errors import ConfigError

from .models import BuildParameters, Toggle


def load_build_parameters(path: Path | None) -> BuildParameters:
    """Load build parameters from the YAML configuration at ``path``.

    Parameters
    ----------
    path : Path or None
        Location of the configuration file. ``None`` or a missing file yields
        the default parameters, so a source tree without configuration builds
        with full minification and front-matter-driven flags.

    Returns
    -------
    BuildParameters
        Parameters populated from the ``minify``, ``search``, ``rtl``,
        ``logo`` and ``style_file`` keys. A relative ``style_file`` is
        resolved against the configuration file's directory.

    Raises
    ------
    ConfigError
        If the YAML cannot be parsed, the top-level structure is not a
        mapping, or a value has the wrong type.

    Examples
    --------
    >>> from pathlib import Path
    >>> params = load_build_parameters(Path("docs/slate.yaml"))  # doctest: +SKIP
    >>> params.search  # doctest: +SKIP
    <Toggle.ENABLED: 'enabled'>
    """
    if path is None or not path.exists():
        return BuildParameters()

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        with path.open("r", encoding="utf-8") as handle:
            loaded = loader.load(handle) or {}
    except YAMLError as exc:
        msg = f"Cannot parse configuration file '{path}': {exc}"
        raise ConfigError(msg) from exc
    if not isinstance(loaded, dict):
        msg = f"Top-level YAML structure in '{path}' must be a mapping."
        raise ConfigError(msg)
    raw: dict[str, typ.Any] = dict(loaded)

    minify = raw.get("minify", {}) or {}
    if not isinstance(minify, dict):
        msg = f"'minify' in '{path}' must be a mapping of html/css/js flags."
        raise ConfigError(msg)

    style_file = _optional_str(raw.get("style_file"), key="style_file", path=path)
    style_path: Path | None = None
    if style_file:
        style_path = Path(style_file)
        if not style_path.is_absolute():
            style_path = path.parent / style_path

    return BuildParameters(
        minify_html=_flag(minify, "html", path=path),
        minify_css=_flag(minify, "css", path=path),
        minify_js=_flag(minify, "js", path=path),
        search=_toggle(raw.get("search"), key="search", path=path),
        rtl=_toggle(raw.get("rtl"), key="rtl", path=path),
        logo=_optional_str(raw.get("logo"), key="logo", path=path),
        style_file=style_path,
    )


def _flag(section: typ.Mapping[str, typ.Any], key: str, *, path: Path) -> bool:
    """Return a boolean minify flag, defaulting to ``True`` when absent."""
    value = section.get(key, True)
    if not isinstance(value, bool):
        msg = f"'minify.{key}' in '{path}' must be true or false."
        raise ConfigError(msg)
    return value


def _toggle(value: object, *, key: str, path: Path) -> Toggle:
    """Return a tri-state toggle from ``true``/``false``/``null``."""
    if value is not None and not isinstance(value, bool):
        msg = f"'{key}' in '{path}' must be true, false or null."
        raise ConfigError(msg)
    return Toggle.from_value(value)


def _optional_str(value: object, *, key: str, path: Path) -> str | None:
    """Return a stripped string value or ``None`` when empty."""
    if value is None:
        return None
    if not isinstance(value, str):
        msg = f"'{key}' in '{path}' must be a string."
        raise ConfigError(msg)
    return value.strip() or None


__all__ = ["load_build_parameters"]
