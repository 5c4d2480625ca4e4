"""
Plugin resolution: untyped ``plugins`` mapping -> SyntaxHighlightConfig.

Resolution path:
    no plugins mapping                 -> Disabled
    mapping without syntax_highlighter -> Named(DEFAULT_THEME)
    syntax_highlighter given           -> validate path, then
        path present -> load directory, require theme -> Custom
        theme "" or "none"             -> Disabled
        otherwise, require theme        -> Named

Validation is fail-fast; the first failing check decides the error.
"""

import os
from pathlib import Path
from typing import Annotated, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from marksmith.errors import (
    InvalidPluginValueError,
    PathNotADirectoryError,
    PathNotFoundError,
    ThemeMissingWithPathError,
)
from marksmith.highlighter import PygmentsHighlighter
from marksmith.themes import DEFAULT_THEME, ThemeCatalog, load_default, merge_from_directory

SYNTAX_HIGHLIGHTER_PLUGIN = "syntax_highlighter"
DISABLED_THEME = "none"


class Disabled(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["disabled"] = "disabled"


class Named(BaseModel):
    """Theme picked from the built-in catalog."""
    model_config = ConfigDict(frozen=True)
    kind: Literal["named"] = "named"
    theme: str


class Custom(BaseModel):
    """Theme picked from the built-in catalog merged with a theme directory."""
    model_config = ConfigDict(frozen=True)
    kind: Literal["custom"] = "custom"
    theme: str
    directory: Path


SyntaxHighlightConfig = Annotated[Union[Disabled, Named, Custom], Field(discriminator="kind")]


class ResolvedPlugins:
    """
    Plugin bundle handed to the renderer for a single call.

    ``syntax_highlighter`` is None when highlighting is disabled.
    """

    def __init__(self, syntax_highlight: SyntaxHighlightConfig, syntax_highlighter: Optional[PygmentsHighlighter]):
        self.syntax_highlight = syntax_highlight
        self.syntax_highlighter = syntax_highlighter


def _fetch_theme(options: Mapping) -> str:
    theme = options.get("theme")
    if theme is None:
        return ""
    if not isinstance(theme, str):
        raise InvalidPluginValueError("theme", "string")
    return theme


def _fetch_path(options: Mapping) -> Optional[Path]:
    path = options.get("path")
    if path is None or path == "":
        return None
    if not isinstance(path, (str, os.PathLike)):
        raise InvalidPluginValueError("path", "string")
    return Path(path)


def resolve_plugin_bundle(raw: Optional[Mapping]) -> Tuple[SyntaxHighlightConfig, ThemeCatalog]:
    """
    Resolve ``raw`` and return the config together with the catalog it was
    checked against, so a custom directory is only read once per call.
    """
    default_catalog = load_default()
    if raw is None:
        return Disabled(), default_catalog
    if not isinstance(raw, Mapping):
        raise InvalidPluginValueError("plugins", "mapping")
    if SYNTAX_HIGHLIGHTER_PLUGIN not in raw:
        return Named(theme=DEFAULT_THEME), default_catalog

    options = raw[SYNTAX_HIGHLIGHTER_PLUGIN]
    if options is None:
        options = {}
    if not isinstance(options, Mapping):
        raise InvalidPluginValueError(SYNTAX_HIGHLIGHTER_PLUGIN, "mapping")

    theme = _fetch_theme(options)
    path = _fetch_path(options)

    if path is not None and not path.exists():
        raise PathNotFoundError()
    if not theme and path is not None:
        raise ThemeMissingWithPathError()
    if path is not None and not path.is_dir():
        raise PathNotADirectoryError()

    if path is not None:
        catalog = merge_from_directory(default_catalog, path)
        catalog.lookup(theme)
        return Custom(theme=theme, directory=path), catalog

    if not theme or theme == DISABLED_THEME:
        return Disabled(), default_catalog

    default_catalog.lookup(theme)
    return Named(theme=theme), default_catalog


def resolve_plugins(raw: Optional[Mapping]) -> SyntaxHighlightConfig:
    """
    Decide whether highlighting is on and which theme it uses.

    Raises:
        PluginConfigError: One of the path/theme checks failed; see
            ``marksmith.errors`` for the individual kinds.
    """
    config, _ = resolve_plugin_bundle(raw)
    return config


def build_plugins(config: SyntaxHighlightConfig, catalog: ThemeCatalog) -> ResolvedPlugins:
    """Construct the highlighter adapter for an already resolved config."""
    if isinstance(config, Disabled):
        return ResolvedPlugins(config, None)
    return ResolvedPlugins(config, PygmentsHighlighter(catalog.lookup(config.theme)))
