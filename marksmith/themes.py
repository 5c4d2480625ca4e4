"""
Highlighting theme catalog.

A catalog maps theme names to Pygments ``Style`` classes. The default catalog
holds the themes bundled under ``theme_data/`` plus every style Pygments ships
with; it is built once per process and never mutated. Catalogs extended with a
caller's theme directory are built fresh for each call.

Theme files understood in a directory:
    *.yaml / *.yml  marksmith theme format (background, highlight, styles)
    *.tmTheme       TextMate colour schemes (XML plist)

The theme name is always the file stem.
"""

import logging
import plistlib
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Type
from xml.parsers.expat import ExpatError

import yaml
from pygments.style import Style, ansicolors
from pygments.styles import get_all_styles, get_style_by_name
from pygments.token import (
    Comment, Error, Generic, Keyword, Name, Number, Operator, Punctuation, String, Token, _TokenType,
)

from marksmith.errors import ThemeNotFoundError, ThemeSetLoadError

logger = logging.getLogger("marksmith.themes")

DEFAULT_THEME = "base16-ocean.dark"
BUNDLED_THEMES_DIR = Path(__file__).parent / "theme_data"
THEME_SUFFIXES = {".yaml", ".yml", ".tmtheme"}

_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
_TM_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3,4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
_TOKEN_PATH = re.compile(r"^[A-Z][A-Za-z]*(?:\.[A-Z][A-Za-z]*)*$")
_STYLE_WORDS = {
    "bold", "nobold", "italic", "noitalic", "underline", "nounderline",
    "noinherit", "roman", "sans", "mono",
}

# TextMate scope prefix -> Pygments token; more specific prefixes come first
_SCOPE_TOKENS = [
    ("comment", Comment),
    ("string.regexp", String.Regex),
    ("string", String),
    ("constant.numeric", Number),
    ("constant.character.escape", String.Escape),
    ("constant.language", Keyword.Constant),
    ("constant", Name.Constant),
    ("keyword.operator", Operator),
    ("keyword", Keyword),
    ("storage.type", Keyword.Type),
    ("storage", Keyword),
    ("entity.name.function", Name.Function),
    ("entity.name.class", Name.Class),
    ("entity.name.type", Name.Class),
    ("entity.name.tag", Name.Tag),
    ("entity.other.attribute-name", Name.Attribute),
    ("entity.other.inherited-class", Name.Class),
    ("entity", Name.Entity),
    ("support.function", Name.Builtin),
    ("support", Name.Builtin),
    ("variable.parameter", Name.Variable),
    ("variable.language", Name.Builtin.Pseudo),
    ("variable", Name.Variable),
    ("punctuation", Punctuation),
    ("markup.heading", Generic.Heading),
    ("markup.inserted", Generic.Inserted),
    ("markup.deleted", Generic.Deleted),
    ("markup.bold", Generic.Strong),
    ("markup.italic", Generic.Emph),
    ("invalid", Error),
]


@dataclass(frozen=True)
class Theme:
    """A named highlighting theme backed by a Pygments style class."""
    name: str
    style: Type[Style]

    @property
    def background(self) -> str:
        return self.style.background_color


class ThemeCatalog:
    """Immutable name -> Theme mapping."""

    def __init__(self, themes: Mapping[str, Theme]):
        self._themes = MappingProxyType(dict(themes))

    def __contains__(self, name: object) -> bool:
        return name in self._themes

    def __len__(self) -> int:
        return len(self._themes)

    def __iter__(self) -> Iterator[str]:
        return iter(self._themes)

    def get(self, name: str) -> Optional[Theme]:
        return self._themes.get(name)

    def names(self) -> List[str]:
        return sorted(self._themes)

    def lookup(self, name: str) -> Theme:
        theme = self._themes.get(name)
        if theme is None:
            raise ThemeNotFoundError(name)
        return theme

    def merged_with(self, themes: Mapping[str, Theme]) -> "ThemeCatalog":
        """Return a new catalog where ``themes`` override entries of the same name."""
        merged = dict(self._themes)
        merged.update(themes)
        return ThemeCatalog(merged)


# ---------------------------------------------------------------------------
# Style construction
# ---------------------------------------------------------------------------

def _is_color(value: str) -> bool:
    return bool(_COLOR.match(value)) or value in ansicolors


def _check_color(value, field: str) -> str:
    # hex only, unlike style strings which also take ansi names
    if not isinstance(value, str) or not _COLOR.match(value):
        raise ValueError(f"invalid colour {value!r} for `{field}`")
    return value


def _check_style_string(value: str, token_path: str) -> str:
    for word in value.split():
        if word in _STYLE_WORDS:
            continue
        if word.startswith(("bg:", "border:")):
            word = word.split(":", 1)[1]
            if not word:
                continue
        if not _is_color(word):
            raise ValueError(f"invalid style {value!r} for `{token_path}`")
    return value


def _token_from_path(token_path: str) -> _TokenType:
    if token_path == "Token":
        return Token
    if not _TOKEN_PATH.match(token_path):
        raise ValueError(f"unknown token `{token_path}`")
    node = Token
    for part in token_path.split("."):
        node = getattr(node, part)
    return node


def _style_class_name(name: str) -> str:
    return "".join(ch for ch in name.title() if ch.isalnum()) + "Style"


def build_style(
    name: str,
    background: str,
    styles: Mapping[_TokenType, str],
    highlight: Optional[str] = None,
) -> Type[Style]:
    """Create a Pygments Style subclass from already validated parts."""
    attrs = {
        "name": name,
        "background_color": background,
        "styles": dict(styles),
    }
    if highlight:
        attrs["highlight_color"] = highlight
    return type(_style_class_name(name), (Style,), attrs)


# ---------------------------------------------------------------------------
# File loaders
# ---------------------------------------------------------------------------

def _load_yaml_theme(path: Path) -> Theme:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("expected a mapping at the top level")

    background = _check_color(data.get("background", "#ffffff"), "background")
    highlight = data.get("highlight")
    if highlight is not None:
        highlight = _check_color(highlight, "highlight")

    raw_styles = data.get("styles") or {}
    if not isinstance(raw_styles, dict):
        raise ValueError("`styles` must be a mapping")

    styles: Dict[_TokenType, str] = {}
    for token_path, style_string in raw_styles.items():
        token_path = str(token_path)
        if not isinstance(style_string, str):
            raise ValueError(f"style for `{token_path}` must be a string")
        styles[_token_from_path(token_path)] = _check_style_string(style_string, token_path)

    return Theme(path.stem, build_style(path.stem, background, styles, highlight))


def _tm_color(value, field: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str) or not _TM_COLOR.match(value):
        raise ValueError(f"invalid colour {value!r} for `{field}`")
    # drop the alpha channel of #RRGGBBAA and #RGBA
    if len(value) == 9:
        return value[:7]
    if len(value) == 5:
        return value[:4]
    return value


def _scope_token(selector: str) -> Optional[_TokenType]:
    parts = selector.split()
    if not parts:
        return None
    scope = parts[-1]
    for prefix, token in _SCOPE_TOKENS:
        if scope == prefix or scope.startswith(prefix + "."):
            return token
    return None


def _load_tmtheme(path: Path) -> Theme:
    with path.open("rb") as fh:
        data = plistlib.load(fh)
    if not isinstance(data, dict) or not isinstance(data.get("settings"), list):
        raise ValueError("missing `settings` array")

    background = "#ffffff"
    highlight = None
    styles: Dict[_TokenType, str] = {}

    for entry in data["settings"]:
        if not isinstance(entry, dict):
            continue
        values = entry.get("settings") or {}
        if not isinstance(values, dict):
            continue
        scope = entry.get("scope")

        if not scope:
            background = _tm_color(values.get("background"), "background") or background
            highlight = _tm_color(values.get("lineHighlight"), "lineHighlight") or highlight
            foreground = _tm_color(values.get("foreground"), "foreground")
            if foreground:
                styles[Token] = foreground
            continue

        words = [w for w in str(values.get("fontStyle", "")).split() if w in ("bold", "italic", "underline")]
        foreground = _tm_color(values.get("foreground"), "foreground")
        if foreground:
            words.append(foreground)
        bg = _tm_color(values.get("background"), "background")
        if bg:
            words.append(f"bg:{bg}")
        if not words:
            continue

        for selector in str(scope).split(","):
            token = _scope_token(selector)
            if token is not None:
                styles[token] = " ".join(words)

    return Theme(path.stem, build_style(path.stem, background, styles, highlight))


def _load_theme_file(path: Path) -> Theme:
    if path.suffix.lower() == ".tmtheme":
        return _load_tmtheme(path)
    return _load_yaml_theme(path)


def _read_directory(directory: Path) -> Dict[str, Theme]:
    """Load every theme file under ``directory``, recursing into subfolders."""
    themes: Dict[str, Theme] = {}
    try:
        paths = sorted(p for p in directory.rglob("*") if p.is_file() and p.suffix.lower() in THEME_SUFFIXES)
    except OSError as e:
        raise ThemeSetLoadError(str(e)) from e

    for path in paths:
        try:
            theme = _load_theme_file(path)
        except (OSError, ValueError, ExpatError, yaml.YAMLError) as e:
            raise ThemeSetLoadError(f"{path.name}: {e}") from e
        themes[theme.name] = theme
    return themes


# ---------------------------------------------------------------------------
# Catalog operations
# ---------------------------------------------------------------------------

@lru_cache(maxsize=None)
def load_default() -> ThemeCatalog:
    """
    Return the process-wide default catalog.

    Pygments built-in styles come first; bundled themes are layered on top.
    """
    themes = {name: Theme(name, get_style_by_name(name)) for name in get_all_styles()}
    themes.update(_read_directory(BUNDLED_THEMES_DIR))
    logger.debug(f"Default theme catalog built with {len(themes)} themes")
    return ThemeCatalog(themes)


def merge_from_directory(base: ThemeCatalog, directory: Path) -> ThemeCatalog:
    """
    Build a new catalog from ``base`` plus every theme found in ``directory``.

    Raises:
        ThemeSetLoadError: The directory or one of its theme files could not be read.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise ThemeSetLoadError(f"{directory} is not a directory")
    loaded = _read_directory(directory)
    logger.debug(f"Loaded {len(loaded)} themes from '{directory}'")
    return base.merged_with(loaded)


def lookup(catalog: ThemeCatalog, name: str) -> Theme:
    return catalog.lookup(name)
