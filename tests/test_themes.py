import plistlib

import pytest
from pygments.token import Comment, Keyword, String, Token

from marksmith.errors import ThemeNotFoundError, ThemeSetLoadError
from marksmith.themes import DEFAULT_THEME, ThemeCatalog, load_default, lookup, merge_from_directory

YAML_THEME = """\
background: "#101010"
highlight: "#202020"
styles:
  Token: "#eeeeee"
  Comment: "italic #777777"
  Keyword: "bold #ff0000"
"""


def _tmtheme(background="#FAFAFA", keyword="#AA0000FF"):
    return plistlib.dumps({
        "name": "Sample",
        "settings": [
            {"settings": {"background": background, "foreground": "#333333"}},
            {"scope": "comment", "settings": {"foreground": "#999999", "fontStyle": "italic"}},
            {"scope": "keyword, storage", "settings": {"foreground": keyword, "fontStyle": "bold"}},
            {"scope": "source.python string.quoted", "settings": {"foreground": "#00AA00"}},
            {"scope": "meta.unknown", "settings": {"foreground": "#123456"}},
        ],
    })


@pytest.fixture
def theme_dir(tmp_path):
    (tmp_path / "mytheme.yaml").write_text(YAML_THEME)
    return tmp_path


class TestDefaultCatalog:

    def test_contains_default_theme(self):
        assert DEFAULT_THEME in load_default()

    def test_contains_bundled_and_pygments_themes(self):
        catalog = load_default()
        for name in ("base16-ocean.light", "base16-eighties.dark", "base16-mocha.dark",
                     "InspiredGitHub", "Solarized (dark)", "Solarized (light)", "monokai"):
            assert name in catalog

    def test_is_built_once(self):
        assert load_default() is load_default()

    def test_default_background(self):
        assert lookup(load_default(), DEFAULT_THEME).background == "#2b303b"

    def test_names_are_sorted(self):
        names = load_default().names()
        assert names == sorted(names)


class TestMergeFromDirectory:

    def test_yaml_theme_loaded(self, theme_dir):
        catalog = merge_from_directory(load_default(), theme_dir)
        theme = catalog.lookup("mytheme")
        assert theme.background == "#101010"
        assert theme.style.styles[Keyword] == "bold #ff0000"

    def test_base_catalog_untouched(self, theme_dir):
        base = load_default()
        merge_from_directory(base, theme_dir)
        assert "mytheme" not in base
        assert "mytheme" not in load_default()

    def test_keeps_default_themes(self, theme_dir):
        catalog = merge_from_directory(load_default(), theme_dir)
        assert DEFAULT_THEME in catalog

    def test_directory_overrides_same_name(self, tmp_path):
        (tmp_path / "monokai.yaml").write_text(YAML_THEME)
        catalog = merge_from_directory(load_default(), tmp_path)
        assert catalog.lookup("monokai").background == "#101010"

    def test_recurses_into_subdirectories(self, tmp_path):
        nested = tmp_path / "nested" / "deeper"
        nested.mkdir(parents=True)
        (nested / "deep.yml").write_text(YAML_THEME)
        assert "deep" in merge_from_directory(load_default(), tmp_path)

    def test_ignores_other_files(self, theme_dir):
        (theme_dir / "README.md").write_text("# not a theme")
        catalog = merge_from_directory(load_default(), theme_dir)
        assert "README" not in catalog

    def test_empty_directory(self, tmp_path):
        catalog = merge_from_directory(load_default(), tmp_path)
        assert len(catalog) == len(load_default())

    def test_tmtheme_loaded(self, tmp_path):
        (tmp_path / "Sample.tmTheme").write_bytes(_tmtheme())
        theme = merge_from_directory(load_default(), tmp_path).lookup("Sample")
        styles = theme.style.styles
        assert theme.background == "#FAFAFA"
        assert styles[Token] == "#333333"
        assert styles[Comment] == "italic #999999"
        # alpha channel dropped
        assert styles[Keyword] == "bold #AA0000"
        assert styles[String] == "#00AA00"

    def test_tmtheme_short_colours_with_alpha(self, tmp_path):
        (tmp_path / "Short.tmTheme").write_bytes(_tmtheme(background="#0A0F", keyword="#F00C"))
        theme = merge_from_directory(load_default(), tmp_path).lookup("Short")
        assert theme.background == "#0A0"
        assert theme.style.styles[Keyword] == "bold #F00"

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ThemeSetLoadError):
            merge_from_directory(load_default(), tmp_path / "missing")


class TestLoadFailures:

    def test_malformed_yaml(self, tmp_path):
        (tmp_path / "bad.yaml").write_text("styles: [unclosed\n")
        with pytest.raises(ThemeSetLoadError) as exc:
            merge_from_directory(load_default(), tmp_path)
        assert str(exc.value).startswith("failed to load theme set from path: bad.yaml: ")

    def test_yaml_not_a_mapping(self, tmp_path):
        (tmp_path / "list.yaml").write_text("- one\n- two\n")
        with pytest.raises(ThemeSetLoadError):
            merge_from_directory(load_default(), tmp_path)

    def test_invalid_background(self, tmp_path):
        (tmp_path / "bg.yaml").write_text('background: "blue"\n')
        with pytest.raises(ThemeSetLoadError) as exc:
            merge_from_directory(load_default(), tmp_path)
        assert "background" in exc.value.detail

    @pytest.mark.parametrize("field", ["background", "highlight"])
    def test_ansi_name_rejected_outside_styles(self, tmp_path, field):
        (tmp_path / "ansi.yaml").write_text(f'{field}: "ansired"\n')
        with pytest.raises(ThemeSetLoadError) as exc:
            merge_from_directory(load_default(), tmp_path)
        assert field in exc.value.detail

    def test_ansi_name_allowed_in_styles(self, tmp_path):
        (tmp_path / "ansi.yaml").write_text('styles:\n  Keyword: "bold ansired"\n')
        theme = merge_from_directory(load_default(), tmp_path).lookup("ansi")
        assert theme.style.styles[Keyword] == "bold ansired"

    def test_invalid_style_string(self, tmp_path):
        (tmp_path / "style.yaml").write_text('styles:\n  Keyword: "shiny #ff0000"\n')
        with pytest.raises(ThemeSetLoadError):
            merge_from_directory(load_default(), tmp_path)

    def test_invalid_token_path(self, tmp_path):
        (tmp_path / "token.yaml").write_text('styles:\n  keyword: "#ff0000"\n')
        with pytest.raises(ThemeSetLoadError) as exc:
            merge_from_directory(load_default(), tmp_path)
        assert "keyword" in exc.value.detail

    def test_malformed_tmtheme(self, tmp_path):
        (tmp_path / "broken.tmTheme").write_text("<?xml version='1.0'?><plist><dict>")
        with pytest.raises(ThemeSetLoadError):
            merge_from_directory(load_default(), tmp_path)

    def test_tmtheme_bad_colour(self, tmp_path):
        (tmp_path / "colour.tmTheme").write_bytes(_tmtheme(background="not-a-colour"))
        with pytest.raises(ThemeSetLoadError):
            merge_from_directory(load_default(), tmp_path)


class TestLookup:

    def test_missing_theme(self):
        with pytest.raises(ThemeNotFoundError) as exc:
            lookup(load_default(), "not-a-real-theme")
        assert str(exc.value) == "theme `not-a-real-theme` does not exist"

    def test_empty_catalog(self):
        with pytest.raises(ThemeNotFoundError):
            ThemeCatalog({}).lookup(DEFAULT_THEME)
