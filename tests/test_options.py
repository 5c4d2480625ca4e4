"""
Tests for option mapping.

Run with: uv run pytest tests/test_options.py -v
"""

import pytest
from pydantic import ValidationError

from marksmith.errors import ConfigurationError, InvalidOptionValueError, UnknownOptionError
from marksmith.options import RenderConfiguration, resolve_options


class TestDefaults:
    """Absent options give the engine defaults."""

    def test_none_returns_defaults(self):
        config = resolve_options(None)
        assert config == RenderConfiguration()

    def test_every_toggle_is_off_by_default(self):
        config = resolve_options()
        assert config.parse.smart is False
        assert config.render.hardbreaks is False
        assert config.render.unsafe is False
        assert config.extension.table is False
        assert config.extension.header_ids is None

    def test_empty_mapping_equals_defaults(self):
        assert resolve_options({}) == RenderConfiguration()

    def test_configuration_is_frozen(self):
        config = resolve_options()
        with pytest.raises(ValidationError):
            config.parse = None


class TestRecognizedOptions:
    """Known keys land in the typed configuration."""

    def test_extension_toggles(self):
        config = resolve_options({"extension": {"table": True, "strikethrough": True}})
        assert config.extension.table is True
        assert config.extension.strikethrough is True
        assert config.extension.autolink is False

    def test_all_groups(self):
        config = resolve_options({
            "parse": {"smart": True, "default_info_string": "ruby"},
            "render": {"hardbreaks": True, "width": 80, "github_pre_lang": True},
            "extension": {"header_ids": "user-content-", "front_matter_delimiter": "---"},
        })
        assert config.parse.default_info_string == "ruby"
        assert config.render.width == 80
        assert config.extension.header_ids == "user-content-"

    def test_nullable_string_accepts_none(self):
        config = resolve_options({"extension": {"header_ids": None}})
        assert config.extension.header_ids is None


class TestUnknownOptions:
    """Keys outside the closed set are rejected."""

    def test_unknown_top_level_key(self):
        with pytest.raises(UnknownOptionError) as exc:
            resolve_options({"bogus": True})
        assert exc.value.key == "bogus"
        assert str(exc.value) == "unknown option `bogus`"

    def test_unknown_nested_key_is_dotted(self):
        with pytest.raises(UnknownOptionError) as exc:
            resolve_options({"extension": {"tabel": True}})
        assert exc.value.key == "extension.tabel"

    def test_non_string_key(self):
        with pytest.raises(UnknownOptionError):
            resolve_options({1: True})

    def test_non_string_nested_key(self):
        with pytest.raises(UnknownOptionError):
            resolve_options({"render": {("hard", "breaks"): True}})

    def test_unknown_wins_over_invalid_value(self):
        with pytest.raises(UnknownOptionError) as exc:
            resolve_options({"render": {"hardbreaks": "yes"}, "bogus": 1})
        assert exc.value.key == "bogus"

    def test_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            resolve_options({"bogus": True})


class TestInvalidValues:
    """Known keys with badly shaped values are rejected."""

    @pytest.mark.parametrize("value", ["yes", 1, None])
    def test_boolean_is_strict(self, value):
        with pytest.raises(InvalidOptionValueError) as exc:
            resolve_options({"render": {"hardbreaks": value}})
        assert exc.value.key == "render.hardbreaks"
        assert exc.value.expected_kind == "boolean"

    def test_integer(self):
        with pytest.raises(InvalidOptionValueError) as exc:
            resolve_options({"render": {"width": "80"}})
        assert exc.value.expected_kind == "integer"

    def test_negative_width(self):
        with pytest.raises(InvalidOptionValueError) as exc:
            resolve_options({"render": {"width": -1}})
        assert exc.value.expected_kind == "non-negative integer"

    def test_string(self):
        with pytest.raises(InvalidOptionValueError) as exc:
            resolve_options({"extension": {"header_ids": 5}})
        assert exc.value.key == "extension.header_ids"
        assert exc.value.expected_kind == "string"

    def test_group_must_be_mapping(self):
        with pytest.raises(InvalidOptionValueError) as exc:
            resolve_options({"extension": True})
        assert exc.value.key == "extension"
        assert exc.value.expected_kind == "mapping"

    def test_options_must_be_mapping(self):
        with pytest.raises(InvalidOptionValueError) as exc:
            resolve_options(["extension"])
        assert exc.value.key == "options"

    def test_message(self):
        with pytest.raises(InvalidOptionValueError) as exc:
            resolve_options({"parse": {"smart": "on"}})
        assert str(exc.value) == "option `parse.smart` must be a boolean"
