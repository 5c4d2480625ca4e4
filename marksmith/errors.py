"""
Error taxonomy for option and plugin resolution.

Every error is a ``ValueError`` so callers that only care about "bad input"
can catch that; callers that need the precise kind can catch the subclasses.
Messages of the plugin errors are part of the public contract.
"""

from typing import Any


class MarksmithError(ValueError):
    """Base class for every validation failure raised before rendering."""


# ---------------------------------------------------------------------------
# Option errors
# ---------------------------------------------------------------------------

class ConfigurationError(MarksmithError):
    """The ``options`` mapping could not be turned into a RenderConfiguration."""


class UnknownOptionError(ConfigurationError):
    def __init__(self, key: Any):
        self.key = key
        super().__init__(f"unknown option `{key}`")


class InvalidOptionValueError(ConfigurationError):
    def __init__(self, key: str, expected_kind: str):
        self.key = key
        self.expected_kind = expected_kind
        super().__init__(f"option `{key}` must be a {expected_kind}")


# ---------------------------------------------------------------------------
# Plugin errors
# ---------------------------------------------------------------------------

class PluginConfigError(MarksmithError):
    """The ``plugins`` mapping could not be resolved to a highlight config."""


class PathNotFoundError(PluginConfigError):
    def __init__(self):
        super().__init__("path does not exist")


class ThemeMissingWithPathError(PluginConfigError):
    def __init__(self):
        super().__init__("`path` also needs `theme` passed into the `syntax_highlighter`")


class PathNotADirectoryError(PluginConfigError):
    def __init__(self):
        super().__init__("`path` needs to be a directory")


class ThemeSetLoadError(PluginConfigError):
    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"failed to load theme set from path: {detail}")


class ThemeNotFoundError(PluginConfigError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"theme `{name}` does not exist")


class InvalidPluginValueError(PluginConfigError):
    def __init__(self, key: str, expected_kind: str):
        self.key = key
        self.expected_kind = expected_kind
        super().__init__(f"`{key}` must be a {expected_kind}")
