"""
Conversion entry point.

    convert(text)                                  -> HTML, no plugin machinery
    convert(text, options={...})                   -> HTML with validated options
    convert(text, plugins={"syntax_highlighter": {"theme": "...", "path": "..."}})

All validation happens before rendering starts, so a call either returns
complete HTML or raises; it never produces partial output.
"""

from typing import Any, Mapping, Optional

from marksmith.markdown_renderer import render_markdown
from marksmith.options import resolve_options
from marksmith.plugins import build_plugins, resolve_plugin_bundle


def convert(
    text: str,
    options: Optional[Mapping[str, Any]] = None,
    plugins: Optional[Mapping[str, Any]] = None,
) -> str:
    """
    Convert CommonMark ``text`` to HTML.

    Args:
        text: Markdown source
        options: Renderer options grouped under ``parse``, ``render`` and
                 ``extension``; None uses the defaults
        plugins: Plugin configuration; None skips plugins entirely, while an
                 empty mapping enables highlighting with the default theme

    Returns:
        The rendered HTML

    Raises:
        ConfigurationError: ``options`` is invalid
        PluginConfigError: ``plugins`` is invalid
    """
    if not isinstance(text, str):
        raise TypeError(f"text must be a string, not {type(text).__name__}")

    config = resolve_options(options)

    if plugins is None:
        return render_markdown(text, config)

    syntax_highlight, catalog = resolve_plugin_bundle(plugins)
    return render_markdown(text, config, build_plugins(syntax_highlight, catalog))
