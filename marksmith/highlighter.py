"""Pygments adapter used by the renderer to colour code blocks."""

import logging
from typing import Optional

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.util import ClassNotFound

from marksmith.themes import Theme

logger = logging.getLogger("marksmith.highlighter")


class PygmentsHighlighter:
    """
    Highlighter bound to a single theme for the duration of one conversion.

    Output uses inline styles so the HTML needs no accompanying stylesheet.
    """

    def __init__(self, theme: Theme):
        self.theme = theme
        self._formatter = HtmlFormatter(style=theme.style, noclasses=True, nowrap=True)
        logger.debug(f"Highlighter bound to theme '{theme.name}'")

    @property
    def pre_style(self) -> str:
        return f"background-color:{self.theme.background};"

    def highlight(self, code: str, lang: Optional[str]) -> str:
        """Return ``code`` as HTML spans; unknown languages are treated as plain text."""
        lexer = None
        if lang:
            try:
                lexer = get_lexer_by_name(lang, stripnl=False)
            except ClassNotFound:
                lexer = None
        if lexer is None:
            lexer = TextLexer(stripnl=False)
        return highlight(code, lexer, self._formatter)
