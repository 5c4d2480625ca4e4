"""
Markdown to HTML rendering with optional syntax highlighting.

This module turns a RenderConfiguration into a markdown-it-py parser
(CommonMark preset plus the enabled extensions) and renders text with it.
A new parser is built for each call; nothing is shared between calls.
"""

import re
from typing import Optional

from markdown_it import MarkdownIt
from markdown_it.common.utils import escapeHtml, unescapeAll
from mdit_py_plugins.anchors import anchors_plugin
from mdit_py_plugins.deflist import deflist_plugin
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.tasklists import tasklists_plugin

from marksmith.highlighter import PygmentsHighlighter
from marksmith.options import RenderConfiguration
from marksmith.plugins import ResolvedPlugins

RAW_HTML_OMITTED = "<!-- raw HTML omitted -->"

# Tags GFM refuses to pass through even in unsafe mode
_TAGFILTER = re.compile(
    r"<(?=/?(?:title|textarea|style|xmp|iframe|noembed|noframes|script|plaintext)\b)",
    re.IGNORECASE,
)
_UNESCAPED_SPACE = re.compile(r"(^|[^\\])(\\\\)*\s")
_SLUG_STRIP = re.compile(r"[^\w\- ]")


def _slugify(title: str) -> str:
    return _SLUG_STRIP.sub("", title.strip().lower()).replace(" ", "-")


def _strip_front_matter(text: str, delimiter: str) -> str:
    """Drop a leading block fenced by ``delimiter`` lines, if there is one."""
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n") != delimiter:
        return text
    for i in range(1, len(lines)):
        if lines[i].rstrip("\r\n") == delimiter:
            return "".join(lines[i + 1:])
    return text


def _superscript(state, silent: bool) -> bool:
    """Inline rule for ``^text^``."""
    start = state.pos
    maximum = state.posMax

    if state.src[start] != "^" or silent:
        return False
    if start + 2 >= maximum:
        return False

    state.pos = start + 1
    found = False
    while state.pos < maximum:
        if state.src[state.pos] == "^":
            found = True
            break
        state.md.inline.skipToken(state)

    if not found or start + 1 == state.pos:
        state.pos = start
        return False

    content = state.src[start + 1:state.pos]
    if _UNESCAPED_SPACE.search(content):
        state.pos = start
        return False

    state.posMax = state.pos
    state.pos = start + 1

    token = state.push("sup_open", "sup", 1)
    token.markup = "^"
    state.md.inline.tokenize(state)
    token = state.push("sup_close", "sup", -1)
    token.markup = "^"

    state.pos = state.posMax + 1
    state.posMax = maximum
    return True


def _mark_task_checkboxes(state) -> None:
    """
    Retype the checkboxes inserted by the tasklists plugin.

    The plugin emits them as ``html_inline`` tokens, which would otherwise go
    through the raw HTML policy meant for source HTML.
    """
    tokens = state.tokens
    for i, token in enumerate(tokens[:-2]):
        if token.type != "list_item_open":
            continue
        if not (token.attrGet("class") or "").startswith("task-list-item"):
            continue
        children = tokens[i + 2].children
        if not children or children[0].type != "html_inline":
            continue
        checkbox = children[0]
        checkbox.type = "task_checkbox"
        checkbox.meta = {"checked": 'checked="checked"' in checkbox.content}


def _task_checkbox(self, tokens, idx, options, env) -> str:
    if tokens[idx].meta.get("checked"):
        return '<input type="checkbox" checked="" disabled="" />'
    return '<input type="checkbox" disabled="" />'


def _code_block_html(
    code: str,
    lang: str,
    config: RenderConfiguration,
    highlighter: Optional[PygmentsHighlighter],
) -> str:
    pre_attrs = ""
    code_attrs = ""
    if highlighter is not None:
        pre_attrs += f' style="{highlighter.pre_style}"'
    if lang:
        if config.render.github_pre_lang:
            pre_attrs += f' lang="{escapeHtml(lang)}"'
        else:
            code_attrs = f' class="language-{escapeHtml(lang)}"'

    if highlighter is not None and code:
        body = highlighter.highlight(code, lang or None)
    else:
        body = escapeHtml(code)
    return f"<pre{pre_attrs}><code{code_attrs}>{body}</code></pre>\n"


def build_parser(config: RenderConfiguration, highlighter: Optional[PygmentsHighlighter] = None) -> MarkdownIt:
    """
    Build a parser honouring every field of ``config``.

    Args:
        config: Validated render configuration.
        highlighter: Adapter used for code blocks, or None for plain output.

    Returns:
        A MarkdownIt instance private to the caller.
    """
    ext = config.extension
    md = MarkdownIt(
        "commonmark",
        {
            "html": True,
            "breaks": config.render.hardbreaks,
            "typographer": config.parse.smart,
            "linkify": ext.autolink,
        },
    )

    if config.parse.smart:
        md.enable(["replacements", "smartquotes"])
    if config.render.unsafe:
        md.validateLink = lambda url: True

    if ext.table:
        md.enable("table")
    if ext.strikethrough:
        md.enable("strikethrough")
        md.add_render_rule("s_open", lambda self, tokens, idx, options, env: "<del>")
        md.add_render_rule("s_close", lambda self, tokens, idx, options, env: "</del>")
    if ext.autolink:
        md.enable("linkify")
    if ext.tasklist:
        md.use(tasklists_plugin)
        md.core.ruler.after("github-tasklists", "task_checkboxes", _mark_task_checkboxes)
        md.add_render_rule("task_checkbox", _task_checkbox)
    if ext.superscript:
        md.inline.ruler.after("emphasis", "superscript", _superscript)
    if ext.footnotes:
        md.use(footnote_plugin)
    if ext.description_lists:
        md.use(deflist_plugin)
    if ext.header_ids is not None:
        prefix = ext.header_ids
        md.use(anchors_plugin, max_level=6, slug_func=lambda title: prefix + _slugify(title))

    def render_raw_html(content: str, block: bool) -> str:
        if config.render.escape:
            return escapeHtml(content)
        if not config.render.unsafe:
            return RAW_HTML_OMITTED + ("\n" if block else "")
        if ext.tagfilter:
            return _TAGFILTER.sub("&lt;", content)
        return content

    def html_block(self, tokens, idx, options, env):
        return render_raw_html(tokens[idx].content, block=True)

    def html_inline(self, tokens, idx, options, env):
        return render_raw_html(tokens[idx].content, block=False)

    def fence(self, tokens, idx, options, env):
        token = tokens[idx]
        info = unescapeAll(token.info).strip() if token.info else ""
        lang = info.split()[0] if info else ""
        if not lang and config.parse.default_info_string:
            lang = config.parse.default_info_string
        return _code_block_html(token.content, lang, config, highlighter)

    def code_block(self, tokens, idx, options, env):
        return _code_block_html(tokens[idx].content, "", config, highlighter)

    md.add_render_rule("html_block", html_block)
    md.add_render_rule("html_inline", html_inline)
    md.add_render_rule("fence", fence)
    md.add_render_rule("code_block", code_block)
    return md


def render_markdown(
    content: str,
    config: Optional[RenderConfiguration] = None,
    plugins: Optional[ResolvedPlugins] = None,
) -> str:
    """
    Convert markdown content to HTML.

    Args:
        content: Markdown text to convert
        config: Render configuration; defaults to every extension off
        plugins: Per-call plugin bundle; None renders code blocks unhighlighted

    Returns:
        HTML string

    Example:
        >>> render_markdown("# Hello")
        '<h1>Hello</h1>\\n'
    """
    if not content:
        return ""

    config = config or RenderConfiguration()
    highlighter = plugins.syntax_highlighter if plugins is not None else None

    if config.extension.front_matter_delimiter:
        content = _strip_front_matter(content, config.extension.front_matter_delimiter)

    md = build_parser(config, highlighter)
    return md.render(content)
