"""Render normalized HTML to Markdown with markdownify.

Tables never reach markdownify as ``<table>`` elements: the table stage
swaps every data table for a placeholder ``<div data-markdown-table>`` whose
text is already a GFM pipe table.  :class:`ClipboardMarkdownConverter`
emits that text verbatim so markdownify's own escaping cannot touch it.
"""

from __future__ import annotations

import html as html_lib
import logging

from bs4 import BeautifulSoup, NavigableString, Tag
from markdownify import ATX, SPACES, MarkdownConverter

from clipmd.errors import RenderFailure

logger = logging.getLogger(__name__)

PLACEHOLDER_ATTR = "data-markdown-table"


def make_placeholder(soup: BeautifulSoup, markdown: str) -> Tag:
    """Return a placeholder element carrying pre-rendered *markdown*."""
    div = soup.new_tag("div", attrs={PLACEHOLDER_ATTR: "true"})
    div.string = markdown
    return div


def placeholder_html(markdown: str) -> str:
    """String form of :func:`make_placeholder` for the lightweight path."""
    return '<div %s="true">%s</div>' % (PLACEHOLDER_ATTR, html_lib.escape(markdown, quote=False))


class ClipboardMarkdownConverter(MarkdownConverter):
    """markdownify converter with the placeholder passthrough and ``<br>`` rule."""

    def __init__(self, **options):
        options.setdefault("heading_style", ATX)
        options.setdefault("bullets", "-")
        options.setdefault("escape_misc", False)
        options.setdefault("newline_style", SPACES)
        super().__init__(**options)

    def convert_div(self, el, text, parent_tags):
        if el.has_attr(PLACEHOLDER_ATTR):
            table_md = el.get_text()
            if "_inline" in parent_tags:
                return " " + " ".join(table_md.split()) + " "
            return "\n\n%s\n\n" % table_md.strip("\n")
        return super().convert_div(el, text, parent_tags)

    def convert_br(self, el, text, parent_tags):
        if "_inline" in parent_tags:
            return " "
        return "  \n"


def render_markdown(doc: BeautifulSoup | str, **options) -> str:
    """Serialize *doc* (a parsed tree or an HTML string) to Markdown.

    Raises:
        RenderFailure: when markdownify raises.
    """
    if isinstance(doc, str):
        doc = BeautifulSoup(doc, "lxml")
    try:
        return ClipboardMarkdownConverter(**options).convert_soup(doc)
    except Exception as exc:
        logger.debug("markdownify failed", exc_info=True)
        raise RenderFailure(f"Markdown rendering failed: {exc}") from exc


class InlineRenderer:
    """Render table cells to one line of Markdown with a single converter.

    Cells come in as the ``<td>``/``<th>`` tag itself (tree mode) or as
    inner HTML (string mode).  Their children are converted as if they were
    a document of their own, so images keep their ``![alt](src)`` form.
    Strings without markup skip parsing altogether.
    """

    def __init__(self, **options):
        self.converter = ClipboardMarkdownConverter(**options)

    def __call__(self, content: Tag | str) -> str:
        if isinstance(content, str):
            if "<" not in content and "&" not in content:
                md = self.converter.process_text(NavigableString(content), parent_tags=set())
                return " ".join(md.split())
            content = BeautifulSoup(content, "lxml")
        try:
            md = "".join(
                self.converter.process_element(child, parent_tags=set())
                for child in content.children
            )
        except Exception as exc:
            logger.debug("markdownify failed on a table cell", exc_info=True)
            raise RenderFailure(f"Markdown rendering failed: {exc}") from exc
        return " ".join(md.split())


def render_inline(fragment: str) -> str:
    """Render an HTML fragment (a table cell's content) to one line of Markdown."""
    if not fragment or not fragment.strip():
        return ""
    return InlineRenderer()(fragment)
