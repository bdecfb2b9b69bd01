"""String-based normalization and table rendering for large inputs.

Performs the same steps as :mod:`clipmd.stages.normalize` without building
a document tree: regular expressions for the structural steps and a
streaming tag rewriter for inline styles.  Used when the input is above the
size gate or when tree normalization raised.

Per-table steps hide nested tables behind stash tokens so that every
regular expression only ever sees one flat table.  The only parse is of a
single data table whose cells carry markup, done once per table so the
cells can be handed to markdownify.
"""

from __future__ import annotations

import html as html_lib
import logging
import re
from collections.abc import Callable

from bs4 import BeautifulSoup, Tag

from clipmd import settings
from clipmd.errors import TableParseFailure
from clipmd.stages.content_type import is_spreadsheet_html
from clipmd.stages.markdown import placeholder_html
from clipmd.stages.styles import (
    BLOCK_TAGS,
    KEEP_ATTRIBUTES,
    TAG_ATTRS,
    class_text,
    declares_normal_style,
    declares_normal_weight,
    infer_run_style,
    is_icon_class,
    parse_attrs,
)
from clipmd.stages.tables import (
    SpanCell,
    TableKind,
    TableStats,
    build_cell_grid,
    classify_shape,
    expand_spans,
    has_spans,
    rows_from_html,
    shape_from_html,
    span_value,
    tree_rows,
)

logger = logging.getLogger(__name__)

_I = re.IGNORECASE
_IS = re.IGNORECASE | re.DOTALL
_A = TAG_ATTRS
_A_LAZY = TAG_ATTRS + "?"

# Noise
_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_DECLARATION_RE = re.compile(r"<![^>]*>")
_NOISE_BLOCK_RE = re.compile(r"<(script|style|title|head|colgroup)\b%s>.*?</\1\s*>" % _A, _IS)
_NOISE_VOID_RE = re.compile(r"</?(?:meta|link|col|colgroup|html|body)\b%s>" % _A, _I)
_EMPTY_ICON_RE = re.compile(r"<(i|span)\b(%s)>\s*</\1\s*>" % _A, _I)

_TABLE_TAG = r"</?(?:table|thead|tbody|tfoot|tr|td|th|caption)\b%s>" % _A
_TABLE_WS_RE = re.compile(r"(%s)\s+(?=%s)" % (_TABLE_TAG, _TABLE_TAG), _I)

# Tables
_INNER_TABLE_RE = re.compile(r"<table\b%s>(?:(?!<table\b).)*?</table\s*>" % _A, _IS)
_STASH_RE = re.compile("\ue002(\\d+)\ue003")
_ROW_PARTS_RE = re.compile(r"(<tr\b%s>)(.*?)(</tr\s*>)" % _A, _IS)
_CELL_PARTS_RE = re.compile(r"<(td|th)\b(%s)>(.*?)</\1\s*>" % _A, _IS)
_SPAN_ATTR_RE = re.compile(r"""\s(?:colspan|rowspan)\s*=\s*(?:"[^"]*"|'[^']*'|[^\s>]+)""", _I)
_FIRST_ROW_RE = re.compile(
    r"(<table\b%s>\s*(?:<caption\b.*?</caption\s*>\s*)?)"
    r"(<tbody\b%s>\s*)?<tr\b%s>(.*?)</tr\s*>" % (_A, _A, _A),
    _IS,
)

# Inline styles
_TAG_RE = re.compile(r"<(/?)([a-zA-Z][a-zA-Z0-9]*)\b(%s)>" % _A)
_BLANK_EMPHASIS_RE = re.compile(r"<(strong|em|del)>((?:\s|<br\s*/?>)*)</\1>", _I)

# Attributes
_KEEP_TAG_RE = re.compile(r"<(%s)\b(%s)\s*(/?)>" % ("|".join(KEEP_ATTRIBUTES), _A_LAZY), _I)
_ANY_ATTRS_RE = re.compile(r"<([a-zA-Z][a-zA-Z0-9]*)\s%s(/?)>" % _A_LAZY)
_MARKED_TAG_RE = re.compile("<(%s)(/?)>\ue000(\\d+)\ue001" % "|".join(KEEP_ATTRIBUTES), _I)

# Wrappers
_LEAF_DIV_RE = re.compile(r"<div\b%s>((?:(?!<div\b|</div\s*>).)*)</div\s*>" % _A, _IS)
_ANY_DIV_RE = re.compile(r"</?div\b%s>" % _A, _I)
_INLINE_WRAPPER_RE = re.compile(r"</?(?:span|font)\b%s>" % _A, _I)
_BLOCK_OPEN_RE = re.compile(r"<(?:%s)\b" % "|".join(sorted(BLOCK_TAGS)), _I)
_ANY_TAG_RE = re.compile(r"<[^>]+>")

# Cells
_CELL_BREAK_RE = re.compile(r"</?p\b%s>|<br\b%s>" % (_A, _A), _I)
_CELL_WRAPPER_RE = re.compile(r"</?(?:span|font|div)\b%s>" % _A, _I)

# Layout unwrap
_LAYOUT_DROP_RE = re.compile(r"</?(?:table|thead|tbody|tfoot|caption)\b%s>|<(?:tr|td|th)\b%s>" % (_A, _A), _I)
_LAYOUT_BREAK_RE = re.compile(r"</(?:td|th|tr)\s*>", _I)


# ---------------------------------------------------------------------------
# Table stash
# ---------------------------------------------------------------------------

def _token(index: int) -> str:
    return "\ue002%d\ue003" % index


def map_tables(html: str, fn: Callable[[str], str]) -> str:
    """Apply *fn* to every table, innermost first.

    *fn* receives a table whose nested tables are replaced by stash tokens.
    """
    stash: list[str] = []

    def _stash(m: re.Match) -> str:
        stash.append(fn(m.group(0)))
        return _token(len(stash) - 1)

    for _ in range(settings.MAX_NESTING_DEPTH):
        html, count = _INNER_TABLE_RE.subn(_stash, html)
        if not count:
            break
    # Later entries enclose the tokens of earlier ones.
    for index in range(len(stash) - 1, -1, -1):
        html = html.replace(_token(index), stash[index])
    return html


def _table_kind(table_html: str) -> TableKind:
    # A stash token stands for a nested table.
    return classify_shape(shape_from_html(_STASH_RE.sub("<table></table>", table_html)))


# ---------------------------------------------------------------------------
# Step 0: noise
# ---------------------------------------------------------------------------

def _drop_empty_icon(m: re.Match) -> str:
    classes = class_text(parse_attrs(m.group(2)).get("class"))
    return "" if is_icon_class(classes) else m.group(0)


def preclean(html: str) -> str:
    html = _COMMENT_RE.sub("", html)
    html = _DECLARATION_RE.sub("", html)
    html = _NOISE_BLOCK_RE.sub("", html)
    html = _NOISE_VOID_RE.sub("", html)
    html = _EMPTY_ICON_RE.sub(_drop_empty_icon, html)
    return _TABLE_WS_RE.sub(r"\1", html)


# ---------------------------------------------------------------------------
# Step 1: colspan / rowspan
# ---------------------------------------------------------------------------

def _render_span_cell(cell: SpanCell[tuple[str, str]] | None) -> str:
    if cell is None:
        return "<td></td>"
    attrs, inner = cell.payload
    return "<%s%s>%s</%s>" % (cell.name, _SPAN_ATTR_RE.sub("", attrs), inner, cell.name)


def expand_table_spans(table_html: str) -> str:
    grid = [
        [
            SpanCell(
                name=name.lower(),
                html=inner,
                payload=(attrs, inner),
                colspan=span_value(parse_attrs(attrs).get("colspan")),
                rowspan=span_value(parse_attrs(attrs).get("rowspan")),
            )
            for name, attrs, inner in _CELL_PARTS_RE.findall(body)
        ]
        for _, body, _ in _ROW_PARTS_RE.findall(table_html)
    ]
    if not has_spans(grid):
        return table_html

    rows = iter(expand_spans(grid))

    def _row(m: re.Match) -> str:
        cells = next(rows)
        return m.group(1) + "".join(_render_span_cell(c) for c in cells) + m.group(3)

    return _ROW_PARTS_RE.sub(_row, table_html)


# ---------------------------------------------------------------------------
# Step 2: inline styles
# ---------------------------------------------------------------------------

class _StyleRewriter:
    """Streaming rewrite of ``span``/``font``/``b``/``i`` runs to semantic tags.

    Keeps a stack of open runs with the closers each one emitted, plus depth
    counters so emphasis is never nested inside the same emphasis.
    """

    RUN_TAGS = frozenset({"span", "font", "b", "strong", "i", "em"})

    def __init__(self, class_heuristics: bool = False) -> None:
        self.class_heuristics = class_heuristics
        self.stack: list[tuple[str, list[str]]] = []
        self.depth = {"strong": 0, "em": 0, "del": 0}
        self.heading_depth = 0

    def _open(self, name: str, attr_text: str) -> str:
        attrs = parse_attrs(attr_text)
        style = attrs.get("style")
        if name in ("b", "strong"):
            wanted = [] if declares_normal_weight(style) else ["strong"]
        elif name in ("i", "em"):
            wanted = [] if declares_normal_style(style) else ["em"]
        else:
            run = infer_run_style(style, attrs.get("class", ""), class_heuristics=self.class_heuristics)
            wanted = list(run.tags)
            if self.heading_depth and "strong" in wanted:
                wanted.remove("strong")
        wanted = [t for t in wanted if self.depth[t] == 0]
        for t in wanted:
            self.depth[t] += 1
        self.stack.append((name, wanted))
        return "".join("<%s>" % t for t in wanted)

    def _close_top(self) -> str:
        _, emitted = self.stack.pop()
        for t in emitted:
            self.depth[t] -= 1
        return "".join("</%s>" % t for t in reversed(emitted))

    def _close(self, name: str) -> str:
        for i in range(len(self.stack) - 1, -1, -1):
            if self.stack[i][0] == name:
                out = []
                while len(self.stack) > i:
                    out.append(self._close_top())
                return "".join(out)
        return ""

    def _rewrite(self, m: re.Match) -> str:
        closing, name, attr_text = m.group(1), m.group(2).lower(), m.group(3)
        if name in ("h1", "h2", "h3", "h4", "h5", "h6"):
            self.heading_depth += -1 if closing else 1
            self.heading_depth = max(self.heading_depth, 0)
            return m.group(0)
        if name not in self.RUN_TAGS:
            return m.group(0)
        if closing:
            return self._close(name)
        if attr_text.rstrip().endswith("/"):
            return ""
        return self._open(name, attr_text)

    def rewrite(self, html: str) -> str:
        out = _TAG_RE.sub(self._rewrite, html)
        while self.stack:
            out += self._close_top()
        return out


def convert_inline_styles(html: str, *, class_heuristics: bool = False) -> str:
    html = _StyleRewriter(class_heuristics).rewrite(html)
    for _ in range(settings.MAX_NESTING_DEPTH):
        html, count = _BLANK_EMPHASIS_RE.subn(r"\2", html)
        if not count:
            break
    return html


# ---------------------------------------------------------------------------
# Step 3: attributes
# ---------------------------------------------------------------------------

def strip_attributes(html: str) -> str:
    """Remove every attribute except ``a[href]`` and ``img[src,alt]``.

    Kept attributes are parked behind marker tokens while the blanket
    attribute removal runs, then restored.
    """
    kept: list[str] = []

    def _mark(m: re.Match) -> str:
        name = m.group(1).lower()
        attrs = parse_attrs(m.group(2))
        kept.append("".join(
            ' %s="%s"' % (key, attrs[key].replace('"', "&quot;"))
            for key in KEEP_ATTRIBUTES[name]
            if key in attrs
        ))
        return "<%s%s>\ue000%d\ue001" % (name, m.group(3), len(kept) - 1)

    html = _KEEP_TAG_RE.sub(_mark, html)
    html = _ANY_ATTRS_RE.sub(r"<\1\2>", html)
    return _MARKED_TAG_RE.sub(
        lambda m: "<%s%s%s>" % (m.group(1), kept[int(m.group(3))], m.group(2)),
        html,
    )


# ---------------------------------------------------------------------------
# Step 4: wrappers
# ---------------------------------------------------------------------------

def _has_text(fragment: str) -> bool:
    return bool(html_lib.unescape(_ANY_TAG_RE.sub("", fragment)).strip())


def _leaf_div(m: re.Match) -> str:
    inner = m.group(1)
    if _has_text(inner) and not _BLOCK_OPEN_RE.search(inner):
        return "<p>%s</p>" % inner
    return inner


def remove_wrappers(html: str) -> str:
    for _ in range(settings.MAX_NESTING_DEPTH):
        html, count = _LEAF_DIV_RE.subn(_leaf_div, html)
        if not count:
            break
    else:
        logger.debug("Wrapper nesting exceeded %d levels; flattening", settings.MAX_NESTING_DEPTH)
    html = _ANY_DIV_RE.sub("", html)
    return _INLINE_WRAPPER_RE.sub("", html)


# ---------------------------------------------------------------------------
# Steps 5 and 6: cells, header row
# ---------------------------------------------------------------------------

def _clean_cell(m: re.Match) -> str:
    name, attrs, inner = m.group(1), m.group(2), m.group(3)
    inner = _CELL_BREAK_RE.sub(" ", inner)
    inner = _CELL_WRAPPER_RE.sub("", inner)
    return "<%s%s>%s</%s>" % (name, attrs, " ".join(inner.split()), name)


def clean_table_cells(table_html: str) -> str:
    if _table_kind(table_html) is TableKind.LAYOUT:
        return table_html
    return _CELL_PARTS_RE.sub(_clean_cell, table_html)


def promote_header_row(table_html: str, *, spreadsheet: bool = False) -> str:
    if re.search(r"<thead\b", table_html, _I):
        return table_html
    if not spreadsheet and re.search(r"<th\b", table_html, _I):
        return table_html
    m = _FIRST_ROW_RE.match(table_html)
    if not m:
        return table_html
    prefix, tbody, row = m.group(1), m.group(2), m.group(3)
    row = re.sub(r"<td\b", "<th", row, flags=_I)
    row = re.sub(r"</td\s*>", "</th>", row, flags=_I)
    header = "%s<thead><tr>%s</tr></thead>%s" % (prefix, row, tbody or "")
    return header + table_html[m.end():]


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def normalize_html_lightweight(
    html: str,
    *,
    class_heuristics: bool = False,
    spreadsheet: bool | None = None,
) -> str:
    """String-based equivalent of :func:`clipmd.stages.normalize.normalize_html`."""
    if spreadsheet is None:
        spreadsheet = is_spreadsheet_html(html)
    html = preclean(html)
    html = map_tables(html, expand_table_spans)
    html = convert_inline_styles(html, class_heuristics=class_heuristics)
    html = strip_attributes(html)
    html = remove_wrappers(html)
    html = map_tables(html, clean_table_cells)
    html = map_tables(html, lambda t: promote_header_row(t, spreadsheet=spreadsheet))
    return _TABLE_WS_RE.sub(r"\1", html).strip()


def unwrap_layout_table(table_html: str) -> str:
    html = _LAYOUT_BREAK_RE.sub("\n", table_html)
    return _LAYOUT_DROP_RE.sub("", html)


def _table_rows(table_html: str) -> list[list[tuple[str, Tag | str]]]:
    rows = rows_from_html(table_html)
    if not any("<" in inner or "&" in inner for row in rows for _, inner in row):
        return rows
    table = BeautifulSoup(table_html, "lxml").find("table")
    return tree_rows(table) if table is not None else rows


def render_tables_lightweight(
    html: str,
    *,
    unwrap_layout: bool = True,
    stats: TableStats | None = None,
) -> str:
    """Replace data tables by placeholders and unwrap layout tables, innermost first."""
    stats = stats if stats is not None else TableStats()
    failed: list[str] = []

    def _render(m: re.Match) -> str:
        table_html = m.group(0)
        kind = classify_shape(shape_from_html(table_html)) if unwrap_layout else TableKind.DATA
        if kind is TableKind.LAYOUT:
            stats.unwrapped += 1
            return unwrap_layout_table(table_html)
        try:
            grid = build_cell_grid(_table_rows(table_html))
        except TableParseFailure as exc:
            logger.debug("Leaving table for the generic renderer: %s", exc)
            stats.failed += 1
            failed.append(table_html)
            return _token(len(failed) - 1)
        stats.rendered += 1
        return placeholder_html(grid.to_markdown())

    for _ in range(settings.MAX_NESTING_DEPTH):
        html, count = _INNER_TABLE_RE.subn(_render, html)
        if not count:
            break
    for index in range(len(failed) - 1, -1, -1):
        html = html.replace(_token(index), failed[index])
    return html
