"""BeautifulSoup-based HTML normalization.

Rewrites clipboard HTML (Google Docs, Word, Sheets, web pages) into a small,
predictable subset of HTML before table rendering and Markdown serialization:

* noise removal (comments, scripts, styles, head, icon glyphs),
* colspan / rowspan expansion,
* inline CSS -> ``strong`` / ``em`` / ``del``,
* attribute stripping (only ``a[href]`` and ``img[src,alt]`` survive),
* ``div`` / ``span`` / ``font`` wrapper removal,
* table-cell interior cleanup,
* first-row header promotion.

Running :func:`normalize_html` on its own output changes nothing.

Usage::

    from clipmd.stages.normalize import normalize_html

    clean = normalize_html(clipboard_html)
"""

from __future__ import annotations

import copy
import logging
import re

from bs4 import BeautifulSoup, Comment, Doctype, NavigableString, Tag

from clipmd import settings
from clipmd.errors import NormalizationFailure
from clipmd.stages.content_type import is_spreadsheet_html
from clipmd.stages.styles import (
    BLOCK_TAGS,
    HEADING_TAGS,
    KEEP_ATTRIBUTES,
    NOISE_TAGS,
    TABLE_STRUCTURE_TAGS,
    WRAPPER_TAGS,
    class_text,
    declares_normal_style,
    declares_normal_weight,
    infer_run_style,
    is_icon_class,
)
from clipmd.stages.tables import (
    SpanCell,
    TableKind,
    classify_table,
    expand_spans,
    has_spans,
    own_descendants,
    row_cells,
    span_value,
)

logger = logging.getLogger(__name__)

_EMPHASIS_TAGS = ["span", "font", "b", "strong", "i", "em"]
_CELL_FLATTEN_TAGS = ["p", "div", "span", "font"]
_HEADING_NAMES = sorted(HEADING_TAGS)
_WHITESPACE_RE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# Step 0: noise
# ---------------------------------------------------------------------------

def _drop_table_whitespace(root: Tag) -> None:
    for s in root.find_all(string=True):
        parent = s.parent
        if parent is not None and parent.name in TABLE_STRUCTURE_TAGS and not s.strip():
            s.extract()


def preclean(soup: BeautifulSoup) -> None:
    for node in soup.find_all(string=lambda s: isinstance(s, (Comment, Doctype))):
        node.extract()
    for tag in soup.find_all(list(NOISE_TAGS)):
        tag.decompose()
    for tag in soup.find_all(["i", "span"]):
        if tag.parent is None:
            continue
        if is_icon_class(class_text(tag.get("class"))) and not tag.get_text(strip=True):
            tag.decompose()
    _drop_table_whitespace(soup)


# ---------------------------------------------------------------------------
# Step 1: colspan / rowspan
# ---------------------------------------------------------------------------

def _expand_table_spans(soup: BeautifulSoup, table: Tag) -> None:
    rows = own_descendants(table, "tr")
    grid = [
        [
            SpanCell(
                name=cell.name,
                html=cell.decode_contents(),
                payload=cell,
                colspan=span_value(cell.get("colspan")),
                rowspan=span_value(cell.get("rowspan")),
            )
            for cell in row_cells(tr)
        ]
        for tr in rows
    ]
    if not has_spans(grid):
        return

    for tr, expanded in zip(rows, expand_spans(grid)):
        new_cells: list[Tag] = []
        for span_cell in expanded:
            if span_cell is None:
                new_cells.append(soup.new_tag("td"))
                continue
            cell = copy.copy(span_cell.payload)
            cell.attrs.pop("colspan", None)
            cell.attrs.pop("rowspan", None)
            new_cells.append(cell)
        tr.clear()
        tr.extend(new_cells)


def expand_table_spans(soup: BeautifulSoup) -> None:
    # Innermost first, so copies of a cell carry an already expanded nested table.
    for table in reversed(soup.find_all("table")):
        _expand_table_spans(soup, table)


# ---------------------------------------------------------------------------
# Step 2: inline styles -> semantic tags
# ---------------------------------------------------------------------------

def _is_blank_run(tag: Tag) -> bool:
    """True when *tag* holds nothing but whitespace and ``<br>``."""
    if tag.get_text(strip=True):
        return False
    return all(child.name == "br" for child in tag.find_all(True))


def _wrap_children(soup: BeautifulSoup, tag: Tag, name: str) -> Tag:
    inner = soup.new_tag(name)
    for child in list(tag.contents):
        inner.append(child.extract())
    tag.append(inner)
    return inner


def convert_inline_styles(soup: BeautifulSoup, *, class_heuristics: bool = False) -> None:
    for tag in soup.find_all(_EMPHASIS_TAGS):
        if tag.parent is None:
            continue
        if _is_blank_run(tag):
            tag.unwrap()
            continue

        style = tag.get("style")
        if tag.name in ("b", "strong"):
            if declares_normal_weight(style) or tag.find_parent("strong") is not None:
                tag.unwrap()
            else:
                tag.name = "strong"
            continue
        if tag.name in ("i", "em"):
            if declares_normal_style(style) or tag.find_parent("em") is not None:
                tag.unwrap()
            else:
                tag.name = "em"
            continue

        run = infer_run_style(style, class_text(tag.get("class")), class_heuristics=class_heuristics)
        wanted = [name for name in run.tags if tag.find_parent(name) is None]
        if "strong" in wanted and tag.find_parent(_HEADING_NAMES) is not None:
            wanted.remove("strong")
        if not wanted:
            if not tag.get("class"):
                tag.unwrap()
            continue
        tag.name = wanted[0]
        tag.attrs = {}
        current = tag
        for name in wanted[1:]:
            current = _wrap_children(soup, current, name)


# ---------------------------------------------------------------------------
# Step 3: attributes
# ---------------------------------------------------------------------------

def strip_attributes(root: Tag) -> None:
    for tag in root.find_all(True):
        keep = KEEP_ATTRIBUTES.get(tag.name, ())
        tag.attrs = {k: v for k, v in tag.attrs.items() if k in keep}


# ---------------------------------------------------------------------------
# Step 4: wrappers
# ---------------------------------------------------------------------------

def remove_wrappers(root: Tag) -> None:
    """Turn leaf text ``div``s into ``p`` and unwrap every other wrapper."""
    block_names = list(BLOCK_TAGS)
    for _ in range(settings.MAX_NESTING_DEPTH):
        divs = root.find_all("div")
        if not divs:
            break
        # Reverse document order visits descendants before their ancestors.
        for div in reversed(divs):
            if div.get_text(strip=True) and div.find(block_names) is None:
                div.name = "p"
            else:
                div.unwrap()
    else:
        logger.debug("Wrapper nesting exceeded %d levels; flattening", settings.MAX_NESTING_DEPTH)
        for div in root.find_all("div"):
            div.unwrap()

    for tag in root.find_all(list(WRAPPER_TAGS)):
        tag.unwrap()


# ---------------------------------------------------------------------------
# Step 5: cell interiors
# ---------------------------------------------------------------------------

def _clean_cell(cell: Tag) -> None:
    if any(isinstance(child, Tag) for child in cell.children):
        for br in cell.find_all("br"):
            br.replace_with(" ")
        for tag in cell.find_all(_CELL_FLATTEN_TAGS):
            tag.insert_before(" ")
            tag.insert_after(" ")
            tag.unwrap()
        cell.smooth()
        strings = [s for s in cell.find_all(string=True) if isinstance(s, NavigableString)]
    else:
        strings = [s for s in cell.children if isinstance(s, NavigableString)]
    texts = [_WHITESPACE_RE.sub(" ", str(s)) for s in strings]
    # Trim the cell edges, which may span several whitespace-only strings.
    for i in range(len(texts)):
        texts[i] = texts[i].lstrip()
        if texts[i]:
            break
    for i in reversed(range(len(texts))):
        texts[i] = texts[i].rstrip()
        if texts[i]:
            break
    for s, text in zip(strings, texts):
        if text != s:
            s.replace_with(text)


def clean_table_cells(root: Tag) -> None:
    """Collapse block structure inside data-table cells to single spaces.

    Layout tables keep their cell blocks; they are unwrapped later.
    """
    for table in reversed(root.find_all("table")):
        if classify_table(table) is TableKind.LAYOUT:
            continue
        for cell in own_descendants(table, ["td", "th"]):
            _clean_cell(cell)


# ---------------------------------------------------------------------------
# Step 6: header promotion
# ---------------------------------------------------------------------------

def promote_header_rows(soup: BeautifulSoup, *, spreadsheet: bool = False) -> None:
    for table in soup.find_all("table"):
        if own_descendants(table, "thead"):
            continue
        if not spreadsheet and own_descendants(table, "th"):
            continue
        rows = own_descendants(table, "tr")
        if not rows:
            continue
        first = rows[0]
        for cell in row_cells(first):
            cell.name = "th"
        thead = soup.new_tag("thead")
        anchor = first.parent if first.parent is not None and first.parent.name == "tbody" else first
        anchor.insert_before(thead)
        thead.append(first.extract())


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def normalize_tree(
    soup: BeautifulSoup,
    *,
    class_heuristics: bool = False,
    spreadsheet: bool = False,
) -> None:
    """Normalize *soup* in place.

    Raises:
        NormalizationFailure: any step raised; the caller is expected to fall
            back to :mod:`clipmd.stages.lightweight`.
    """
    try:
        preclean(soup)
        expand_table_spans(soup)
        convert_inline_styles(soup, class_heuristics=class_heuristics)
        strip_attributes(soup)
        remove_wrappers(soup)
        clean_table_cells(soup)
        promote_header_rows(soup, spreadsheet=spreadsheet)
        _drop_table_whitespace(soup)
    except RecursionError as exc:
        raise NormalizationFailure("document nesting too deep for tree normalization") from exc
    except Exception as exc:
        raise NormalizationFailure(f"tree normalization failed: {exc}") from exc


def fragment_html(soup: BeautifulSoup) -> str:
    """Serialize the body content of a parsed document."""
    body = soup.body
    if body is not None:
        return body.decode_contents()
    return soup.decode_contents()


def normalize_html(html: str, *, class_heuristics: bool = False, spreadsheet: bool | None = None) -> str:
    """Return the normalized HTML fragment for *html*."""
    if spreadsheet is None:
        spreadsheet = is_spreadsheet_html(html)
    soup = BeautifulSoup(html, "lxml")
    normalize_tree(soup, class_heuristics=class_heuristics, spreadsheet=spreadsheet)
    return fragment_html(soup)
