"""Table classification (layout vs data) and rendering.

Pure-function core shared by the tree and string normalizers:

* :func:`expand_spans` lays out colspan/rowspan cells on a grid,
* :func:`classify_shape` is the one scoring function for layout vs data,
* :func:`build_cell_grid` turns cells (tags or inner HTML) into a Markdown pipe table.

The BeautifulSoup-specific half (:func:`classify_table`,
:func:`render_tables`) lives here too; the string half lives in
:mod:`clipmd.stages.lightweight`.

Usage::

    from bs4 import BeautifulSoup
    from clipmd.stages.tables import render_tables

    soup = BeautifulSoup(normalized_html, "lxml")
    stats = render_tables(soup)
    print(stats.rendered, stats.unwrapped)
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from functools import partial
from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

from bs4 import BeautifulSoup, Tag

from clipmd import settings
from clipmd.errors import TableParseFailure
from clipmd.stages.markdown import PLACEHOLDER_ATTR, InlineRenderer, make_placeholder
from clipmd.stages.styles import BLOCK_TAGS, HEADING_TAGS, LIST_TAGS, SECTION_MARKER_RE

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ROW_RE = re.compile(r"<tr\b[^>]*>(.*?)</tr\s*>", re.IGNORECASE | re.DOTALL)
_CELL_RE = re.compile(r"<(td|th)\b[^>]*>(.*?)</\1\s*>", re.IGNORECASE | re.DOTALL)
_HEADING_OR_LIST_RE = re.compile(r"<(?:h[1-6]|ul|ol)\b", re.IGNORECASE)
_NESTED_RE = re.compile(r"<table\b|" + re.escape(PLACEHOLDER_ATTR), re.IGNORECASE)
_BLOCK_OPEN_RE = re.compile(
    r"<(%s)\b" % "|".join(sorted(BLOCK_TAGS - {"li", "tr", "td", "th"})),
    re.IGNORECASE,
)


class TableKind(str, Enum):
    LAYOUT = "layout"
    DATA = "data"


# ---------------------------------------------------------------------------
# Colspan / rowspan
# ---------------------------------------------------------------------------

@dataclass
class SpanCell(Generic[T]):
    """One source cell before span expansion.

    *payload* is whatever the caller needs to materialise copies: a
    BeautifulSoup ``Tag`` in tree mode, the inner HTML string in string mode.
    """

    name: str
    html: str
    payload: T
    colspan: int = 1
    rowspan: int = 1

    @property
    def is_section_header(self) -> bool:
        if self.colspan >= settings.FULL_WIDTH_COLSPAN:
            return True
        return (
            self.colspan > 1
            and len(self.html) > settings.SECTION_HEADER_MIN_LENGTH
            and SECTION_MARKER_RE.search(self.html) is not None
        )


def span_value(raw: object) -> int:
    """Parse a colspan/rowspan attribute; junk and values < 1 count as 1."""
    m = re.match(r"\s*(\d+)", str(raw or ""))
    if not m:
        return 1
    return max(1, min(int(m.group(1)), 1000))


def expand_spans(rows: Sequence[Sequence[SpanCell[T]]]) -> list[list[SpanCell[T] | None]]:
    """Lay out *rows* on a grid, repeating spanning cells.

    A colspan cell is repeated across its columns unless it is a section
    header (see :attr:`SpanCell.is_section_header`), which is placed once.
    A rowspan cell is repeated into the same column of the following rows.
    ``None`` marks a hole left in front of a carried rowspan cell.
    """
    out: list[list[SpanCell[T] | None]] = []
    carry: dict[int, tuple[SpanCell[T], int]] = {}

    for row in rows:
        queue = list(row)
        expanded: list[SpanCell[T] | None] = []
        current: SpanCell[T] | None = None
        remaining_width = 0
        col = 0
        while True:
            if col in carry:
                cell, left = carry.pop(col)
                expanded.append(cell)
                if left > 1:
                    carry[col] = (cell, left - 1)
                col += 1
                continue
            if remaining_width == 0:
                if queue:
                    current = queue.pop(0)
                    remaining_width = 1 if current.is_section_header else current.colspan
                elif any(c > col for c in carry):
                    expanded.append(None)
                    col += 1
                    continue
                else:
                    break
            assert current is not None
            expanded.append(current)
            if current.rowspan > 1:
                carry[col] = (current, current.rowspan - 1)
            remaining_width -= 1
            col += 1
        out.append(expanded)
    return out


def has_spans(rows: Sequence[Sequence[SpanCell[T]]]) -> bool:
    return any(c.colspan > 1 or c.rowspan > 1 for row in rows for c in row)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

@dataclass
class TableShape:
    """Structural facts about one table, independent of how it was parsed."""

    row_count: int = 0
    first_row_cells: int = 0
    cell_count: int = 0
    has_heading_or_list: bool = False
    has_nested_table: bool = False
    max_block_children: int = 0

    @property
    def avg_cells_per_row(self) -> float:
        return self.cell_count / self.row_count if self.row_count else 0.0


def classify_shape(shape: TableShape) -> TableKind:
    """Decide layout vs data.  First matching rule wins.

    1. no rows                                   -> DATA (nothing to unwrap)
    2. single cell in the first row              -> LAYOUT
    3. heading or list anywhere inside           -> LAYOUT
    4. >= 3 cells per row on average, >= 2 rows  -> DATA
    5. nested table, or a cell with > 2 blocks   -> LAYOUT
    6. otherwise                                 -> DATA
    """
    if shape.row_count == 0:
        return TableKind.DATA
    if shape.first_row_cells == 1:
        return TableKind.LAYOUT
    if shape.has_heading_or_list:
        return TableKind.LAYOUT
    if (
        shape.avg_cells_per_row >= settings.DATA_TABLE_MIN_AVG_CELLS
        and shape.row_count >= settings.DATA_TABLE_MIN_ROWS
    ):
        return TableKind.DATA
    if shape.has_nested_table or shape.max_block_children > settings.LAYOUT_CELL_MAX_BLOCKS:
        return TableKind.LAYOUT
    return TableKind.DATA


def own_descendants(table: Tag, names: str | list[str]) -> list[Tag]:
    """Descendants of *table* named *names* that do not belong to a nested table."""
    return [
        el for el in table.find_all(names)
        if isinstance(el, Tag) and el.find_parent("table") is table
    ]


def row_cells(tr: Tag) -> list[Tag]:
    return [c for c in tr.find_all(["td", "th"], recursive=False) if isinstance(c, Tag)]


def table_shape(table: Tag) -> TableShape:
    rows = own_descendants(table, "tr")
    cells_per_row = [row_cells(tr) for tr in rows]
    cells = [c for row in cells_per_row for c in row]

    nested = table.find("table") is not None or table.find(attrs={PLACEHOLDER_ATTR: True}) is not None
    max_blocks = 0
    for cell in cells:
        blocks = sum(1 for ch in cell.children if isinstance(ch, Tag) and ch.name in BLOCK_TAGS)
        max_blocks = max(max_blocks, blocks)

    return TableShape(
        row_count=len(rows),
        first_row_cells=len(cells_per_row[0]) if cells_per_row else 0,
        cell_count=len(cells),
        has_heading_or_list=bool(own_descendants(table, sorted(HEADING_TAGS | LIST_TAGS))),
        has_nested_table=nested,
        max_block_children=max_blocks,
    )


def shape_from_html(table_html: str) -> TableShape:
    """Build a :class:`TableShape` from the HTML of a table with no nested ``<table>``."""
    rows = [_CELL_RE.findall(body) for body in _ROW_RE.findall(table_html)]
    cells = [inner for row in rows for _, inner in row]
    return TableShape(
        row_count=len(rows),
        first_row_cells=len(rows[0]) if rows else 0,
        cell_count=len(cells),
        has_heading_or_list=_HEADING_OR_LIST_RE.search(table_html) is not None,
        has_nested_table=any(_NESTED_RE.search(inner) for inner in cells),
        max_block_children=max((len(_BLOCK_OPEN_RE.findall(inner)) for inner in cells), default=0),
    )


def rows_from_html(table_html: str) -> list[list[tuple[str, str]]]:
    """``[(cell tag name, inner HTML), ...]`` per row of a flat table string."""
    return [
        [(name.lower(), inner) for name, inner in _CELL_RE.findall(body)]
        for body in _ROW_RE.findall(table_html)
    ]


def classify_table(table: Tag) -> TableKind:
    return classify_shape(table_shape(table))


# ---------------------------------------------------------------------------
# Cell grid
# ---------------------------------------------------------------------------

def render_cell(content: Tag | str, renderer: InlineRenderer | None = None) -> str:
    """Render one cell (a tag or its inner HTML) as single-line, pipe-safe Markdown."""
    text = (renderer or InlineRenderer())(content)
    if not text:
        return " "
    return text.replace("|", r"\|")


@dataclass
class CellGrid:
    """Row-major table text.  All rows share the header's width."""

    header: list[str]
    body: list[list[str]] = field(default_factory=list)

    @property
    def width(self) -> int:
        return len(self.header)

    def to_markdown(self) -> str:
        lines = [_pipe_row(self.header), _pipe_row(["---"] * self.width)]
        lines.extend(_pipe_row(row) for row in self.body)
        return "\n".join(lines)


def _pipe_row(cells: Sequence[str]) -> str:
    return "| " + " | ".join(cells) + " |"


def _is_column_major(rows: Sequence[Sequence[tuple[str, Tag | str]]]) -> bool:
    """Header cells run down the first column instead of across the first row."""
    if len(rows) < 2:
        return False
    if not all(row[0][0] == "th" for row in rows):
        return False
    return not all(name == "th" for name, _ in rows[0])


def build_cell_grid(
    rows: Sequence[Sequence[tuple[str, Tag | str]]],
    render: Callable[[Tag | str], str] | None = None,
) -> CellGrid:
    """Build a :class:`CellGrid` from ``(tag name, cell)`` rows.

    A cell is the ``<td>``/``<th>`` tag or its inner HTML.  Every cell of
    the table goes through one :class:`~clipmd.stages.markdown.InlineRenderer`
    unless *render* is given.

    Raises:
        TableParseFailure: when the table has no cells at all.
    """
    rows = [list(r) for r in rows if r]
    if not rows:
        raise TableParseFailure("table has no cells")
    if render is None:
        render = partial(render_cell, renderer=InlineRenderer())

    if _is_column_major(rows):
        width = max(len(r) for r in rows)
        padded = [r + [("td", "")] * (width - len(r)) for r in rows]
        rows = [list(col) for col in zip(*padded)]

    texts = [[render(cell) for _, cell in row] for row in rows]
    width = max(len(r) for r in texts)
    texts = [r + [" "] * (width - len(r)) for r in texts]
    return CellGrid(header=texts[0], body=texts[1:])


# ---------------------------------------------------------------------------
# Tree rendering
# ---------------------------------------------------------------------------

@dataclass
class TableStats:
    rendered: int = 0
    unwrapped: int = 0
    failed: int = 0


def tree_rows(table: Tag) -> list[list[tuple[str, Tag]]]:
    return [
        [(cell.name, cell) for cell in row_cells(tr)]
        for tr in own_descendants(table, "tr")
    ]


def unwrap_layout_table(table: Tag) -> None:
    """Drop table scaffolding, keeping cell content in document order."""
    for cell in own_descendants(table, ["td", "th"]):
        cell.append("\n")
        cell.unwrap()
    for tr in own_descendants(table, "tr"):
        tr.append("\n")
        tr.unwrap()
    for section in own_descendants(table, ["thead", "tbody", "tfoot", "caption"]):
        section.unwrap()
    table.unwrap()


def render_tables(
    soup: BeautifulSoup,
    *,
    unwrap_layout: bool = True,
    stats: TableStats | None = None,
) -> TableStats:
    """Replace data tables by Markdown placeholders and unwrap layout tables.

    Tables are visited in reverse document order so nested tables are
    handled before the table that contains them.
    """
    stats = stats if stats is not None else TableStats()
    for table in reversed(soup.find_all("table")):
        kind = classify_table(table) if unwrap_layout else TableKind.DATA
        if kind is TableKind.LAYOUT:
            unwrap_layout_table(table)
            stats.unwrapped += 1
            continue
        try:
            grid = build_cell_grid(tree_rows(table))
        except TableParseFailure as exc:
            logger.debug("Leaving table for the generic renderer: %s", exc)
            stats.failed += 1
            continue
        table.replace_with(make_placeholder(soup, grid.to_markdown()))
        stats.rendered += 1
    return stats
