"""Tunable constants for clipmd.

Every threshold the normalizer, the table classifier and the content
classifier depend on lives here so that behaviour can be tuned in one place
and pinned by tests.  :class:`clipmd.items.ConvertOptions` takes its defaults
from this module.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Size gate
# ---------------------------------------------------------------------------
# Inputs larger than this (UTF-8 bytes) skip the BeautifulSoup tree and use the
# string/regex normalizer instead.
TREE_SIZE_LIMIT_BYTES = 300 * 1024

# Upper bound for every "repeat until nothing changes" loop (wrapper removal,
# innermost-table substitution).  Deeper input is flattened in one last pass.
MAX_NESTING_DEPTH = 64

# ---------------------------------------------------------------------------
# Colspan / rowspan expansion
# ---------------------------------------------------------------------------
# A colspan at or above this is a banner spanning the whole table: emit once.
FULL_WIDTH_COLSPAN = 4

# A spanning cell whose inner HTML is longer than this and carries a bold or
# heading marker is a section header: emit once.
SECTION_HEADER_MIN_LENGTH = 30

# ---------------------------------------------------------------------------
# Table classification
# ---------------------------------------------------------------------------
DATA_TABLE_MIN_AVG_CELLS = 3.0
DATA_TABLE_MIN_ROWS = 2

# More block-level children than this in a single cell marks a layout table.
LAYOUT_CELL_MAX_BLOCKS = 2

# ---------------------------------------------------------------------------
# Inline style inference
# ---------------------------------------------------------------------------
# Numeric font-weight at or above this is bold.
BOLD_MIN_WEIGHT = 500

# Opt-in class heuristics: a class like "c12" whose numeric suffix falls in
# this inclusive range is treated as bold.
BOLD_CLASS_SUFFIX_RANGE = (10, 19)
BOLD_MIN_CLASS_COUNT = 2

# ---------------------------------------------------------------------------
# TSV / plain-text detection
# ---------------------------------------------------------------------------
TSV_MIN_LINES = 2
TSV_MIN_TAB_LINE_RATIO = 0.5
TSV_MAX_AVG_LINE_LENGTH = 200
TSV_TAB_CONSISTENCY_RATIO = 0.8
TSV_TAB_COUNT_TOLERANCE = 1
TSV_MIN_CONSECUTIVE_TAB_LINES = 2

# Relaxed (document export) mode: heading-like line limits.
HEADING_MAX_LENGTH = 80
LABEL_MAX_LENGTH = 60

BULLET_GLYPHS = ("●", "•", "◦", "▪", "‣")
