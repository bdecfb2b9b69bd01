"""Decide what the clipboard holds and produce the one HTML string to convert.

Order of preference:

1. the HTML flavour of the clipboard, when present;
2. plain text that is itself HTML markup;
3. plain text that is tab-separated values (spreadsheet copy);
4. plain text that mixes prose with tab-separated blocks (document export),
   when relaxed detection is enabled.

Anything else is :class:`~clipmd.errors.EmptyClipboard` or
:class:`~clipmd.errors.PlainTextOnly`.
"""

from __future__ import annotations

import html as html_lib
import logging
import re
from dataclasses import dataclass
from enum import Enum

from clipmd import settings
from clipmd.errors import EmptyClipboard, PlainTextOnly

logger = logging.getLogger(__name__)

_HTML_TAG_RE = re.compile(r"<[a-z][a-z0-9]*\b[^>]*>", re.IGNORECASE)
_NON_TABLE_BLOCK_RE = re.compile(r"<(?:p|div|h[1-6]|article|section)\b[^>]*>", re.IGNORECASE)
_NUMBERED_HEADING_RE = re.compile(r"^(\d+(?:\.\d+)*)\.?\s+\S")


class ContentKind(str, Enum):
    HTML = "html"
    TEXT_HTML = "text-html"
    TSV = "tsv"
    DOCUMENT_TSV = "document-tsv"
    # Reported by detect_content_kind, and by the plain-text fallback.
    PLAIN_TEXT = "plain-text"
    EMPTY = "empty"


@dataclass
class ClassifiedContent:
    kind: ContentKind
    html: str


# ---------------------------------------------------------------------------
# Detectors
# ---------------------------------------------------------------------------

def looks_like_html(text: str) -> bool:
    return bool(_HTML_TAG_RE.search(text or ""))


def is_spreadsheet_html(html: str) -> bool:
    """True for HTML copied out of a spreadsheet.

    Google Sheets marks its cells with ``data-sheets-*`` attributes; other
    spreadsheets produce a bare table with no surrounding prose.
    """
    if "data-sheets-" in html:
        return True
    stripped = " ".join(html.split())
    return stripped.lower().startswith("<table") and not _NON_TABLE_BLOCK_RE.search(stripped)


def _lines(text: str) -> list[str]:
    return text.strip().splitlines()


def _has_consecutive_tab_lines(lines: list[str]) -> bool:
    run = 0
    for line in lines:
        run = run + 1 if "\t" in line else 0
        if run >= settings.TSV_MIN_CONSECUTIVE_TAB_LINES:
            return True
    return False


def is_tsv(text: str, *, strict: bool = True) -> bool:
    """Return True when *text* looks like tab-separated values.

    Prose is rejected by requiring that at least half the lines carry a tab
    and that lines are short on average.  Strict mode then needs a stable
    tab count across tabbed lines; non-strict mode only needs two tabbed
    lines in a row.
    """
    lines = _lines(text or "")
    if len(lines) < settings.TSV_MIN_LINES:
        return False

    tabbed = [line for line in lines if "\t" in line]
    if len(tabbed) / len(lines) < settings.TSV_MIN_TAB_LINE_RATIO:
        return False

    avg_len = sum(len(line) for line in lines) / len(lines)
    if avg_len > settings.TSV_MAX_AVG_LINE_LENGTH:
        return False

    if not strict:
        return _has_consecutive_tab_lines(lines)

    counts = [line.count("\t") for line in tabbed]
    mean = sum(counts) / len(counts)
    consistent = sum(1 for c in counts if abs(c - mean) <= settings.TSV_TAB_COUNT_TOLERANCE)
    return consistent / len(counts) >= settings.TSV_TAB_CONSISTENCY_RATIO


# ---------------------------------------------------------------------------
# Text -> HTML builders
# ---------------------------------------------------------------------------

def _tsv_rows_to_table(lines: list[str]) -> str:
    header = [html_lib.escape(cell.strip()) for cell in lines[0].split("\t")]
    parts = ["<table>", "<thead><tr>"]
    parts.extend(f"<th>{cell}</th>" for cell in header)
    parts.append("</tr></thead>")
    if len(lines) > 1:
        parts.append("<tbody>")
        for line in lines[1:]:
            cells = [html_lib.escape(cell.strip()) for cell in line.split("\t")]
            parts.append("<tr>" + "".join(f"<td>{cell}</td>" for cell in cells) + "</tr>")
        parts.append("</tbody>")
    parts.append("</table>")
    return "".join(parts)


def tsv_to_html(text: str) -> str:
    """Turn TSV text into an HTML table whose first line is the header row."""
    lines = [line for line in _lines(text) if line.strip()]
    if not lines:
        return ""
    return _tsv_rows_to_table(lines)


def _bullet_item(line: str) -> str | None:
    stripped = line.lstrip()
    for glyph in settings.BULLET_GLYPHS:
        if stripped.startswith(glyph):
            return stripped[len(glyph):].strip()
    return None


def _line_block(line: str) -> str:
    text = line.strip()
    m = _NUMBERED_HEADING_RE.match(text)
    if m and len(text) <= settings.HEADING_MAX_LENGTH:
        depth = m.group(1).count(".") + 1
        level = min(depth + 1, 6)
        return f"<h{level}>{html_lib.escape(text)}</h{level}>"
    if text.endswith(":") and len(text) <= settings.LABEL_MAX_LENGTH:
        return f"<p><strong>{html_lib.escape(text)}</strong></p>"
    return f"<p>{html_lib.escape(text)}</p>"


def document_text_to_html(text: str) -> str | None:
    """Convert a document export mixing prose and TSV blocks to HTML.

    Returns ``None`` when no run of tab-separated lines is found, so that a
    document without tables is not mistaken for structured content.
    """
    lines = (text or "").splitlines()
    blocks: list[str] = []
    bullets: list[str] = []
    found_table = False

    def flush_bullets() -> None:
        if bullets:
            blocks.append("<ul>" + "".join(f"<li>{html_lib.escape(b)}</li>" for b in bullets) + "</ul>")
            bullets.clear()

    i = 0
    while i < len(lines):
        line = lines[i]
        if "\t" in line:
            j = i
            while j < len(lines) and "\t" in lines[j]:
                j += 1
            if j - i >= settings.TSV_MIN_CONSECUTIVE_TAB_LINES:
                flush_bullets()
                blocks.append(_tsv_rows_to_table(lines[i:j]))
                found_table = True
                i = j
                continue
            line = line.replace("\t", " ")

        item = _bullet_item(line)
        if item is not None:
            bullets.append(item)
        else:
            flush_bullets()
            if line.strip():
                blocks.append(_line_block(line))
        i += 1
    flush_bullets()

    if not found_table:
        return None
    return "\n".join(blocks)


def text_to_paragraphs(text: str) -> str:
    """One ``<p>`` per non-blank line."""
    return "\n".join(
        f"<p>{html_lib.escape(line.strip())}</p>"
        for line in (text or "").splitlines()
        if line.strip()
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def classify_payload(
    html: str | None = None,
    text: str | None = None,
    *,
    strict_tsv: bool = True,
    relaxed_tsv: bool = True,
) -> ClassifiedContent:
    """Pick the HTML to convert from the clipboard representations.

    Raises:
        EmptyClipboard: neither representation holds anything.
        PlainTextOnly: text exists but carries no markup or tabular data.
    """
    if html and html.strip():
        return ClassifiedContent(ContentKind.HTML, html)

    if not text or not text.strip():
        raise EmptyClipboard()

    if looks_like_html(text):
        logger.debug("Plain text carries HTML markup")
        return ClassifiedContent(ContentKind.TEXT_HTML, text)

    if is_tsv(text, strict=strict_tsv):
        logger.debug("Plain text is tab-separated values")
        return ClassifiedContent(ContentKind.TSV, tsv_to_html(text))

    if relaxed_tsv:
        document = document_text_to_html(text)
        if document is not None:
            logger.debug("Plain text is a document with tab-separated blocks")
            return ClassifiedContent(ContentKind.DOCUMENT_TSV, document)

    raise PlainTextOnly(text)


def detect_content_kind(
    html: str | None = None,
    text: str | None = None,
    *,
    strict_tsv: bool = True,
    relaxed_tsv: bool = True,
) -> ContentKind:
    """Like :func:`classify_payload` but reports failures as a kind."""
    try:
        return classify_payload(html, text, strict_tsv=strict_tsv, relaxed_tsv=relaxed_tsv).kind
    except EmptyClipboard:
        return ContentKind.EMPTY
    except PlainTextOnly:
        return ContentKind.PLAIN_TEXT
