"""Tests for clipmd.stages.content_type."""

from __future__ import annotations

import pytest

from clipmd.errors import EmptyClipboard, PlainTextOnly
from clipmd.stages.content_type import (
    ContentKind,
    classify_payload,
    detect_content_kind,
    document_text_to_html,
    is_spreadsheet_html,
    is_tsv,
    looks_like_html,
    text_to_paragraphs,
    tsv_to_html,
)

# ---------------------------------------------------------------------------
# HTML sniffing
# ---------------------------------------------------------------------------

class TestLooksLikeHtml:
    def test_tag_detected(self):
        assert looks_like_html("before <p class='x'>hello</p>")

    def test_comparison_is_not_html(self):
        assert not looks_like_html("if a < b and c > d")

    def test_space_after_bracket_is_not_a_tag(self):
        assert not looks_like_html("< p >")

    def test_empty(self):
        assert not looks_like_html("")


class TestIsSpreadsheetHtml:
    def test_google_sheets_marker(self, spreadsheet_html):
        assert is_spreadsheet_html(spreadsheet_html)

    def test_bare_table(self):
        assert is_spreadsheet_html("  <table><tr><td>a</td></tr></table>")

    def test_table_with_prose(self):
        assert not is_spreadsheet_html("<p>Intro</p><table><tr><td>a</td></tr></table>")

    def test_table_followed_by_div(self):
        assert not is_spreadsheet_html("<table><tr><td>a</td></tr></table><div>x</div>")


# ---------------------------------------------------------------------------
# TSV detection
# ---------------------------------------------------------------------------

class TestIsTsv:
    def test_simple_tsv(self, tsv_text):
        assert is_tsv(tsv_text)

    def test_single_line_rejected(self):
        assert not is_tsv("a\tb\tc")

    def test_prose_with_one_tab_rejected(self):
        text = "Hello world\nThis is\ta sentence\nAnother line\nAnd one more"
        assert not is_tsv(text)

    def test_long_lines_rejected(self):
        line = "\t".join(["word " * 20] * 3)
        assert len(line) > 200
        assert not is_tsv(f"{line}\n{line}")

    def test_inconsistent_tab_counts_strict(self):
        text = "a\tb\na\tb\tc\td\te\tf\na\tb\na\tb\tc\td\te\tf"
        assert not is_tsv(text, strict=True)

    def test_inconsistent_tab_counts_lenient(self):
        text = "a\tb\na\tb\tc\td\te\tf\na\tb\na\tb\tc\td\te\tf"
        assert is_tsv(text, strict=False)

    def test_lenient_needs_consecutive_tab_lines(self):
        text = "a\tb\nplain\nc\td\nplain"
        assert not is_tsv(text, strict=False)

    def test_windows_line_endings(self):
        assert is_tsv("Name\tAge\r\nAlice\t30\r\n")


class TestTsvToHtml:
    def test_first_line_is_header(self, tsv_text):
        html = tsv_to_html(tsv_text)
        assert html.startswith("<table><thead><tr><th>Name</th><th>Age</th></tr></thead>")
        assert "<tr><td>Alice</td><td>30</td></tr>" in html

    def test_cells_escaped(self):
        html = tsv_to_html("a<b\tc&d\n1\t2")
        assert "<th>a&lt;b</th>" in html
        assert "<th>c&amp;d</th>" in html

    def test_cells_trimmed(self):
        html = tsv_to_html(" Name \t Age \n1\t2")
        assert "<th>Name</th><th>Age</th>" in html


# ---------------------------------------------------------------------------
# Relaxed document mode
# ---------------------------------------------------------------------------

class TestDocumentTextToHtml:
    def test_fixture(self, document_export_text):
        html = document_text_to_html(document_export_text)
        assert html is not None
        assert "<h2>1. Overview</h2>" in html
        assert "<p><strong>Key figures:</strong></p>" in html
        assert "<thead><tr><th>Team</th><th>Owner</th><th>Status</th></tr></thead>" in html
        assert "<ul><li>First follow-up</li><li>Second follow-up</li></ul>" in html
        assert "<p>Project notes</p>" in html

    def test_numbered_heading_depth(self):
        html = document_text_to_html("2.3 Scope\na\tb\nc\td")
        assert "<h3>2.3 Scope</h3>" in html

    def test_no_table_returns_none(self):
        assert document_text_to_html("1. Intro\nJust prose here.") is None

    def test_single_tab_line_is_paragraph(self):
        html = document_text_to_html("lone\tline\nx\ty\nz\tw\n\nafter\tone")
        assert "<p>after one</p>" in html

    def test_table_closed_by_plain_line(self):
        html = document_text_to_html("a\tb\nc\td\nDone.")
        assert html.endswith("</table>\n<p>Done.</p>")


def test_text_to_paragraphs():
    assert text_to_paragraphs("one\n\n two \n<x>") == "<p>one</p>\n<p>two</p>\n<p>&lt;x&gt;</p>"


# ---------------------------------------------------------------------------
# classify_payload
# ---------------------------------------------------------------------------

class TestClassifyPayload:
    def test_html_preferred(self, tsv_text):
        result = classify_payload("<p>x</p>", tsv_text)
        assert result.kind is ContentKind.HTML
        assert result.html == "<p>x</p>"

    def test_blank_html_falls_through_to_text(self, tsv_text):
        result = classify_payload("   ", tsv_text)
        assert result.kind is ContentKind.TSV

    def test_text_html(self):
        result = classify_payload(None, "<b>bold</b> text")
        assert result.kind is ContentKind.TEXT_HTML
        assert result.html == "<b>bold</b> text"

    def test_tsv(self, tsv_text):
        result = classify_payload(None, tsv_text)
        assert result.kind is ContentKind.TSV
        assert "<thead>" in result.html

    def test_document_tsv(self, document_export_text):
        result = classify_payload(None, document_export_text)
        assert result.kind is ContentKind.DOCUMENT_TSV

    def test_document_tsv_disabled(self, document_export_text):
        with pytest.raises(PlainTextOnly):
            classify_payload(None, document_export_text, relaxed_tsv=False)

    def test_empty(self):
        with pytest.raises(EmptyClipboard):
            classify_payload(None, None)

    def test_whitespace_only(self):
        with pytest.raises(EmptyClipboard):
            classify_payload("", "  \n\t ")

    def test_plain_text_only_carries_text(self):
        with pytest.raises(PlainTextOnly) as excinfo:
            classify_payload(None, "Just a sentence.")
        assert excinfo.value.text == "Just a sentence."

    def test_comparison_prose_raises_plain_text_only(self):
        with pytest.raises(PlainTextOnly):
            classify_payload(None, "if a < b and c > d")


class TestDetectContentKind:
    def test_empty(self):
        assert detect_content_kind() is ContentKind.EMPTY

    def test_plain(self):
        assert detect_content_kind(text="hello") is ContentKind.PLAIN_TEXT

    def test_tsv(self, tsv_text):
        assert detect_content_kind(text=tsv_text) is ContentKind.TSV

    def test_comparison_prose_is_plain_text(self):
        assert detect_content_kind(text="if a < b and c > d") is ContentKind.PLAIN_TEXT
