"""Tests for clipmd.stages.markdown (markdownify rendering)."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from bs4 import BeautifulSoup

from clipmd.errors import RenderFailure
from clipmd.stages.markdown import (
    PLACEHOLDER_ATTR,
    InlineRenderer,
    make_placeholder,
    placeholder_html,
    render_inline,
    render_markdown,
)


class TestRenderMarkdown:
    def test_heading_and_bold(self):
        md = render_markdown("<h1>T</h1><p>a <strong>b</strong></p>").strip()
        assert md == "# T\n\na **b**"

    def test_italic_strike_link(self):
        md = render_markdown('<p><em>x</em> <del>y</del> <a href="https://e.com">z</a></p>').strip()
        assert md == "*x* ~~y~~ [z](https://e.com)"

    def test_dash_bullets(self):
        assert render_markdown("<ul><li>a</li><li>b</li></ul>").strip() == "- a\n- b"

    def test_hard_break_uses_two_spaces(self):
        assert "a  \nb" in render_markdown("<p>a<br>b</p>")

    def test_break_inside_heading_is_space(self):
        assert render_markdown("<h2>a<br>b</h2>").strip() == "## a b"

    def test_accepts_parsed_tree(self):
        soup = BeautifulSoup("<p>tree</p>", "lxml")
        assert render_markdown(soup).strip() == "tree"

    def test_failure_wrapped(self):
        target = "clipmd.stages.markdown.ClipboardMarkdownConverter.convert_soup"
        with patch(target, side_effect=RecursionError("too deep")):
            with pytest.raises(RenderFailure, match="too deep"):
                render_markdown("<p>x</p>")


class TestPlaceholder:
    TABLE = "| a_b | *c* |\n| --- | --- |\n| 1 | 2 |"

    def test_make_placeholder(self):
        soup = BeautifulSoup("", "lxml")
        div = make_placeholder(soup, self.TABLE)
        assert div.name == "div"
        assert div[PLACEHOLDER_ATTR] == "true"
        assert div.string == self.TABLE

    def test_text_passes_through_unescaped(self):
        md = render_markdown("<p>before</p>" + placeholder_html(self.TABLE) + "<p>after</p>")
        assert "before\n\n" + self.TABLE + "\n\nafter" in md

    def test_html_entities_in_placeholder(self):
        md = render_markdown(placeholder_html("| a<b | c&d |\n| --- | --- |"))
        assert "| a<b | c&d |" in md

    def test_ordinary_div_still_rendered(self):
        assert render_markdown("<div>plain text</div>").strip() == "plain text"


class TestRenderInline:
    def test_single_line(self):
        md = render_inline('<a href="https://x.io">x</a>  and\n<em>y</em>')
        assert md == "[x](https://x.io) and *y*"

    def test_blank(self):
        assert render_inline("   ") == ""
        assert render_inline("") == ""


class TestInlineRenderer:
    def test_cell_tag(self):
        soup = BeautifulSoup("<table><tr><td> a <strong>b</strong><br/>c </td></tr></table>", "lxml")
        assert InlineRenderer()(soup.td) == "a **b** c"

    def test_plain_text_skips_parser(self):
        with patch("clipmd.stages.markdown.BeautifulSoup") as parser:
            md = InlineRenderer()("total_count *  2")
        parser.assert_not_called()
        assert md == r"total\_count \* 2"

    def test_entities_decoded(self):
        assert InlineRenderer()("R&amp;D") == "R&D"

    def test_reused_across_cells(self):
        render = InlineRenderer()
        assert [render(text) for text in ("<em>x</em>", "y", "")] == ["*x*", "y", ""]

    def test_failure_wrapped(self):
        render = InlineRenderer()
        with patch.object(render.converter, "process_element", side_effect=ValueError("boom")):
            with pytest.raises(RenderFailure, match="boom"):
                render("<em>x</em>")
