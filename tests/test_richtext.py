"""Tests for clipmd.stages.richtext."""

from __future__ import annotations

import logging
from unittest.mock import patch

import pytest

from clipmd.errors import EmptyClipboard, RenderFailure
from clipmd.stages.richtext import STYLESHEET, convert_to_richtext, looks_like_markdown, markdown_to_html


class TestLooksLikeMarkdown:
    @pytest.mark.parametrize("text", [
        "# Title",
        "some **bold** text",
        "an *italic* word",
        "see [docs](https://e.com)",
        "- item",
        "1. first",
        "> quoted",
        "run `ls`",
        "```\ncode\n```",
        "| a | b |",
        "---",
    ])
    def test_detected(self, text):
        assert looks_like_markdown(text)

    @pytest.mark.parametrize("text", ["Just a sentence.", "2 * 3 = 6", "#hashtag"])
    def test_plain(self, text):
        assert not looks_like_markdown(text)


class TestMarkdownToHtml:
    def test_document_wrapper(self):
        html = markdown_to_html("# Title")
        assert html.startswith("<!DOCTYPE html>")
        assert '<meta charset="utf-8">' in html
        assert STYLESHEET in html
        assert "<h1>Title</h1>" in html
        assert html.endswith("</html>")

    def test_tables(self):
        html = markdown_to_html("| a | b |\n| --- | --- |\n| 1 | 2 |")
        assert "<table>" in html
        assert "<th>a</th>" in html
        assert "<td>2</td>" in html

    def test_fenced_code(self):
        html = markdown_to_html("```\nx = 1\n```")
        assert "<pre><code>x = 1\n</code></pre>" in html

    def test_single_newlines_become_breaks(self):
        assert "line one<br />\nline two" in markdown_to_html("line one\nline two")

    def test_inline_formatting(self):
        html = markdown_to_html("**b** *i* [l](https://e.com)")
        assert "<strong>b</strong>" in html
        assert "<em>i</em>" in html
        assert '<a href="https://e.com">l</a>' in html

    def test_renderer_failure_wrapped(self):
        with patch("clipmd.stages.richtext.markdown.markdown", side_effect=ValueError("bad")):
            with pytest.raises(RenderFailure, match="bad"):
                markdown_to_html("# x")


class TestConvertToRichtext:
    def test_markdown(self):
        result = convert_to_richtext("# Hello\n\n- a\n- b")
        assert result.looks_like_markdown
        assert "<h1>Hello</h1>" in result.html
        assert "<li>a</li>" in result.html

    def test_plain_text_converted_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="clipmd.stages.richtext"):
            result = convert_to_richtext("Just a sentence.")
        assert not result.looks_like_markdown
        assert "<p>Just a sentence.</p>" in result.html
        assert "does not look like Markdown" in caplog.text

    @pytest.mark.parametrize("text", [None, "", "  \n "])
    def test_empty(self, text):
        with pytest.raises(EmptyClipboard, match="No text found"):
            convert_to_richtext(text)
