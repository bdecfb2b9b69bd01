"""Tests for the clipmd command-line interface."""

from __future__ import annotations

import io

import pytest

from clipmd.__main__ import EXIT_FAILURE, EXIT_NO_CONTENT, EXIT_OK, main


@pytest.fixture
def write_file(tmp_path):
    def _write(name: str, content: str):
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write


# ---------------------------------------------------------------------------
# to-markdown
# ---------------------------------------------------------------------------

class TestToMarkdown:
    def test_html_file(self, write_file, capsys):
        path = write_file("in.html", '<p><span style="font-weight:700">Hi</span> there</p>')
        assert main(["to-markdown", "--html", str(path)]) == EXIT_OK
        assert capsys.readouterr().out == "**Hi** there\n"

    def test_text_from_stdin(self, monkeypatch, capsys, tsv_text):
        monkeypatch.setattr("sys.stdin", io.StringIO(tsv_text))
        assert main(["to-markdown"]) == EXIT_OK
        assert capsys.readouterr().out.startswith("| Name | Age |\n| --- | --- |")

    def test_out_file(self, write_file, tmp_path):
        path = write_file("in.html", "<h1>T</h1>")
        out = tmp_path / "out.md"
        assert main(["to-markdown", "--html", str(path), "--out", str(out)]) == EXIT_OK
        assert out.read_text(encoding="utf-8") == "# T\n"

    def test_plain_strips_images(self, write_file, capsys):
        path = write_file("in.html", '<p>a <img src="x.png" alt="X"> b</p>')
        assert main(["to-markdown", "--plain", "--html", str(path)]) == EXIT_OK
        assert capsys.readouterr().out == "a b\n"

    def test_empty_clipboard(self, write_file, capsys):
        path = write_file("in.html", "   ")
        assert main(["to-markdown", "--html", str(path)]) == EXIT_NO_CONTENT
        assert "Clipboard is empty" in capsys.readouterr().err

    def test_plain_text_only(self, write_file, capsys):
        path = write_file("in.txt", "Just a sentence.")
        assert main(["to-markdown", "--text", str(path)]) == EXIT_NO_CONTENT
        assert "plain text only" in capsys.readouterr().err

    def test_plain_fallback(self, write_file, capsys):
        path = write_file("in.txt", "Just a sentence.")
        assert main(["to-markdown", "--text", str(path), "--plain-fallback"]) == EXIT_OK
        assert capsys.readouterr().out == "Just a sentence.\n"

    def test_missing_file(self, tmp_path, capsys):
        assert main(["to-markdown", "--html", str(tmp_path / "missing.html")]) == EXIT_FAILURE
        assert "ERROR" in capsys.readouterr().err

    def test_profile(self, write_file, capsys):
        profile = write_file("p.yaml", "profiles:\n  docs:\n    class_bold_heuristics: true\n")
        path = write_file("in.html", '<p><span class="c1 c2">x</span></p>')
        argv = ["to-markdown", "--html", str(path), "--profile", str(profile), "--profile-name", "docs"]
        assert main(argv) == EXIT_OK
        assert capsys.readouterr().out == "**x**\n"

    def test_unknown_profile_name(self, write_file, capsys):
        profile = write_file("p.yaml", "default:\n  strip_media: true\n")
        path = write_file("in.html", "<p>x</p>")
        argv = ["to-markdown", "--html", str(path), "--profile", str(profile), "--profile-name", "nope"]
        assert main(argv) == EXIT_FAILURE
        assert "invalid profile" in capsys.readouterr().err

    def test_stats(self, write_file, capsys, data_table_html):
        path = write_file("in.html", data_table_html)
        assert main(["to-markdown", "--html", str(path), "--stats"]) == EXIT_OK
        captured = capsys.readouterr()
        assert captured.out.startswith("| Name | Age | City |")
        assert "Conversion Summary" in captured.err


# ---------------------------------------------------------------------------
# to-richtext / detect
# ---------------------------------------------------------------------------

class TestToRichtext:
    def test_file(self, write_file, capsys):
        path = write_file("in.md", "# Title\n\n**bold**")
        assert main(["to-richtext", str(path)]) == EXIT_OK
        out = capsys.readouterr().out
        assert "<h1>Title</h1>" in out
        assert "<strong>bold</strong>" in out

    def test_stdin(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("- a\n- b\n"))
        assert main(["to-richtext"]) == EXIT_OK
        assert "<li>a</li>" in capsys.readouterr().out

    def test_empty(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO(""))
        assert main(["to-richtext"]) == EXIT_NO_CONTENT
        assert "No text found" in capsys.readouterr().err


class TestDetect:
    def test_tsv(self, write_file, capsys, tsv_text):
        path = write_file("in.txt", tsv_text)
        assert main(["detect", "--text", str(path)]) == EXIT_OK
        assert capsys.readouterr().out == "tsv\n"

    def test_html(self, write_file, capsys):
        path = write_file("in.html", "<p>x</p>")
        assert main(["detect", "--html", str(path)]) == EXIT_OK
        assert capsys.readouterr().out == "html\n"


def test_command_required():
    with pytest.raises(SystemExit):
        main([])
