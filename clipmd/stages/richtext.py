"""Markdown -> styled HTML for pasting into rich-text editors."""

from __future__ import annotations

import logging
import re

import markdown

from clipmd.errors import EmptyClipboard, RenderFailure
from clipmd.items import RichTextResult

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = ["extra", "nl2br", "sane_lists"]

_MARKDOWN_PATTERNS = [
    re.compile(r"^#{1,6}\s+", re.MULTILINE),      # heading
    re.compile(r"\*\*[^*]+\*\*"),                 # bold
    re.compile(r"\*[^*\s][^*]*\*"),               # italic
    re.compile(r"\b_[^_]+_\b"),                   # italic
    re.compile(r"\[[^\]]+\]\([^)]+\)"),           # link
    re.compile(r"^[-*+]\s+", re.MULTILINE),       # bullet list
    re.compile(r"^\d+\.\s+", re.MULTILINE),       # ordered list
    re.compile(r"^>\s+", re.MULTILINE),           # blockquote
    re.compile(r"`[^`]+`"),                       # inline code
    re.compile(r"^```", re.MULTILINE),            # fenced code
    re.compile(r"^\|.+\|$", re.MULTILINE),        # table row
    re.compile(r"^[-*_]{3,}$", re.MULTILINE),     # rule
]

STYLESHEET = """\
  body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; }
  h1, h2, h3, h4, h5, h6 { margin-top: 1em; margin-bottom: 0.5em; font-weight: 600; }
  h1 { font-size: 2em; }
  h2 { font-size: 1.5em; }
  h3 { font-size: 1.25em; }
  p { margin: 0.5em 0; }
  ul, ol { margin: 0.5em 0; padding-left: 2em; }
  li { margin: 0.25em 0; }
  code { font-family: 'SF Mono', Menlo, Monaco, 'Courier New', monospace; background: #f4f4f4; padding: 0.2em 0.4em; border-radius: 3px; font-size: 0.9em; }
  pre { background: #f4f4f4; padding: 1em; border-radius: 5px; overflow-x: auto; }
  pre code { background: none; padding: 0; }
  blockquote { border-left: 4px solid #ddd; margin: 0.5em 0; padding-left: 1em; color: #666; }
  table { border-collapse: collapse; margin: 1em 0; }
  th, td { border: 1px solid #ddd; padding: 0.5em 1em; text-align: left; }
  th { background: #f4f4f4; font-weight: 600; }
  a { color: #0066cc; text-decoration: underline; }
  hr { border: none; border-top: 1px solid #ddd; margin: 1em 0; }
"""

_DOCUMENT = """\
<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<style>
{stylesheet}</style>
</head>
<body>
{body}
</body>
</html>"""


def looks_like_markdown(text: str) -> bool:
    return any(p.search(text) for p in _MARKDOWN_PATTERNS)


def markdown_to_html(text: str) -> str:
    """Render *text* and wrap it in a standalone, styled HTML document."""
    try:
        body = markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS)
    except Exception as exc:
        raise RenderFailure(f"Markdown to HTML rendering failed: {exc}") from exc
    return _DOCUMENT.format(stylesheet=STYLESHEET, body=body)


def convert_to_richtext(text: str | None) -> RichTextResult:
    """Convert clipboard Markdown to rich-text HTML.

    Raises:
        EmptyClipboard: *text* is missing or blank.
    """
    if not text or not text.strip():
        raise EmptyClipboard("No text found in clipboard")
    is_markdown = looks_like_markdown(text)
    if not is_markdown:
        logger.warning("Text does not look like Markdown; converting it anyway")
    return RichTextResult(html=markdown_to_html(text), looks_like_markdown=is_markdown)
