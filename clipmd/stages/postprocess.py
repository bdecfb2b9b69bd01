"""Line-oriented cleanup of rendered Markdown.

Each rule is independent and idempotent; :func:`postprocess_markdown`
applies them in a fixed order.
"""

from __future__ import annotations

import logging
import re

from clipmd import settings

logger = logging.getLogger(__name__)

_EMPHASIS_ONLY_LINE_RE = re.compile(r"^[ \t]*(?:\*\*|__|\*|_)[ \t]*$", re.MULTILINE)
_LEADING_BOLD_RE = re.compile(r"\A[ \t]*\*\*[ \t]*\n+")
_TRAILING_BOLD_RE = re.compile(r"\n+[ \t]*\*\*[ \t]*\Z")
_EMPTY_ORDERED_ITEM_RE = re.compile(r"^\d+\.[ \t]+$", re.MULTILINE)
_BULLET_LINE_RE = re.compile(
    r"^[ \t]*[%s][ \t]+(.+)$" % "".join(settings.BULLET_GLYPHS),
    re.MULTILINE,
)
_EXCESSIVE_NEWLINES_RE = re.compile(r"\n{4,}")
_TRAILING_WHITESPACE_RE = re.compile(r"[ \t]+$", re.MULTILINE)
_FENCE_RE = re.compile(r"^[ \t]*(```|~~~)")
_CODE_SPAN_RE = re.compile(r"(`+[^`\n]*`+)")


def drop_emphasis_only_lines(md: str) -> str:
    return _EMPHASIS_ONLY_LINE_RE.sub("", md)


def drop_stray_bold(md: str) -> str:
    md = _LEADING_BOLD_RE.sub("", md)
    return _TRAILING_BOLD_RE.sub("", md)


def unescape_dashes(md: str) -> str:
    """Turn ``\\-`` into ``-`` outside fenced code blocks and code spans."""
    out: list[str] = []
    in_fence = False
    for line in md.split("\n"):
        if _FENCE_RE.match(line):
            in_fence = not in_fence
            out.append(line)
            continue
        if in_fence or "\\-" not in line:
            out.append(line)
            continue
        parts = _CODE_SPAN_RE.split(line)
        out.append("".join(
            part if i % 2 else part.replace("\\-", "-")
            for i, part in enumerate(parts)
        ))
    return "\n".join(out)


def drop_empty_ordered_items(md: str) -> str:
    return _EMPTY_ORDERED_ITEM_RE.sub("", md)


def normalize_bullets(md: str) -> str:
    return _BULLET_LINE_RE.sub(r"- \1", md)


def collapse_newlines(md: str) -> str:
    return _EXCESSIVE_NEWLINES_RE.sub("\n\n\n", md)


def _trim_trailing(m: re.Match) -> str:
    ws = m.group(0)
    if ws == "  ":
        return ws
    if len(ws) >= 3:
        return "  "
    return ""


def trim_trailing_whitespace(md: str) -> str:
    """Strip trailing whitespace but keep the two-space hard line break.

    Whitespace-only lines become empty.
    """
    lines = []
    for line in md.split("\n"):
        if not line.strip():
            lines.append("")
            continue
        lines.append(_TRAILING_WHITESPACE_RE.sub(_trim_trailing, line))
    return "\n".join(lines)


def postprocess_markdown(md: str) -> str:
    if not md:
        return ""
    md = drop_emphasis_only_lines(md)
    md = drop_stray_bold(md)
    md = unescape_dashes(md)
    md = drop_empty_ordered_items(md)
    md = normalize_bullets(md)
    md = trim_trailing_whitespace(md)
    md = collapse_newlines(md)
    return md.strip()
