"""Remove images and embedded media for the plain-Markdown conversion."""

from __future__ import annotations

import re

_PAIRED_MEDIA_RE = re.compile(
    r"<(video|audio|iframe|picture|object)\b[^>]*>.*?</\1\s*>",
    re.IGNORECASE | re.DOTALL,
)
_VOID_MEDIA_RE = re.compile(
    r"</?(?:img|video|audio|iframe|picture|source|track|embed|object)\b[^>]*>",
    re.IGNORECASE,
)

_IMAGE_RE = re.compile(r"!\[[^\]]*\]\([^)]+\)")
_IMAGE_REF_RE = re.compile(r"!\[[^\]]*\]\[[^\]]+\]")
_IMAGE_URL_LINE_RE = re.compile(
    r"^https?://\S+\.(?:png|jpe?g|gif|svg|webp)\b.*$",
    re.IGNORECASE | re.MULTILINE,
)
_BLANK_RUN_RE = re.compile(r"\n{3,}")


def strip_media_html(html: str) -> str:
    """Drop ``img``, ``video``, ``audio`` and ``iframe`` elements from *html*."""
    html = _PAIRED_MEDIA_RE.sub("", html)
    return _VOID_MEDIA_RE.sub("", html)


def strip_media_markdown(md: str) -> str:
    """Drop image syntax and bare image URLs from rendered Markdown."""
    md = _IMAGE_RE.sub("", md)
    md = _IMAGE_REF_RE.sub("", md)
    md = _IMAGE_URL_LINE_RE.sub("", md)
    md = _BLANK_RUN_RE.sub("\n\n", md)
    return md.strip()
