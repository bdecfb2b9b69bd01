"""Stateful converter that bundles options for repeated conversions."""

from __future__ import annotations

import logging
from pathlib import Path

from clipmd.items import ClipboardPayload, ConversionResult, ConvertOptions, RichTextResult
from clipmd.pipeline import convert_payload
from clipmd.profiles import load_profile
from clipmd.stages.content_type import ContentKind, detect_content_kind
from clipmd.stages.richtext import convert_to_richtext

logger = logging.getLogger(__name__)


class ClipboardConverter:
    """Convert clipboard content with one fixed set of options.

    Example::

        converter = ClipboardConverter(ConvertOptions(strip_media=True))
        md = converter.to_markdown(html=clipboard_html).markdown
    """

    def __init__(self, options: ConvertOptions | None = None, **overrides) -> None:
        base = options or ConvertOptions()
        self.options = ConvertOptions(**{**base.model_dump(), **overrides}) if overrides else base

    @classmethod
    def from_profile(cls, path: str | Path, name: str | None = None, **overrides) -> ClipboardConverter:
        return cls(load_profile(path, name), **overrides)

    def convert(self, payload: ClipboardPayload) -> ConversionResult:
        return convert_payload(payload, self.options)

    def to_markdown(self, html: str | None = None, text: str | None = None) -> ConversionResult:
        return self.convert(ClipboardPayload(html=html, text=text))

    def to_richtext(self, text: str | None) -> RichTextResult:
        return convert_to_richtext(text)

    def detect(self, html: str | None = None, text: str | None = None) -> ContentKind:
        return detect_content_kind(
            html,
            text,
            strict_tsv=self.options.strict_tsv,
            relaxed_tsv=self.options.relaxed_tsv,
        )
