"""Pydantic models for clipboard payloads, conversion options and results."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from clipmd import settings

# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------

class ClipboardPayload(BaseModel):
    """The two clipboard representations the converter understands."""

    html: str | None = None
    text: str | None = None

    @field_validator("html", "text", mode="before")
    @classmethod
    def blank_to_none(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_empty(self) -> bool:
        return self.html is None and self.text is None


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------

class ConvertOptions(BaseModel):
    """Feature flags for one conversion.

    ``mode`` picks the normalizer: ``"auto"`` applies the size gate,
    ``"tree"`` and ``"lightweight"`` force one path.
    """

    model_config = {"extra": "forbid"}

    mode: Literal["auto", "tree", "lightweight"] = "auto"
    tree_size_limit: int = Field(default=settings.TREE_SIZE_LIMIT_BYTES, ge=0)

    # Table handling
    unwrap_layout_tables: bool = True

    # Inline style inference
    class_bold_heuristics: bool = False

    # Plain-text handling
    strict_tsv: bool = True
    relaxed_tsv: bool = True
    plain_text_fallback: bool = False

    # Plain-Markdown command: drop images, video, audio and iframes
    strip_media: bool = False


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

class ConversionResult(BaseModel):
    """Markdown produced by one conversion plus provenance counters."""

    markdown: str = ""
    source: str = "html"            # ContentKind value
    engine: str = "tree"            # "tree" | "lightweight"
    input_bytes: int = 0
    tables_rendered: int = 0
    tables_unwrapped: int = 0
    tables_failed: int = 0
    warnings: list[str] = Field(default_factory=list)


class RichTextResult(BaseModel):
    """Styled HTML document produced from Markdown."""

    html: str
    looks_like_markdown: bool = True
