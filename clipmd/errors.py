"""Exception taxonomy for clipboard conversion.

Only :class:`EmptyClipboard`, :class:`PlainTextOnly` and :class:`RenderFailure`
normally reach the caller.  :class:`TableParseFailure` is contained per table
and :class:`NormalizationFailure` triggers the string-based fallback.
"""

from __future__ import annotations


class ConversionError(RuntimeError):
    """Base class for every clipmd conversion error."""


class EmptyClipboard(ConversionError):
    """Neither HTML nor text is available."""

    def __init__(self, message: str = "Clipboard is empty") -> None:
        super().__init__(message)


class PlainTextOnly(ConversionError):
    """Text exists but is neither HTML nor tabular data.

    Attributes:
        text -- the unconvertible plain text, for callers that degrade to a
                paragraph-per-line conversion
    """

    def __init__(
        self,
        text: str,
        message: str = "No rich text or HTML found - clipboard contains plain text only",
    ) -> None:
        super().__init__(message)
        self.text = text


class TableParseFailure(ConversionError):
    """A single table could not be turned into a cell grid."""


class NormalizationFailure(ConversionError):
    """The tree-based normalizer raised; the string path should take over."""


class RenderFailure(ConversionError):
    """The Markdown renderer itself failed."""
