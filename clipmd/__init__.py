"""clipmd - turn rich clipboard content into clean Markdown, and back.

Quick usage::

    from clipmd import convert

    result = convert(html=clipboard_html, text=clipboard_text)
    print(result.markdown)

Spreadsheet copies arrive as tab-separated text::

    convert(text="Name\\tAge\\nAlice\\t30").markdown
    # | Name | Age |
    # | --- | --- |
    # | Alice | 30 |

Reverse direction, for pasting into rich-text editors::

    from clipmd import convert_to_richtext

    html = convert_to_richtext("# Title\\n\\n**bold**").html
"""

from clipmd.converter import ClipboardConverter
from clipmd.errors import (
    ConversionError,
    EmptyClipboard,
    NormalizationFailure,
    PlainTextOnly,
    RenderFailure,
    TableParseFailure,
)
from clipmd.items import ClipboardPayload, ConversionResult, ConvertOptions, RichTextResult
from clipmd.pipeline import convert, convert_payload
from clipmd.profiles import load_profile
from clipmd.stages.richtext import convert_to_richtext

__version__ = "0.1.0"
__all__ = [
    "ClipboardConverter",
    "ClipboardPayload",
    "ConversionError",
    "ConversionResult",
    "ConvertOptions",
    "EmptyClipboard",
    "NormalizationFailure",
    "PlainTextOnly",
    "RenderFailure",
    "RichTextResult",
    "TableParseFailure",
    "convert",
    "convert_payload",
    "convert_to_richtext",
    "load_profile",
]
