"""Functional conversion pipeline.

    classify -> normalize -> render tables -> render Markdown -> post-process

Quick usage::

    from clipmd.pipeline import convert

    result = convert(html="<p><span style='font-weight:700'>Hi</span></p>")
    print(result.markdown)          # **Hi**
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup

from clipmd.errors import NormalizationFailure, PlainTextOnly
from clipmd.items import ClipboardPayload, ConversionResult, ConvertOptions
from clipmd.stages.content_type import (
    ClassifiedContent,
    ContentKind,
    classify_payload,
    is_spreadsheet_html,
    text_to_paragraphs,
)
from clipmd.stages.lightweight import normalize_html_lightweight, render_tables_lightweight
from clipmd.stages.markdown import render_markdown
from clipmd.stages.media import strip_media_html, strip_media_markdown
from clipmd.stages.normalize import normalize_tree
from clipmd.stages.postprocess import postprocess_markdown
from clipmd.stages.tables import TableStats, render_tables

logger = logging.getLogger(__name__)

ENGINE_TREE = "tree"
ENGINE_LIGHTWEIGHT = "lightweight"


def choose_engine(html: str, options: ConvertOptions) -> str:
    """Apply the size gate unless the options force a normalizer."""
    if options.mode == "tree":
        return ENGINE_TREE
    if options.mode == "lightweight":
        return ENGINE_LIGHTWEIGHT
    if len(html.encode("utf-8")) > options.tree_size_limit:
        return ENGINE_LIGHTWEIGHT
    return ENGINE_TREE


def _classify(payload: ClipboardPayload, options: ConvertOptions, warnings: list[str]) -> ClassifiedContent:
    try:
        return classify_payload(
            payload.html,
            payload.text,
            strict_tsv=options.strict_tsv,
            relaxed_tsv=options.relaxed_tsv,
        )
    except PlainTextOnly as exc:
        if not options.plain_text_fallback:
            raise
        logger.warning("Clipboard holds plain text only; converting line by line")
        warnings.append(str(exc))
        return ClassifiedContent(ContentKind.PLAIN_TEXT, text_to_paragraphs(exc.text))


def _tree_markdown(html: str, options: ConvertOptions, spreadsheet: bool, stats: TableStats) -> str:
    soup = BeautifulSoup(html, "lxml")
    normalize_tree(soup, class_heuristics=options.class_bold_heuristics, spreadsheet=spreadsheet)
    render_tables(soup, unwrap_layout=options.unwrap_layout_tables, stats=stats)
    return render_markdown(soup)


def _lightweight_markdown(html: str, options: ConvertOptions, spreadsheet: bool, stats: TableStats) -> str:
    normalized = normalize_html_lightweight(
        html,
        class_heuristics=options.class_bold_heuristics,
        spreadsheet=spreadsheet,
    )
    rendered = render_tables_lightweight(normalized, unwrap_layout=options.unwrap_layout_tables, stats=stats)
    return render_markdown(rendered)


def convert_payload(payload: ClipboardPayload, options: ConvertOptions | None = None) -> ConversionResult:
    """Convert a clipboard payload to Markdown.

    Raises:
        EmptyClipboard: nothing to convert.
        PlainTextOnly: plain text without structure, unless
            ``options.plain_text_fallback`` is set.
        RenderFailure: markdownify failed.
    """
    options = options or ConvertOptions()
    warnings: list[str] = []

    content = _classify(payload, options, warnings)
    html = content.html
    if options.strip_media:
        html = strip_media_html(html)

    input_bytes = len(html.encode("utf-8"))
    spreadsheet = is_spreadsheet_html(html)
    engine = choose_engine(html, options)
    logger.debug("Converting %d bytes of %s with the %s engine", input_bytes, content.kind.value, engine)

    stats = TableStats()
    if engine == ENGINE_TREE:
        try:
            md = _tree_markdown(html, options, spreadsheet, stats)
        except NormalizationFailure as exc:
            logger.warning("Tree normalization failed (%s); using the lightweight engine", exc)
            warnings.append(str(exc))
            engine = ENGINE_LIGHTWEIGHT
            stats = TableStats()
            md = _lightweight_markdown(html, options, spreadsheet, stats)
    else:
        md = _lightweight_markdown(html, options, spreadsheet, stats)

    md = postprocess_markdown(md)
    if options.strip_media:
        md = strip_media_markdown(md)

    if stats.failed:
        warnings.append(f"{stats.failed} table(s) could not be converted to pipe tables")

    return ConversionResult(
        markdown=md,
        source=content.kind.value,
        engine=engine,
        input_bytes=input_bytes,
        tables_rendered=stats.rendered,
        tables_unwrapped=stats.unwrapped,
        tables_failed=stats.failed,
        warnings=warnings,
    )


def convert(
    html: str | None = None,
    text: str | None = None,
    *,
    options: ConvertOptions | None = None,
) -> ConversionResult:
    """Convert clipboard HTML and/or plain text to Markdown."""
    return convert_payload(ClipboardPayload(html=html, text=text), options)
