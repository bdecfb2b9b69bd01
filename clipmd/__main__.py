"""CLI entry point: python -m clipmd {to-markdown,to-richtext,detect} [options]"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from clipmd.converter import ClipboardConverter
from clipmd.errors import ConversionError, EmptyClipboard, PlainTextOnly
from clipmd.items import ConversionResult, ConvertOptions
from clipmd.profiles import load_profile

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_NO_CONTENT = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clipmd",
        description=(
            "Convert rich clipboard content (HTML, spreadsheet TSV) to clean Markdown,\n"
            "or Markdown back to styled rich-text HTML."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        metavar="{DEBUG,INFO,WARNING,ERROR}",
                        help="Logging level (default: WARNING)")
    sub = parser.add_subparsers(dest="command", required=True)

    md = sub.add_parser("to-markdown", help="Convert clipboard HTML / text to Markdown")
    md.add_argument("--html", default=None, metavar="FILE",
                    help="File holding the HTML clipboard flavour")
    md.add_argument("--text", default=None, metavar="FILE",
                    help="File holding the plain-text clipboard flavour (default: stdin "
                         "when --html is not given)")
    md.add_argument("--plain", action="store_true", default=False,
                    help="Drop images, video, audio and iframes")
    md.add_argument("--mode", choices=["auto", "tree", "lightweight"], default=None,
                    help="Normalizer: size-gated (auto), or force one (default: auto)")
    md.add_argument("--profile", default=None, metavar="YAML",
                    help="YAML profile with conversion options")
    md.add_argument("--profile-name", default=None, metavar="NAME",
                    help="Named section of --profile to merge over 'default'")
    md.add_argument("--plain-fallback", action="store_true", default=False,
                    help="Convert unstructured plain text one paragraph per line")
    md.add_argument("--out", default=None, metavar="FILE",
                    help="Write Markdown here instead of stdout")
    md.add_argument("--stats", action="store_true", default=False,
                    help="Print a conversion summary to stderr")

    rt = sub.add_parser("to-richtext", help="Convert Markdown to styled HTML")
    rt.add_argument("file", nargs="?", default=None, metavar="FILE",
                    help="Markdown file (default: stdin)")
    rt.add_argument("--out", default=None, metavar="FILE",
                    help="Write HTML here instead of stdout")

    det = sub.add_parser("detect", help="Print what kind of content the input holds")
    det.add_argument("--html", default=None, metavar="FILE")
    det.add_argument("--text", default=None, metavar="FILE")

    return parser


def _read(path: str | None) -> str | None:
    if path is None:
        return None
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _read_payload(args: argparse.Namespace) -> tuple[str | None, str | None]:
    html = _read(args.html)
    text = _read(args.text)
    if html is None and text is None:
        text = sys.stdin.read()
    return html, text


def _write(content: str, out: str | None) -> None:
    if out:
        Path(out).write_text(content + "\n", encoding="utf-8")
        logger.info("Wrote %s", out)
    else:
        sys.stdout.write(content + "\n")


def _options_from_args(args: argparse.Namespace) -> ConvertOptions:
    options = load_profile(args.profile, args.profile_name) if args.profile else ConvertOptions()
    overrides: dict[str, object] = {}
    if args.mode:
        overrides["mode"] = args.mode
    if args.plain:
        overrides["strip_media"] = True
    if args.plain_fallback:
        overrides["plain_text_fallback"] = True
    if overrides:
        options = ConvertOptions(**{**options.model_dump(), **overrides})
    return options


def _print_stats(result: ConversionResult) -> None:
    console = Console(stderr=True)
    tbl = Table(box=box.SIMPLE_HEAVY, show_header=False)
    tbl.add_column("Field", style="bold")
    tbl.add_column("Value")
    tbl.add_row("Source", f"[cyan]{result.source}[/cyan]")
    tbl.add_row("Engine", f"[cyan]{result.engine}[/cyan]")
    tbl.add_row("Input bytes", f"{result.input_bytes:,}")
    tbl.add_row("Tables rendered", f"[green]{result.tables_rendered}[/green]")
    tbl.add_row("Tables unwrapped", str(result.tables_unwrapped))
    tbl.add_row("Tables failed", f"[yellow]{result.tables_failed}[/yellow]")
    tbl.add_row("Markdown chars", f"{len(result.markdown):,}")
    console.print(Panel.fit(tbl, title="[bold]Conversion Summary[/bold]", border_style="cyan"))
    for warning in result.warnings:
        console.print(f"[yellow]warning:[/yellow] {warning}")


def _cmd_to_markdown(args: argparse.Namespace) -> int:
    try:
        options = _options_from_args(args)
    except (OSError, KeyError, ValueError) as exc:
        print(f"ERROR: invalid profile: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    html, text = _read_payload(args)
    converter = ClipboardConverter(options)
    try:
        result = converter.to_markdown(html=html, text=text)
    except EmptyClipboard as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_NO_CONTENT
    except PlainTextOnly as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_NO_CONTENT
    except ConversionError:
        logger.exception("Conversion failed")
        return EXIT_FAILURE

    _write(result.markdown, args.out)
    if args.stats:
        _print_stats(result)
    return EXIT_OK


def _cmd_to_richtext(args: argparse.Namespace) -> int:
    text = _read(args.file) if args.file else sys.stdin.read()
    try:
        result = ClipboardConverter().to_richtext(text)
    except EmptyClipboard as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_NO_CONTENT
    except ConversionError:
        logger.exception("Conversion failed")
        return EXIT_FAILURE
    _write(result.html, args.out)
    return EXIT_OK


def _cmd_detect(args: argparse.Namespace) -> int:
    html, text = _read_payload(args)
    print(ClipboardConverter().detect(html=html, text=text).value)
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )

    handlers = {
        "to-markdown": _cmd_to_markdown,
        "to-richtext": _cmd_to_richtext,
        "detect": _cmd_detect,
    }
    try:
        return handlers[args.command](args)
    except OSError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
