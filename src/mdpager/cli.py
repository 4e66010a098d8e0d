"""Entry point for the ``md`` command."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from mdpager.components.pager import Pager
from mdpager.config import Config
from mdpager.errors import DocumentReadError, FormatterError, RunLoopError
from mdpager.render.pipeline import Document, render_document
from mdpager.styles import load_style
from mdpager.terminal import ProcessTerminal, terminal_size
from mdpager.tui import App

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def parse_args(argv: list[str] | None = None) -> Config:
    parser = argparse.ArgumentParser(
        prog="md",
        description="Render a markdown file and page through it in the terminal",
    )
    parser.add_argument("file", help="Markdown file to show")
    parser.add_argument("--width", type=_positive_int, help="Wrap width (default: terminal columns minus 4)")
    parser.add_argument("--page-lines", type=_positive_int, default=15, help="Lines moved by l/p (default: 15)")
    parser.add_argument("--style", dest="style_path", help="JSON style rules layered over the defaults")
    parser.add_argument("--print", dest="print_only", action="store_true", help="Write the rendered document to stdout")
    parser.add_argument("--log-level", default="warning", choices=["debug", "info", "warning", "error"])
    parser.add_argument("--log-file", help="Write logs to this file instead of stderr")
    args = parser.parse_args(argv)

    return Config(
        path=args.file,
        width=args.width,
        page_lines=args.page_lines,
        style_path=args.style_path,
        print_only=args.print_only,
        log_level=args.log_level,
        log_file=args.log_file,
    )


def setup_logging(config: Config) -> None:
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        filename=config.log_file,
    )


def read_document(path: str) -> str:
    try:
        with open(path, encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        raise DocumentReadError(path, e.strerror or str(e)) from e
    except UnicodeDecodeError as e:
        raise DocumentReadError(path, f"not valid UTF-8 ({e.reason})") from e


def main(argv: list[str] | None = None) -> int:
    config = parse_args(argv)
    setup_logging(config)

    try:
        text = read_document(config.path)
    except DocumentReadError as e:
        print(f"Error reading file: {e}", file=sys.stderr)
        return 1

    try:
        style = load_style(config.style_path)
        width = config.wrap_width(terminal_size()[0])
        rendered = render_document(Document(text, width), style)
    except FormatterError as e:
        print(f"Error rendering markdown: {e}", file=sys.stderr)
        return 1

    if config.print_only:
        sys.stdout.write(rendered.text)
        return 0

    pager = Pager(
        rendered,
        config.path,
        page_lines=config.page_lines,
        header_height=config.header_height,
        footer_height=config.footer_height,
    )
    try:
        asyncio.run(App(ProcessTerminal(), pager).run())
    except RunLoopError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
