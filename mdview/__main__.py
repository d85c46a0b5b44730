from __future__ import annotations

import argparse
import sys
from pathlib import Path

from loguru import logger

from mdview import config
from mdview.engine import render_to_html
from mdview.errors import RenderError
from mdview.log import configure_logging
from mdview.page import build_page


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mdview",
        description="Preview a markdown document with alerts, Mermaid diagrams and math.",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Markdown file to open (default: last document from ~/.mdview.cfg).",
    )
    output = parser.add_mutually_exclusive_group()
    output.add_argument("--html", action="store_true", help="Print the rendered HTML fragment and exit.")
    output.add_argument("--page", action="store_true", help="Print a complete HTML page and exit.")
    parser.add_argument("-o", "--output", default=None, help="Write --html/--page output to this file.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr.")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    configure_logging("DEBUG" if args.verbose else config.log_level())

    if args.path is not None:
        path: Path | None = Path(args.path).expanduser()
    else:
        path = config.load_last_document()

    headless = args.html or args.page
    if path is None:
        if headless:
            print("No markdown file given and no last document remembered.", file=sys.stderr)
            return 2
    elif not path.is_file():
        print(f"File does not exist: {path}", file=sys.stderr)
        return 2

    if not headless:
        # Qt is only needed for the interactive viewer.
        from mdview.viewer import run_viewer

        return run_viewer(path, config.config_file_path())

    try:
        markdown_text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        print(f"Could not read {path}: {exc}", file=sys.stderr)
        return 1

    try:
        rendered = render_to_html(markdown_text, path)
    except RenderError as exc:
        logger.error("render failed for {}: {}", path, exc)
        print(f"Could not render {path}: {exc}", file=sys.stderr)
        return 1

    if args.page:
        rendered = build_page(
            rendered,
            path.name,
            mathjax_sources=config.mathjax_script_sources(),
            mermaid_sources=config.mermaid_script_sources(),
        )

    if args.output:
        try:
            Path(args.output).write_text(rendered, encoding="utf-8")
        except OSError as exc:
            print(f"Could not write {args.output}: {exc}", file=sys.stderr)
            return 1
    else:
        sys.stdout.write(rendered)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
