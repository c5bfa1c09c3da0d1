import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List

import structlog

from diffmd import __version__
from diffmd.document import ParseError, annotate_file, split_lines
from diffmd.editdist import align, script_cost
from diffmd.markup import normalize_script, render_markup
from diffmd.models import RenderOptions
from diffmd.tokenize import tokenize


def _configure_logging(verbose: bool):
    # Markup goes to stdout, so logs must stay on stderr.
    level = logging.DEBUG if verbose else logging.INFO
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _require_file(path: Path):
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        sys.exit(1)


def _read_lines(path: Path) -> List[str]:
    _require_file(path)
    with open(path, "r", encoding="utf-8", newline="") as f:
        return split_lines(f.read())


def handle_apply(args):
    _require_file(args.input)

    options = RenderOptions(close_trailing_runs=args.close_runs)
    try:
        count = annotate_file(args.input, output=args.output, options=options)
    except ParseError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    output_path = args.output or args.input
    print(f"✅ Saved to {output_path}", file=sys.stderr)
    print(f"Stats: {count} pairs annotated.", file=sys.stderr)


def handle_diff(args):
    org = tokenize(_read_lines(args.original))
    rev = tokenize(_read_lines(args.revised))

    raw = align(org, rev)
    edits = normalize_script(raw)

    if args.json:
        output = {
            "source": org,
            "target": rev,
            "cost": script_cost(raw),
            "raw": [e.model_dump(mode="json") for e in raw],
            "normalized": [e.model_dump(mode="json") for e in edits],
        }
        print(json.dumps(output, indent=2))
    else:
        print(render_markup(org, edits, RenderOptions(close_trailing_runs=args.close_runs)))


def main():
    parser = argparse.ArgumentParser(prog="diffmd", description="Diff-MD: inline word-level revision markup for Markdown")
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging on stderr")
    subparsers = parser.add_subparsers(dest="command", required=True, help="Subcommands")

    p_apply = subparsers.add_parser("apply", help="Annotate every req/rev block pair in a Markdown file")
    p_apply.add_argument("input", type=Path, help="Markdown file containing req/rev marker blocks")
    p_apply.add_argument("-o", "--output", type=Path, help="Output path (default: overwrite input with backup)")
    p_apply.add_argument("--close-runs", action="store_true", help="Close a deletion/insertion run left open at the end")
    p_apply.set_defaults(func=handle_apply)

    p_diff = subparsers.add_parser("diff", help="Print the markup between two plain text files")
    p_diff.add_argument("original", type=Path, help="Original text file")
    p_diff.add_argument("revised", type=Path, help="Revised text file")
    p_diff.add_argument("--json", action="store_true", help="Output the raw and normalized edit scripts as JSON")
    p_diff.add_argument("--close-runs", action="store_true", help="Close a deletion/insertion run left open at the end")
    p_diff.set_defaults(func=handle_diff)

    args = parser.parse_args()
    _configure_logging(args.verbose)
    args.func(args)


if __name__ == "__main__":
    main()
