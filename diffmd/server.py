import logging
import sys
from pathlib import Path
from typing import Optional

import structlog
from mcp.server.fastmcp import FastMCP

from diffmd.document import ParseError, annotate_file, split_lines
from diffmd.markup import annotate_blocks
from diffmd.models import RenderOptions

# --- LOGGING CONFIGURATION ---
# MCP communicates over stdio.
# All logs must go to stderr. Any print to stdout will break the JSON-RPC protocol.
logging.basicConfig(stream=sys.stderr, level=logging.INFO, force=True)

structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
)

logger = structlog.get_logger(__name__)

mcp = FastMCP("Diff-MD Annotation Service")


@mcp.tool()
def annotate_markdown(file_path: str, output_path: Optional[str] = None, close_trailing_runs: bool = False) -> str:
    """
    Replaces every '%%% req-start id:N %%%' / '%%% rev-start id:N %%%' block pair in a
    Markdown file with a single line of inline revision markup.

    Deleted words are shown as ~~old words~~ and inserted words as `new words`.

    Args:
        file_path: Absolute path to the Markdown file.
        output_path: Optional path for the result. If omitted, the file is overwritten
                     (a temporary backup is restored if the write fails).
        close_trailing_runs: If True, a deletion or insertion left open at the end of a
                             pair is closed explicitly.
    """
    if not Path(file_path).exists():
        return f"Error: File not found: {file_path}"

    try:
        count = annotate_file(
            file_path,
            output=output_path,
            options=RenderOptions(close_trailing_runs=close_trailing_runs),
        )
    except ParseError as e:
        logger.warning(f"Marker parse failed for {file_path}: {e}")
        return f"Error: {e}"
    except Exception as e:
        logger.error(f"Annotation failed for {file_path}: {e}", exc_info=True)
        return f"Error annotating file: {str(e)}"

    return f"Annotated {count} pairs. Saved to: {output_path or file_path}"


@mcp.tool()
def diff_text(original_text: str, revised_text: str, close_trailing_runs: bool = False) -> str:
    """
    Returns the inline word-level markup that turns original_text into revised_text.

    Args:
        original_text: The original passage.
        revised_text: The revised passage.
        close_trailing_runs: If True, a deletion or insertion left open at the end is closed explicitly.
    """
    try:
        return annotate_blocks(
            split_lines(original_text),
            split_lines(revised_text),
            RenderOptions(close_trailing_runs=close_trailing_runs),
        )
    except Exception as e:
        logger.error(f"Diff failed: {e}", exc_info=True)
        return f"Error computing diff: {str(e)}"


def main():
    mcp.run()


if __name__ == "__main__":
    main()
