"""
Markdown host layer: finds marked original/revision blocks, pairs them by id,
and splices the rendered markup back into the document.

    %%% req-start id:1 %%%
    original text
    %%% req-end %%%
    %%% rev-start id:1 %%%
    revised text
    %%% rev-end %%%

The document is held as a flat list of lines. Blocks are [start, end) index
ranges into that list, markers included.
"""

import os
import re
import shutil
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import structlog
from pydantic import BaseModel, Field

from diffmd.markup import annotate_blocks
from diffmd.models import RenderOptions

logger = structlog.get_logger(__name__)

MARKER = "%%%"
MARKER_START_REQ = "%%% req-start "
MARKER_END_REQ = "%%% req-end %%%"
MARKER_START_REV = "%%% rev-start "
MARKER_END_REV = "%%% rev-end %%%"

_ID_PATTERN = re.compile(r" id:([a-zA-Z0-9]+) ")


class ParseError(ValueError):
    """Malformed or unmatched block markers."""

    def __init__(self, message: str, line_no: Optional[int] = None):
        self.line_no = line_no
        if line_no is not None:
            message = f"line {line_no}: {message}"
        super().__init__(message)


class Block(BaseModel):
    start: int = Field(..., description="Index of the start marker line.")
    end: int = Field(..., description="One past the index of the end marker line.")


class RevisePair(BaseModel):
    id: str
    original: Block
    revision: Optional[Block] = None


def split_lines(text: str) -> List[str]:
    """
    Splits text on line feeds only, dropping one trailing carriage return per line.
    Other characters str.splitlines() treats as breaks (form feed, U+2028, ...) stay
    in the line. A final line feed does not produce an empty last line.
    """
    if not text:
        return []
    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


class MarkdownDocument:
    def __init__(self, lines: Sequence[str], trailing_newline: bool = False):
        self.lines = list(lines)
        self.trailing_newline = trailing_newline

    @classmethod
    def from_text(cls, text: str) -> "MarkdownDocument":
        return cls(split_lines(text), trailing_newline=text.endswith("\n"))

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "MarkdownDocument":
        with open(path, "r", encoding="utf-8", newline="") as f:
            return cls.from_text(f.read())

    def to_text(self) -> str:
        text = "\n".join(self.lines)
        if self.trailing_newline and self.lines:
            text += "\n"
        return text

    def body(self, block: Block) -> List[str]:
        """Lines strictly between the block's markers."""
        return self.lines[block.start + 1 : block.end - 1]

    def _read_block(self, start: int, end_mark: str) -> Block:
        if start + 1 < len(self.lines) and self.lines[start + 1] == end_mark:
            raise ParseError(f"Empty block found: {self.lines[start]}", start + 1)
        for i in range(start + 1, len(self.lines)):
            if self.lines[i] == end_mark:
                return Block(start=start, end=i + 1)
        raise ParseError(f"No '{end_mark}' found for: {self.lines[start]}", start + 1)

    def locate_pairs(self) -> Dict[str, RevisePair]:
        """
        Scans the document for marker blocks and pairs them by id.

        An original block must come before its revision. Lines inside a block
        are not inspected for markers.

        Raises:
            ParseError: on unknown marker lines, missing ids, empty or
                unterminated blocks, duplicate ids, or unpaired blocks.
        """
        pairs: Dict[str, RevisePair] = {}
        i = 0
        while i < len(self.lines):
            line = self.lines[i]
            if MARKER not in line:
                i += 1
                continue

            if MARKER_START_REQ in line:
                block = self._read_block(i, MARKER_END_REQ)
                block_id = _extract_id(line, i + 1)
                if block_id in pairs:
                    raise ParseError(f"Duplicate original block for id:{block_id}", i + 1)
                pairs[block_id] = RevisePair(id=block_id, original=block)
            elif MARKER_START_REV in line:
                block = self._read_block(i, MARKER_END_REV)
                block_id = _extract_id(line, i + 1)
                pair = pairs.get(block_id)
                if pair is None:
                    raise ParseError(f"Revision block for id:{block_id} has no preceding original block", i + 1)
                if pair.revision is not None:
                    raise ParseError(f"Duplicate revision block for id:{block_id}", i + 1)
                pair.revision = block
            else:
                raise ParseError(f"Unexpected syntax. Please check if the file format is correct: {line}", i + 1)
            i = block.end

        for pair in pairs.values():
            if pair.revision is None:
                raise ParseError(f"Original block for id:{pair.id} has no revision block", pair.original.start + 1)

        logger.debug(f"Located {len(pairs)} revision pairs")
        return pairs

    def splice(self, replacements: Sequence[Tuple[Block, List[str]]]) -> "MarkdownDocument":
        """Returns a new document with each block range replaced by the given lines."""
        lines = list(self.lines)
        for block, new_lines in sorted(replacements, key=lambda r: r[0].start, reverse=True):
            lines[block.start : block.end] = new_lines
        return MarkdownDocument(lines, trailing_newline=self.trailing_newline)


def _extract_id(line: str, line_no: int) -> str:
    match = _ID_PATTERN.search(line)
    if not match:
        raise ParseError(f"Wrong syntax: {line}", line_no)
    return match.group(1)


def annotate_document(
    document: MarkdownDocument, options: Optional[RenderOptions] = None
) -> Tuple[MarkdownDocument, List[RevisePair]]:
    """
    Replaces every original block with its rendered markup line and drops the revision block.
    """
    pairs = list(document.locate_pairs().values())
    replacements: List[Tuple[Block, List[str]]] = []

    for pair in pairs:
        markup = annotate_blocks(document.body(pair.original), document.body(pair.revision), options)
        logger.debug(f"Annotated id:{pair.id}")
        replacements.append((pair.original, [markup]))
        replacements.append((pair.revision, []))

    return document.splice(replacements), pairs


def write_with_backup(path: Union[str, Path], text: str):
    """
    Overwrites path with text, keeping a temporary backup until the write succeeds.
    On failure the original content is restored and the error re-raised.
    """
    path = Path(path)
    fd, backup = tempfile.mkstemp(prefix="diffmd")
    os.close(fd)
    shutil.copy2(path, backup)
    logger.info(f"backup: {backup}")

    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
    except OSError as e:
        logger.error(f"Write failed, rolling back {path}: {e}")
        try:
            shutil.copy2(backup, path)
        except OSError as rollback_err:
            logger.error(f"Failed to rollback, backup kept at {backup}: {rollback_err}")
            raise e from rollback_err
        os.remove(backup)
        raise

    os.remove(backup)


def annotate_file(
    path: Union[str, Path],
    output: Optional[Union[str, Path]] = None,
    options: Optional[RenderOptions] = None,
) -> int:
    """
    Annotates every pair in the file at path.

    Writes to output if given, otherwise overwrites path through write_with_backup().
    Returns the number of pairs annotated.
    """
    document = MarkdownDocument.from_path(path)
    annotated, pairs = annotate_document(document, options)

    if not pairs:
        logger.warning(f"No revision pairs found in {path}")
        if not output:
            return 0

    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(annotated.to_text())
    else:
        write_with_backup(path, annotated.to_text())

    logger.info(f"Annotated {len(pairs)} pairs", path=str(path))
    return len(pairs)
