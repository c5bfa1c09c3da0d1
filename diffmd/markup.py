"""
Turns a raw word-level edit script into inline revision markup.

Deleted words are struck through with ~~...~~, inserted words are opened
with a backtick and closed with a trailing backtick when the next
non-insertion word is written.
"""

from typing import List, Optional, Sequence

import structlog

from diffmd.editdist import align, script_cost
from diffmd.models import Edit, EditCommand, InternalInconsistencyError, RenderOptions
from diffmd.tokenize import attaches_to_previous, tokenize

logger = structlog.get_logger(__name__)

DEL_MARK = "~~"
INS_MARK = "`"


def normalize_script(edits: Sequence[Edit]) -> List[Edit]:
    """
    Rewrites adjacent replacement pairs so they render as one delete/insert unit.

    - Replace(a), Delete      => Delete, Replace(a)
    - Replace(a), Replace(b)  => Delete, Replace("a b")

    Single left-to-right scan over (i, i+1) pairs. A rewritten Replace at
    i+1 takes part in the next pair, so runs of replacements fold into one.
    The input is left untouched.
    """
    out = [e.model_copy() for e in edits]
    for i in range(len(out) - 1):
        cur, nxt = out[i], out[i + 1]
        if cur.cmd != EditCommand.REPLACE:
            continue
        if nxt.cmd == EditCommand.DELETE:
            out[i] = Edit(cmd=EditCommand.DELETE)
            out[i + 1] = Edit(cmd=EditCommand.REPLACE, word=cur.word)
        elif nxt.cmd == EditCommand.REPLACE:
            out[i] = Edit(cmd=EditCommand.DELETE)
            out[i + 1] = Edit(cmd=EditCommand.REPLACE, word=f"{cur.word} {nxt.word}")
    return out


def _is_insert_like(cmd: Optional[EditCommand]) -> bool:
    return cmd in (EditCommand.INSERT, EditCommand.REPLACE)


def _add_word(parts: List[str], fragment: str):
    if parts and not attaches_to_previous(fragment):
        parts.append(" ")
    parts.append(fragment)


def render_markup(words: Sequence[str], edits: Sequence[Edit], options: Optional[RenderOptions] = None) -> str:
    """
    Walks the source words and a normalized script together and emits the markup string.

    Args:
        words: The source tokens the script was computed from.
        edits: The script, normally after normalize_script().
        options: Rendering knobs. Defaults leave a trailing open run unclosed.

    Raises:
        InternalInconsistencyError: if the script does not consume exactly len(words) source tokens.
    """
    options = options or RenderOptions()

    consumed = sum(1 for e in edits if e.consumes_source)
    if consumed != len(words):
        raise InternalInconsistencyError(f"Edit script consumes {consumed} source tokens but {len(words)} were given")

    parts: List[str] = []
    wi = 0
    prev: Optional[EditCommand] = None

    for e in edits:
        if prev == EditCommand.DELETE and e.cmd not in (EditCommand.DELETE, EditCommand.REPLACE):
            parts.append(DEL_MARK)
        if _is_insert_like(prev) and e.cmd != EditCommand.INSERT:
            parts.append(INS_MARK)

        if e.cmd == EditCommand.DELETE:
            if prev == EditCommand.DELETE:
                _add_word(parts, words[wi])
            else:
                _add_word(parts, f"{DEL_MARK}{words[wi]}")
        elif e.cmd == EditCommand.INSERT:
            if _is_insert_like(prev):
                _add_word(parts, e.word)
            else:
                _add_word(parts, f"{INS_MARK}{e.word}")
            prev = e.cmd
            continue
        elif e.cmd == EditCommand.REPLACE:
            if prev == EditCommand.DELETE:
                _add_word(parts, f"{words[wi]}{DEL_MARK}{INS_MARK}{e.word}")
            else:
                _add_word(parts, f"{DEL_MARK}{words[wi]}{DEL_MARK}{INS_MARK}{e.word}")
        elif e.cmd == EditCommand.IGNORE:
            _add_word(parts, words[wi])
        else:
            raise InternalInconsistencyError(f"Unexpected command in edit script: {e.cmd.value}")

        prev = e.cmd
        wi += 1

    if options.close_trailing_runs:
        if prev == EditCommand.DELETE:
            parts.append(DEL_MARK)
        elif _is_insert_like(prev):
            parts.append(INS_MARK)

    return "".join(parts)


def annotate_blocks(
    original_lines: Sequence[str],
    revision_lines: Sequence[str],
    options: Optional[RenderOptions] = None,
) -> str:
    """
    Full pipeline for one original/revision pair: tokenize, align, normalize, render.
    """
    org = tokenize(original_lines)
    rev = tokenize(revision_lines)

    edits = align(org, rev)
    edits = normalize_script(edits)
    logger.debug(f"Rendering {len(edits)} edits (cost {script_cost(edits)}) over {len(org)} source tokens")

    return render_markup(org, edits, options)
