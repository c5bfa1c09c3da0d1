from typing import List, Optional, Sequence

import structlog

from diffmd.models import Edit, EditCommand, InternalInconsistencyError

logger = structlog.get_logger(__name__)

INS_COST = 1
DEL_COST = 1
RPL_COST = 1


def align(src: Sequence[str], tgt: Sequence[str]) -> List[Edit]:
    """
    Computes a minimum-cost word-level edit script turning src into tgt.

    Classic edit-distance table of size (len(src)+1) x (len(tgt)+1). When
    several moves reach the same minimal cost, Delete beats Insert, and Insert
    beats Replace/Ignore. The tie-break is fixed so that the same inputs always
    produce the same script.

    Returns the script in left-to-right order. Ignore and Delete carry no word;
    Insert and Replace carry the target word.
    """
    rows = len(src) + 1
    cols = len(tgt) + 1
    max_cost = len(src) * DEL_COST + len(tgt) * INS_COST

    dp = [[max_cost] * cols for _ in range(rows)]
    cmd: List[List[Optional[EditCommand]]] = [[None] * cols for _ in range(rows)]

    for i in range(rows):
        dp[i][0] = i * DEL_COST
        cmd[i][0] = EditCommand.DELETE
    for j in range(cols):
        dp[0][j] = j * INS_COST
        cmd[0][j] = EditCommand.INSERT
    cmd[0][0] = EditCommand.END

    for i in range(1, rows):
        for j in range(1, cols):
            delete = dp[i - 1][j] + DEL_COST
            insert = dp[i][j - 1] + INS_COST
            rpl_cost = 0 if src[i - 1] == tgt[j - 1] else RPL_COST
            replace = dp[i - 1][j - 1] + rpl_cost

            if delete <= insert and delete <= replace:
                dp[i][j] = delete
                cmd[i][j] = EditCommand.DELETE
            elif insert <= delete and insert <= replace:
                dp[i][j] = insert
                cmd[i][j] = EditCommand.INSERT
            else:
                dp[i][j] = replace
                cmd[i][j] = EditCommand.IGNORE if rpl_cost == 0 else EditCommand.REPLACE

    edits: List[Edit] = []
    y, x = len(src), len(tgt)
    while True:
        step = cmd[y][x]
        if step == EditCommand.END:
            break
        if step == EditCommand.INSERT:
            edits.append(Edit(cmd=EditCommand.INSERT, word=tgt[x - 1]))
            x -= 1
        elif step == EditCommand.DELETE:
            edits.append(Edit(cmd=EditCommand.DELETE))
            y -= 1
        elif step == EditCommand.REPLACE:
            edits.append(Edit(cmd=EditCommand.REPLACE, word=tgt[x - 1]))
            x -= 1
            y -= 1
        elif step == EditCommand.IGNORE:
            edits.append(Edit(cmd=EditCommand.IGNORE))
            x -= 1
            y -= 1
        else:
            raise InternalInconsistencyError(f"Unknown command found during backtracking at ({y}, {x})")

    edits.reverse()
    logger.debug(f"Aligned {len(src)} source tokens against {len(tgt)} target tokens, cost {dp[-1][-1]}")
    return edits


def script_cost(edits: Sequence[Edit]) -> int:
    """Total cost of a script: Ignore counts 0, every other step counts 1."""
    cost = 0
    for e in edits:
        if e.cmd == EditCommand.INSERT:
            cost += INS_COST
        elif e.cmd == EditCommand.DELETE:
            cost += DEL_COST
        elif e.cmd == EditCommand.REPLACE:
            cost += RPL_COST
    return cost
