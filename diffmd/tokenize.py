"""
Word/punctuation tokenizer for revision blocks.

Spaces delimit tokens and are dropped. The punctuation characters in
PUNCTUATION both delimit tokens and are kept as one-character tokens of
their own, so "student." becomes ["student", "."].
"""

from typing import Iterable, List

PUNCTUATION = frozenset(",.;?!")
SEPARATORS = PUNCTUATION | {" "}


def tokenize(lines: Iterable[str]) -> List[str]:
    """
    Splits text lines into a flat, ordered list of tokens.

    Each line is scanned independently. A pending word is flushed at every
    separator and at the end of its line; no token ever spans two lines and
    no newline token is produced.
    """
    tokens: List[str] = []
    for line in lines:
        buf: List[str] = []
        for c in line:
            if c in SEPARATORS:
                if buf:
                    tokens.append("".join(buf))
                    buf = []
                if c != " ":
                    tokens.append(c)
            else:
                buf.append(c)
        if buf:
            tokens.append("".join(buf))
    return tokens


def attaches_to_previous(fragment: str) -> bool:
    """True if fragment is a bare punctuation token, which is written without a leading space."""
    return fragment in PUNCTUATION
