"""Frame builder: cut a token sequence into width- and word-bounded lines.

WHY: A reader frame must fit a fixed number of columns and should not show
more than a handful of words at once. Punctuation is a natural pause, so a
line ends at a punctuated token even when the word budget has room left,
and a sentence end also ends the frame.

HOW: build_line() walks tokens from a start index and accepts them while
both budgets hold:
  1. Word budget — at most word_budget tokens per line.
  2. Width budget — the joined line (single spaces) stays within
     width_budget characters. The first token is always accepted, so an
     over-long token is shown alone rather than dropped.
  3. Punctuation — a token ending in Unicode punctuation is accepted and
     closes the line. If its trailing punctuation run holds . ? or ! the
     line is terminal (a sentence end).
build_frame() stacks up to line_budget such lines and stops early after a
terminal line.

RULES:
- Text content is never modified, only grouped
- A line never exceeds width_budget unless it is a single over-long token
- start >= len(tokens) yields an empty line and next_index == start
- word_budget and width_budget must be >= 1 (ValueError otherwise)
"""

from __future__ import annotations

import unicodedata
from typing import List, Sequence

from speedr.core.ir import Frame, LineResult

SENTENCE_END = frozenset(".?!")


def is_punct(ch: str) -> bool:
    """True if ch is in a Unicode punctuation category (Pc, Pd, Ps, Pe, Pi, Pf, Po)."""
    return unicodedata.category(ch).startswith("P")


def ends_sentence(token: str) -> bool:
    """True if the trailing punctuation run of token contains . ? or !.

    "end." and "end?!" and 'said."' end a sentence; "end," does not.
    """
    for ch in reversed(token):
        if not is_punct(ch):
            return False
        if ch in SENTENCE_END:
            return True
    return False


def visible_len(text: str) -> int:
    """Return the number of non-whitespace characters in text."""
    return sum(1 for ch in text if not ch.isspace())


def build_line(
    tokens: Sequence[str],
    start: int,
    word_budget: int,
    width_budget: int,
) -> LineResult:
    """Build one frame-line starting at tokens[start].

    Args:
        tokens: The full token sequence.
        start: Index of the first token of the line.
        word_budget: Maximum number of tokens on the line.
        width_budget: Maximum line length in characters.

    Returns:
        LineResult with the joined text, the index of the first token not
        consumed, and whether the line ended a sentence.
    """
    if word_budget < 1 or width_budget < 1:
        raise ValueError("word_budget and width_budget must be at least 1")

    parts: List[str] = []
    length = 0
    i = start
    while i < len(tokens) and len(parts) < word_budget:
        token = tokens[i]
        if parts and length + len(token) >= width_budget:
            break
        if parts:
            length += 1
        parts.append(token)
        length += len(token)
        i += 1
        if token and is_punct(token[-1]):
            return LineResult(" ".join(parts), i, ends_sentence(token))

    return LineResult(" ".join(parts), i, False)


def build_frame(
    tokens: Sequence[str],
    start: int,
    line_budget: int,
    word_budget: int,
    width_budget: int,
) -> Frame:
    """Build a frame of up to line_budget lines starting at tokens[start]."""
    lines: List[str] = []
    i = start
    while len(lines) < line_budget and i < len(tokens):
        line = build_line(tokens, i, word_budget, width_budget)
        lines.append(line.text)
        i = line.next_index
        if line.terminal:
            break
    return Frame(start=start, lines=tuple(lines), next_index=i)
