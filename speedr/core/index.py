"""Frame index: precompute every frame boundary of a token sequence.

WHY: Navigation jumps by frame number (goto 1234, skip 1000 frames back),
which needs O(1) access to any frame's starting token. The timing model
also needs the mean number of words per frame and the mean word length,
which only exist once all frame boundaries are known.

HOW: build_index() runs the frame builder over the whole sequence, exactly
as frames will later be rendered: up to line_budget lines per frame, with a
terminal (sentence-ending) line closing the frame early. Each frame's start
is recorded and the visible length of every line is summed.

RULES:
- An empty token sequence raises NoContentError before any frame exists
- offsets start at 0, are strictly increasing, and end below len(tokens)
- mean_words_per_frame = token_count / frame_count
- mean_word_length = total visible characters / token_count
- The index is rebuilt explicitly on every budget change, never lazily
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from speedr.core.frames import build_line, visible_len
from speedr.core.ir import FrameIndex

logger = logging.getLogger(__name__)


class NoContentError(ValueError):
    """The token sequence is empty, so there is nothing to read."""


def build_index(
    tokens: Sequence[str],
    line_budget: int,
    word_budget: int,
    width_budget: int,
) -> FrameIndex:
    """Compute frame offsets and timing statistics for a token sequence.

    Args:
        tokens: Full token sequence.
        line_budget: Maximum lines per frame (>= 1).
        word_budget: Maximum tokens per line (>= 1).
        width_budget: Maximum characters per line (>= 1).

    Returns:
        FrameIndex built for the given budgets.

    Raises:
        NoContentError: If tokens is empty.
        ValueError: If line_budget < 1.
    """
    if not tokens:
        raise NoContentError("no words to read")
    if line_budget < 1:
        raise ValueError("line_budget must be at least 1")

    offsets: List[int] = []
    total_visible = 0
    i = 0
    while i < len(tokens):
        offsets.append(i)
        for _ in range(line_budget):
            line = build_line(tokens, i, word_budget, width_budget)
            i = line.next_index
            total_visible += visible_len(line.text)
            if line.terminal or i >= len(tokens):
                break

    index = FrameIndex(
        offsets=tuple(offsets),
        token_count=len(tokens),
        mean_words_per_frame=len(tokens) / len(offsets),
        mean_word_length=total_visible / len(tokens),
        line_budget=line_budget,
        word_budget=word_budget,
        width_budget=width_budget,
    )
    logger.debug(
        "Indexed %d tokens into %d frames (%.2f words/frame, %.2f chars/word)",
        index.token_count, len(index), index.mean_words_per_frame, index.mean_word_length,
    )
    return index
