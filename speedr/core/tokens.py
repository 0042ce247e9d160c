"""Token source: split a text into the word tokens the frame builder consumes.

WHY: The frame builder treats every token as indivisible. How the source
text is cut into tokens therefore decides what a "word" is for the word
and width budgets. Two granularities are supported:

  line — split only on line-breaking whitespace (newlines, tabs, form feeds
         and other non-space whitespace). A token may hold several
         space-separated words.
  word — split on every whitespace character, one word per token.

HOW: tokenize() applies the chosen split and normalizes each token so it
never carries leading, trailing or repeated spaces. load_tokens() reads a
UTF-8 file and tokenizes it.

RULES:
- Tokens are never empty
- Tokens never contain whitespace runs; "line" tokens keep single spaces
- An unknown granularity raises ValueError
- Empty output is not an error here; the frame index reports NoContentError
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Tuple, Union

from speedr.config import GRANULARITIES, GRANULARITY_LINE, GRANULARITY_WORD


def _is_break(ch: str) -> bool:
    return ch.isspace() and ch != " "


def _split_lines(text: str) -> List[str]:
    pieces: List[str] = []
    current: List[str] = []
    for ch in text:
        if _is_break(ch):
            if current:
                pieces.append("".join(current))
                current = []
        else:
            current.append(ch)
    if current:
        pieces.append("".join(current))
    return pieces


def tokenize(text: str, granularity: str = GRANULARITY_LINE) -> Tuple[str, ...]:
    """Split text into tokens.

    Args:
        text: Source text.
        granularity: "line" or "word".

    Returns:
        Tuple of non-empty tokens in reading order.

    Raises:
        ValueError: If granularity is not recognized.
    """
    if granularity == GRANULARITY_WORD:
        return tuple(text.split())
    if granularity == GRANULARITY_LINE:
        tokens = (" ".join(piece.split()) for piece in _split_lines(text))
        return tuple(t for t in tokens if t)
    raise ValueError(
        "Unknown token granularity '{}'. Available: {}".format(
            granularity, ", ".join(GRANULARITIES)
        )
    )


def load_tokens(path: Union[str, Path], granularity: str = GRANULARITY_LINE) -> Tuple[str, ...]:
    """Read a UTF-8 text file and tokenize it.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    return tokenize(Path(path).read_text(encoding="utf-8"), granularity)
