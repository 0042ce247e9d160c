"""Configuration constants, budget bounds, and .env loading.

WHY: The reader has a handful of user-adjustable knobs (words per line,
lines per frame, characters per line, reading speed) that are changed both
from the command line and at runtime. Their bounds and defaults live here
as plain data so the session, the CLI, and the HTTP API all agree on them.

HOW: python-dotenv loads the .env file on import. Defaults can be
overridden through SPEEDR_* environment variables. ReaderConfig bundles
the four budgets; ReaderConfig.clamped() pulls out-of-range values back to
the nearest bound and reports each correction as a warning string.

RULES:
- Invalid budgets are never fatal: they are clamped and surfaced as warnings
- Width is limited by the display width minus a two-column border
- wpm moves in WPM_STEP increments inside [WPM_MIN, WPM_MAX]
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from typing import List, Tuple

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Display geometry
# ---------------------------------------------------------------------------

DISPLAY_WIDTH = 80
"""Maximum width of the reading area in columns."""

MAX_TEXT_WIDTH = DISPLAY_WIDTH - 2

# ---------------------------------------------------------------------------
# Budget bounds
# ---------------------------------------------------------------------------

WORDS_MIN = 1
WORDS_MAX = 4

LINES_MIN = 1
LINES_MAX = 3

WIDTH_MIN = 1
WIDTH_MAX = MAX_TEXT_WIDTH

WPM_MIN = 150
WPM_MAX = 950
WPM_STEP = 50

# ---------------------------------------------------------------------------
# Token granularity
# ---------------------------------------------------------------------------

GRANULARITY_LINE = "line"
GRANULARITY_WORD = "word"
GRANULARITIES = (GRANULARITY_LINE, GRANULARITY_WORD)

# ---------------------------------------------------------------------------
# Environment defaults
# ---------------------------------------------------------------------------

DEFAULT_WPM = int(os.getenv("SPEEDR_WPM", "250"))
DEFAULT_WORDS = int(os.getenv("SPEEDR_WORDS", "2"))
DEFAULT_LINES = int(os.getenv("SPEEDR_LINES", "1"))
DEFAULT_WIDTH = int(os.getenv("SPEEDR_WIDTH", "30"))
DEFAULT_GRANULARITY = os.getenv("SPEEDR_TOKENS", GRANULARITY_LINE).lower()
DEFAULT_LOG_LEVEL = os.getenv("SPEEDR_LOG_LEVEL", "WARNING").upper()

API_HOST = os.getenv("SPEEDR_HOST", "127.0.0.1")
API_PORT = int(os.getenv("SPEEDR_PORT", "8000"))

# Highlight sentinels understood by the terminal renderer.
HIGHLIGHT_ENTER = "@r"
HIGHLIGHT_EXIT = "@N"


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


@dataclass(frozen=True)
class ReaderConfig:
    """The runtime-adjustable budgets of a reading session.

    Attributes:
        word_budget: Maximum tokens per frame-line.
        line_budget: Maximum lines per frame.
        width_budget: Maximum characters per frame-line.
        wpm: Target reading rate in words per minute.
        highlight_all_lines: Mark the focal character on every line of a
            frame instead of only the leading line.
    """

    word_budget: int = DEFAULT_WORDS
    line_budget: int = DEFAULT_LINES
    width_budget: int = DEFAULT_WIDTH
    wpm: int = DEFAULT_WPM
    highlight_all_lines: bool = False

    def clamped(self) -> Tuple["ReaderConfig", List[str]]:
        """Return a copy with every budget inside its bounds.

        WHY: Budgets come from command-line flags, environment variables and
        HTTP requests. A bad value should not stop the reader, but the user
        must be told that it was changed.

        HOW: Each field is clamped independently. For every field that moved,
        a warning string is collected (and logged at INFO level).

        Returns:
            Tuple of (clamped config, list of warning messages).
        """
        warnings: List[str] = []
        fields = (
            ("word_budget", WORDS_MIN, WORDS_MAX, "words per line"),
            ("line_budget", LINES_MIN, LINES_MAX, "lines per frame"),
            ("width_budget", WIDTH_MIN, WIDTH_MAX, "characters per line"),
            ("wpm", WPM_MIN, WPM_MAX, "words per minute"),
        )
        changes = {}
        for name, low, high, label in fields:
            value = getattr(self, name)
            fixed = _clamp(value, low, high)
            if fixed != value:
                message = "{} {} is out of range [{}, {}], using {}".format(
                    label, value, low, high, fixed
                )
                warnings.append(message)
                logger.info(message)
                changes[name] = fixed
        return replace(self, **changes), warnings
