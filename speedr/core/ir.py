"""Intermediate representation dataclasses for frames, focus, and status.

WHY: The frame builder, focus formatter, frame index, session, and the two
frame sinks (terminal player and HTTP API) all pass the same few shapes
around. Keeping them in one module makes the contract between the
algorithmic core and the presentation layer explicit.

HOW: Plain dataclasses, mostly frozen:
  LineResult   — one frame-line produced by the frame builder
  Frame        — a multi-line frame starting at a token offset
  FrameIndex   — precomputed frame offsets plus timing statistics
  Span         — a run of text, optionally highlighted
  FocusResult  — a trimmed line split into spans around its focal rune
  CenteredLine — a FocusResult padded so the focal rune sits mid-width
  StatusSummary / FrameView — what a frame sink receives per event

RULES:
- Frames are identified by their starting token index only
- FrameIndex.offsets is strictly increasing, starts at 0, ends < token count
- Highlighting is structural (Span.highlighted); sentinel strings are only
  produced on request via markup()
- No field here holds process-global state
"""

from __future__ import annotations

import bisect
import enum
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class LineResult:
    """One frame-line built from consecutive tokens.

    Attributes:
        text: Tokens joined by single spaces.
        next_index: Token index where the following line starts.
        terminal: True if the line ended on a sentence-ending token.
    """

    text: str
    next_index: int
    terminal: bool = False


@dataclass(frozen=True)
class Frame:
    """A displayable frame: up to line_budget lines starting at ``start``."""

    start: int
    lines: Tuple[str, ...]
    next_index: int

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@dataclass(frozen=True)
class FrameIndex:
    """Frame start offsets over a token sequence, with timing statistics.

    WHY: Random access by frame number (goto, jump by 1000) needs every
    frame boundary up front; the timing model needs the mean frame density.

    RULES:
    - offsets[0] == 0 and offsets is strictly increasing
    - offsets[-1] < token_count
    - Built for one (line_budget, word_budget, width_budget) triple and
      must be rebuilt when any of them changes
    """

    offsets: Tuple[int, ...]
    token_count: int
    mean_words_per_frame: float
    mean_word_length: float
    line_budget: int
    word_budget: int
    width_budget: int

    def __len__(self) -> int:
        return len(self.offsets)

    @property
    def last_frame(self) -> int:
        return len(self.offsets) - 1

    def offset(self, frame: int) -> int:
        return self.offsets[frame]

    def snap(self, token_index: int) -> int:
        """Return the last frame whose offset is <= token_index."""
        return max(0, bisect.bisect_right(self.offsets, token_index) - 1)


@dataclass(frozen=True)
class Span:
    text: str
    highlighted: bool = False


@dataclass(frozen=True)
class FocusResult:
    """A trimmed line split around its focal character.

    Attributes:
        spans: Text runs in order; exactly one is highlighted unless empty.
        focus_offset: Index of the focal character in the trimmed text.
        visible_length: Character count of the trimmed text.
    """

    spans: Tuple[Span, ...] = ()
    focus_offset: int = 0
    visible_length: int = 0

    @property
    def text(self) -> str:
        return "".join(s.text for s in self.spans)

    def markup(self, enter: str, exit: str) -> str:
        """Render with sentinel strings around the highlighted span."""
        parts = []
        for span in self.spans:
            if span.highlighted:
                parts.append("{}{}{}".format(enter, span.text, exit))
            else:
                parts.append(span.text)
        return "".join(parts)

    def unhighlighted(self) -> "FocusResult":
        """Same text with no highlighted span."""
        return FocusResult(
            spans=(Span(self.text),) if self.spans else (),
            focus_offset=self.focus_offset,
            visible_length=self.visible_length,
        )


@dataclass(frozen=True)
class CenteredLine:
    """A focus result with the padding that centers its focal character."""

    focus: FocusResult
    left_pad: int = 0
    right_pad: int = 0

    def plain(self) -> str:
        return " " * self.left_pad + self.focus.text + " " * self.right_pad

    def markup(self, enter: str, exit: str) -> str:
        return " " * self.left_pad + self.focus.markup(enter, exit) + " " * self.right_pad


class PlaybackState(str, enum.Enum):
    """Playback state of a reading session.

    Inherits from str so values serialize cleanly to JSON.
    """

    RUNNING = "running"
    PAUSED = "paused"


@dataclass(frozen=True)
class StatusSummary:
    """Everything the info panel of a frame sink shows."""

    frame: int
    total_frames: int
    token: int
    total_tokens: int
    words_per_frame: float
    wpm: int
    interval_ms: float
    line_budget: int
    word_budget: int
    width_budget: int
    pending_goto: int
    state: PlaybackState
    epoch: int


@dataclass(frozen=True)
class FrameView:
    """One emission to a frame sink: centered lines plus status."""

    lines: Tuple[CenteredLine, ...]
    status: StatusSummary
    next_delay_ms: Optional[float] = None

    def plain(self) -> str:
        return "\n".join(line.plain() for line in self.lines)

    def markup(self, enter: str, exit: str) -> str:
        return "\n".join(line.markup(enter, exit) for line in self.lines)
