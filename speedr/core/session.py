"""Reading session: navigation state machine, pacing, and frame emission.

WHY: Everything that changes while a text is being read (current frame,
running/paused, the goto accumulator, the budgets and reading speed, the
pending timer) belongs to one reader. Keeping it in a single object that is
only ever driven from one control loop makes every transition explicit and
keeps the frame index and timing statistics consistent with the budgets.

HOW: ReaderSession owns the token sequence, the current FrameIndex and the
cursor. Event methods (start, timer_fired, toggle_pause, step, goto_*,
change_*) mutate the state, then emit a FrameView to the frame sink. The
session never sleeps: it asks a TimerService to call it back once and keeps
the returned handle.

Every time a timer is armed or disarmed the session bumps its epoch. The
callback it hands to the timer carries the epoch it was armed with, and
timer_fired() ignores any call whose epoch is no longer current. A timer
that was cancelled too late to stop it therefore cannot advance the reader.

RULES:
- Initial state is RUNNING; reaching the last frame always forces PAUSED
- At most one timer is outstanding; arming a new one cancels the old one
- Navigation targets are clamped to [0, last frame], never an error
- Budget changes rebuild the index and keep the reader on the last frame
  starting at or before the previous token
- Changing the rate recomputes the base interval without rescheduling
- Only the leading line of a frame carries the focus highlight unless
  ReaderConfig.highlight_all_lines is set
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, List, Optional, Protocol, Sequence

from speedr.config import (
    LINES_MAX,
    LINES_MIN,
    MAX_TEXT_WIDTH,
    WORDS_MAX,
    WORDS_MIN,
    ReaderConfig,
)
from speedr.core import timing
from speedr.core.focus import align_center, format_focus
from speedr.core.frames import build_frame, visible_len
from speedr.core.index import NoContentError, build_index
from speedr.core.ir import (
    CenteredLine,
    Frame,
    FrameIndex,
    FrameView,
    PlaybackState,
    StatusSummary,
)

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class TimerService(Protocol):
    """Schedules a single callback after a delay.

    Implementations must deliver the callback on the thread that drives
    the session (see speedr.player.ThreadedTimerService).
    """

    def schedule_once(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        ...


FrameSink = Callable[[FrameView], None]


class ReaderSession:
    """Stateful reader over one token sequence.

    WHY: The terminal player and the HTTP API both need the same pacing
    and navigation behaviour; only their frame sinks and timers differ.

    HOW: Construct with tokens, a ReaderConfig, a TimerService and a frame
    sink, then call start(). The constructor clamps the config (warnings
    are kept in self.warnings) and builds the frame index, so an empty
    text fails before any frame state exists.

    RULES:
    - Raises NoContentError from the constructor for an empty token sequence
    - frame and token always satisfy token == index.offsets[frame]
    - pending_goto is always within [0, last frame]
    """

    def __init__(
        self,
        tokens: Sequence[str],
        config: ReaderConfig,
        timer: TimerService,
        sink: FrameSink,
        start_token: int = 0,
        display_width: int = MAX_TEXT_WIDTH,
    ) -> None:
        if not tokens:
            raise NoContentError("no words to read")

        self.tokens = tuple(tokens)
        self.config, self.warnings = config.clamped()
        self.display_width = display_width
        self.state = PlaybackState.RUNNING
        self.frame = 0
        self.token = max(0, min(start_token, len(self.tokens) - 1))
        self.pending_goto = 0
        self.epoch = 0
        self.interval_ms = 0.0
        self.next_delay_ms: Optional[float] = None

        self._timer = timer
        self._sink = sink
        self._handle: Optional[TimerHandle] = None

        self.index: FrameIndex = self.rebuild_index()

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def last_frame(self) -> int:
        return self.index.last_frame

    @property
    def at_end(self) -> bool:
        return self.frame >= self.last_frame

    def current_frame(self) -> Frame:
        return build_frame(
            self.tokens,
            self.token,
            self.config.line_budget,
            self.config.word_budget,
            self.config.width_budget,
        )

    def status(self) -> StatusSummary:
        return StatusSummary(
            frame=self.frame,
            total_frames=len(self.index),
            token=self.token,
            total_tokens=len(self.tokens),
            words_per_frame=self.index.mean_words_per_frame,
            wpm=self.config.wpm,
            interval_ms=self.interval_ms,
            line_budget=self.config.line_budget,
            word_budget=self.config.word_budget,
            width_budget=self.config.width_budget,
            pending_goto=self.pending_goto,
            state=self.state,
            epoch=self.epoch,
        )

    def view(self, frame: Optional[Frame] = None) -> FrameView:
        """Build the FrameView for the current (or given) frame."""
        if frame is None:
            frame = self.current_frame()
        lines: List[CenteredLine] = []
        for n, text in enumerate(frame.lines):
            focus = format_focus(text)
            if n > 0 and not self.config.highlight_all_lines:
                focus = focus.unhighlighted()
            lines.append(align_center(focus, self.display_width))
        return FrameView(
            lines=tuple(lines),
            status=self.status(),
            next_delay_ms=self.next_delay_ms,
        )

    # ------------------------------------------------------------------
    # Index
    # ------------------------------------------------------------------

    def rebuild_index(self) -> FrameIndex:
        """Recompute the frame index for the current budgets.

        Recomputes the base interval from the new statistics and moves the
        cursor to the last frame whose offset is <= the current token.
        """
        self.index = build_index(
            self.tokens,
            self.config.line_budget,
            self.config.word_budget,
            self.config.width_budget,
        )
        self.interval_ms = timing.base_interval(
            self.config.wpm, self.index.mean_words_per_frame
        )
        self.frame = self.index.snap(self.token)
        self.token = self.index.offset(self.frame)
        if self.pending_goto > self.last_frame:
            self.pending_goto = self.last_frame
        logger.info(
            "Frame index rebuilt: %d frames, lines=%d words=%d width=%d",
            len(self.index),
            self.config.line_budget,
            self.config.word_budget,
            self.config.width_budget,
        )
        return self.index

    # ------------------------------------------------------------------
    # Timer
    # ------------------------------------------------------------------

    def _cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self.epoch += 1
        self.next_delay_ms = None

    def _schedule(self, delay_ms: float) -> None:
        self._cancel()
        epoch = self.epoch
        self.next_delay_ms = delay_ms
        self._handle = self._timer.schedule_once(
            delay_ms, lambda: self.timer_fired(epoch)
        )

    def stop(self) -> None:
        """Cancel any pending timer; used when the reader quits."""
        self._cancel()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def _emit(self, frame: Optional[Frame] = None) -> FrameView:
        view = self.view(frame)
        self._sink(view)
        return view

    def _moved(self) -> FrameView:
        """Settle state after the cursor moved, re-arm, and emit."""
        self.token = self.index.offset(self.frame)
        if self.at_end:
            self.state = PlaybackState.PAUSED
            self._cancel()
        elif self.state == PlaybackState.RUNNING:
            self._schedule(self.interval_ms)
        return self._emit()

    def start(self) -> FrameView:
        """Show the first frame and arm the first timer."""
        if self.at_end:
            self.state = PlaybackState.PAUSED
            self._cancel()
        else:
            self._schedule(self.interval_ms)
        logger.debug("Session started at frame %d of %d", self.frame, len(self.index))
        return self._emit()

    def timer_fired(self, epoch: int) -> bool:
        """Advance one frame if the firing timer is still current.

        Returns:
            True if the timer was current and the session advanced.
        """
        if epoch != self.epoch or self.state != PlaybackState.RUNNING:
            logger.debug("Ignoring stale timer (epoch %d, current %d)", epoch, self.epoch)
            return False
        self._handle = None

        if not self.at_end:
            self.frame += 1
        self.token = self.index.offset(self.frame)
        frame = self.current_frame()

        if self.at_end:
            self.state = PlaybackState.PAUSED
            self._cancel()
        else:
            delay = timing.adjust(
                self.interval_ms,
                visible_len(frame.text),
                self.index.mean_words_per_frame,
                self.index.mean_word_length,
            )
            self._schedule(delay)
        self._emit(frame)
        return True

    def toggle_pause(self) -> FrameView:
        """Flip running/paused; a no-op on the last frame."""
        if not self.at_end:
            if self.state == PlaybackState.RUNNING:
                self.state = PlaybackState.PAUSED
                self._cancel()
            else:
                self.state = PlaybackState.RUNNING
                self._schedule(self.interval_ms)
        return self._emit()

    def step(self, frames: int) -> FrameView:
        """Move by ``frames`` (negative moves back), clamped to the text."""
        self.frame = max(0, min(self.last_frame, self.frame + frames))
        return self._moved()

    def goto_digit(self, digit: int) -> FrameView:
        """Append a decimal digit to the goto accumulator (saturating)."""
        if not 0 <= digit <= 9:
            raise ValueError("goto digit must be between 0 and 9, got {}".format(digit))
        self.pending_goto = min(self.pending_goto * 10 + digit, self.last_frame)
        return self._emit()

    def goto_commit(self) -> FrameView:
        """Jump to the accumulated frame number and reset the accumulator."""
        self.frame = min(self.pending_goto, self.last_frame)
        self.pending_goto = 0
        return self._moved()

    def goto_clear(self) -> FrameView:
        self.pending_goto = 0
        return self._emit()

    def change_budget(
        self,
        words: Optional[int] = None,
        lines: Optional[int] = None,
        width: Optional[int] = None,
    ) -> FrameView:
        """Set one or more budgets, rebuild the index, and re-render.

        Out-of-range values are clamped; the warnings are appended to
        self.warnings.
        """
        changes = {}
        if words is not None:
            changes["word_budget"] = words
        if lines is not None:
            changes["line_budget"] = lines
        if width is not None:
            changes["width_budget"] = width
        self.config, warnings = replace(self.config, **changes).clamped()
        self.warnings.extend(warnings)
        self.rebuild_index()
        return self._moved()

    # Relative changes stop at the bounds without a warning; a key press at
    # the limit is not a configuration error.

    def change_word_budget(self, delta: int) -> FrameView:
        words = max(WORDS_MIN, min(WORDS_MAX, self.config.word_budget + delta))
        if words == self.config.word_budget:
            return self._emit()
        return self.change_budget(words=words)

    def change_line_budget(self, delta: int) -> FrameView:
        lines = max(LINES_MIN, min(LINES_MAX, self.config.line_budget + delta))
        if lines == self.config.line_budget:
            return self._emit()
        return self.change_budget(lines=lines)

    def change_rate(self, steps: int) -> FrameView:
        """Change wpm by ``steps`` increments and recompute the base interval."""
        wpm = timing.change_rate(self.config.wpm, steps)
        self.config = replace(self.config, wpm=wpm)
        self.interval_ms = timing.base_interval(wpm, self.index.mean_words_per_frame)
        return self._emit()
