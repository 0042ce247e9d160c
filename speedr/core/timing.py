"""Timing model: turn a target reading speed into per-frame delays.

WHY: A fixed words-per-minute pace feels uneven because frames differ in
how much there is to read. The base interval comes from the target wpm and
the mean frame size; each frame's delay is then nudged by how dense that
frame is compared to the average, so the perceived pace tracks characters
per minute rather than raw words per minute.

HOW:
  base_interval = mean_words_per_frame * 60000 / wpm   (milliseconds)
  delta         = clamp(visible / mean_words_per_frame - mean_word_length, -5, 5)
  adjusted      = base + base * ADJUST_PERCENT * delta / 100

RULES:
- adjusted always lies in [0.25 * base, 1.75 * base]
- change_rate() moves wpm by whole WPM_STEP increments inside the bounds
- Changing the rate never reschedules by itself
"""

from __future__ import annotations

from speedr.config import WPM_MAX, WPM_MIN, WPM_STEP

ADJUST_PERCENT = 15
"""Per unit of density deviation, the interval changes by this percentage."""

MAX_DELTA = 5.0


def base_interval(wpm: float, mean_words_per_frame: float) -> float:
    """Return the base inter-frame delay in milliseconds."""
    if wpm <= 0:
        raise ValueError("wpm must be positive")
    return mean_words_per_frame * 60000.0 / wpm


def adjust(
    base: float,
    frame_visible_length: int,
    mean_words_per_frame: float,
    mean_word_length: float,
) -> float:
    """Return the delay after a frame with the given visible length.

    Longer, denser frames slow the pace; short frames speed it up.
    """
    delta = frame_visible_length / mean_words_per_frame - mean_word_length
    delta = max(-MAX_DELTA, min(MAX_DELTA, delta))
    return base + base * ADJUST_PERCENT * delta / 100


def change_rate(wpm: int, steps: int) -> int:
    """Move wpm by ``steps`` increments of WPM_STEP, clamped to the bounds."""
    return max(WPM_MIN, min(WPM_MAX, wpm + steps * WPM_STEP))
