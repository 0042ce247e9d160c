"""Focus formatter: pick a focal character and center a line around it.

WHY: In rapid serial reading the eye should not travel. Each line is
anchored on one focal character, placed near the first third of the text,
and the line is padded so that character always lands on the same column.

HOW: format_focus() trims the line and chooses the first non-space position
at or after one third of the trimmed length. It returns the line as spans
(before / focal / after) with the focal span flagged as highlighted.
align_center() computes the left and right padding for a target width.

RULES:
- Markup never counts toward width; visible_length is the trimmed length
- Padded output is exactly ``width`` characters long, focal rune at width // 2
  whenever the text right of the focal rune fits in the right half
- Otherwise the line is shifted left just enough to stay within ``width``
- Lines longer than ``width`` are returned unpadded, never truncated
"""

from __future__ import annotations

from speedr.core.ir import CenteredLine, FocusResult, Span


def format_focus(text: str) -> FocusResult:
    """Split text around its focal character.

    Args:
        text: One frame-line.

    Returns:
        FocusResult with spans, focus offset and visible length. Empty
        (whitespace-only) input gives an empty result.
    """
    trimmed = text.strip()
    if not trimmed:
        return FocusResult()

    threshold = len(trimmed) // 3
    index = 0
    for i, ch in enumerate(trimmed):
        if ch.isspace():
            continue
        index = i
        if index >= threshold:
            break

    spans = []
    if index > 0:
        spans.append(Span(trimmed[:index]))
    spans.append(Span(trimmed[index], highlighted=True))
    if index + 1 < len(trimmed):
        spans.append(Span(trimmed[index + 1:]))

    return FocusResult(
        spans=tuple(spans),
        focus_offset=index,
        visible_length=len(trimmed),
    )


def align_center(focus: FocusResult, width: int) -> CenteredLine:
    """Pad a focus result so its focal character sits at column width // 2."""
    if focus.visible_length > width:
        return CenteredLine(focus)
    slack = width - focus.visible_length
    left = max(0, min(slack, width // 2 - focus.focus_offset))
    return CenteredLine(focus, left_pad=left, right_pad=slack - left)
