"""Unit tests for the focus formatter (format_focus, align_center)."""

from __future__ import annotations

import pytest

from speedr.core.focus import align_center, format_focus
from speedr.core.ir import Span


class TestFormatFocus:
    """format_focus picks the focal character about a third into the line."""

    def test_single_word(self):
        result = format_focus("hello")
        assert result.spans == (Span("h"), Span("e", True), Span("llo"))
        assert result.focus_offset == 1
        assert result.visible_length == 5

    def test_skips_space_at_threshold(self):
        result = format_focus("a bc")
        assert result.focus_offset == 2
        assert result.markup("[", "]") == "a [b]c"

    def test_single_character_has_only_focal_span(self):
        result = format_focus("x")
        assert result.spans == (Span("x", True),)
        assert result.focus_offset == 0

    def test_trims_whitespace(self):
        result = format_focus("  The end.  ")
        assert result.text == "The end."
        assert result.visible_length == 8
        assert result.focus_offset == 2

    def test_empty_input(self):
        result = format_focus("   ")
        assert result.spans == ()
        assert result.visible_length == 0

    def test_exactly_one_span_highlighted(self):
        for text in ["a", "ab", "abc def", "one two three four"]:
            spans = format_focus(text).spans
            assert sum(1 for s in spans if s.highlighted) == 1

    def test_markup_uses_given_sentinels(self):
        assert format_focus("hello").markup("@r", "@N") == "h@re@Nllo"

    def test_unhighlighted_keeps_text(self):
        result = format_focus("hello").unhighlighted()
        assert result.text == "hello"
        assert not any(s.highlighted for s in result.spans)
        assert result.markup("@r", "@N") == "hello"


class TestAlignCenter:
    """align_center pads so the focal character sits at width // 2."""

    @pytest.mark.parametrize("text", ["a", "hello", "The end.", "one two three"])
    @pytest.mark.parametrize("width", [40, 41, 78])
    def test_centering_round_trip(self, text, width):
        line = align_center(format_focus(text), width)
        plain = line.plain()
        assert len(plain) == width
        focus = format_focus(text)
        assert plain[width // 2] == text.strip()[focus.focus_offset]
        assert line.left_pad + focus.focus_offset == width // 2

    def test_padding_values(self):
        line = align_center(format_focus("hello"), 20)
        assert line.left_pad == 9
        assert line.right_pad == 6

    def test_too_wide_is_unpadded(self):
        line = align_center(format_focus("abcdefghij"), 5)
        assert line.left_pad == 0
        assert line.right_pad == 0
        assert line.plain() == "abcdefghij"

    def test_line_that_cannot_be_centered_still_fills_width(self):
        line = align_center(format_focus("abcdefghij"), 10)
        assert line.plain() == "abcdefghij"
        assert line.left_pad == 0 and line.right_pad == 0

    def test_markup_keeps_padding(self):
        line = align_center(format_focus("hello"), 20)
        assert line.markup("@r", "@N") == " " * 9 + "h@re@Nllo" + " " * 6
