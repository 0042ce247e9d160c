"""Unit tests for the frame index (build_index, FrameIndex.snap).

WHY: Navigation and pacing both read the index: a missing offset makes a
frame unreachable, wrong statistics make every interval wrong.

HOW: Offsets are checked against frames built by hand, statistics against
the closed-form values for uniform input, and snap() against the rule
"last frame starting at or before the token".

RULES:
- Index building must agree exactly with build_frame
"""

from __future__ import annotations

import pytest

from speedr.core.frames import build_frame
from speedr.core.index import NoContentError, build_index


class TestOffsets:
    """Frame offsets cover the text in order."""

    def test_single_line_frames(self, sentences):
        index = build_index(sentences, 1, 2, 30)
        assert index.offsets == (0, 2, 4, 6, 8, 9, 11, 12, 14, 15, 17, 19)

    def test_terminal_lines_end_multi_line_frames(self, sentences):
        index = build_index(sentences, 3, 2, 30)
        assert index.offsets == (0, 6, 9, 14, 15)

    def test_offsets_match_build_frame(self, sentences):
        for lines in (1, 2, 3):
            for words in (1, 2, 3, 4):
                index = build_index(sentences, lines, words, 12)
                for n, offset in enumerate(index.offsets):
                    frame = build_frame(sentences, offset, lines, words, 12)
                    if n + 1 < len(index):
                        assert frame.next_index == index.offsets[n + 1]
                    else:
                        assert frame.next_index == len(sentences)

    def test_offsets_strictly_increasing_and_bounded(self, sentences):
        index = build_index(sentences, 2, 3, 10)
        assert index.offsets[0] == 0
        assert all(a < b for a, b in zip(index.offsets, index.offsets[1:]))
        assert index.offsets[-1] < len(sentences)

    def test_deterministic(self, sentences):
        assert build_index(sentences, 2, 3, 20) == build_index(sentences, 2, 3, 20)


class TestStatistics:
    """mean_words_per_frame and mean_word_length."""

    def test_hundred_words(self, hundred_words):
        index = build_index(hundred_words, 1, 2, 30)
        assert len(index) == 50
        assert index.last_frame == 49
        assert index.mean_words_per_frame == 2.0
        assert index.mean_word_length == 1.0

    def test_word_length_excludes_spaces(self):
        index = build_index(["abc", "de"], 1, 2, 30)
        assert index.mean_word_length == 2.5
        assert index.mean_words_per_frame == 2.0

    def test_records_budgets(self, sentences):
        index = build_index(sentences, 3, 2, 30)
        assert (index.line_budget, index.word_budget, index.width_budget) == (3, 2, 30)


class TestSnap:
    """snap() returns the last frame whose offset is <= the token."""

    def test_exact_offset(self, hundred_words):
        index = build_index(hundred_words, 1, 3, 30)
        assert index.snap(48) == 16

    def test_inside_frame(self, hundred_words):
        index = build_index(hundred_words, 1, 3, 30)
        assert index.snap(50) == 16
        assert index.offset(16) == 48

    def test_past_end_is_last_frame(self, hundred_words):
        index = build_index(hundred_words, 1, 3, 30)
        assert index.snap(1000) == index.last_frame

    def test_negative_is_first_frame(self, hundred_words):
        index = build_index(hundred_words, 1, 3, 30)
        assert index.snap(-5) == 0


class TestErrors:

    def test_empty_tokens(self):
        with pytest.raises(NoContentError):
            build_index([], 1, 2, 30)

    def test_no_content_is_value_error(self):
        with pytest.raises(ValueError):
            build_index((), 1, 2, 30)

    def test_zero_line_budget(self, sentences):
        with pytest.raises(ValueError):
            build_index(sentences, 0, 2, 30)
