"""Tests for the command-line interface.

WHY: The CLI is the main way the reader is used. Its exit codes, its
messages on stderr, and the --index table are what scripts and users
depend on.

HOW: main() is called with an explicit argv list and files under tmp_path.
Output is captured with capsys. Playback tests use --no-input and
--exit-at-end at a high reading speed so they finish quickly.
"""

from __future__ import annotations

import pytest

from speedr.cli import build_parser, main


@pytest.fixture
def text_file(tmp_path):
    path = tmp_path / "story.txt"
    path.write_text("The end. More words follow here.\n", encoding="utf-8")
    return path


class TestParser:

    def test_defaults(self):
        args = build_parser().parse_args(["book.txt"])
        assert args.file == "book.txt"
        assert args.chars == 30
        assert args.words == 2
        assert args.lines == 1
        assert args.index is False

    def test_short_flags(self):
        args = build_parser().parse_args(["-c", "40", "-w", "3", "-l", "2", "x.txt"])
        assert (args.chars, args.words, args.lines) == (40, 3, 2)

    def test_rejects_unknown_granularity(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--tokens", "sentence", "x.txt"])


class TestIndex:
    """--index prints the frame table."""

    def test_frame_rows(self, text_file, capsys):
        main([str(text_file), "--tokens", "word", "--index", "-w", "3"])
        out = capsys.readouterr().out.splitlines()
        assert out[0] == "0\t0\tThe end."
        assert out[1] == "1\t2\tMore words follow"
        assert out[2] == "2\t5\there."
        assert out[3].startswith("frames: 3  tokens: 6")

    def test_clamp_warning_on_stderr(self, text_file, capsys):
        main([str(text_file), "--tokens", "word", "--index", "-w", "9"])
        err = capsys.readouterr().err
        assert "speedr: words per line 9 is out of range [1, 4], using 4" in err


class TestErrors:

    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([str(tmp_path / "missing.txt"), "--index"])
        assert exc_info.value.code == 1
        assert "speedr:" in capsys.readouterr().err

    def test_empty_file(self, tmp_path, capsys):
        path = tmp_path / "empty.txt"
        path.write_text("  \n\n", encoding="utf-8")
        with pytest.raises(SystemExit) as exc_info:
            main([str(path)])
        assert exc_info.value.code == 1
        assert "has no words" in capsys.readouterr().err


class TestPlayback:

    def test_plays_whole_text(self, text_file, capsys):
        main([
            str(text_file), "--tokens", "word", "-w", "3", "--wpm", "950",
            "--no-input", "--exit-at-end",
        ])
        out = capsys.readouterr().out
        assert "frames/total: 2/2" in out
        assert "here." in out
        assert "Info: story.txt" in out
