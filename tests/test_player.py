"""Tests for the terminal player: key dispatch, rendering, and the control loop.

WHY: The player is the only place where threads meet the session. Keys must
map to the right session events, rendering must show the status the reader
relies on, and the loop must stop cleanly on quit or at the end of the text.

HOW: dispatch_key and rendering are tested against sessions on the fake
timer. The Player loop is run for real with a fast reading speed so the
threaded timer finishes a short text in well under a second.

RULES:
- Loop tests use exit_at_end or a quit key so run() always returns
"""

from __future__ import annotations

import io

import pytest

from speedr.config import ReaderConfig
from speedr.core.ir import PlaybackState
from speedr.core.session import ReaderSession
from speedr.player import (
    HELP_TEXT,
    Player,
    TerminalSink,
    dispatch_key,
    format_status,
    keys_from_lines,
    render_frame,
)


# ---------------------------------------------------------------------------
# Key dispatch
# ---------------------------------------------------------------------------


class TestDispatchKey:
    """Each command key triggers its session event."""

    @pytest.mark.parametrize("key,frame", [
        (">", 21), ("", 21), ("<", 19), (")", 49), ("(", 0), ("]", 49), ("[", 0),
    ])
    def test_step_keys(self, make_session, key, frame):
        session = make_session()
        session.start()
        session.step(20)
        assert dispatch_key(session, key) is True
        assert session.frame == frame

    def test_quit_keys(self, make_session):
        session = make_session()
        for key in ("q", "Q", "\x1b"):
            assert dispatch_key(session, key) is False

    def test_pause_keys(self, make_session):
        session = make_session()
        session.start()
        dispatch_key(session, "p")
        assert session.state == PlaybackState.PAUSED
        dispatch_key(session, " ")
        assert session.state == PlaybackState.RUNNING

    def test_speed_keys(self, make_session):
        session = make_session()
        dispatch_key(session, "+")
        assert session.config.wpm == 300
        dispatch_key(session, "-")
        dispatch_key(session, "-")
        assert session.config.wpm == 200

    def test_budget_keys(self, make_session):
        session = make_session()
        session.start()
        dispatch_key(session, "W")
        assert session.config.word_budget == 3
        dispatch_key(session, "w")
        assert session.config.word_budget == 2
        dispatch_key(session, ";")
        assert session.config.line_budget == 2
        dispatch_key(session, ",")
        assert session.config.line_budget == 1

    def test_goto_keys(self, make_session):
        session = make_session()
        session.start()
        for key in "42":
            dispatch_key(session, key)
        dispatch_key(session, "g")
        assert session.frame == 42
        dispatch_key(session, "7")
        dispatch_key(session, "c")
        assert session.pending_goto == 0

    def test_unknown_key_ignored(self, make_session, sink):
        session = make_session()
        session.start()
        emitted = len(sink.views)
        assert dispatch_key(session, "z") is True
        assert len(sink.views) == emitted


class TestKeysFromLines:

    def test_characters_and_bare_enter(self):
        assert list(keys_from_lines(["ab\n", "\n", "q"])) == ["a", "b", "", "q"]


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class TestRender:

    def test_status_lines(self, make_session):
        session = make_session()
        text = format_status(session.start())
        assert "frames/total: 0/49" in text
        assert "words/total: 0/99" in text
        assert "wpm: ≈250" in text
        assert "interval: ≈480ms" in text
        assert "[paused]" not in text

    def test_paused_marker(self, make_session):
        session = make_session()
        session.start()
        assert "[paused]" in format_status(session.toggle_pause())

    def test_frame_has_info_text_and_help(self, make_session):
        session = make_session()
        screen = render_frame(session.start(), title="book.txt")
        assert "Info: book.txt" in screen
        assert "a b" in screen
        assert HELP_TEXT in screen

    def test_highlight_uses_ansi(self, make_session):
        session = make_session()
        screen = render_frame(session.start(), highlight=True)
        assert "\x1b[1;31mb\x1b[0m" in screen

    def test_sink_plain_on_non_tty(self, make_session):
        stream = io.StringIO()
        session = make_session()
        TerminalSink(stream)(session.start())
        assert "\x1b[" not in stream.getvalue()
        assert "a b" in stream.getvalue()


# ---------------------------------------------------------------------------
# Control loop
# ---------------------------------------------------------------------------


def _fast_config() -> ReaderConfig:
    return ReaderConfig(word_budget=1, line_budget=1, width_budget=30, wpm=950)


class TestPlayer:
    """Player.run() drives the session from one thread."""

    def test_plays_to_end_and_exits(self):
        views = []
        player = Player(
            lambda timer: ReaderSession(
                ("one", "two", "three", "four"), _fast_config(), timer, views.append
            ),
            exit_at_end=True,
        )
        player.run()
        assert player.session.frame == 3
        assert player.session.state == PlaybackState.PAUSED
        assert [v.status.frame for v in views] == [0, 1, 2, 3]

    def test_quit_key_stops_loop(self):
        player = Player(
            lambda timer: ReaderSession(
                ("one",) * 200, _fast_config(), timer, lambda view: None
            ),
        )
        player.run(keys=["p", "q"])
        assert not player.session.at_end

    def test_quit_from_other_thread(self):
        player = Player(
            lambda timer: ReaderSession(
                ("one",) * 200, _fast_config(), timer, lambda view: None
            ),
        )
        player.quit()
        player.run()
        assert player.session.frame == 0

    def test_single_frame_text_exits_immediately(self):
        player = Player(
            lambda timer: ReaderSession(("Done.",), _fast_config(), timer, lambda view: None),
            exit_at_end=True,
        )
        player.run()
        assert player.session.at_end
