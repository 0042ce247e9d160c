"""Terminal player: serialized control loop, threaded timer, and frame sink.

WHY: A ReaderSession must only be touched from one thread, yet two things
happen concurrently while reading: timers expire and the user types
commands. The player funnels both into one queue and runs every session
event from a single loop.

HOW: Three pieces:
  ThreadedTimerService — schedule_once() starts a daemon threading.Timer
                         whose only job is to put the callback on the queue
  Player               — owns the queue; run() pops callables and executes
                         them until quit() is posted
  TerminalSink         — renders each FrameView (info box, frame, help) to
                         a text stream, with ANSI highlighting on a tty
Command keys are translated to session events by dispatch_key().

RULES:
- The queue is the ONLY channel between threads
- Session methods are only called from Player.run()
- Timer threads never touch the session; stale fires are dropped by epoch
- Unknown keys are ignored
"""

from __future__ import annotations

import logging
import queue
import sys
import threading
from typing import Callable, Iterable, Optional, TextIO

from speedr.core.ir import FrameView, PlaybackState
from speedr.core.session import ReaderSession

logger = logging.getLogger(__name__)

ANSI_HIGHLIGHT = ("\x1b[1;31m", "\x1b[0m")
ANSI_CLEAR = "\x1b[H\x1b[2J"

HELP_TEXT = """+/-:speed  ;/,: inc/dec n° of lines  W/w: inc/dec n° of words
</>, (/), [/]:1, 50, 1000 backwards/forward
0-9*:frame number  g:goto frame  c:clear goto
p:pause  q:quit"""

# Relative jumps bound to keys, in frames.
STEP_KEYS = {
    ">": 1,
    "": 1,  # bare Enter
    "<": -1,
    ")": 50,
    "(": -50,
    "]": 1000,
    "[": -1000,
}

QUIT_KEYS = frozenset({"q", "Q", "\x1b"})
PAUSE_KEYS = frozenset({"p", "P", " "})


class _QueuedTimer:
    """Handle returned by ThreadedTimerService.schedule_once()."""

    def __init__(self, timer: threading.Timer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class ThreadedTimerService:
    """Timer service that delivers callbacks through a queue.

    The callback is not run on the timer thread; it is queued and later
    executed by the loop that drains the queue.
    """

    def __init__(self, events: "queue.Queue[Optional[Callable[[], None]]]") -> None:
        self._events = events

    def schedule_once(self, delay_ms: float, callback: Callable[[], None]) -> _QueuedTimer:
        timer = threading.Timer(max(0.0, delay_ms) / 1000.0, self._events.put, args=(callback,))
        timer.daemon = True
        timer.start()
        return _QueuedTimer(timer)


def format_status(view: FrameView) -> str:
    """Format the info box text for a frame view."""
    st = view.status
    return (
        "frames/total: {}/{}\n"
        "words/total: {}/{}\n"
        "words/frame: {:.1f}  wpm: ≈{}  interval: ≈{:.0f}ms  lines: {}\n"
        "goto: {}{}"
    ).format(
        st.frame, st.total_frames - 1,
        st.token, st.total_tokens - 1,
        st.words_per_frame, st.wpm, st.interval_ms, st.line_budget,
        st.pending_goto,
        "  [paused]" if st.state == PlaybackState.PAUSED else "",
    )


def render_frame(view: FrameView, highlight: bool = False, title: str = "") -> str:
    """Render a full screen: info box, frame text, help box."""
    if highlight:
        body = view.markup(*ANSI_HIGHLIGHT)
    else:
        body = view.plain()
    header = "Info: {}".format(title) if title else "Info"
    return "\n".join([
        "── {} ──".format(header),
        format_status(view),
        "",
        body,
        "",
        "── Help ──",
        HELP_TEXT,
    ])


class TerminalSink:
    """Frame sink that writes each rendered frame to a text stream."""

    def __init__(self, stream: Optional[TextIO] = None, title: str = "") -> None:
        self.stream = stream if stream is not None else sys.stdout
        self.title = title
        self.tty = hasattr(self.stream, "isatty") and self.stream.isatty()

    def __call__(self, view: FrameView) -> None:
        if self.tty:
            self.stream.write(ANSI_CLEAR)
        self.stream.write(render_frame(view, highlight=self.tty, title=self.title))
        self.stream.write("\n")
        self.stream.flush()


def dispatch_key(session: ReaderSession, key: str) -> bool:
    """Apply one command key to the session.

    Returns:
        False if the key asks to quit, True otherwise.
    """
    if key in QUIT_KEYS:
        return False
    if key in STEP_KEYS:
        session.step(STEP_KEYS[key])
    elif key == "+":
        session.change_rate(1)
    elif key == "-":
        session.change_rate(-1)
    elif key == "W":
        session.change_word_budget(1)
    elif key == "w":
        session.change_word_budget(-1)
    elif key == ";":
        session.change_line_budget(1)
    elif key == ",":
        session.change_line_budget(-1)
    elif key == "g":
        session.goto_commit()
    elif key == "c":
        session.goto_clear()
    elif key in PAUSE_KEYS:
        session.toggle_pause()
    elif key.isdigit() and len(key) == 1:
        session.goto_digit(int(key))
    else:
        logger.debug("Ignoring unknown key %r", key)
    return True


def keys_from_lines(lines: Iterable[str]) -> Iterable[str]:
    """Turn input lines into command keys; an empty line is a bare Enter."""
    for line in lines:
        line = line.rstrip("\r\n")
        if not line:
            yield ""
            continue
        for ch in line:
            yield ch


class Player:
    """Single-threaded control loop around a ReaderSession.

    WHY: Timer expiry and user input arrive on different threads; the
    session must see them one at a time.

    HOW: Build the player with a session factory that receives the timer
    service (the session needs it at construction). run() starts the
    session, optionally starts a daemon thread reading keys from ``keys``,
    then drains the queue until quit() is posted.

    RULES:
    - quit() may be called from any thread
    - With exit_at_end=True the loop ends once the session pauses on the
      last frame (used for non-interactive playback)
    """

    def __init__(
        self,
        session_factory: Callable[[ThreadedTimerService], ReaderSession],
        exit_at_end: bool = False,
    ) -> None:
        self.events: "queue.Queue[Optional[Callable[[], None]]]" = queue.Queue()
        self.timer = ThreadedTimerService(self.events)
        self.session = session_factory(self.timer)
        self.exit_at_end = exit_at_end
        self._reader: Optional[threading.Thread] = None

    def post(self, callback: Callable[[], None]) -> None:
        self.events.put(callback)

    def quit(self) -> None:
        self.events.put(None)

    def post_key(self, key: str) -> None:
        def handle() -> None:
            if not dispatch_key(self.session, key):
                self.quit()
        self.post(handle)

    def _read_keys(self, lines: Iterable[str]) -> None:
        for key in keys_from_lines(lines):
            self.post_key(key)

    def _finished(self) -> bool:
        return (
            self.exit_at_end
            and self.session.at_end
            and self.session.state == PlaybackState.PAUSED
        )

    def run(self, keys: Optional[Iterable[str]] = None) -> None:
        """Start the session and process events until quit."""
        if keys is not None:
            self._reader = threading.Thread(target=self._read_keys, args=(keys,), daemon=True)
            self._reader.start()

        self.session.start()
        try:
            while not self._finished():
                callback = self.events.get()
                if callback is None:
                    break
                callback()
        finally:
            self.session.stop()
        logger.debug("Player stopped at frame %d", self.session.frame)
