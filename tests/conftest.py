"""Shared test fixtures for the speedr test suite.

WHY: Most test modules need the same small texts, a timer that never
really waits, and a frame sink that remembers what it was given.
Centralizing them here keeps session, player and API tests consistent.

HOW: Pytest fixtures provide token sequences (plain words, punctuated
sentences, a single frame's worth), a FakeTimer implementing the timer
service protocol, and a RecordingSink collecting every FrameView.

RULES:
- FakeTimer never calls a callback on its own; tests fire it explicitly
- Cancelled handles stay in FakeTimer.scheduled so tests can inspect them
- Token fixtures return fresh tuples; nothing here is mutable shared state
"""

from __future__ import annotations

from typing import Callable, List, Optional, Tuple

import pytest

from speedr.config import ReaderConfig
from speedr.core.ir import FrameView
from speedr.core.session import ReaderSession


# ---------------------------------------------------------------------------
# Sample texts
# ---------------------------------------------------------------------------

# 100 one-letter words, no punctuation: word budget 2 gives 50 frames.
HUNDRED_WORDS: Tuple[str, ...] = tuple("abcdefghij"[n % 10] for n in range(100))

SENTENCES: Tuple[str, ...] = (
    "The", "quick", "brown", "fox", "jumps", "over", "the", "lazy", "dog.",
    "Then", "it", "sleeps,", "dreaming", "of", "rabbits!",
    "Does", "it", "ever", "wake", "up?",
)


# ---------------------------------------------------------------------------
# Timer and sink doubles
# ---------------------------------------------------------------------------


class FakeHandle:
    def __init__(self, delay_ms: float, callback: Callable[[], None]) -> None:
        self.delay_ms = delay_ms
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeTimer:
    """Timer service that records schedules instead of waiting."""

    def __init__(self) -> None:
        self.scheduled: List[FakeHandle] = []

    def schedule_once(self, delay_ms: float, callback: Callable[[], None]) -> FakeHandle:
        handle = FakeHandle(delay_ms, callback)
        self.scheduled.append(handle)
        return handle

    @property
    def active(self) -> List[FakeHandle]:
        return [h for h in self.scheduled if not (h.cancelled or h.fired)]

    @property
    def last(self) -> Optional[FakeHandle]:
        return self.scheduled[-1] if self.scheduled else None

    def fire_last(self) -> None:
        """Run the most recently scheduled callback, cancelled or not."""
        handle = self.last
        assert handle is not None, "nothing scheduled"
        handle.fired = True
        handle.callback()


class RecordingSink:
    """Frame sink that keeps every FrameView it receives."""

    def __init__(self) -> None:
        self.views: List[FrameView] = []

    def __call__(self, view: FrameView) -> None:
        self.views.append(view)

    @property
    def last(self) -> FrameView:
        return self.views[-1]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def hundred_words():
    """100 single-letter words without punctuation."""
    return HUNDRED_WORDS


@pytest.fixture
def sentences():
    """Three short sentences ending in '.', '!' and '?'."""
    return SENTENCES


@pytest.fixture
def fake_timer():
    return FakeTimer()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def default_config():
    """Two words per line, one line, 30 characters, 250 wpm."""
    return ReaderConfig(word_budget=2, line_budget=1, width_budget=30, wpm=250)


@pytest.fixture
def make_session(fake_timer, sink, default_config):
    """Factory building a ReaderSession wired to the fake timer and sink."""

    def _make(tokens=HUNDRED_WORDS, config=None, **kwargs) -> ReaderSession:
        return ReaderSession(
            tokens,
            config if config is not None else default_config,
            fake_timer,
            sink,
            **kwargs,
        )

    return _make
