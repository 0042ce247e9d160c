"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation. Pydantic
models enforce field types at runtime and generate JSON Schema that
appears in the /docs UI.

HOW: One request model per write endpoint, one response model shared by
every endpoint that returns a session. Closed sets (command actions,
token granularity) are enums. All models include Field descriptions.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Budgets are NOT range-checked here; the session clamps them and
  reports warnings, exactly like the CLI
- Frame lines are returned both plain and with @r/@N highlight markup
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from speedr.config import (
    DEFAULT_LINES,
    DEFAULT_WIDTH,
    DEFAULT_WORDS,
    DEFAULT_WPM,
    GRANULARITY_LINE,
    GRANULARITY_WORD,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Granularity(str, Enum):
    """How the submitted text is split into tokens."""

    line = GRANULARITY_LINE
    word = GRANULARITY_WORD


class CommandAction(str, Enum):
    """Commands accepted by POST /sessions/{id}/commands.

    RULES:
    - tick: value is the epoch from next_tick; stale epochs are ignored
    - step: value is a signed frame count (default 1)
    - goto_digit: value is a single digit 0-9
    - words / lines / width: value is the new absolute budget
    - rate: value is a signed number of wpm steps (default 1)
    """

    tick = "tick"
    toggle_pause = "toggle_pause"
    step = "step"
    goto_digit = "goto_digit"
    goto_commit = "goto_commit"
    goto_clear = "goto_clear"
    words = "words"
    lines = "lines"
    width = "width"
    rate = "rate"


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class CreateSessionRequest(BaseModel):
    """Text and reading configuration for a new session.

    RULES:
    - text must contain at least one token, otherwise 400
    - Out-of-range budgets are clamped and listed in the response warnings
    """

    text: str = Field(description="The text to read.")
    granularity: Granularity = Field(
        default=Granularity.line,
        description="Split on line breaks only ('line') or on every space ('word').",
    )
    word_budget: int = Field(
        default=DEFAULT_WORDS,
        description="Maximum number of words per line.",
    )
    line_budget: int = Field(
        default=DEFAULT_LINES,
        description="Maximum number of lines per frame.",
    )
    width_budget: int = Field(
        default=DEFAULT_WIDTH,
        description="Maximum number of characters per line.",
    )
    wpm: int = Field(
        default=DEFAULT_WPM,
        description="Target reading speed in words per minute.",
    )
    start_token: int = Field(
        default=0,
        ge=0,
        description="Start on the frame containing this token index.",
    )
    highlight_all_lines: bool = Field(
        default=False,
        description="Highlight the focal character on every line, not only the first.",
    )

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "text": "The quick brown fox jumps over the lazy dog.",
                "granularity": "word",
                "word_budget": 2,
                "line_budget": 1,
                "width_budget": 30,
                "wpm": 250,
            }
        ]
    }}


class CommandRequest(BaseModel):
    """One navigation or configuration command."""

    action: CommandAction = Field(description="Command to apply to the session.")
    value: Optional[int] = Field(
        default=None,
        description="Command argument; meaning depends on the action.",
    )


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class NextTick(BaseModel):
    """When the client should send the next tick command.

    WHY: API sessions have no server-side timer. The client waits
    delay_ms, then posts {"action": "tick", "value": epoch}.
    """

    epoch: int = Field(description="Epoch to send back with the tick command.")
    delay_ms: float = Field(description="Milliseconds to wait before ticking.")


class StatusModel(BaseModel):
    """Position, pacing, and budget information for a session."""

    frame: int = Field(description="Current frame number (0-based).")
    total_frames: int = Field(description="Number of frames in the text.")
    token: int = Field(description="Index of the first token of the current frame.")
    total_tokens: int = Field(description="Number of tokens in the text.")
    words_per_frame: float = Field(description="Mean number of tokens per frame.")
    wpm: int = Field(description="Target reading speed in words per minute.")
    interval_ms: float = Field(description="Base interval between frames in milliseconds.")
    line_budget: int = Field(description="Maximum lines per frame.")
    word_budget: int = Field(description="Maximum words per line.")
    width_budget: int = Field(description="Maximum characters per line.")
    pending_goto: int = Field(description="Frame number typed so far for a goto.")
    state: str = Field(description="Playback state: 'running' or 'paused'.")


class SessionResponse(BaseModel):
    """Current frame and status of a reading session.

    RULES:
    - lines are padded so the focal character sits mid-width
    - markup holds the same lines with @r/@N around the focal character
    - next_tick is only present while the session is running
    """

    id: str = Field(description="Unique session identifier.")
    lines: List[str] = Field(description="Centered frame lines, plain text.")
    markup: List[str] = Field(description="Centered frame lines with @r/@N highlight markers.")
    status: StatusModel = Field(description="Position, pacing, and budgets.")
    warnings: List[str] = Field(
        default_factory=list,
        description="Budget corrections applied so far.",
    )
    next_tick: Optional[NextTick] = Field(
        default=None,
        description="When to send the next tick; absent while paused.",
    )

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "id": "550e8400e29b41d4a716446655440000",
                "lines": ["                                   The quick                                  "],
                "markup": ["                                   The @rq@Nuick                                  "],
                "status": {
                    "frame": 0,
                    "total_frames": 5,
                    "token": 0,
                    "total_tokens": 9,
                    "words_per_frame": 1.8,
                    "wpm": 250,
                    "interval_ms": 432.0,
                    "line_budget": 1,
                    "word_budget": 2,
                    "width_budget": 30,
                    "pending_goto": 0,
                    "state": "running",
                },
                "warnings": [],
                "next_tick": {"epoch": 1, "delay_ms": 432.0},
            }
        ]
    }}


class ErrorResponse(BaseModel):
    """Standard error response body."""

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
