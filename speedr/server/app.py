"""FastAPI application exposing reader sessions over HTTP with OpenAPI docs.

WHY: The terminal player is one way to present frames; a web page, an
editor plugin or a test harness needs the same pacing and navigation
without a terminal. The HTTP API is a second frame sink over the same
ReaderSession.

HOW: POST /sessions tokenizes the submitted text and starts a session in
the SessionStore. Every navigation key of the terminal player is a command
posted to /sessions/{id}/commands. There is no server-side timer: each
response carries next_tick (epoch + delay) while the session runs, and the
client posts a tick command with that epoch when the delay has passed.

RULES:
- All endpoints have OpenAPI descriptions and a consistent ErrorResponse
- Text without any token -> 400; unknown session -> 404; bad command
  argument -> 422; store full -> 429
- A tick with a stale epoch is not an error; the unchanged state is returned
- The session store is a singleton created at import time
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Callable, List

from fastapi import FastAPI, HTTPException
from fastapi.responses import Response

from speedr import __version__
from speedr.config import API_HOST, API_PORT, HIGHLIGHT_ENTER, HIGHLIGHT_EXIT, ReaderConfig
from speedr.core.index import NoContentError
from speedr.core.ir import FrameView, PlaybackState
from speedr.core.session import ReaderSession
from speedr.core.tokens import tokenize
from speedr.server.models import (
    CommandAction,
    CommandRequest,
    CreateSessionRequest,
    ErrorResponse,
    HealthResponse,
    NextTick,
    SessionResponse,
    StatusModel,
)
from speedr.server.sessions import SessionStore, StoredSession

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App and store setup
# ---------------------------------------------------------------------------

session_store = SessionStore()


async def _periodic_cleanup() -> None:
    """Run session cleanup every 5 minutes."""
    while True:
        await asyncio.sleep(300)
        session_store.cleanup_expired()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start periodic cleanup on startup, cancel on shutdown."""
    task = asyncio.create_task(_periodic_cleanup())
    yield
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


app = FastAPI(
    lifespan=lifespan,
    title="speedr API",
    description=(
        "REST API for paced rapid-serial reading. Submit a text, then fetch "
        "frames one at a time by posting tick commands at the advertised "
        "delay, and navigate with the same commands as the terminal reader."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _view_to_response(stored: StoredSession, view: FrameView) -> SessionResponse:
    """Convert a FrameView to a SessionResponse Pydantic model."""
    st = view.status
    next_tick = None
    if st.state == PlaybackState.RUNNING and view.next_delay_ms is not None:
        next_tick = NextTick(epoch=st.epoch, delay_ms=view.next_delay_ms)
    return SessionResponse(
        id=stored.id,
        lines=[line.plain() for line in view.lines],
        markup=[line.markup(HIGHLIGHT_ENTER, HIGHLIGHT_EXIT) for line in view.lines],
        status=StatusModel(
            frame=st.frame,
            total_frames=st.total_frames,
            token=st.token,
            total_tokens=st.total_tokens,
            words_per_frame=st.words_per_frame,
            wpm=st.wpm,
            interval_ms=st.interval_ms,
            line_budget=st.line_budget,
            word_budget=st.word_budget,
            width_budget=st.width_budget,
            pending_goto=st.pending_goto,
            state=st.state.value,
        ),
        warnings=list(stored.session.warnings),
        next_tick=next_tick,
    )


def _require_value(cmd: CommandRequest) -> int:
    if cmd.value is None:
        raise HTTPException(
            status_code=422,
            detail="Command '{}' requires a value".format(cmd.action.value),
        )
    return cmd.value


def _command(cmd: CommandRequest) -> Callable[[ReaderSession], object]:
    """Translate a CommandRequest into a call on the session.

    Raises HTTPException(422) for a missing or invalid argument before the
    session is touched.
    """
    action = cmd.action
    if action == CommandAction.tick:
        epoch = _require_value(cmd)
        return lambda s: s.timer_fired(epoch)
    if action == CommandAction.toggle_pause:
        return lambda s: s.toggle_pause()
    if action == CommandAction.step:
        frames = 1 if cmd.value is None else cmd.value
        return lambda s: s.step(frames)
    if action == CommandAction.goto_digit:
        digit = _require_value(cmd)
        if not 0 <= digit <= 9:
            raise HTTPException(
                status_code=422,
                detail="goto_digit value must be between 0 and 9, got {}".format(digit),
            )
        return lambda s: s.goto_digit(digit)
    if action == CommandAction.goto_commit:
        return lambda s: s.goto_commit()
    if action == CommandAction.goto_clear:
        return lambda s: s.goto_clear()
    if action == CommandAction.words:
        words = _require_value(cmd)
        return lambda s: s.change_budget(words=words)
    if action == CommandAction.lines:
        lines = _require_value(cmd)
        return lambda s: s.change_budget(lines=lines)
    if action == CommandAction.width:
        width = _require_value(cmd)
        return lambda s: s.change_budget(width=width)
    steps = 1 if cmd.value is None else cmd.value
    return lambda s: s.change_rate(steps)


def _get_or_404(session_id: str) -> StoredSession:
    stored = session_store.get_session(session_id)
    if stored is None:
        raise HTTPException(
            status_code=404, detail="Session not found: {}".format(session_id)
        )
    return stored


# ---------------------------------------------------------------------------
# Endpoints: Sessions
# ---------------------------------------------------------------------------


@app.post(
    "/sessions",
    response_model=SessionResponse,
    status_code=201,
    tags=["sessions"],
    summary="Start a reading session",
    description=(
        "Tokenize the text, build the frame index, and return the first "
        "frame. Out-of-range budgets are clamped and reported in warnings."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Text contains no words"},
        429: {"model": ErrorResponse, "description": "Too many sessions"},
    },
)
async def create_session(request: CreateSessionRequest) -> SessionResponse:
    tokens = tokenize(request.text, request.granularity.value)
    config = ReaderConfig(
        word_budget=request.word_budget,
        line_budget=request.line_budget,
        width_budget=request.width_budget,
        wpm=request.wpm,
        highlight_all_lines=request.highlight_all_lines,
    )
    try:
        stored = session_store.create_session(tokens, config, start_token=request.start_token)
    except NoContentError:
        raise HTTPException(status_code=400, detail="Text contains no words")
    except ValueError as exc:
        raise HTTPException(status_code=429, detail=str(exc))
    return _view_to_response(stored, stored.view)


@app.get(
    "/sessions",
    response_model=List[SessionResponse],
    tags=["sessions"],
    summary="List reading sessions",
    description="Returns the current frame of every live session, oldest first.",
)
async def list_sessions() -> List[SessionResponse]:
    return [_view_to_response(s, s.view) for s in session_store.list_sessions()]


@app.get(
    "/sessions/{session_id}",
    response_model=SessionResponse,
    tags=["sessions"],
    summary="Get the current frame of a session",
    description="Returns the most recently emitted frame and the session status.",
    responses={
        404: {"model": ErrorResponse, "description": "Session not found"},
    },
)
async def get_session(session_id: str) -> SessionResponse:
    stored = _get_or_404(session_id)
    return _view_to_response(stored, stored.view)


@app.post(
    "/sessions/{session_id}/commands",
    response_model=SessionResponse,
    tags=["sessions"],
    summary="Send a command to a session",
    description=(
        "Advance (tick), pause or resume, move by frames, type and commit a "
        "goto frame number, change budgets, or change the reading speed. "
        "Returns the frame shown after the command."
    ),
    responses={
        404: {"model": ErrorResponse, "description": "Session not found"},
        422: {"model": ErrorResponse, "description": "Missing or invalid command value"},
    },
)
async def send_command(session_id: str, cmd: CommandRequest) -> SessionResponse:
    stored = _get_or_404(session_id)
    command = _command(cmd)
    session_store.apply(session_id, command)
    logger.debug("Session %s: %s %s", session_id, cmd.action.value, cmd.value)
    return _view_to_response(stored, stored.view)


@app.delete(
    "/sessions/{session_id}",
    status_code=204,
    tags=["sessions"],
    summary="End a reading session",
    description="Stop the session and discard its state.",
    responses={
        404: {"model": ErrorResponse, "description": "Session not found"},
    },
)
async def delete_session(session_id: str) -> Response:
    deleted = session_store.delete_session(session_id)
    if not deleted:
        raise HTTPException(
            status_code=404, detail="Session not found: {}".format(session_id)
        )
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness check for load balancers and orchestrators.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api():
    """Entry point for the speedr-api console script."""
    import uvicorn
    uvicorn.run(app, host=API_HOST, port=API_PORT)
