"""Command-line interface for the speedr paced reader.

WHY: The reader is used from a terminal: point it at a text file and it
shows the text a few words at a time at the chosen speed, with single-key
commands to pause, jump around, and retune the budgets while reading.

HOW: argparse builds the option set (-c and -w for the line budgets,
plus lines, wpm, tokenization and start position). The file is
tokenized, the budgets are clamped (warnings go to stderr), and a Player
drives a ReaderSession whose frames are written to stdout. Command keys
are read from stdin one line at a time. --index prints the frame table
instead of playing.

RULES:
- Positional argument: the text file (UTF-8)
- Exit codes: 0 = success, 1 = error (missing file, no words), 130 = Ctrl-C
- Status and warnings go to stderr; frames go to stdout
- Budget problems are clamped and reported, never fatal
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from speedr.config import (
    DEFAULT_GRANULARITY,
    DEFAULT_LINES,
    DEFAULT_LOG_LEVEL,
    DEFAULT_WIDTH,
    DEFAULT_WORDS,
    DEFAULT_WPM,
    GRANULARITIES,
    ReaderConfig,
)
from speedr.core.frames import build_frame
from speedr.core.index import NoContentError, build_index
from speedr.core.session import ReaderSession
from speedr.core.tokens import load_tokens
from speedr.player import Player, TerminalSink


def _status(msg: str) -> None:
    """Print a status message to stderr."""
    print("speedr: {}".format(msg), file=sys.stderr, flush=True)


def _print_index(tokens, config: ReaderConfig) -> None:
    """Print one row per frame followed by the index statistics."""
    index = build_index(tokens, config.line_budget, config.word_budget, config.width_budget)
    for n, offset in enumerate(index.offsets):
        frame = build_frame(
            tokens, offset, config.line_budget, config.word_budget, config.width_budget
        )
        print("{}\t{}\t{}".format(n, offset, " / ".join(frame.lines)))
    print(
        "frames: {}  tokens: {}  words/frame: {:.2f}  chars/word: {:.2f}".format(
            len(index), index.token_count,
            index.mean_words_per_frame, index.mean_word_length,
        )
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    Separate from main() so tests can inspect the parser without reading.
    """
    parser = argparse.ArgumentParser(
        prog="speedr",
        description="Read a text file a few words at a time at a controlled pace.",
    )

    parser.add_argument(
        "file",
        help="Path to the UTF-8 text file to read.",
    )
    parser.add_argument(
        "-c", "--chars",
        type=int,
        default=DEFAULT_WIDTH,
        help="Maximum number of characters per line (default: %(default)s).",
    )
    parser.add_argument(
        "-w", "--words",
        type=int,
        default=DEFAULT_WORDS,
        help="Maximum number of words per line (default: %(default)s).",
    )
    parser.add_argument(
        "-l", "--lines",
        type=int,
        default=DEFAULT_LINES,
        help="Maximum number of lines per frame (default: %(default)s).",
    )
    parser.add_argument(
        "--wpm",
        type=int,
        default=DEFAULT_WPM,
        help="Target reading speed in words per minute (default: %(default)s).",
    )
    parser.add_argument(
        "--tokens",
        choices=GRANULARITIES,
        default=DEFAULT_GRANULARITY if DEFAULT_GRANULARITY in GRANULARITIES else "line",
        help="Split the text on line breaks only, or on every space "
             "(default: %(default)s).",
    )
    parser.add_argument(
        "--start-token",
        type=int,
        default=0,
        help="Start reading at the frame containing this token index.",
    )
    parser.add_argument(
        "--highlight-all-lines",
        action="store_true",
        help="Highlight the focal character on every line of a frame.",
    )
    parser.add_argument(
        "--index",
        action="store_true",
        help="Print the frame table and statistics, then exit.",
    )
    parser.add_argument(
        "--exit-at-end",
        action="store_true",
        help="Quit when the last frame is reached instead of waiting for 'q'.",
    )
    parser.add_argument(
        "--no-input",
        action="store_true",
        help="Do not read command keys from stdin.",
    )
    parser.add_argument(
        "--log-level",
        default=DEFAULT_LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Logging level for diagnostics on stderr (default: %(default)s).",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    argv=None means use sys.argv; an explicit list is for testing.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    path = Path(args.file)
    try:
        tokens = load_tokens(path, args.tokens)
    except (OSError, UnicodeDecodeError) as e:
        _status(str(e))
        sys.exit(1)

    if not tokens:
        _status("file {} has no words".format(args.file))
        sys.exit(1)

    config, warnings = ReaderConfig(
        word_budget=args.words,
        line_budget=args.lines,
        width_budget=args.chars,
        wpm=args.wpm,
        highlight_all_lines=args.highlight_all_lines,
    ).clamped()
    for message in warnings:
        _status(message)

    if args.index:
        _print_index(tokens, config)
        return

    sink = TerminalSink(sys.stdout, title=path.name)
    try:
        player = Player(
            lambda timer: ReaderSession(
                tokens, config, timer, sink, start_token=args.start_token
            ),
            exit_at_end=args.exit_at_end,
        )
        player.run(keys=None if args.no_input else sys.stdin)
    except NoContentError:
        _status("file {} has no words".format(args.file))
        sys.exit(1)
    except KeyboardInterrupt:
        _status("interrupted")
        sys.exit(130)


if __name__ == "__main__":
    main()
