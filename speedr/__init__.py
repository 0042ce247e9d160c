"""speedr — paced rapid-serial text reader.

WHY: Reading long text on a terminal is faster when the eye does not have
to travel: showing a few words at a time, centered on a fixed point and
paced at a chosen speed, lets the reader keep their gaze still.

HOW: Four stages, each independently testable: tokenize the text (core
tokens), cut it into frames bounded by word and width budgets (core
frames/index), pace the frames from a words-per-minute target (core
timing), and drive navigation from one session object (core session).
The terminal player and the HTTP API are thin frame sinks around it.

RULES:
- The core never sleeps and never prints; it emits FrameView values
- One ReaderSession per reader, no module-level mutable state
- Budgets and speed are clamped to their bounds, never rejected
"""

__version__ = "0.1.0"
