"""Core segmentation, pacing, and navigation modules.

WHY: The core package holds everything that decides what is shown and
when: splitting text into tokens, grouping tokens into frames, placing the
focal character, timing each frame, and moving through the text. It has
no knowledge of terminals or HTTP.

HOW: ir.py defines the data structures, tokens.py reads text, frames.py
and index.py segment it, focus.py formats single lines, timing.py holds
the pacing formulas, and session.py ties them into the reader state
machine.

RULES:
- IR dataclasses are the contract between the core and the sinks
- Segmentation is deterministic for a given token sequence and budgets
- Only session.py holds mutable state
"""
