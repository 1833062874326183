from __future__ import annotations

from typing import List, Optional

CONTINUATION_PROMPT = "... "
INDENT = "  "


class MultilineAccumulator:
    """Buffers lines until block openers and closers balance out.

    Depth is tracked by the marker a line ends with, not by parsing: a line
    ending in ``open_marker`` opens a level, a line ending in ``close_marker``
    closes one (never below zero).
    """

    def __init__(self, open_marker: str = "{", close_marker: str = "}") -> None:
        self.open_marker = open_marker
        self.close_marker = close_marker
        self.pending_lines: List[str] = []
        self.open_depth = 0

    @property
    def active(self) -> bool:
        return self.open_depth > 0

    def opens_block(self, line: str) -> bool:
        return line.endswith(self.open_marker)

    def closes_block(self, line: str) -> bool:
        return line.endswith(self.close_marker)

    def feed(self, line: str) -> Optional[str]:
        self.pending_lines.append(line)
        if self.opens_block(line):
            self.open_depth += 1
        if self.closes_block(line) and self.open_depth > 0:
            self.open_depth -= 1
        if self.open_depth:
            return None
        unit = "\n".join(self.pending_lines)
        self.abort()
        return unit

    def abort(self) -> None:
        self.pending_lines = []
        self.open_depth = 0

    @property
    def continuation_prompt(self) -> str:
        return CONTINUATION_PROMPT + INDENT * self.open_depth


__all__ = ["CONTINUATION_PROMPT", "MultilineAccumulator"]
