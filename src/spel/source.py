"""Source text representation and span tracking for diagnostics."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Span:
    """A half-open range of character offsets within an expression."""

    start: int
    end: int

    def __str__(self) -> str:
        return f"{self.start}:{self.end}"

    def contains(self, offset: int) -> bool:
        return self.start <= offset < self.end


def cover(first: Span, last: Span) -> Span:
    """Build a Span from the start of ``first`` to the end of ``last``."""
    return Span(first.start, last.end)


class SourceText:
    """An expression's text with line access for diagnostics.

    Offsets are 0-indexed; lines and columns reported by ``location`` are
    1-indexed, matching what editors and terminals show.
    """

    def __init__(self, text: str, name: str = "<expression>") -> None:
        self.text = text
        self.name = name
        self.lines = text.splitlines() or [""]
        self._line_starts = [0]
        for i, ch in enumerate(text):
            if ch == "\n":
                self._line_starts.append(i + 1)

    @classmethod
    def from_path(cls, path: Path) -> SourceText:
        return cls(path.read_text(), str(path))

    def line_at(self, n: int) -> str:
        """Return the 1-indexed line, or empty string if out of range."""
        if 1 <= n <= len(self.lines):
            return self.lines[n - 1]
        return ""

    def location(self, offset: int) -> tuple[int, int]:
        """Map a character offset to a 1-indexed (line, column) pair."""
        offset = max(0, min(offset, len(self.text)))
        line = 0
        lo, hi = 0, len(self._line_starts) - 1
        while lo <= hi:
            mid = (lo + hi) // 2
            if self._line_starts[mid] <= offset:
                line = mid
                lo = mid + 1
            else:
                hi = mid - 1
        return line + 1, offset - self._line_starts[line] + 1

    def offset(self, line: int, column: int) -> int:
        """Map a 1-indexed (line, column) pair back to a character offset."""
        if line < 1:
            return 0
        if line > len(self._line_starts):
            return len(self.text)
        return min(self._line_starts[line - 1] + column - 1, len(self.text))
