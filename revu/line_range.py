"""Line specifiers recorded in comment markers ("123" or "123-125")."""

from __future__ import annotations

import re
from dataclasses import dataclass

from .diff_model import DiffInfo

INVALID_FORMAT = "invalid_format"
INVALID_NUMBERS = "invalid_numbers"
INVALID_RANGE = "invalid_range"

_INT_RE = re.compile(r"^\s*[+-]?\d+\s*$")


class LineSpecError(ValueError):
    """A line specifier could not be parsed; `reason` says why."""

    def __init__(self, reason: str, spec: str) -> None:
        super().__init__(f"{reason}: {spec!r}")
        self.reason = reason
        self.spec = spec


@dataclass(frozen=True)
class LineRange:
    is_range: bool
    start_line: int
    end_line: int | None = None

    @property
    def last_line(self) -> int:
        return self.end_line if self.end_line is not None else self.start_line

    def lines(self) -> range:
        return range(self.start_line, self.last_line + 1)


def _to_int(text: str) -> int | None:
    if not _INT_RE.match(text):
        return None
    return int(text)


def parse_line_spec(spec: str) -> LineRange:
    """Parse "N" or "N-M" into a LineRange.

    Raises:
        LineSpecError: reason is invalid_format (empty), invalid_numbers
            (non-numeric part) or invalid_range (start > end).
    """
    if not spec:
        raise LineSpecError(INVALID_FORMAT, spec)

    if "-" in spec:
        start_text, _, end_text = spec.partition("-")
        start = _to_int(start_text)
        end = _to_int(end_text)
        if start is None or end is None:
            raise LineSpecError(INVALID_NUMBERS, spec)
        if start > end:
            raise LineSpecError(INVALID_RANGE, spec)
        return LineRange(is_range=True, start_line=start, end_line=end)

    line = _to_int(spec)
    if line is None:
        raise LineSpecError(INVALID_NUMBERS, spec)
    return LineRange(is_range=False, start_line=line)


def lines_in_diff(line_range: LineRange, info: DiffInfo | None) -> bool:
    """True when every line of the range is still a changed line of the file."""
    if info is None:
        return False
    return all(line in info.changed_lines for line in line_range.lines())
