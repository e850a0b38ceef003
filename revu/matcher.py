"""Locate a SEARCH block inside file content.

Model-written search text rarely matches the file verbatim, so matching runs
in tiers and the first hit wins:

1. exact: the search lines equal a contiguous run of file lines.
2. line-trimmed: same, comparing each line with surrounding whitespace
   stripped (indentation drift).
3. block-anchor: for blocks of 3+ lines, the first and last lines match
   (trimmed) and at least half of the interior lines do too.

Line numbers are 0-based indices into the searched content.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

EXACT = "exact"
LINE_TRIMMED = "line-trimmed"
BLOCK_ANCHOR = "block-anchor"

MIDDLE_LINE_MATCH_THRESHOLD = 0.5
MIN_BLOCK_SIZE_FOR_ANCHOR_MATCHING = 3


@dataclass(frozen=True)
class MatchResult:
    found: bool
    start_line: int
    end_line: int
    method: str


NOT_FOUND = MatchResult(found=False, start_line=-1, end_line=-1, method=EXACT)


def normalize_search_lines(search: str) -> list[str]:
    """Split search text into lines, dropping one trailing blank line."""
    lines = search.split("\n")
    if lines and lines[-1].strip() == "":
        lines.pop()
    return lines


def _scan(content_lines: list[str], search_lines: list[str], from_line: int, *, trim: bool) -> int | None:
    size = len(search_lines)
    if trim:
        search_lines = [s.strip() for s in search_lines]
    for i in range(max(0, from_line), len(content_lines) - size + 1):
        for j, wanted in enumerate(search_lines):
            candidate = content_lines[i + j]
            if trim:
                candidate = candidate.strip()
            if candidate != wanted:
                break
        else:
            return i
    return None


def _middle_lines_match(content_lines: list[str], search_lines: list[str], start: int) -> bool:
    middle_count = len(search_lines) - 2
    if middle_count <= 0:
        return True
    required = math.ceil(middle_count * MIDDLE_LINE_MATCH_THRESHOLD)
    matches = 0
    for j in range(1, len(search_lines) - 1):
        if content_lines[start + j].strip() == search_lines[j].strip():
            matches += 1
            if matches >= required:
                return True
    return matches / middle_count >= MIDDLE_LINE_MATCH_THRESHOLD


def _block_anchor_scan(content_lines: list[str], search_lines: list[str], from_line: int) -> int | None:
    size = len(search_lines)
    if size < MIN_BLOCK_SIZE_FOR_ANCHOR_MATCHING:
        return None
    first = search_lines[0].strip()
    last = search_lines[-1].strip()
    for i in range(max(0, from_line), len(content_lines) - size + 1):
        if content_lines[i].strip() != first:
            continue
        if content_lines[i + size - 1].strip() != last:
            continue
        if not _middle_lines_match(content_lines, search_lines, i):
            continue
        return i
    return None


def find_match(content: str, search: str, from_line: int = 0) -> MatchResult:
    """Find `search` in `content` at or after `from_line`, trying each tier in turn."""
    content_lines = content.split("\n")
    search_lines = normalize_search_lines(search)
    if not search_lines:
        return NOT_FOUND

    size = len(search_lines)
    tiers = (
        (EXACT, lambda: _scan(content_lines, search_lines, from_line, trim=False)),
        (LINE_TRIMMED, lambda: _scan(content_lines, search_lines, from_line, trim=True)),
        (BLOCK_ANCHOR, lambda: _block_anchor_scan(content_lines, search_lines, from_line)),
    )
    for method, scan in tiers:
        start = scan()
        if start is not None:
            return MatchResult(found=True, start_line=start, end_line=start + size - 1, method=method)
    return NOT_FOUND
