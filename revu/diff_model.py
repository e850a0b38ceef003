"""Unified diff model for PR review comments.

GitHub's review API only accepts line comments on lines that belong to a hunk
of the file's diff, and refuses multi-line comments that span two hunks. This
module turns a full `git diff` into, per file, the set of added line numbers
and the new-file bounds of every hunk.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_HUNK_RE = re.compile(
    r"^@@ -(?P<old_start>\d+)(?:,(?P<old_count>\d+))? \+(?P<new_start>\d+)(?:,(?P<new_count>\d+))? @@"
)
_FILE_PATH_RE = re.compile(r"a/(.+?) b/")

FILE_SEPARATOR = "diff --git "


@dataclass(frozen=True)
class DiffHunk:
    """One hunk, bounds are inclusive 1-based lines of the new file."""

    start_line: int
    end_line: int
    header: str

    def contains(self, line: int) -> bool:
        return self.start_line <= line <= self.end_line

    def overlaps(self, start: int, end: int) -> bool:
        return self.start_line <= end and self.end_line >= start


@dataclass
class DiffInfo:
    changed_lines: set[int] = field(default_factory=set)
    hunks: list[DiffHunk] = field(default_factory=list)


DiffFileMap = dict[str, DiffInfo]


def _parse_hunk_header(raw: str) -> DiffHunk | None:
    m = _HUNK_RE.match(raw)
    if not m:
        return None
    start = int(m.group("new_start"))
    count_text = m.group("new_count")
    count = int(count_text) if count_text is not None else 1
    if count <= 0:
        # Pure deletion: nothing of this hunk exists in the new file.
        return None
    return DiffHunk(start_line=start, end_line=start + count - 1, header=raw.strip())


def _parse_file_section(section: str) -> tuple[str, DiffInfo] | None:
    path_match = _FILE_PATH_RE.search(section.split("\n", 1)[0])
    if not path_match:
        return None
    path = path_match.group(1)

    info = DiffInfo()
    new_line: int | None = None

    for raw in section.split("\n")[1:]:
        if raw.startswith("@@"):
            hunk = _parse_hunk_header(raw)
            if hunk is None:
                new_line = None
                continue
            info.hunks.append(hunk)
            new_line = hunk.start_line
            continue

        if new_line is None:
            continue

        if not raw:
            # Trailing newline of the section, or a blank context line that
            # lost its leading space.
            continue

        prefix = raw[0]
        if prefix == "\\":
            # "\ No newline at end of file" marker line.
            continue
        if prefix == "-":
            continue
        if prefix == "+":
            info.changed_lines.add(new_line)
            new_line += 1
            continue
        if prefix == " ":
            new_line += 1
            continue

    if not info.hunks:
        return None
    return path, info


def parse_diff(diff: str) -> DiffFileMap:
    """Return map: file path -> DiffInfo for every file with at least one hunk.

    Added lines advance the new-file counter and are recorded; context lines
    only advance it; removed lines do neither. Sections without a parsable
    hunk header are skipped.
    """
    file_map: DiffFileMap = {}
    sections = (diff or "").replace("\r\n", "\n").split(FILE_SEPARATOR)
    for section in sections[1:]:
        parsed = _parse_file_section(section)
        if parsed is None:
            continue
        path, info = parsed
        file_map[path] = info
    return file_map
