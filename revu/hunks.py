"""Hunk-aware placement checks for proposed line comments."""

from __future__ import annotations

from collections.abc import Sequence

from .analysis import Comment
from .diff_model import DiffFileMap, DiffHunk


def find_hunk_for_line(hunks: Sequence[DiffHunk], line: int) -> DiffHunk | None:
    for hunk in hunks:
        if hunk.contains(line):
            return hunk
    return None


def are_in_same_hunk(hunks: Sequence[DiffHunk], start_line: int, end_line: int) -> bool:
    start_hunk = find_hunk_for_line(hunks, start_line)
    end_hunk = find_hunk_for_line(hunks, end_line)
    return start_hunk is not None and start_hunk is end_hunk


def is_comment_valid_for_diff(comment: Comment, diff_map: DiffFileMap) -> bool:
    """Whether GitHub will accept the comment at its current position.

    Every line of the range must be a changed line, and a multi-line range
    must start and end in the same hunk: the review API rejects ranges that
    span hunks even when each line on its own is part of the diff.
    """
    info = diff_map.get(comment.path)
    if info is None:
        return False

    if comment.start_line is None:
        return (
            comment.line in info.changed_lines
            and find_hunk_for_line(info.hunks, comment.line) is not None
        )

    all_changed = all(
        line in info.changed_lines for line in range(comment.start_line, comment.line + 1)
    )
    return all_changed and are_in_same_hunk(info.hunks, comment.start_line, comment.line)


def constrain_comment_to_hunk(comment: Comment, hunks: Sequence[DiffHunk]) -> Comment | None:
    """Narrow a comment so it sits inside a single hunk, or None if it cannot.

    A range crossing hunks collapses to a single-line comment on the first
    line of the first hunk it overlaps.
    """
    if comment.start_line is None:
        return comment if find_hunk_for_line(hunks, comment.line) is not None else None

    if are_in_same_hunk(hunks, comment.start_line, comment.line):
        return comment

    for hunk in hunks:
        if hunk.overlaps(comment.start_line, comment.line):
            return comment.moved_to(hunk.start_line, None)
    return None
