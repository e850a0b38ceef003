"""Apply ordered SEARCH/REPLACE blocks to file content.

Blocks are applied one after another to a working copy of the file. Each
block must match at or after the end of the previous replacement; a block
that matches earlier (out of order or overlapping) is an error and is not
applied. The result carries only the affected region in its final form,
together with the span it replaces in the original content, which is what a
GitHub suggestion needs.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .analysis import SearchReplaceBlock
from .matcher import find_match


@dataclass(frozen=True)
class ProcessingResult:
    """Outcome of applying blocks. Line numbers are 0-based, original coordinates."""

    success: bool
    applied_blocks: int
    errors: list[str] = field(default_factory=list)
    replacement_content: str | None = None
    original_start_line: int | None = None
    original_end_line: int | None = None


def process_search_replace_blocks(
    original_content: str,
    blocks: Sequence[SearchReplaceBlock],
) -> ProcessingResult:
    working_lines = original_content.split("\n")
    last_processed_line = 0
    line_offset = 0
    applied = 0
    errors: list[str] = []
    original_start: int | None = None
    original_end: int | None = None

    for number, block in enumerate(blocks, start=1):
        try:
            match = find_match("\n".join(working_lines), block.search, last_processed_line)
            if not match.found:
                errors.append(
                    f"SEARCH/REPLACE block {number} failed to match. Search content:\n{block.search}"
                )
                continue

            if match.start_line < last_processed_line:
                errors.append(
                    f"SEARCH/REPLACE block {number} matched content before previously "
                    "processed content. Blocks must be in file order."
                )
                continue

            if original_start is None:
                original_start = match.start_line - line_offset
            original_end = match.end_line - line_offset

            replacement_lines = block.replace.split("\n")
            working_lines[match.start_line : match.end_line + 1] = replacement_lines

            matched_count = match.end_line - match.start_line + 1
            line_offset += len(replacement_lines) - matched_count
            last_processed_line = match.start_line + len(replacement_lines)
            applied += 1
        except Exception as exc:  # one bad block must not sink the others
            errors.append(f"Error processing SEARCH/REPLACE block {number}: {exc}")

    replacement_content = None
    if applied and original_start is not None and original_end is not None:
        final_count = (original_end - original_start + 1) + line_offset
        replacement_content = "\n".join(
            working_lines[original_start : original_start + final_count]
        )

    return ProcessingResult(
        success=applied > 0 and not errors,
        applied_blocks=applied,
        errors=errors,
        replacement_content=replacement_content,
        original_start_line=original_start,
        original_end_line=original_end,
    )
