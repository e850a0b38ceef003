"""Typed loader for the analysis payload produced by the review model.

The payload is JSON:

    {
      "summary": "Overall PR summary",
      "comments": [
        {
          "path": "src/app.py",
          "line": 42,
          "start_line": 40,
          "body": "Comment text",
          "suggestion": "optional replacement code",
          "search_replace_blocks": [{"search": "...", "replace": "..."}]
        }
      ]
    }

A malformed payload fails as a whole: entries are never dropped silently.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from typing import Any


class AnalysisError(ValueError):
    """The analysis payload is not valid JSON or does not match the schema."""


@dataclass(frozen=True)
class SearchReplaceBlock:
    search: str
    replace: str


@dataclass(frozen=True)
class Comment:
    """A proposed line comment. `start_line`, when set, is <= `line`."""

    path: str
    line: int
    body: str
    start_line: int | None = None
    suggestion: str | None = None
    search_replace_blocks: tuple[SearchReplaceBlock, ...] = ()

    def moved_to(self, line: int, start_line: int | None) -> "Comment":
        return replace(self, line=line, start_line=start_line)

    def location(self) -> str:
        if self.start_line is not None:
            return f"{self.path}:{self.start_line}-{self.line}"
        return f"{self.path}:{self.line}"


@dataclass(frozen=True)
class Analysis:
    summary: str
    comments: list[Comment]


def _require_mapping(value: Any, ctx: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise AnalysisError(f"{ctx}: expected object")
    return value


def _require_list(value: Any, ctx: str) -> list[Any]:
    if not isinstance(value, list):
        raise AnalysisError(f"{ctx}: expected array")
    return value


def _require_str(value: Any, ctx: str, *, allow_empty: bool = False) -> str:
    if not isinstance(value, str):
        raise AnalysisError(f"{ctx}: expected string")
    if not allow_empty and not value.strip():
        raise AnalysisError(f"{ctx}: must be non-empty")
    return value


def _require_positive_int(value: Any, ctx: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise AnalysisError(f"{ctx}: expected integer")
    if value < 1:
        raise AnalysisError(f"{ctx}: must be >= 1")
    return value


def _parse_blocks(value: Any, ctx: str) -> tuple[SearchReplaceBlock, ...]:
    if value is None:
        return ()
    blocks: list[SearchReplaceBlock] = []
    for idx, item in enumerate(_require_list(value, ctx)):
        block = _require_mapping(item, f"{ctx}[{idx}]")
        blocks.append(
            SearchReplaceBlock(
                search=_require_str(block.get("search"), f"{ctx}[{idx}].search"),
                replace=_require_str(
                    block.get("replace"), f"{ctx}[{idx}].replace", allow_empty=True
                ),
            )
        )
    return tuple(blocks)


def parse_comment(raw: Any, ctx: str = "comment") -> Comment:
    item = _require_mapping(raw, ctx)
    path = _require_str(item.get("path"), f"{ctx}.path").strip()
    line = _require_positive_int(item.get("line"), f"{ctx}.line")
    body = _require_str(item.get("body"), f"{ctx}.body")

    start_line = None
    if item.get("start_line") is not None:
        start_line = _require_positive_int(item.get("start_line"), f"{ctx}.start_line")
        if start_line > line:
            raise AnalysisError(
                f"{ctx}.start_line: must be less than or equal to line "
                "(start_line == line is a valid single-line range)"
            )

    suggestion = item.get("suggestion")
    if suggestion is not None:
        suggestion = _require_str(suggestion, f"{ctx}.suggestion", allow_empty=True)

    return Comment(
        path=path,
        line=line,
        body=body,
        start_line=start_line,
        suggestion=suggestion,
        search_replace_blocks=_parse_blocks(
            item.get("search_replace_blocks"), f"{ctx}.search_replace_blocks"
        ),
    )


def parse_analysis(text: str) -> Analysis:
    """Parse and validate the analysis JSON.

    Raises:
        AnalysisError: invalid JSON or any entry failing validation.
    """
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise AnalysisError(f"invalid JSON: {exc}") from exc

    data = _require_mapping(raw, "analysis")
    summary = _require_str(data.get("summary"), "analysis.summary", allow_empty=True)
    comments_raw = _require_list(data.get("comments"), "analysis.comments")
    comments = [
        parse_comment(item, f"analysis.comments[{idx}]")
        for idx, item in enumerate(comments_raw)
    ]
    return Analysis(summary=summary, comments=comments)
