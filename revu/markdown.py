"""Markdown helpers for revu PR comments.

Keep surface area small: suggestion fences, their de-duplication, and
<details> blocks.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_SUGGESTION_RE = re.compile(r"```suggestion[ \t]*\n([\s\S]*?)\n```")
_TRAILING_WS_RE = re.compile(r"[\t ]+$")
# Blank-line runs outside suggestion fences; fence bodies are matched whole so
# their contents are left untouched.
_EXTRA_BLANK_LINES_RE = re.compile(r"(```suggestion[ \t]*\n[\s\S]*?\n```)|\n{3,}")


@dataclass(frozen=True)
class SuggestionBlock:
    raw: str
    content: str
    index: int


@dataclass(frozen=True)
class DedupeResult:
    markdown: str
    removed: int


def _normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n")


def render_suggestion(text: str) -> str:
    """Wrap replacement code in a GitHub suggestion fence."""
    if text.endswith("\n"):
        text = text[:-1]
    return f"```suggestion\n{text}\n```"


def normalize_suggestion_content(content: str) -> str:
    """Form used to compare suggestion blocks.

    Indentation is kept (it matters in many languages); CRLF vs LF, trailing
    whitespace per line and leading/trailing blank lines are ignored.
    """
    lines = [_TRAILING_WS_RE.sub("", ln) for ln in _normalize_newlines(content).split("\n")]
    start, end = 0, len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return "\n".join(lines[start:end])


def extract_suggestion_blocks(markdown: str) -> list[SuggestionBlock]:
    text = _normalize_newlines(markdown)
    return [
        SuggestionBlock(raw=m.group(0), content=m.group(1) or "", index=m.start())
        for m in _SUGGESTION_RE.finditer(text)
    ]


def contains_equivalent_suggestion_block(markdown: str, suggestion_block: str) -> bool:
    targets = extract_suggestion_blocks(suggestion_block)
    target = normalize_suggestion_content(targets[0].content) if targets else ""
    if not target:
        return False
    return any(
        normalize_suggestion_content(b.content) == target for b in extract_suggestion_blocks(markdown)
    )


def dedupe_suggestion_blocks(markdown: str) -> DedupeResult:
    """Drop repeated suggestion fences, keeping the first of each and all prose."""
    text = _normalize_newlines(markdown)
    matches = list(_SUGGESTION_RE.finditer(text))
    if len(matches) <= 1:
        return DedupeResult(markdown=text, removed=0)

    seen: set[str] = set()
    removed = 0
    parts: list[str] = []
    last_index = 0
    for m in matches:
        parts.append(text[last_index : m.start()])
        key = normalize_suggestion_content(m.group(1) or "")
        if key and key not in seen:
            seen.add(key)
            parts.append(m.group(0))
        else:
            removed += 1
        last_index = m.end()
    parts.append(text[last_index:])

    out = _EXTRA_BLANK_LINES_RE.sub(lambda m: m.group(1) or "\n\n", "".join(parts))
    return DedupeResult(markdown=out, removed=removed)


def details_block(
    body_lines: list[str],
    *,
    summary: str = "Details",
    indent: str = "",
) -> list[str]:
    """Details block."""
    if not body_lines:
        return []
    lines = [
        f"{indent}<details>",
        f"{indent}<summary>{summary}</summary>",
        "",
    ]
    for ln in body_lines:
        if ln:
            lines.append(f"{indent}{ln}")
        else:
            lines.append("")
    lines.extend(["", f"{indent}</details>"])
    return lines
