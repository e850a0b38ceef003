"""Content hashes that tell whether the code under a comment changed."""

from __future__ import annotations

import hashlib
import re
from typing import Protocol

from .markers import COMMENT_MARKER_PREFIX

HASH_LENGTH = 8

_HASH_IN_MARKER_RE = re.compile(re.escape(COMMENT_MARKER_PREFIX) + r"[^>]+ HASH:([a-f0-9]{8}) -->")


class HasBody(Protocol):
    body: str


def hash_line_content(content: str) -> str:
    """Short SHA-256 of the content, insensitive to indentation and blank lines."""
    normalized = "\n".join(
        stripped for stripped in (line.strip() for line in content.split("\n")) if stripped
    )
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:HASH_LENGTH]


def extract_line_content(file_content: str, line: int, start_line: int | None = None) -> str:
    """Lines `start_line..line` (1-based, inclusive) of the file, clamped to its length."""
    lines = file_content.split("\n")
    if start_line is not None:
        start = max(0, start_line - 1)
        end = min(len(lines), line)
        return "\n".join(lines[start:end])
    index = line - 1
    if 0 <= index < len(lines):
        return lines[index]
    return ""


def extract_content_hash(body: str) -> str | None:
    m = _HASH_IN_MARKER_RE.search(body or "")
    return m.group(1) if m else None


def should_replace_comment(existing: HasBody | None, current_hash: str) -> bool:
    """Whether an existing comment must be rewritten for the current content.

    Comments posted before hashes were embedded carry none and are always
    replaced.
    """
    if existing is None:
        return True
    existing_hash = extract_content_hash(existing.body)
    if existing_hash is None:
        return True
    return existing_hash != current_hash
