"""HTML markers that identify revu line comments.

Every posted comment starts with

    <!-- REVU-AI-COMMENT path_to_file.py:12-14 HASH:1a2b3c4d -->

so later runs can find it again, tell whether the code under it changed, and
delete it once its lines leave the diff. Bodies without a well-formed marker
are not ours and are left alone.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

COMMENT_MARKER_PREFIX = "<!-- REVU-AI-COMMENT "
COMMENT_MARKER_SUFFIX = " -->"
SUMMARY_MARKER = "<!-- REVU-AI-SUMMARY -->"
ERROR_MARKER = "<!-- REVU-AI-ERROR -->"

_UNSAFE_PATH_CHARS_RE = re.compile(r"[^a-zA-Z0-9\-_:.]")
_MARKER_RE = re.compile(re.escape(COMMENT_MARKER_PREFIX) + r"(.+?)" + re.escape(COMMENT_MARKER_SUFFIX))
# Sanitized paths keep ":", so the last ":" before the line spec is the separator.
_MARKER_ID_RE = re.compile(r"^(?P<path>[^\s]+):(?P<lines>\d+(?:-\d+)?)(?: HASH:(?P<hash>[a-f0-9]{8}))?$")


@dataclass(frozen=True)
class MarkerInfo:
    path: str
    line_spec: str
    content_hash: str | None = None


def sanitize_path(path: str) -> str:
    return _UNSAFE_PATH_CHARS_RE.sub("_", path)


def format_marker_id(
    path: str,
    line: int,
    start_line: int | None = None,
    content_hash: str | None = None,
) -> str:
    """Deterministic id for a comment position, optionally with its content hash."""
    line_range = f"{start_line}-{line}" if start_line is not None else f"{line}"
    base_id = f"{sanitize_path(path)}:{line_range}"
    return f"{base_id} HASH:{content_hash}" if content_hash else base_id


def format_marker(
    path: str,
    line: int,
    start_line: int | None = None,
    content_hash: str | None = None,
) -> str:
    return f"{COMMENT_MARKER_PREFIX}{format_marker_id(path, line, start_line, content_hash)}{COMMENT_MARKER_SUFFIX}"


def extract_marker_id(body: str) -> str | None:
    """Marker id embedded in a comment body, or None when absent or malformed."""
    m = _MARKER_RE.search(body or "")
    if not m:
        return None
    marker_id = m.group(1)
    if not _MARKER_ID_RE.match(marker_id):
        return None
    return marker_id


def parse_marker_id(marker_id: str) -> MarkerInfo | None:
    m = _MARKER_ID_RE.match(marker_id or "")
    if not m:
        return None
    return MarkerInfo(path=m.group("path"), line_spec=m.group("lines"), content_hash=m.group("hash"))


def strip_hash(marker_id: str) -> str:
    return marker_id.split(" HASH:", 1)[0]


def has_marker(body: str) -> bool:
    return COMMENT_MARKER_PREFIX in (body or "")
