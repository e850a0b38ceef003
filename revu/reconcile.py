"""Reconcile proposed line comments with the ones already on the PR.

One pass, in this order:

1. Cleanup: delete our comments whose recorded lines are no longer all part
   of the diff.
2. For each proposed comment: skip it when GitHub would not accept its
   position, otherwise create it, update the existing comment for the same
   position when the code under it changed, or skip it when nothing changed.

Cleanup completes before any comment is created or updated. Failures for a single comment are
logged and counted as skipped; failing to list the existing comments aborts
the pass.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass

from .analysis import Comment
from .config import RevuConfig
from .content_hash import extract_line_content, hash_line_content, should_replace_comment
from .diff_model import DiffFileMap, DiffInfo
from .hunks import constrain_comment_to_hunk, is_comment_valid_for_diff
from .line_range import LineSpecError, lines_in_diff, parse_line_spec
from .log import notice, warn
from .markdown import contains_equivalent_suggestion_block, dedupe_suggestion_blocks, render_suggestion
from .markers import (
    extract_marker_id,
    format_marker,
    format_marker_id,
    has_marker,
    parse_marker_id,
    sanitize_path,
    strip_hash,
)
from .platform import Absence, ExistingComment, ReviewPlatform, check_comment_existence
from .search_replace import process_search_replace_blocks

HashFn = Callable[[str], str]

CREATED = "created"
UPDATED = "updated"
SKIPPED = "skipped"


@dataclass
class ReconciliationStats:
    created: int = 0
    updated: int = 0
    deleted: int = 0
    skipped: int = 0

    def record(self, outcome: str) -> None:
        setattr(self, outcome, getattr(self, outcome) + 1)

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class PreparedComment:
    """Final position and body (marker included) of a comment about to be posted."""

    comment: Comment
    body: str


def find_existing_comments(platform: ReviewPlatform, pr_number: int) -> list[ExistingComment]:
    """Review comments on the PR that carry a revu marker."""
    return [c for c in platform.list_review_comments(pr_number) if has_marker(c.body)]


def _index_by_marker_path(diff_map: DiffFileMap) -> dict[str, DiffInfo]:
    # Markers store sanitized paths ("src/app.py" -> "src_app.py").
    return {sanitize_path(path): info for path, info in diff_map.items()}


def is_obsolete(body: str, diff_index: dict[str, DiffInfo]) -> bool:
    """True when the comment's recorded lines are not all still changed.

    Comments without a parseable marker are never obsolete: they may come
    from another tool or a newer marker format.
    """
    marker_id = extract_marker_id(body)
    if marker_id is None:
        return False
    info = parse_marker_id(marker_id)
    if info is None:
        return False
    try:
        line_range = parse_line_spec(info.line_spec)
    except LineSpecError:
        return False
    return not lines_in_diff(line_range, diff_index.get(info.path))


def cleanup_obsolete_comments(platform: ReviewPlatform, pr_number: int, diff_map: DiffFileMap) -> int:
    """Delete our comments that no longer point at changed lines; return the count."""
    diff_index = _index_by_marker_path(diff_map)
    deleted = 0
    for comment in find_existing_comments(platform, pr_number):
        if not is_obsolete(comment.body, diff_index):
            continue
        try:
            platform.delete_review_comment(comment.id)
        except Exception as exc:
            warn(f"Failed to delete obsolete comment {comment.id}: {exc}")
            continue
        deleted += 1
    return deleted


def _reposition(comment: Comment, start: int, end: int) -> Comment | None:
    # Processor spans are 0-based and not guaranteed ordered.
    first = min(start, end) + 1
    last = max(start, end) + 1
    if first <= 0 or last <= 0:
        return None
    return comment.moved_to(last, first)


def _apply_search_replace(
    comment: Comment,
    file_content: str,
    diff_map: DiffFileMap | None,
) -> tuple[Comment, str | None, bool]:
    """Run the comment's blocks; return its position, a rendered suggestion and
    whether the blocks applied.

    Failing blocks fall back to the original position and no suggestion. Blocks
    that applied to an unusable span also drop the suggestion, and the payload's
    own `suggestion` is not rendered in their place.
    """
    try:
        result = process_search_replace_blocks(file_content, comment.search_replace_blocks)
    except Exception as exc:
        warn(
            f"SEARCH/REPLACE processing error for {comment.location()}: {exc}. "
            "Falling back to original comment positioning."
        )
        return comment, None, False

    if not result.success or result.replacement_content is None:
        details = "; ".join(result.errors) or "Unknown error"
        warn(
            f"SEARCH/REPLACE block matching failed for {comment.location()}. Errors: {details}. "
            f"Applied blocks: {result.applied_blocks}. Falling back to original comment positioning."
        )
        return comment, None, False

    suggestion = render_suggestion(result.replacement_content)
    if result.original_start_line is None or result.original_end_line is None:
        return comment, suggestion, True

    moved = _reposition(comment, result.original_start_line, result.original_end_line)
    if moved is None:
        warn(
            f"Invalid line range from SEARCH/REPLACE processing for {comment.path}: "
            f"start={result.original_start_line + 1}, end={result.original_end_line + 1}. "
            "Falling back to original comment positioning."
        )
        return comment, None, True
    if diff_map is not None and not is_comment_valid_for_diff(moved, diff_map):
        warn(
            f"SEARCH/REPLACE for {comment.location()} targets {moved.location()}, "
            "which is outside a single diff hunk. Falling back to original comment positioning."
        )
        return comment, None, True
    return moved, suggestion, True


def prepare_comment_content(
    comment: Comment,
    file_content: str,
    content_hash: str | None = None,
    *,
    diff_map: DiffFileMap | None = None,
    enable_search_replace: bool = True,
) -> PreparedComment:
    """Build the posted body: marker, model text, and at most one suggestion per fix."""
    final = comment
    suggestion = None
    applied = False
    if enable_search_replace and comment.search_replace_blocks:
        final, suggestion, applied = _apply_search_replace(comment, file_content, diff_map)
    if not applied and comment.suggestion:
        suggestion = render_suggestion(comment.suggestion)

    marker = format_marker(final.path, final.line, final.start_line, content_hash)
    body = f"{marker}\n\n{comment.body}"
    if suggestion is not None and not contains_equivalent_suggestion_block(body, suggestion):
        body = f"{body}\n\n{suggestion}"

    return PreparedComment(comment=final, body=dedupe_suggestion_blocks(body).markdown)


def find_matching_comment(existing: Sequence[ExistingComment], comment: Comment) -> ExistingComment | None:
    """Existing comment for the same file and line range, hash ignored."""
    wanted = format_marker_id(comment.path, comment.line, comment.start_line)
    for candidate in existing:
        if candidate.path != comment.path:
            continue
        marker_id = extract_marker_id(candidate.body)
        if marker_id is not None and strip_hash(marker_id) == wanted:
            return candidate
    return None


def _placeable(comment: Comment, diff_map: DiffFileMap, config: RevuConfig) -> Comment | None:
    if is_comment_valid_for_diff(comment, diff_map):
        return comment
    info = diff_map.get(comment.path)
    if not config.line_comments.constrain_cross_hunk or info is None or comment.start_line is None:
        return None
    constrained = constrain_comment_to_hunk(comment, info.hunks)
    if constrained is None or not is_comment_valid_for_diff(constrained, diff_map):
        return None
    notice(f"Narrowed {comment.location()} to {constrained.location()} to fit a single hunk.")
    return constrained


class _FileContents:
    """File content at the PR head, fetched at most once per path in a pass."""

    def __init__(self, platform: ReviewPlatform, commit_sha: str) -> None:
        self._platform = platform
        self._commit_sha = commit_sha
        self._cache: dict[str, str] = {}

    def get(self, path: str) -> str:
        if path not in self._cache:
            self._cache[path] = self._platform.get_file_content(path, self._commit_sha)
        return self._cache[path]


def _post(
    platform: ReviewPlatform,
    pr_number: int,
    commit_sha: str,
    prepared: PreparedComment,
    existing: ExistingComment | None,
) -> str:
    comment = prepared.comment
    if existing is not None:
        existence = check_comment_existence(platform, existing.id)
        if existence.exists:
            platform.update_review_comment(existing.id, prepared.body)
            return UPDATED
        if existence.reason is not Absence.NOT_FOUND:
            warn(f"Unable to verify comment {existing.id} existence, skipping update: {existence.cause}")
            return SKIPPED
        notice(f"Comment {existing.id} no longer exists, creating new one")

    platform.create_review_comment(
        pr_number=pr_number,
        commit_sha=commit_sha,
        path=comment.path,
        line=comment.line,
        start_line=comment.start_line,
        body=prepared.body,
    )
    return CREATED


def reconcile_line_comments(
    platform: ReviewPlatform,
    pr_number: int,
    commit_sha: str,
    diff_map: DiffFileMap,
    comments: Sequence[Comment],
    *,
    config: RevuConfig,
    hash_content: HashFn = hash_line_content,
) -> ReconciliationStats:
    """Converge the PR's revu comments on `comments`; return what was done."""
    stats = ReconciliationStats()
    options = config.line_comments

    if options.cleanup_obsolete:
        stats.deleted = cleanup_obsolete_comments(platform, pr_number, diff_map)

    existing = find_existing_comments(platform, pr_number)
    files = _FileContents(platform, commit_sha)
    handled: set[str] = set()

    considered = list(comments)
    if options.max_comments is not None and len(considered) > options.max_comments:
        notice(f"Only the first {options.max_comments} of {len(considered)} proposed comments are placed.")
        stats.skipped += len(considered) - options.max_comments
        considered = considered[: options.max_comments]

    for proposed in considered:
        comment = _placeable(proposed, diff_map, config)
        if comment is None:
            notice(f"Skipping comment on {proposed.location()} - not valid for current diff")
            stats.skipped += 1
            continue

        try:
            file_content = files.get(comment.path)
            content_hash = hash_content(extract_line_content(file_content, comment.line, comment.start_line))
            prepared = prepare_comment_content(
                comment,
                file_content,
                content_hash,
                diff_map=diff_map,
                enable_search_replace=options.enable_search_replace,
            )

            position = format_marker_id(prepared.comment.path, prepared.comment.line, prepared.comment.start_line)
            if position in handled:
                notice(f"Skipping comment on {prepared.comment.location()} - already placed in this pass")
                stats.skipped += 1
                continue
            handled.add(position)

            match = find_matching_comment(existing, prepared.comment)
            if match is not None and not should_replace_comment(match, content_hash):
                notice(f"Skipping comment on {prepared.comment.location()} - content unchanged")
                stats.skipped += 1
                continue

            stats.record(_post(platform, pr_number, commit_sha, prepared, match))
        except Exception as exc:
            warn(f"Failed to place comment on {comment.location()}: {exc}")
            stats.skipped += 1

    return stats
