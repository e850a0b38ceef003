"""Post a review's line comments for one PR, end to end.

Any failure of the pass as a whole (bad analysis payload, failed diff or
comment listing) is reported on the PR through a single upserted error
comment instead of being dropped.
"""

from __future__ import annotations

import time

from .analysis import parse_analysis
from .config import RevuConfig
from .diff_model import parse_diff
from .log import log_event
from .markdown import details_block
from .markers import ERROR_MARKER, SUMMARY_MARKER
from .platform import ReviewPlatform
from .reconcile import ReconciliationStats, reconcile_line_comments


def format_summary(summary: str) -> str:
    return f"{SUMMARY_MARKER}\n\n{summary}"


def format_result_message(pr_number: int, stats: ReconciliationStats) -> str:
    return (
        f"PR #{pr_number}: Created {stats.created}, updated {stats.updated}, "
        f"deleted {stats.deleted}, and skipped {stats.skipped} line comments"
    )


def format_error_comment(error_message: str, *, config: RevuConfig) -> str:
    headline, _, rest = error_message.partition("\n")
    lines = [ERROR_MARKER, "", f"An error occurred: {headline}"]
    if rest.strip():
        lines.append("")
        lines.extend(details_block(["```text", *rest.strip().splitlines(), "```"], summary="Error details"))
    if config.error_comment.logs_url:
        lines.extend(["", f"[Revu logs]({config.error_comment.logs_url})"])
    return "\n".join(lines)


def error_comment_handler(
    platform: ReviewPlatform,
    pr_number: int,
    error_message: str,
    *,
    config: RevuConfig,
) -> str:
    """Create or update the PR's revu error comment; return a status message."""
    platform.upsert_issue_comment(pr_number, ERROR_MARKER, format_error_comment(error_message, config=config))
    headline = error_message.partition("\n")[0]
    return f"PR #{pr_number}: posted error comment ({headline})"


def handle_line_comments(
    platform: ReviewPlatform,
    pr_number: int,
    analysis_text: str,
    *,
    config: RevuConfig,
    repository: str,
    review_type: str = "on-demand",
) -> str:
    """Parse the analysis, post the summary review and reconcile line comments."""
    started = time.monotonic()
    log_event("review_started", pr_number=pr_number, repository=repository, review_type=review_type)

    try:
        analysis = parse_analysis(analysis_text)
        platform.create_review(pr_number, format_summary(analysis.summary))
        commit_sha = platform.get_head_sha(pr_number)
        diff_map = parse_diff(platform.fetch_pull_request_diff(pr_number))

        stats = reconcile_line_comments(
            platform,
            pr_number,
            commit_sha,
            diff_map,
            analysis.comments,
            config=config,
        )
    except Exception as exc:
        log_event(
            "review_failed",
            level="error",
            pr_number=pr_number,
            repository=repository,
            review_type=review_type,
            duration_ms=int((time.monotonic() - started) * 1000),
            error_message=str(exc),
        )
        log_event(
            "system_error",
            level="error",
            pr_number=pr_number,
            repository=repository,
            error_message=f"Error parsing or creating line comments, falling back to error comment: {exc}",
        )
        return error_comment_handler(
            platform,
            pr_number,
            f"Error processing line comments: {exc}",
            config=config,
        )

    log_event(
        "review_completed",
        pr_number=pr_number,
        repository=repository,
        review_type=review_type,
        duration_ms=int((time.monotonic() - started) * 1000),
        comments=stats.as_dict(),
    )
    return format_result_message(pr_number, stats)
