"""GitHub PR review utilities over the gh CLI.

Implements the ReviewPlatform operations revu needs: list/get/create/update/
delete review comments, read files at a commit, fetch the PR diff, post the
summary review, and upsert the error comment by HTML marker.
"""
from __future__ import annotations

import base64
import json
import os
import random
import subprocess
import sys
import tempfile
import time
from urllib.parse import quote

from .platform import CommentNotFoundError, ExistingComment

DIFF_MEDIA_TYPE = "application/vnd.github.v3.diff"


class CommentPermissionError(Exception):
    """Token lacks pull-requests: write permission."""


class TransientGitHubError(Exception):
    """GitHub API returned a transient error (5xx)."""


def _has_http_status(stderr: str, codes: tuple[str, ...]) -> bool:
    lower_stderr = stderr.lower()
    # Handle both gh CLI format "(http 503)" and raw "HTTP 503" formats
    return any(
        f"(http {code})" in lower_stderr or f"http {code}" in lower_stderr
        for code in codes
    )


def _is_transient_error(stderr: str) -> bool:
    """Check if error is a transient GitHub API error (5xx)."""
    return _has_http_status(stderr, ("502", "503", "504"))


def _is_not_found_error(stderr: str) -> bool:
    return _has_http_status(stderr, ("404",))


def _run_gh(
    args: list[str],
    *,
    check: bool = True,
    max_retries: int = 3,
    base_delay: float = 1.0,
) -> subprocess.CompletedProcess[str]:
    """Run a gh CLI command with retry logic for transient errors.

    Args:
        args: Arguments to pass to gh CLI
        check: Whether to raise on non-zero exit code
        max_retries: Maximum number of retry attempts for transient errors
        base_delay: Base delay in seconds between retries (uses exponential backoff)

    Returns:
        CompletedProcess result from the gh command

    Raises:
        CommentPermissionError: Token lacks pull-requests: write permission
        CommentNotFoundError: The addressed resource does not exist (404)
        TransientGitHubError: GitHub API returned 5xx after all retries
        subprocess.CalledProcessError: Other gh CLI failures
    """
    for attempt in range(max_retries):
        result = subprocess.run(
            ["gh", *args], capture_output=True, text=True, check=False
        )

        if result.returncode == 0:
            return result

        stderr = (result.stderr or "").lower()

        # Check for permission errors (don't retry these)
        if any(s in stderr for s in ("403", "resource not accessible", "insufficient")):
            raise CommentPermissionError(
                "Unable to post PR review comment: token lacks pull-requests: write permission.\n"
                "Add this to your workflow:\n"
                "permissions:\n"
                "  contents: read\n"
                "  pull-requests: write"
            )

        if _is_not_found_error(stderr):
            raise CommentNotFoundError(f"gh {' '.join(args[:2])}: {result.stderr.strip()}")

        # Check for transient errors (5xx) and retry
        if _is_transient_error(result.stderr or ""):
            if attempt < max_retries - 1:
                # Exponential backoff with jitter: 1s, 2s, 4s + random jitter
                delay = base_delay * (2 ** attempt) + random.uniform(0, 0.5)
                print(
                    f"::warning::GitHub API error (attempt {attempt + 1}/{max_retries}), "
                    f"retrying in {delay:.1f}s...",
                    file=sys.stderr,
                )
                time.sleep(delay)
                continue
            raise TransientGitHubError(
                f"GitHub API returned transient error after {max_retries} attempts: "
                f"{result.stderr}"
            )

        # Non-transient error - fail immediately
        if check:
            raise subprocess.CalledProcessError(
                result.returncode, result.args, result.stdout, result.stderr
            )
        return result

    # The loop must either return or raise. This code should be unreachable.
    raise RuntimeError("_run_gh retry loop exited unexpectedly")


def _api_json(args: list[str]) -> object:
    result = _run_gh(["api", *args])
    return json.loads(result.stdout or "null")


def _send_json(method: str, endpoint: str, payload: dict[str, object]) -> dict:
    with tempfile.NamedTemporaryFile("w", encoding="utf-8", suffix=".json", delete=False) as handle:
        json.dump(payload, handle)
        handle.flush()
        tmp_path = handle.name
    try:
        result = _run_gh(["api", "-X", method, endpoint, "--input", tmp_path])
    finally:
        os.unlink(tmp_path)
    data = json.loads(result.stdout or "{}")
    return data if isinstance(data, dict) else {}


def _flatten_pages(pages: object) -> list[dict]:
    # --paginate without --slurp does not produce valid JSON.
    if not isinstance(pages, list):
        return []
    items: list[dict] = []
    for page in pages:
        if isinstance(page, list):
            items.extend(item for item in page if isinstance(item, dict))
        elif isinstance(page, dict):
            items.append(page)
    return items


def _to_existing(item: dict) -> ExistingComment | None:
    comment_id = item.get("id")
    if not isinstance(comment_id, int) or isinstance(comment_id, bool):
        return None
    return ExistingComment(
        id=comment_id,
        path=str(item.get("path") or ""),
        body=str(item.get("body") or ""),
    )


def find_comment_by_marker(comments: list[dict], marker: str) -> int | None:
    """Find the first comment containing the marker, return its numeric ID."""
    for comment in comments:
        body = str(comment.get("body", ""))
        if marker in body:
            comment_id = comment.get("id")
            if isinstance(comment_id, int):
                return comment_id
    return None


def review_comment_payload(
    *,
    commit_sha: str,
    path: str,
    line: int,
    start_line: int | None,
    body: str,
) -> dict[str, object]:
    payload: dict[str, object] = {
        "body": body,
        "commit_id": commit_sha,
        "path": path,
        "line": line,
        "side": "RIGHT",
    }
    # GitHub rejects multi-line comments whose start_line is not before line.
    if start_line is not None and start_line < line:
        payload["start_line"] = start_line
        payload["start_side"] = "RIGHT"
    return payload


class GhReviewPlatform:
    """ReviewPlatform backed by `gh api` for one repository ("owner/repo")."""

    def __init__(self, repo: str) -> None:
        self.repo = repo

    def list_review_comments(self, pr_number: int) -> list[ExistingComment]:
        pages = _api_json(
            ["--paginate", "--slurp", f"repos/{self.repo}/pulls/{pr_number}/comments?per_page=100"]
        )
        comments = (_to_existing(item) for item in _flatten_pages(pages))
        return [c for c in comments if c is not None]

    def get_review_comment(self, comment_id: int) -> ExistingComment | None:
        data = _api_json([f"repos/{self.repo}/pulls/comments/{comment_id}"])
        return _to_existing(data) if isinstance(data, dict) else None

    def create_review_comment(
        self,
        *,
        pr_number: int,
        commit_sha: str,
        path: str,
        line: int,
        start_line: int | None,
        body: str,
    ) -> None:
        _send_json(
            "POST",
            f"repos/{self.repo}/pulls/{pr_number}/comments",
            review_comment_payload(
                commit_sha=commit_sha, path=path, line=line, start_line=start_line, body=body
            ),
        )

    def update_review_comment(self, comment_id: int, body: str) -> None:
        _send_json("PATCH", f"repos/{self.repo}/pulls/comments/{comment_id}", {"body": body})

    def delete_review_comment(self, comment_id: int) -> None:
        _run_gh(["api", "-X", "DELETE", f"repos/{self.repo}/pulls/comments/{comment_id}"])

    def get_file_content(self, path: str, ref: str) -> str:
        data = _api_json([f"repos/{self.repo}/contents/{quote(path, safe='/')}?ref={quote(ref)}"])
        if not isinstance(data, dict) or not data.get("content"):
            return ""
        return base64.b64decode(str(data["content"])).decode("utf-8", errors="replace")

    def fetch_pull_request_diff(self, pr_number: int) -> str:
        result = _run_gh(
            ["api", "-H", f"Accept: {DIFF_MEDIA_TYPE}", f"repos/{self.repo}/pulls/{pr_number}"]
        )
        return result.stdout or ""

    def get_head_sha(self, pr_number: int) -> str:
        data = _api_json([f"repos/{self.repo}/pulls/{pr_number}"])
        head = data.get("head") if isinstance(data, dict) else None
        sha = head.get("sha") if isinstance(head, dict) else None
        if not isinstance(sha, str) or not sha:
            raise ValueError(f"PR #{pr_number} has no head sha")
        return sha

    def create_review(self, pr_number: int, body: str) -> None:
        _send_json(
            "POST",
            f"repos/{self.repo}/pulls/{pr_number}/reviews",
            {"event": "COMMENT", "body": body},
        )

    def fetch_issue_comments(self, pr_number: int) -> list[dict]:
        pages = _api_json(
            ["--paginate", "--slurp", f"repos/{self.repo}/issues/{pr_number}/comments?per_page=100"]
        )
        return _flatten_pages(pages)

    def upsert_issue_comment(self, pr_number: int, marker: str, body: str) -> str:
        """Find existing PR comment by HTML marker, update or create."""
        existing_id = find_comment_by_marker(self.fetch_issue_comments(pr_number), marker)
        if existing_id is not None:
            _send_json("PATCH", f"repos/{self.repo}/issues/comments/{existing_id}", {"body": body})
            return "updated"
        _send_json("POST", f"repos/{self.repo}/issues/{pr_number}/comments", {"body": body})
        return "created"
