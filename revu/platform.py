"""The hosting-platform operations the reconciler depends on."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class CommentNotFoundError(LookupError):
    """The platform confirmed the comment does not exist (HTTP 404)."""


@dataclass(frozen=True)
class ExistingComment:
    id: int
    path: str
    body: str


class ReviewPlatform(Protocol):
    def list_review_comments(self, pr_number: int) -> list[ExistingComment]:
        ...

    def get_review_comment(self, comment_id: int) -> ExistingComment | None:
        """Return the comment, None (or raise CommentNotFoundError) when gone."""
        ...

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
        ...

    def update_review_comment(self, comment_id: int, body: str) -> None:
        ...

    def delete_review_comment(self, comment_id: int) -> None:
        ...

    def get_file_content(self, path: str, ref: str) -> str:
        ...

    def fetch_pull_request_diff(self, pr_number: int) -> str:
        ...

    def get_head_sha(self, pr_number: int) -> str:
        ...

    def create_review(self, pr_number: int, body: str) -> None:
        ...

    def upsert_issue_comment(self, pr_number: int, marker: str, body: str) -> str:
        """Create or update the PR conversation comment carrying `marker`."""
        ...


class Absence(Enum):
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True)
class CommentExistence:
    """exists=True, or exists=False with NOT_FOUND (safe to recreate) / ERROR (unknown)."""

    exists: bool
    reason: Absence | None = None
    cause: BaseException | None = None


def check_comment_existence(platform: ReviewPlatform, comment_id: int) -> CommentExistence:
    try:
        comment = platform.get_review_comment(comment_id)
    except CommentNotFoundError:
        return CommentExistence(exists=False, reason=Absence.NOT_FOUND)
    except Exception as exc:
        return CommentExistence(exists=False, reason=Absence.ERROR, cause=exc)
    if comment is None:
        return CommentExistence(exists=False, reason=Absence.NOT_FOUND)
    return CommentExistence(exists=True)
