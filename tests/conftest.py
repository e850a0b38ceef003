"""Import helpers for scripts that aren't packages, plus an in-memory platform."""
import importlib.util
from pathlib import Path

import pytest

from revu.config import _reset_process_config_for_tests
from revu.platform import CommentNotFoundError, ExistingComment

SCRIPTS_DIR = Path(__file__).parent.parent / "scripts"


def _import_script(name: str, filename: str):
    """Import a script file as a module using importlib."""
    spec = importlib.util.spec_from_file_location(name, SCRIPTS_DIR / filename)
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    return mod


post_line_comments = _import_script("post_line_comments", "post-line-comments.py")


class FakePlatform:
    """ReviewPlatform keeping PR state in memory and recording every call."""

    def __init__(self, *, files=None, diff="", head_sha="abc123"):
        self.files = dict(files or {})
        self.diff = diff
        self.head_sha = head_sha
        self.comments: dict[int, ExistingComment] = {}
        self.issue_comments: dict[int, str] = {}
        self.reviews: list[str] = []
        self.calls: list[tuple] = []
        self.fail_get: Exception | None = None
        self.fail_delete: Exception | None = None
        self.fail_list: Exception | None = None
        self.fail_file: Exception | None = None
        self.hidden: set[int] = set()
        self._next_id = 1000

    def add_comment(self, path: str, body: str) -> int:
        self._next_id += 1
        self.comments[self._next_id] = ExistingComment(id=self._next_id, path=path, body=body)
        return self._next_id

    def list_review_comments(self, pr_number):
        self.calls.append(("list", pr_number))
        if self.fail_list is not None:
            raise self.fail_list
        return list(self.comments.values())

    def get_review_comment(self, comment_id):
        self.calls.append(("get", comment_id))
        if self.fail_get is not None:
            raise self.fail_get
        if comment_id in self.hidden or comment_id not in self.comments:
            raise CommentNotFoundError(comment_id)
        return self.comments[comment_id]

    def create_review_comment(self, *, pr_number, commit_sha, path, line, start_line, body):
        self.calls.append(("create", path, line, start_line))
        self.add_comment(path, body)

    def update_review_comment(self, comment_id, body):
        self.calls.append(("update", comment_id))
        old = self.comments[comment_id]
        self.comments[comment_id] = ExistingComment(id=comment_id, path=old.path, body=body)

    def delete_review_comment(self, comment_id):
        self.calls.append(("delete", comment_id))
        if self.fail_delete is not None:
            raise self.fail_delete
        del self.comments[comment_id]

    def get_file_content(self, path, ref):
        self.calls.append(("file", path, ref))
        if self.fail_file is not None:
            raise self.fail_file
        return self.files.get(path, "")

    def fetch_pull_request_diff(self, pr_number):
        self.calls.append(("diff", pr_number))
        return self.diff

    def get_head_sha(self, pr_number):
        return self.head_sha

    def create_review(self, pr_number, body):
        self.calls.append(("review", pr_number))
        self.reviews.append(body)

    def upsert_issue_comment(self, pr_number, marker, body):
        for comment_id, existing in self.issue_comments.items():
            if marker in existing:
                self.issue_comments[comment_id] = body
                return "updated"
        self._next_id += 1
        self.issue_comments[self._next_id] = body
        return "created"

    def ops(self, kind: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == kind]


@pytest.fixture
def platform():
    return FakePlatform()


@pytest.fixture(autouse=True)
def _fresh_process_config():
    _reset_process_config_for_tests()
    yield
    _reset_process_config_for_tests()
